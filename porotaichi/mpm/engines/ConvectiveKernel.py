import taichi as ti

from porotaichi.mpm.materials.MaterialParameters import UNSATURATED_3PHASE
from porotaichi.utils.constants import (LIQUID, MIXTURE, PHASE_LIQUID, FULLY_FILLED_RATIO, SOLID_FILLED_RATIO, Threshold, ZEROVEC3f, ZEROMAT3x3,
                                        ATMOSPHERIC_PRESSURE, ABSOLUTE_ZERO, REFERENCE_WATER_DENSITY, WATER_THERMAL_EXPANSION, MOLAR_MASS_AIR,
                                        MOLAR_MASS_WATER, GAS_CONSTANT, HENRY_CONSTANT)
from porotaichi.utils.MaterialKernel import calculate_strain_increment, calculate_vorticity_increment
from porotaichi.utils.TypeDefination import vec3f


@ti.func
def use_centre_gradient(element_cell, nc, mixed: ti.template()):
    centre = 0
    if ti.static(mixed):
        if int(element_cell[nc].fully_filled) == 1 and element_cell[nc]._is_homogeneous():
            centre = 1
    return centre


@ti.func
def displacement_gradient(dshape, entity_node, element, nc, ne, phase: ti.template()):
    gradient = ZEROMAT3x3
    for k in ti.static(range(element.nodes_per_element)):
        ng = element.node_connectivity[nc][k]
        du = entity_node[ng, ne].du
        if ti.static(phase == 1):
            du = entity_node[ng, ne].du_w
        elif ti.static(phase == 2):
            du = entity_node[ng, ne].du_g
        for i in ti.static(range(3)):
            for j in ti.static(range(3)):
                gradient[i, j] += dshape[k, i] * du[j]
    return gradient


@ti.kernel
def kernel_incremental_displacement(entity_node: ti.template(), dt: ti.template()):
    for ng, ne in entity_node:
        entity_node[ng, ne].du = entity_node[ng, ne].v * dt[None]
        entity_node[ng, ne].du_w = entity_node[ng, ne].vw * dt[None]
        entity_node[ng, ne].du_g = entity_node[ng, ne].vg * dt[None]
        entity_node[ng, ne].disp += entity_node[ng, ne].du


@ti.kernel
def kernel_update_mesh_coordinates(node: ti.template(), entity_node: ti.template(), hard_entity: int):
    for ng in node:
        node[ng].x += entity_node[ng, hard_entity].du


@ti.kernel
def kernel_reset_liquid_field(node: ti.template()):
    for ng in node:
        node[ng].liquid_density = 0.
        node[ng].liquid_volume = 0.
        node[ng].liquid_pressure = 0.
        node[ng].solid_concentration = 0.


@ti.kernel
def kernel_liquid_field_p2g(particleNum: int, particle: ti.template(), node: ti.template(), element: ti.template(), mass: ti.template(),
                            volume: ti.template(), solid_volume: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            nc = particle[np].element
            shape = element.shape_fn[np]
            if int(particle[np].mptype) == LIQUID:
                for k in ti.static(range(element.nodes_per_element)):
                    ng = element.node_connectivity[nc][k]
                    mass[ng] += shape[k] * particle[np].mw
                    volume[ng] += shape[k] * particle[np].vol
                    node[ng].liquid_pressure += shape[k] * particle[np].pw * particle[np].vol
            else:
                for k in ti.static(range(element.nodes_per_element)):
                    ng = element.node_connectivity[nc][k]
                    solid_volume[ng] += shape[k] * particle[np].vol
                    node[ng].solid_concentration += shape[k] * (1. - particle[np].porosity) * particle[np].vol


@ti.kernel
def kernel_liquid_field_average(node: ti.template(), mass: ti.template(), volume: ti.template(), solid_volume: ti.template()):
    for ng in node:
        if volume[ng] > Threshold:
            node[ng].liquid_density = mass[ng] / volume[ng]
            node[ng].liquid_volume = volume[ng]
            node[ng].liquid_pressure /= volume[ng]
        if solid_volume[ng] > Threshold:
            node[ng].solid_concentration /= solid_volume[ng]


@ti.kernel
def kernel_liquid_pressure_g2p(particleNum: int, particle: ti.template(), node: ti.template(), element: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1 and int(particle[np].mptype) != LIQUID:
            nc = particle[np].element
            shape = element.shape_fn[np]
            pressure = 0.
            for k in ti.static(range(element.nodes_per_element)):
                pressure += shape[k] * node[element.node_connectivity[nc][k]].liquid_pressure
            particle[np].pw = pressure


@ti.kernel
def kernel_particle_strain_increment(particleNum: int, particle: ti.template(), entity_node: ti.template(), element: ti.template(),
                                     element_cell: ti.template(), mixed: ti.template(), water: ti.template(), gas: ti.template(), two_layer: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            nc = particle[np].element
            ne = particle[np].entityID
            dshape = element.dshape_fn[np]
            if use_centre_gradient(element_cell, nc, mixed) == 1:
                dshape = element.dshape_fnc[nc]

            phase = 0
            if ti.static(two_layer):
                if int(particle[np].mptype) == LIQUID:
                    phase = 1
            gradient = displacement_gradient(dshape, entity_node, element, nc, ne, 0)
            if phase == 1:
                gradient = displacement_gradient(dshape, entity_node, element, nc, ne, 1)
            dstrain = calculate_strain_increment(gradient)
            particle[np].dstrain = dstrain
            particle[np].strain += dstrain
            particle[np].spin = calculate_vorticity_increment(gradient)

            if ti.static(water):
                if int(particle[np].mptype) == MIXTURE:
                    gradient_w = displacement_gradient(dshape, entity_node, element, nc, ne, 1)
                    particle[np].dstrain_w = gradient_w[0, 0] + gradient_w[1, 1] + gradient_w[2, 2]
            if ti.static(gas):
                if int(particle[np].mptype) == MIXTURE:
                    gradient_g = displacement_gradient(dshape, entity_node, element, nc, ne, 2)
                    particle[np].dstrain_g = gradient_g[0, 0] + gradient_g[1, 1] + gradient_g[2, 2]


@ti.kernel
def kernel_particle_displacement(particleNum: int, particle: ti.template(), entity_node: ti.template(), element: ti.template(), two_layer: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            nc = particle[np].element
            ne = particle[np].entityID
            shape = element.shape_fn[np]
            du = ZEROVEC3f
            for k in ti.static(range(element.nodes_per_element)):
                ng = element.node_connectivity[nc][k]
                if ti.static(two_layer):
                    if int(particle[np].mptype) == LIQUID:
                        du += shape[k] * entity_node[ng, ne].du_w
                    else:
                        du += shape[k] * entity_node[ng, ne].du
                else:
                    du += shape[k] * entity_node[ng, ne].du
            particle[np].u += du


@ti.func
def update_liquid_density(particle, np, matProps, dvolumetric, fully_filled, rest_density):
    # the density follows the strain below the cavitation pressure or inside a filled element
    materialID = particle[np].materialID
    cavitation = 0.
    if int(matProps[materialID].has_cavitation) == 1:
        cavitation = matProps[materialID].cavitation
    free_surface = int(particle[np].free_surface) == 1
    pressure = particle[np].pw
    update = (not free_surface and pressure < cavitation) or ((pressure >= cavitation or free_surface) and fully_filled)
    if not update:
        particle[np].density = rest_density
    else:
        particle[np].free_surface = ti.u8(0)
        particle[np].density = particle[np].density / (1. + dvolumetric)
    mass = particle[np].m + particle[np].mw
    if particle[np].density > Threshold:
        particle[np].vol = mass / particle[np].density


@ti.kernel
def kernel_update_particle_weight(particleNum: int, particle: ti.template(), matProps: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            dvolumetric = particle[np].dstrain[0] + particle[np].dstrain[1] + particle[np].dstrain[2]
            if int(particle[np].mptype) == LIQUID:
                materialID = particle[np].materialID
                update_liquid_density(particle, np, matProps, dvolumetric, particle[np].filling > FULLY_FILLED_RATIO,
                                      matProps[materialID].threshold_density / 1000.)
            else:
                particle[np].vol *= 1. + dvolumetric


@ti.kernel
def kernel_update_particle_weight_two_layer(particleNum: int, particle: ti.template(), matProps: ti.template(), node: ti.template(),
                                            element: ti.template(), element_cell: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            dvolumetric = particle[np].dstrain[0] + particle[np].dstrain[1] + particle[np].dstrain[2]
            if int(particle[np].mptype) == LIQUID:
                materialID = particle[np].materialID
                nc = particle[np].element
                filled_ratio = FULLY_FILLED_RATIO
                concentration = 0.
                if int(element_cell[nc].has_solid) == 1:
                    filled_ratio = SOLID_FILLED_RATIO
                    shape = element.shape_fn[np]
                    for k in ti.static(range(element.nodes_per_element)):
                        concentration += shape[k] * node[element.node_connectivity[nc][k]].solid_concentration
                update_liquid_density(particle, np, matProps, dvolumetric, particle[np].filling > filled_ratio,
                                      matProps[materialID].density_liquid / 1000. * (1. - concentration))
            else:
                particle[np].vol *= 1. + dvolumetric


@ti.kernel
def kernel_update_porosity(particleNum: int, particle: ti.template(), matProps: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1 and int(particle[np].mptype) != LIQUID:
            dvolumetric = particle[np].dstrain[0] + particle[np].dstrain[1] + particle[np].dstrain[2]
            porosity = particle[np].porosity + (1. - particle[np].porosity) * dvolumetric
            particle[np].porosity = ti.max(porosity, 0.)
            if particle[np].porosity > matProps[particle[np].materialID].max_porosity:
                particle[np].phase_status = ti.u8(PHASE_LIQUID)


@ti.kernel
def kernel_update_particle_position(particleNum: int, particle: ti.template(), entity_node: ti.template(), element: ti.template(), two_layer: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            nc = particle[np].element
            ne = particle[np].entityID
            shape = element.shape_fn[np]
            du = ZEROVEC3f
            for k in ti.static(range(element.nodes_per_element)):
                ng = element.node_connectivity[nc][k]
                if ti.static(two_layer):
                    if int(particle[np].mptype) == LIQUID:
                        du += shape[k] * entity_node[ng, ne].du_w
                    else:
                        du += shape[k] * entity_node[ng, ne].du
                else:
                    du += shape[k] * entity_node[ng, ne].du
            particle[np].x += du


@ti.kernel
def kernel_update_particle_position_mesh(particleNum: int, particle: ti.template(), node: ti.template(), element: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            particle[np].x = element.global_position(particle[np].element, particle[np].xi, node)


@ti.func
def water_density(pressure, temperature, bulk_water):
    # t/m3, compression negative
    density = REFERENCE_WATER_DENSITY
    if bulk_water > Threshold:
        density = REFERENCE_WATER_DENSITY * ti.exp(-pressure / bulk_water + WATER_THERMAL_EXPANSION * temperature)
    return density


@ti.func
def vapour_pressure(suction, temperature):
    # kPa, Kelvin equation over the saturated vapour pressure
    kelvin = temperature + ABSOLUTE_ZERO
    saturated = 136075.e3 * ti.exp(-5239.7 / kelvin)
    return saturated * ti.exp(-MOLAR_MASS_WATER * ti.max(suction, 0.) / (GAS_CONSTANT * kelvin * REFERENCE_WATER_DENSITY * 1000.))


@ti.kernel
def kernel_update_saturation(particleNum: int, particle: ti.template(), matProps: ti.template(), gravity: ti.types.vector(3, float)):
    gnorm = gravity.norm()
    gdirection = ZEROVEC3f
    if gnorm > Threshold:
        gdirection = gravity / gnorm
    for np in range(particleNum):
        materialID = particle[np].materialID
        if int(particle[np].active) == 1 and int(particle[np].mptype) == MIXTURE and matProps[materialID]._has_water():
            suction = particle[np].pw - particle[np].pg
            saturation = matProps[materialID]._saturation(suction)
            particle[np].saturation = saturation
            particle[np].dsaturation = matProps[materialID]._dsaturation(suction)

            temperature = particle[np].temperature
            kelvin = temperature + ABSOLUTE_ZERO
            rho_w = water_density(particle[np].pw, temperature, particle[np].bulk_water)
            gas_absolute = ATMOSPHERIC_PRESSURE - particle[np].pg
            pv = vapour_pressure(suction, temperature)
            rho_g = 0.
            if matProps[materialID].mtype == UNSATURATED_3PHASE:
                rho_g = (pv * (MOLAR_MASS_WATER - MOLAR_MASS_AIR) + gas_absolute * MOLAR_MASS_AIR) / (GAS_CONSTANT * kelvin) / 1000.
            rho_dry_air = ti.max(gas_absolute - pv, 0.) * MOLAR_MASS_AIR / (GAS_CONSTANT * kelvin) / 1000.
            rho_vapour = pv * MOLAR_MASS_WATER / (GAS_CONSTANT * kelvin) / 1000.

            particle[np].air_in_water = HENRY_CONSTANT * rho_dry_air / rho_w
            particle[np].vapour_in_gas = 0.
            if rho_g > Threshold:
                particle[np].vapour_in_gas = rho_vapour / rho_g

            n = particle[np].porosity
            volume = particle[np].vol
            particle[np].weight_w = rho_w * gnorm
            particle[np].weight_g = ti.max(rho_g, 0.) * gnorm
            particle[np].weight_mix = particle[np].weight_dry + n * saturation * particle[np].weight_w + n * (1. - saturation) * particle[np].weight_g
            particle[np].fbody = particle[np].weight_mix * volume * gdirection
            particle[np].mw = n * saturation * rho_w * volume
            particle[np].mg = n * (1. - saturation) * ti.max(rho_g, 0.) * volume
            particle[np].conductivity = matProps[materialID]._conductivity(saturation)
