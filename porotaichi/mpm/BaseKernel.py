import taichi as ti

from porotaichi.mpm.materials.MaterialParameters import (SOLID_1PHASE, LIQUID_1PHASE, SATURATED_2PHASE, UNSATURATED_3PHASE,
                                                         UNDRAINED_EFFECTIVE)
from porotaichi.utils.constants import LIQUID, SOLID, ZEROVEC3f
from porotaichi.utils.TypeDefination import vec3f


@ti.kernel
def kernel_add_particles(particle: ti.template(), init_particleNum: int, particle_num: int, position: ti.types.ndarray(), volume: ti.types.ndarray(),
                         materialID: int, entityID: int, mptype: int, init_v: ti.types.vector(3, float), fix_v: ti.types.vector(3, int),
                         init_stress: ti.types.vector(6, float), porosity: float, saturation: float, temperature: float):
    for np in range(particle_num):
        i = init_particleNum + np
        particle[i]._set_essential(materialID, entityID, mptype, volume[np], vec3f(position[np, 0], position[np, 1], position[np, 2]),
                                   init_v, fix_v, init_stress, porosity, saturation, temperature)


@ti.kernel
def kernel_initialize_particle_mass(start_particle: int, end_particle: int, particle: ti.template(), matProps: ti.template(), two_layer: int,
                                    water_pressure: float, gas_pressure: float):
    # masses in t, densities of the material store in kg/m3
    for np in range(start_particle, end_particle):
        materialID = particle[np].materialID
        mtype = matProps[materialID].mtype
        n = particle[np].porosity
        Sr = particle[np].saturation
        volume = particle[np].vol
        rho_s = matProps[materialID].density_solid / 1000.
        rho_l = matProps[materialID].density_liquid / 1000.
        rho_g = matProps[materialID].density_gas / 1000.

        m, mw, mg = 0., 0., 0.
        if int(particle[np].mptype) == LIQUID:
            particle[np].density = rho_l
            if mtype == LIQUID_1PHASE:
                mw = rho_l * volume
        elif int(particle[np].mptype) == SOLID or mtype == SOLID_1PHASE:
            m = (1. - n) * rho_s * volume
        elif mtype == UNDRAINED_EFFECTIVE:
            m = matProps[materialID].density_mixture / 1000. * volume
        elif mtype == SATURATED_2PHASE:
            m = (1. - n) * rho_s * volume
            mw = n * rho_l * volume
        elif mtype == UNSATURATED_3PHASE:
            m = (1. - n) * rho_s * volume
            mw = n * Sr * rho_l * volume
            mg = n * (1. - Sr) * rho_g * volume

        if int(particle[np].mptype) == LIQUID and two_layer == 0:
            # single point liquids are advanced with the mixture field
            particle[np].m = mw
            particle[np].mw = 0.
        else:
            particle[np].m = m
            particle[np].mw = mw
        particle[np].mg = mg

        particle[np].bulk_water = matProps[materialID].bulk_water
        particle[np].weight_dry = matProps[materialID].weight_dry
        particle[np].weight_w = matProps[materialID].weight_liquid
        particle[np].weight_g = matProps[materialID].weight_gas
        particle[np].weight_mix = matProps[materialID].weight_mixture
        particle[np].conductivity = matProps[materialID]._conductivity(Sr)
        particle[np].conductivity_g = matProps[materialID].conductivity_gas
        particle[np].fbody = ZEROVEC3f
        if mtype == SATURATED_2PHASE or mtype == UNSATURATED_3PHASE or mtype == UNDRAINED_EFFECTIVE:
            particle[np].pw = water_pressure
            particle[np].pw0 = water_pressure
        if mtype == UNSATURATED_3PHASE:
            particle[np].pg = gas_pressure
            particle[np].pg0 = gas_pressure


@ti.kernel
def kernel_set_velocity_constraint(node: ti.template(), start_point: ti.types.vector(3, float), end_point: ti.types.vector(3, float),
                                   fix: ti.types.vector(3, int), velocity: ti.types.vector(3, float), tolerance: float) -> int:
    constrained = 0
    for ng in node:
        position = node[ng].x0
        inside = 1
        for d in ti.static(range(3)):
            if position[d] < start_point[d] - tolerance or position[d] > end_point[d] + tolerance:
                inside = 0
        if inside == 1:
            for d in ti.static(range(3)):
                if fix[d] == 1:
                    node[ng].fix[d] = ti.u8(1)
                    node[ng].prescribed_v[d] = velocity[d]
            constrained += 1
    return constrained


@ti.kernel
def kernel_clear_velocity_constraint(node: ti.template()):
    for ng in node:
        node[ng].fix = ti.Vector([0, 0, 0], ti.u8)
        node[ng].prescribed_v = ZEROVEC3f


@ti.kernel
def kernel_set_particle_force(particleNum: int, particle: ti.template(), start_point: ti.types.vector(3, float), end_point: ti.types.vector(3, float),
                              force: ti.types.vector(3, float), per_volume: int) -> int:
    loaded = 0
    for np in range(particleNum):
        position = particle[np].x
        inside = 1
        for d in ti.static(range(3)):
            if position[d] < start_point[d] or position[d] > end_point[d]:
                inside = 0
        if inside == 1:
            if per_volume == 1:
                particle[np].external_force += force * particle[np].vol
            else:
                particle[np].external_force += force
            loaded += 1
    return loaded


@ti.kernel
def kernel_set_particle_velocity(particleNum: int, particle: ti.template(), start_point: ti.types.vector(3, float), end_point: ti.types.vector(3, float),
                                 fix: ti.types.vector(3, int), velocity: ti.types.vector(3, float)) -> int:
    prescribed = 0
    for np in range(particleNum):
        position = particle[np].x
        inside = 1
        for d in ti.static(range(3)):
            if position[d] < start_point[d] or position[d] > end_point[d]:
                inside = 0
        if inside == 1:
            for d in ti.static(range(3)):
                if fix[d] == 1:
                    particle[np].fix_v[d] = ti.u8(1)
                    particle[np].prescribed_v[d] = velocity[d]
            particle[np]._apply_prescribed_velocity()
            prescribed += 1
    return prescribed
