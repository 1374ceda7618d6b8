import numpy as np
import taichi as ti

from porotaichi.mpm.engines.BalanceEquation import undrained_pressure_increment, water_pressure_increment
from porotaichi.mpm.engines.TimeStep import particle_wave_speed, two_layer_wave_speed
from porotaichi.mpm.materials.ConstitutiveModelBase import MODEL_ID
from porotaichi.mpm.materials.infinitesimal_strain.MohrCoulomb import REGION_APEX
from porotaichi.mpm.materials.MaterialParameters import SATURATED_2PHASE, UNSATURATED_3PHASE, UNDRAINED_EFFECTIVE
from porotaichi.utils.constants import LIQUID, MIXTURE, PHASE_LIQUID, ATMOSPHERIC_PRESSURE, ZEROVEC6f
from porotaichi.utils.MaterialKernel import Sigrot


RIGID_BODY = MODEL_ID["RigidBody"]


@ti.func
def is_skipped(particle, np, matProps, hard_entity):
    skipped = 0
    if matProps[particle[np].materialID].model == RIGID_BODY:
        skipped = 1
    elif int(particle[np].entityID) == hard_entity and particle[np]._is_prescribed():
        skipped = 1
    return skipped


@ti.func
def is_updated(particle, np, matProps, hard_entity):
    return int(particle[np].active) == 1 and is_skipped(particle, np, matProps, hard_entity) == 0


@ti.func
def cap_water_pressure(particle, np, matProps):
    materialID = particle[np].materialID
    if int(matProps[materialID].has_cavitation) == 1:
        particle[np].pw = ti.min(particle[np].pw, matProps[materialID].cavitation)


@ti.kernel
def kernel_reset_skipped_points(particleNum: int, particle: ti.template(), matProps: ti.template(), hard_entity: int):
    for np in range(particleNum):
        if int(particle[np].active) == 1 and is_skipped(particle, np, matProps, hard_entity) == 1:
            particle[np].stress = ZEROVEC6f
            particle[np].pw = 0.
            particle[np].pg = 0.
            particle[np].pbv = 0.


@ti.kernel
def kernel_pressure_increment(particleNum: int, particle: ti.template(), matProps: ti.template(), balance: ti.template(), hard_entity: int,
                              gravity: float, step: int, submerged_steps: int, water: ti.template(), gas: ti.template(), partial: ti.template(),
                              implicit: ti.template()):
    for np in range(particleNum):
        if is_updated(particle, np, matProps, hard_entity) and int(particle[np].mptype) == MIXTURE:
            materialID = particle[np].materialID
            mtype = matProps[materialID].mtype
            dvolumetric = particle[np].dstrain[0] + particle[np].dstrain[1] + particle[np].dstrain[2]
            dpressure_w, dpressure_g = 0., 0.
            if mtype == UNDRAINED_EFFECTIVE:
                dpressure_w = undrained_pressure_increment(particle[np].bulk_water, particle[np].porosity, dvolumetric)
            if ti.static(water):
                if mtype == SATURATED_2PHASE:
                    dpressure_w = water_pressure_increment(particle, np, gravity, partial)
                elif mtype == UNSATURATED_3PHASE:
                    if ti.static(gas):
                        dpressure_w, dpressure_g, dtemperature = balance.SolveBalanceEquations(particle, np)
                    else:
                        dpressure_w = water_pressure_increment(particle, np, gravity, partial)
                if ti.static(not gas):
                    if step <= submerged_steps:
                        dpressure_w = 0.

            if ti.static(implicit):
                dpressure_w = particle[np].pw - particle[np].pw0
                dpressure_g = particle[np].pg - particle[np].pg0
                particle[np].pw0 = particle[np].pw
                particle[np].pg0 = particle[np].pg
            else:
                particle[np].pw0 = particle[np].pw
                particle[np].pg0 = particle[np].pg
                particle[np].pw += dpressure_w
                particle[np].pg += dpressure_g
                cap_water_pressure(particle, np, matProps)
                particle[np].pg = ti.min(particle[np].pg, ATMOSPHERIC_PRESSURE)
            particle[np].dpw = dpressure_w


@ti.kernel
def kernel_liquid_pressure_increment(particleNum: int, particle: ti.template(), matProps: ti.template(), hard_entity: int):
    for np in range(particleNum):
        if is_updated(particle, np, matProps, hard_entity) and int(particle[np].mptype) == LIQUID:
            materialID = particle[np].materialID
            dvolumetric = particle[np].dstrain[0] + particle[np].dstrain[1] + particle[np].dstrain[2]
            dpressure = matProps[materialID].bulk_liquid * dvolumetric
            particle[np].dpw = dpressure
            particle[np].pw0 = particle[np].pw
            particle[np].pw += dpressure
            cap_water_pressure(particle, np, matProps)


@ti.kernel
def kernel_compute_stress(particleNum: int, particle: ti.template(), matProps: ti.template(), model: ti.template(), model_id: int,
                          state_vars: ti.template(), dt: ti.template(), hard_entity: int, diagnostics: ti.template(),
                          objective: ti.template(), two_layer: ti.template()):
    for np in range(particleNum):
        materialID = particle[np].materialID
        if is_updated(particle, np, matProps, hard_entity) and matProps[materialID].model == model_id:
            stress = particle[np].stress
            is_liquid = int(particle[np].mptype) == LIQUID
            if ti.static(objective):
                if not is_liquid:
                    stress += Sigrot(stress, particle[np].spin)

            liquefied = 0
            if ti.static(two_layer):
                if int(particle[np].phase_status) == PHASE_LIQUID and not is_liquid:
                    liquefied = 1
            if liquefied == 1:
                particle[np].stress = ZEROVEC6f
            else:
                new_stress, plastic_flag, tension_flag = model.ComputeStress(np, materialID, stress, particle[np].dstrain, particle[np].pw, state_vars, dt)
                particle[np].stress = new_stress
                if plastic_flag > 0:
                    ti.atomic_add(diagnostics.plastic_points[None], 1)
                elif plastic_flag < 0:
                    ti.atomic_add(diagnostics.negative_plastic_points[None], 1)
                if ti.abs(plastic_flag) == REGION_APEX:
                    ti.atomic_add(diagnostics.apex_points[None], 1)
                if tension_flag == 1:
                    ti.atomic_add(diagnostics.tension_points[None], 1)
            particle[np].unloading_stiffness = model.UnloadingStiffness(np, materialID, state_vars)


@ti.kernel
def kernel_element_volumetric_rate(element_cell: ti.template(), entity_node: ti.template(), element: ti.template(), hard_entity: int):
    for nc in element_cell:
        rate = 0.
        if int(element_cell[nc].active) == 1:
            dshape = element.dshape_fnc[nc]
            for k in ti.static(range(element.nodes_per_element)):
                velocity = entity_node[element.node_connectivity[nc][k], hard_entity].v
                for d in ti.static(range(3)):
                    rate += dshape[k, d] * velocity[d]
        element_cell[nc].rate_vol = rate


@ti.kernel
def kernel_bulk_viscosity(particleNum: int, particle: ti.template(), matProps: ti.template(), element_cell: ti.template(), bvd1: float, bvd2: float,
                          mass_scaling: float, mixture_density: int, water: ti.template(), two_layer: ti.template()):
    for np in range(particleNum):
        materialID = particle[np].materialID
        if int(particle[np].active) == 1 and matProps[materialID].model != RIGID_BODY:
            nc = particle[np].element
            rate = element_cell[nc].rate_vol
            length = element_cell[nc].lmin
            density = (1. - matProps[materialID].porosity) * matProps[materialID].density_solid / 1000.
            if mixture_density == 1 or int(particle[np].mptype) == LIQUID:
                density = matProps[materialID].density_mixture / 1000.
            speed = 0.
            if ti.static(two_layer):
                speed = two_layer_wave_speed(particle, np, matProps, element_cell, mass_scaling)
            else:
                speed = particle_wave_speed(particle, np, matProps, mass_scaling, water)
            pressure = bvd1 * density * speed * length * rate
            if rate < 0. and bvd2 > 0.:
                pressure += density * (bvd2 * length * rate) ** 2
            particle[np].pbv = pressure


@ti.kernel
def kernel_broadcast_unloading_stiffness(element_cell: ti.template(), particle: ti.template(), particle_in_element: ti.template()):
    # the representative point of a fully filled element is its lowest particle id
    for nc in element_cell:
        if int(element_cell[nc].active) == 1 and int(element_cell[nc].fully_filled) == 1 and element_cell[nc]._is_homogeneous():
            offset = element_cell[nc].offset
            stiffness = particle[particle_in_element[offset]].unloading_stiffness
            for i in range(offset, offset + element_cell[nc].nparticles):
                particle[particle_in_element[i]].unloading_stiffness = stiffness


def update_external_stress(sims, scene):
    """
    Host-side stress update of the user defined materials. Skipped points
    keep their reset state and the unloading stiffness falls back to the
    Young's modulus of the material store.
    """
    particle_num = int(scene.particleNum[0])
    external = scene.material.models["UserDefined"]
    active = scene.particle.active.to_numpy()[0:particle_num].astype(np.int32)
    prescribed = np.all(scene.particle.fix_v.to_numpy()[0:particle_num] == 1, axis=1)
    hard_entity = scene.particle.entityID.to_numpy()[0:particle_num] == sims.hard_entity
    active[np.logical_and(prescribed, hard_entity)] = 0
    materials = scene.particle.materialID.to_numpy()[0:particle_num]

    stress = scene.particle.stress.to_numpy()
    dstrain = scene.particle.dstrain.to_numpy()
    statev = scene.state_vars.to_numpy()
    stiffness = scene.particle.unloading_stiffness.to_numpy()
    updated = False
    for materialID in external.materialIDs:
        selected = external.compute_stress(materialID, active, materials, stress, dstrain, statev)
        stiffness[selected] = 0.
        updated = updated or selected.shape[0] > 0
    if updated:
        scene.particle.stress.from_numpy(stress)
        scene.state_vars.from_numpy(statev)
        scene.particle.unloading_stiffness.from_numpy(stiffness)
