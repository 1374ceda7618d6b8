import taichi as ti

from porotaichi.utils.constants import Threshold, ZEROVEC6f


@ti.func
def is_smoothed_element(element_cell, nc):
    return int(element_cell[nc].active) == 1 and int(element_cell[nc].fully_filled) == 1 and element_cell[nc]._is_homogeneous()


@ti.kernel
def kernel_strain_smoothing(element_cell: ti.template(), particle: ti.template(), particle_in_element: ti.template()):
    for nc in element_cell:
        if int(element_cell[nc].active) == 1 and element_cell[nc]._is_homogeneous():
            offset = element_cell[nc].offset
            volume = 0.
            dstrain = ZEROVEC6f
            for i in range(offset, offset + element_cell[nc].nparticles):
                np = particle_in_element[i]
                volume += particle[np].vol
                dstrain += particle[np].vol * particle[np].dstrain
            if volume > Threshold:
                dstrain /= volume
                for i in range(offset, offset + element_cell[nc].nparticles):
                    np = particle_in_element[i]
                    particle[np].strain += dstrain - particle[np].dstrain
                    particle[np].dstrain = dstrain


@ti.kernel
def kernel_mixed_smoothing(element_cell: ti.template(), particle: ti.template(), particle_in_element: ti.template(), state_vars: ti.template()):
    """
    Volume weighted average of stress, pore pressures and state variables in
    fully filled single material elements integrated at one point
    """
    for nc in element_cell:
        if is_smoothed_element(element_cell, nc):
            offset = element_cell[nc].offset
            nparticles = element_cell[nc].nparticles
            volume, pressure_w, pressure_g = 0., 0., 0.
            stress = ZEROVEC6f
            for i in range(offset, offset + nparticles):
                np = particle_in_element[i]
                weight = particle[np].vol
                volume += weight
                stress += weight * particle[np].stress
                pressure_w += weight * particle[np].pw
                pressure_g += weight * particle[np].pg
            if volume > Threshold:
                for i in range(offset, offset + nparticles):
                    np = particle_in_element[i]
                    particle[np].stress = stress / volume
                    particle[np].pw = pressure_w / volume
                    particle[np].pg = pressure_g / volume
                for j in range(state_vars.shape[1]):
                    state = 0.
                    for i in range(offset, offset + nparticles):
                        np = particle_in_element[i]
                        state += particle[np].vol * state_vars[np, j]
                    for i in range(offset, offset + nparticles):
                        state_vars[particle_in_element[i], j] = state / volume


@ti.kernel
def kernel_store_initial_stress(particleNum: int, particle: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            particle[np].stress0 = particle[np].stress


@ti.kernel
def kernel_liquid_pressure_smoothing(element_cell: ti.template(), particle: ti.template(), particle_in_element: ti.template()):
    # the volume weighted element average replaces the pressure increment of each point
    for nc in element_cell:
        if int(element_cell[nc].active) == 1 and element_cell[nc]._is_homogeneous():
            offset = element_cell[nc].offset
            nparticles = element_cell[nc].nparticles
            volume, dpressure = 0., 0.
            for i in range(offset, offset + nparticles):
                np = particle_in_element[i]
                volume += particle[np].vol
                dpressure += particle[np].vol * particle[np].dpw
            if volume > Threshold:
                dpressure /= volume
                for i in range(offset, offset + nparticles):
                    np = particle_in_element[i]
                    particle[np].pw += dpressure - particle[np].dpw
                    particle[np].dpw = dpressure
