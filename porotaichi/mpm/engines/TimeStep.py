import taichi as ti

from porotaichi.mpm.materials.ConstitutiveModelBase import MODEL_ID
from porotaichi.mpm.materials.MaterialParameters import LIQUID_1PHASE, SATURATED_2PHASE, UNSATURATED_3PHASE, UNDRAINED_EFFECTIVE
from porotaichi.mpm.Simulation import Simulation
from porotaichi.utils.constants import LIQUID, SOLID, PHASE_SOLID, Threshold, MINIMUM_TIME_INCREMENT
from porotaichi.utils.Exceptions import NumericalDivergence
from porotaichi.utils.MaterialKernel import OedometricModulus
from porotaichi.utils.ScalarFunction import is_finite


RIGID_BODY = MODEL_ID["RigidBody"]
NO_TIMESTEP = 1e300


@ti.func
def oedometric_stiffness(particle, np, matProps):
    materialID = particle[np].materialID
    poisson = matProps[materialID].poisson
    young = matProps[materialID].young
    if particle[np].unloading_stiffness > 0.:
        young = particle[np].unloading_stiffness
    return OedometricModulus(0.5 * young / (1. + poisson), poisson)


@ti.func
def particle_wave_speed(particle, np, matProps, mass_scaling, water: ti.template()):
    """
    Dilatational wave speed of a particle, the density is in t/m3 and scaled
    by the mass scaling factor
    """
    materialID = particle[np].materialID
    mtype = matProps[materialID].mtype
    speed = 0.
    if int(particle[np].mptype) == LIQUID or mtype == LIQUID_1PHASE:
        density = matProps[materialID].density_liquid / 1000. * mass_scaling
        if density > Threshold:
            speed = ti.sqrt(matProps[materialID].bulk_liquid / density)
    else:
        stiffness = oedometric_stiffness(particle, np, matProps)
        n = particle[np].porosity
        density = matProps[materialID].density_mixture / 1000. * mass_scaling
        drained = 1
        if mtype == UNDRAINED_EFFECTIVE:
            drained = 0
        if ti.static(water):
            if mtype == SATURATED_2PHASE or mtype == UNSATURATED_3PHASE:
                drained = 0
        if drained == 0 and n > Threshold:
            stiffness += particle[np].bulk_water / n
        speed = ti.sqrt(stiffness / density)
    return speed


@ti.func
def two_layer_wave_speed(particle, np, matProps, element_cell, mass_scaling):
    """
    Larger of the compression wave speed of the saturated skeleton (c1) and
    the liquid wave speed weighted by the solid coupling factor (c2). Both
    depend on what the element of the particle holds.
    """
    materialID = particle[np].materialID
    nc = particle[np].element
    has_solid = int(element_cell[nc].has_solid) == 1
    has_liquid = int(element_cell[nc].has_liquid) == 1
    solid_point = int(particle[np].mptype) == SOLID
    n = particle[np].porosity
    rho_s = matProps[materialID].density_solid / 1000.
    rho_l = matProps[materialID].density_liquid / 1000.
    bulk_liquid = matProps[materialID].bulk_liquid

    oedometric = 0.
    rho_sat = 0.
    beta = 0.
    if has_solid and has_liquid:
        if solid_point and int(particle[np].phase_status) == PHASE_SOLID:
            skeleton = oedometric_stiffness(particle, np, matProps)
            oedometric = skeleton
            rho_sat = (1. - n) * rho_s + n * rho_l
            if bulk_liquid > Threshold and n > Threshold:
                oedometric += bulk_liquid / n
                ratio = n * skeleton / bulk_liquid
                beta = ti.sqrt(ratio / ((1. - n) + ratio))
        else:
            beta = 1.
    elif has_liquid:
        beta = 1.
    elif has_solid:
        oedometric = oedometric_stiffness(particle, np, matProps)
        rho_sat = (1. - n) * rho_s

    c1 = 0.
    c2 = 0.
    if rho_sat > 0.:
        c1 = ti.sqrt(oedometric / (rho_sat * mass_scaling))
    if rho_l > 0.:
        c2 = beta * ti.sqrt(bulk_liquid / (rho_l * mass_scaling))
    return ti.max(c1, c2)


@ti.func
def interaction_wave_speed(particle, np, matProps, element_cell, mass_scaling, gravity):
    # drag criterion of solid points sharing an element with the liquid: dt3 = 2 rho k / (rho_l g)
    materialID = particle[np].materialID
    nc = particle[np].element
    speed = 0.
    if int(particle[np].mptype) == SOLID and int(element_cell[nc].has_solid) == 1 and int(element_cell[nc].has_liquid) == 1:
        n = particle[np].porosity
        rho_s = matProps[materialID].density_solid / 1000.
        rho_l = matProps[materialID].density_liquid / 1000.
        if n > Threshold and rho_l > Threshold and particle[np].conductivity > Threshold:
            rho_tilde = ((1. - n) * rho_s + n * rho_l + (1. / n - 2.) * rho_l) * mass_scaling
            timestep = 2. * rho_tilde * particle[np].conductivity / (rho_l * gravity)
            speed = element_cell[nc].lmin / timestep
    return speed


@ti.kernel
def kernel_element_wave_speed(particleNum: int, particle: ti.template(), matProps: ti.template(), element_cell: ti.template(), mass_scaling: float,
                              gravity: float, water: ti.template(), two_layer: ti.template(), element_speed: ti.template(), invalid: ti.template()):
    for np in range(particleNum):
        materialID = particle[np].materialID
        if int(particle[np].active) == 1 and matProps[materialID].model != RIGID_BODY:
            nc = particle[np].element
            speed = 0.
            if ti.static(two_layer):
                speed = ti.max(two_layer_wave_speed(particle, np, matProps, element_cell, mass_scaling),
                               interaction_wave_speed(particle, np, matProps, element_cell, mass_scaling, gravity))
            else:
                speed = particle_wave_speed(particle, np, matProps, mass_scaling, water)
            if not is_finite(speed):
                invalid[0] = np
                invalid[1] = nc
            else:
                ti.atomic_max(element_speed[nc], speed)


@ti.kernel
def kernel_critical_timestep(element_cell: ti.template(), element_speed: ti.template(), bulk_viscosity: ti.template(), bvd1: float, bvd2: float,
                             minimum: ti.template()):
    for nc in element_speed:
        if element_speed[nc] > Threshold:
            timestep = element_cell[nc].lmin / element_speed[nc]
            if ti.static(bulk_viscosity):
                chi = bvd1 - bvd2 * bvd2 * timestep * element_cell[nc].rate_vol
                timestep *= ti.sqrt(1. + chi * chi) - chi
            ti.atomic_min(minimum[None], timestep)


@ti.data_oriented
class TimeStep(object):
    def __init__(self) -> None:
        self.minimum = ti.field(float, shape=())
        self.invalid = ti.field(int, shape=2)
        self.element_speed = None
        self.critical = None

    def critical_timestep(self, sims: Simulation, scene, water, two_layer):
        if self.element_speed is None:
            self.element_speed = ti.field(float, shape=scene.element.cellSum)
        self.minimum[None] = NO_TIMESTEP
        self.invalid.fill(-1)
        self.element_speed.fill(0)
        kernel_element_wave_speed(int(scene.particleNum[0]), scene.particle, scene.material.matProps, scene.element_cell, sims.mass_scaling,
                                  sims.gravity_norm(), water, two_layer, self.element_speed, self.invalid)
        particle_id, element_id = int(self.invalid[0]), int(self.invalid[1])
        if particle_id >= 0:
            raise NumericalDivergence(f"Wave speed of particle {particle_id} in element {element_id} is not finite", particle_id=particle_id, element_id=element_id)
        kernel_critical_timestep(scene.element_cell, self.element_speed, sims.bulk_viscosity, sims.bulk_viscosity_damping[0],
                                 sims.bulk_viscosity_damping[1], self.minimum)
        self.critical = None
        if self.minimum[None] < NO_TIMESTEP:
            self.critical = float(self.minimum[None])
        return self.critical

    def update(self, sims: Simulation, scene, water, two_layer):
        """
        Courant bounded time increment. Dynamic runs never step beyond the
        total time and the increment is floored at the minimum time increment.
        """
        timestep = sims.delta
        if sims.isadaptive:
            critical = self.critical_timestep(sims, scene, water, two_layer)
            if critical is not None:
                timestep = sims.CFL * critical
        if not sims.quasi_static and sims.time > 0.:
            timestep = min(timestep, sims.remaining_time())
        timestep = max(timestep, MINIMUM_TIME_INCREMENT)
        sims.update_critical_timestep(timestep)
        return timestep
