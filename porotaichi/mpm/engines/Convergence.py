import numpy as np
import taichi as ti

from porotaichi.mpm.CalculationState import StepDiagnostics, PersistentState, PHASE_NAMES
from porotaichi.mpm.Simulation import Simulation
from porotaichi.utils.constants import NOT_USED, Threshold, MINIMUM_TIME_INCREMENT
from porotaichi.utils.Exceptions import NumericalDivergence


@ti.kernel
def kernel_kinetic_energy(particleNum: int, particle: ti.template(), kinetic_energy: ti.template()):
    for d in range(3):
        kinetic_energy[d] = 0.
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            ti.atomic_add(kinetic_energy[0], 0.5 * particle[np].m * particle[np].v.dot(particle[np].v))
            ti.atomic_add(kinetic_energy[1], 0.5 * particle[np].mw * particle[np].vw.dot(particle[np].vw))
            ti.atomic_add(kinetic_energy[2], 0.5 * particle[np].mg * particle[np].vg.dot(particle[np].vg))


@ti.kernel
def kernel_accumulate_works(entity_node: ti.template(), internal_work: ti.template(), external_work: ti.template(), two_layer: ti.template()):
    # midpoint rule over the forces at the start and at the end of the step
    for ng, ne in entity_node:
        du = entity_node[ng, ne].du
        du_w = entity_node[ng, ne].du_w
        du_g = entity_node[ng, ne].du_g
        load = entity_node[ng, ne].fext + entity_node[ng, ne].fgrav
        if ti.static(not two_layer):
            load += entity_node[ng, ne].fgrav_w + entity_node[ng, ne].fgrav_g
        ti.atomic_add(external_work[0], du.dot(load))
        ti.atomic_add(external_work[1], du_w.dot(entity_node[ng, ne].fgrav_w))
        ti.atomic_add(external_work[2], du_g.dot(entity_node[ng, ne].fgrav_g))
        ti.atomic_add(internal_work[0], 0.5 * du.dot(entity_node[ng, ne].fint + entity_node[ng, ne].fint_end))
        ti.atomic_add(internal_work[1], 0.5 * du_w.dot(entity_node[ng, ne].fint_w + entity_node[ng, ne].fint_w_end))
        ti.atomic_add(internal_work[2], 0.5 * du_g.dot(entity_node[ng, ne].fint_g + entity_node[ng, ne].fint_g_end))


@ti.kernel
def kernel_force_error(entity_node: ti.template(), node: ti.template(), unbalanced: ti.template(), loading: ti.template(), force_error: ti.template(),
                       two_layer: ti.template()):
    """
    Relative out-of-balance force of each phase. The reactions are removed by
    dropping the constrained components in the local frame of each node.
    """
    for d in range(3):
        unbalanced[d] = 0.
        loading[d] = 0.
    for ng, ne in entity_node:
        load = entity_node[ng, ne].fext + entity_node[ng, ne].fgrav
        residual = load - entity_node[ng, ne].fint
        if ti.static(two_layer):
            residual += entity_node[ng, ne].fdrag_w
        else:
            load += entity_node[ng, ne].fgrav_w + entity_node[ng, ne].fgrav_g
            residual += entity_node[ng, ne].fgrav_w + entity_node[ng, ne].fgrav_g
        load_w = entity_node[ng, ne].fgrav_w
        residual_w = load_w - entity_node[ng, ne].fint_w - entity_node[ng, ne].fdrag_w
        load_g = entity_node[ng, ne].fgrav_g
        residual_g = load_g - entity_node[ng, ne].fint_g - entity_node[ng, ne].fdrag_g

        residual = node[ng]._constrain_acceleration(residual)
        residual_w = node[ng]._constrain_acceleration(residual_w)
        residual_g = node[ng]._constrain_acceleration(residual_g)
        ti.atomic_add(unbalanced[0], residual.dot(residual))
        ti.atomic_add(unbalanced[1], residual_w.dot(residual_w))
        ti.atomic_add(unbalanced[2], residual_g.dot(residual_g))
        ti.atomic_add(loading[0], load.dot(load))
        ti.atomic_add(loading[1], load_w.dot(load_w))
        ti.atomic_add(loading[2], load_g.dot(load_g))

    for d in range(3):
        force_error[d] = NOT_USED
        if ti.sqrt(loading[d]) > Threshold:
            force_error[d] = ti.sqrt(unbalanced[d] / loading[d])


class Convergence(object):
    def __init__(self, sims: Simulation) -> None:
        self.phases = [0]
        if sims.number_of_phases >= 2:
            self.phases.append(1)
        self.converged = False
        self.unbalanced = ti.field(float, shape=3)
        self.loading = ti.field(float, shape=3)

    def kinetic_energy(self, scene, diagnostics: StepDiagnostics):
        kernel_kinetic_energy(int(scene.particleNum[0]), scene.particle, diagnostics.kinetic_energy)
        return diagnostics.get_kinetic_energy()

    def accumulate_works(self, sims: Simulation, scene, state: PersistentState):
        kernel_accumulate_works(scene.entity_node, state.internal_work, state.external_work, sims.is_two_layer())

    def force_error(self, sims: Simulation, scene, diagnostics: StepDiagnostics):
        kernel_force_error(scene.entity_node, scene.node, self.unbalanced, self.loading, diagnostics.force_error, sims.is_two_layer())
        return diagnostics.get_force_error()

    def kinetic_ratio(self, kinetic_energy, external_work):
        if abs(external_work) > Threshold:
            return kinetic_energy / abs(external_work)
        return 0. if kinetic_energy <= Threshold else np.inf

    def ConvergenceCheck(self, sims: Simulation, diagnostics: StepDiagnostics, state: PersistentState):
        if sims.max_timesteps > 0 and sims.current_step >= sims.max_timesteps:
            self.converged = True
        elif sims.quasi_static:
            force_error = diagnostics.get_force_error()
            kinetic_energy = diagnostics.get_kinetic_energy()
            external_work = state.external_work.to_numpy()
            converged = True
            for phase in self.phases:
                if force_error[phase] != NOT_USED and force_error[phase] > sims.force_tolerance:
                    converged = False
                if self.kinetic_ratio(kinetic_energy[phase], external_work[phase]) > sims.kinetic_tolerance:
                    converged = False
            self.converged = converged
        else:
            self.converged = sims.remaining_time() < MINIMUM_TIME_INCREMENT
        return self.converged

    def DivergenceCheck(self, sims: Simulation, diagnostics: StepDiagnostics, state: PersistentState):
        if not sims.check_divergence:
            return False
        dissipation = state.dissipation(diagnostics.get_kinetic_energy())
        for phase in self.phases:
            if dissipation[phase] <= -sims.divergence_tolerance:
                state.diverged = True
                if not sims.quasi_static:
                    raise NumericalDivergence(f"Energy of the {PHASE_NAMES[phase]} phase is created at step {sims.current_step}, dissipation = {dissipation[phase]}",
                                              energy=dissipation.tolist())
        return state.diverged
