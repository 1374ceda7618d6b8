import numpy as np
import taichi as ti

from porotaichi.mpm.Simulation import Simulation
from porotaichi.utils.constants import NOT_USED


PHASE_NAMES = ["Solid", "Water", "Gas"]


@ti.data_oriented
class StepDiagnostics(object):
    """
    Accumulators of a single step. The point counters are reset at the start
    of every stress update and accumulated atomically by the stress kernels.
    """
    def __init__(self) -> None:
        self.plastic_points = ti.field(int, shape=())
        self.negative_plastic_points = ti.field(int, shape=())
        self.tension_points = ti.field(int, shape=())
        self.apex_points = ti.field(int, shape=())
        self.force_error = ti.field(float, shape=3)
        self.kinetic_energy = ti.field(float, shape=3)
        self.force_error.fill(NOT_USED)

    def reset_counters(self):
        self.plastic_points[None] = 0
        self.negative_plastic_points[None] = 0
        self.tension_points[None] = 0
        self.apex_points[None] = 0

    def counters(self):
        return {"plastic": int(self.plastic_points[None]), "negative_plastic": int(self.negative_plastic_points[None]),
                "tension": int(self.tension_points[None]), "apex": int(self.apex_points[None])}

    def get_kinetic_energy(self):
        return self.kinetic_energy.to_numpy()

    def get_force_error(self):
        return self.force_error.to_numpy()


@ti.data_oriented
class PersistentState(object):
    """
    Cross-step state: kinetic energy baseline and cumulative works.
    """
    def __init__(self, sims: Simulation) -> None:
        self.sims = sims
        self.KE0 = np.full(3, NOT_USED)
        self.internal_work = ti.field(float, shape=3)
        self.external_work = ti.field(float, shape=3)
        self.diverged = False

    def update_energy_baseline(self, kinetic_energy):
        for phase in range(3):
            if self.KE0[phase] == NOT_USED:
                self.KE0[phase] = kinetic_energy[phase]

    def dissipation(self, kinetic_energy):
        baseline = np.where(self.KE0 == NOT_USED, 0., self.KE0)
        return self.external_work.to_numpy() - self.internal_work.to_numpy() - (np.asarray(kinetic_energy) - baseline)

    def reset(self):
        self.KE0 = np.full(3, NOT_USED)
        self.internal_work.fill(0)
        self.external_work.fill(0)
        self.diverged = False
