import numpy as np
import pytest

from porotaichi.mpm.CalculationState import PersistentState, StepDiagnostics
from porotaichi.mpm.engines.Convergence import Convergence
from porotaichi.mpm.engines.TimeStep import TimeStep
from porotaichi.mpm.Simulation import Simulation
from porotaichi.utils.constants import MINIMUM_TIME_INCREMENT
from porotaichi.utils.Exceptions import NumericalDivergence


E, NU, DENSITY = 1e4, 0.3, 2.
OEDOMETRIC = E * (1. - NU) / ((1. + NU) * (1. - 2. * NU))


def located_model(build_model, **solver):
    mpm = build_model(solver=solver)
    mpm.scene.locate_particles()
    return mpm


def test_critical_timestep_of_elastic_solid(build_model):
    mpm = located_model(build_model)
    critical = TimeStep().critical_timestep(mpm.sims, mpm.scene, False, False)

    assert critical == pytest.approx(1. / np.sqrt(OEDOMETRIC / DENSITY), rel=1e-10)


def test_mass_scaling_enlarges_critical_timestep(build_model):
    mpm = located_model(build_model)
    mpm.sims.set_mass_scaling(4.)
    critical = TimeStep().critical_timestep(mpm.sims, mpm.scene, False, False)

    assert critical == pytest.approx(2. / np.sqrt(OEDOMETRIC / DENSITY), rel=1e-10)


def test_adaptive_update_is_bounded_by_courant_number(build_model):
    mpm = located_model(build_model, AdaptiveTimestep=True, CFL=0.5, SimulationTime=10.)
    timestep = TimeStep().update(mpm.sims, mpm.scene, False, False)

    assert timestep == pytest.approx(0.5 / np.sqrt(OEDOMETRIC / DENSITY), rel=1e-10)
    assert mpm.sims.dt[None] == pytest.approx(timestep)


def test_fixed_update_keeps_user_timestep(build_model):
    mpm = located_model(build_model, Timestep=2e-4)
    assert TimeStep().update(mpm.sims, mpm.scene, False, False) == pytest.approx(2e-4)


def test_update_never_steps_past_total_time(build_model):
    mpm = located_model(build_model, Timestep=1e-3, SimulationTime=1e-2)
    mpm.sims.current_time = 1e-2 - 1e-4
    assert TimeStep().update(mpm.sims, mpm.scene, False, False) == pytest.approx(1e-4)

    mpm.sims.current_time = 1e-2
    assert TimeStep().update(mpm.sims, mpm.scene, False, False) == MINIMUM_TIME_INCREMENT


def test_non_finite_wave_speed_is_reported(build_model):
    mpm = located_model(build_model)
    mpm.scene.material.matProps.density_mixture[1] = float("nan")

    with pytest.raises(NumericalDivergence) as error:
        TimeStep().critical_timestep(mpm.sims, mpm.scene, False, False)
    assert error.value.element_id == 0


TWO_LAYER_SOIL = {
    "MaterialID":               1,
    "MaterialType":             "2-phase",
    "DensitySolid":             2650.,
    "DensityLiquid":            1000.,
    "Porosity":                 0.3,
    "YoungModulus":             E,
    "PoissonRatio":             NU,
    "BulkModulusLiquid":        2.2e6,
    "HydraulicConductivity":    1e-4
}


def two_layer_soil(build_model, conductivity, shares_liquid):
    mpm = build_model(material=TWO_LAYER_SOIL, configuration={"formulation": "TwoLayer"},
                      body={"Type": "List", "Position": [[0.5, 0.5]], "Volume": 0.25, "MaterialID": 1})
    scene = mpm.scene
    scene.locate_particles()
    scene.update_element_index(mpm.sims)
    scene.particle.porosity[0] = 0.3
    scene.particle.conductivity[0] = conductivity
    scene.element_cell.has_liquid[0] = 1 if shares_liquid else 0
    return mpm


def test_drag_bound_governs_low_permeability_two_layer_soil(build_model):
    mpm = two_layer_soil(build_model, 1e-4, True)
    mpm.sims.set_mass_scaling(4.)
    critical = TimeStep().critical_timestep(mpm.sims, mpm.scene, False, True)

    rho_tilde = (0.7 * 2.65 + 0.3 * 1. + (1. / 0.3 - 2.) * 1.) * 4.
    assert critical == pytest.approx(2. * rho_tilde * 1e-4 / (1. * 9.81), rel=1e-10)


def test_saturated_skeleton_speed_governs_permeable_two_layer_soil(build_model):
    mpm = two_layer_soil(build_model, 1., True)
    critical = TimeStep().critical_timestep(mpm.sims, mpm.scene, False, True)

    speed = np.sqrt((OEDOMETRIC + 2.2e6 / 0.3) / (0.7 * 2.65 + 0.3 * 1.))
    assert critical == pytest.approx(1. / speed, rel=1e-10)


def test_dry_two_layer_soil_uses_skeleton_speed(build_model):
    mpm = two_layer_soil(build_model, 1e-4, False)
    critical = TimeStep().critical_timestep(mpm.sims, mpm.scene, False, True)

    assert critical == pytest.approx(1. / np.sqrt(OEDOMETRIC / (0.7 * 2.65)), rel=1e-10)


def test_bulk_viscosity_correction_uses_fastest_point_of_element(build_model):
    mpm = build_model(body={"Type": "List", "Position": [[0.25, 0.25], [0.75, 0.75]], "Volume": 0.25, "MaterialID": 1})
    mpm.scene.locate_particles()
    mpm.scene.particle.unloading_stiffness[1] = 4. * E
    mpm.scene.element_cell.rate_vol[0] = -50.
    mpm.sims.set_bulk_viscosity(True, [0.06, 1.2])
    critical = TimeStep().critical_timestep(mpm.sims, mpm.scene, False, False)

    timestep = 1. / (2. * np.sqrt(OEDOMETRIC / DENSITY))
    chi = 0.06 - 1.2 ** 2 * timestep * (-50.)
    assert critical == pytest.approx(timestep * (np.sqrt(1. + chi ** 2) - chi), rel=1e-10)


def energy_check(quasi_static=False):
    sims = Simulation()
    sims.set_quasi_static(quasi_static)
    state, diagnostics = PersistentState(sims), StepDiagnostics()
    state.update_energy_baseline([0., 0., 0.])
    diagnostics.kinetic_energy[0] = 10.
    return sims, state, diagnostics, Convergence(sims)


def test_energy_creation_diverges_dynamic_run():
    sims, state, diagnostics, convergence = energy_check()

    with pytest.raises(NumericalDivergence) as error:
        convergence.DivergenceCheck(sims, diagnostics, state)
    assert error.value.energy[0] == pytest.approx(-10.)
    assert state.diverged


def test_energy_creation_is_flagged_in_quasi_static_run():
    sims, state, diagnostics, convergence = energy_check(quasi_static=True)
    assert convergence.DivergenceCheck(sims, diagnostics, state)

    sims.set_check_divergence(False)
    assert not convergence.DivergenceCheck(sims, diagnostics, state)
