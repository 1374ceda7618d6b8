import numpy as np
import pytest

from porotaichi.mpm.CalculationState import StepDiagnostics
from porotaichi.mpm.engines.StressKernel import (kernel_broadcast_unloading_stiffness, kernel_bulk_viscosity, kernel_compute_stress,
                                                 kernel_reset_skipped_points)


E, NU, DENSITY = 1e4, 0.3, 2.
OEDOMETRIC = E * (1. - NU) / ((1. + NU) * (1. - 2. * NU))
INITIAL_STRESS = [-100., -100., -100., 0., 0., 0.]


def test_prescribed_point_of_hard_entity_is_skipped(build_model):
    mpm = build_model(body={"Type": "List", "Position": [[0.5, 0.5], [1.5, 0.5]], "Volume": 0.25, "MaterialID": 1,
                            "InitialStress": INITIAL_STRESS})
    scene = mpm.scene
    scene.particle.fix_v[0] = [1, 1, 1]
    scene.particle.pw[0] = 5.
    for i in range(2):
        scene.particle.dstrain[i] = [-1e-4, 0., 0., 0., 0., 0.]

    matProps = scene.material.matProps
    model = scene.material.models["LinearElastic"]
    kernel_reset_skipped_points(2, scene.particle, matProps, mpm.sims.hard_entity)
    kernel_compute_stress(2, scene.particle, matProps, model, model.model_id(), scene.state_vars, mpm.sims.dt, mpm.sims.hard_entity,
                          StepDiagnostics(), False, False)

    stress = scene.particle.stress.to_numpy()
    np.testing.assert_array_equal(stress[0], 0.)
    assert scene.particle.pw[0] == 0.
    assert stress[1][0] == pytest.approx(-100. - OEDOMETRIC * 1e-4)


def test_bulk_viscosity_pressure_is_kept_apart_from_stress(build_model):
    mpm = build_model(body={"Type": "List", "Position": [[0.5, 0.5]], "Volume": 0.25, "MaterialID": 1, "InitialStress": INITIAL_STRESS})
    scene = mpm.scene
    scene.locate_particles()
    scene.element_cell.rate_vol[0] = -10.

    kernel_bulk_viscosity(1, scene.particle, scene.material.matProps, scene.element_cell, 0.06, 1.2, 1., 0, False, False)

    speed = np.sqrt(OEDOMETRIC / DENSITY)
    expected = 0.06 * DENSITY * speed * 1. * (-10.) + DENSITY * (1.2 * 1. * (-10.)) ** 2
    assert scene.particle.pbv[0] == pytest.approx(expected)
    np.testing.assert_array_equal(scene.particle.stress.to_numpy()[0], INITIAL_STRESS)


def test_fully_filled_element_shares_unloading_stiffness(build_model):
    mpm = build_model(body={"Type": "List", "Position": [[0.25, 0.25], [0.75, 0.25], [0.25, 0.75], [0.75, 0.75], [1.5, 0.5]],
                            "Volume": 0.3, "MaterialID": 1})
    scene = mpm.scene
    scene.locate_particles()
    scene.update_element_index(mpm.sims)
    assert scene.element_cell.fully_filled[0] == 1
    assert scene.element_cell.fully_filled[1] == 0

    for i, stiffness in enumerate([5e3, 6e3, 7e3, 8e3, 9e3]):
        scene.particle.unloading_stiffness[i] = stiffness
    kernel_broadcast_unloading_stiffness(scene.element_cell, scene.particle, scene.particle_in_element)

    np.testing.assert_array_equal(scene.particle.unloading_stiffness.to_numpy()[0:5], [5e3, 5e3, 5e3, 5e3, 9e3])
