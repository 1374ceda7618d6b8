import numpy as np
import pytest

from porotaichi.mpm.CalculationState import StepDiagnostics
from porotaichi.mpm.engines.StressKernel import kernel_compute_stress
from porotaichi.mpm.MaterialManager import MaterialManager
from porotaichi.mpm.Simulation import Simulation


DRY_SOIL = {
    "MaterialID":       1,
    "MaterialType":     "1-phase-solid",
    "DensitySolid":     2000.,
    "Porosity":         0.3,
    "YoungModulus":     1e6,
    "PoissonRatio":     0.3
}

FRICTIONAL_SOIL = {
    "MaterialID":       1,
    "MaterialType":     "1-phase-solid",
    "DensitySolid":     2000.,
    "YoungModulus":     1e4,
    "PoissonRatio":     0.3,
    "Cohesion":         10.,
    "Friction":         30.,
    "Dilation":         0.
}


def material_manager(model, material):
    sims = Simulation()
    sims.set_material_num(1)
    manager = MaterialManager()
    manager.add_material(sims, model, material)
    return sims, manager


def principal_stresses(stress):
    tensor = np.array([[stress[0], stress[3], stress[5]],
                       [stress[3], stress[1], stress[4]],
                       [stress[5], stress[4], stress[2]]])
    return np.sort(np.linalg.eigvalsh(tensor))[::-1]


def test_elastic_uniaxial_strain_increment():
    sims, manager = material_manager("LinearElastic", DRY_SOIL)
    stress, state, tangent = manager.ConstitutiveDispatch(sims, 1, [0.001, 0., 0., 0., 0., 0.])

    E, nu = 1e6, 0.3
    assert stress[0] == pytest.approx(E / (1. + nu) / (1. - 2. * nu) * (1. - nu) * 0.001, rel=1e-12)
    assert stress[1] == pytest.approx(E / (1. + nu) / (1. - 2. * nu) * nu * 0.001, rel=1e-12)
    assert stress[2] == pytest.approx(stress[1], rel=1e-12)
    np.testing.assert_allclose(stress[3:], 0., atol=1e-12)


def test_elastic_shear_uses_engineering_strain():
    sims, manager = material_manager("LinearElastic", DRY_SOIL)
    stress, state, tangent = manager.ConstitutiveDispatch(sims, 1, [0., 0., 0., 0.002, 0., 0.])

    assert stress[3] == pytest.approx(1e6 / 2.6 * 0.002, rel=1e-12)


def test_mohr_coulomb_returns_to_yield_surface():
    sims, manager = material_manager("MohrCoulomb", FRICTIONAL_SOIL)
    stress, state, tangent = manager.ConstitutiveDispatch(sims, 1, [-0.02, 0.01, 0.01, 0., 0., 0.], stress_in=[-100., -100., -100., 0., 0., 0.])

    s1, s2, s3 = principal_stresses(stress)
    k = (1. + np.sin(np.pi / 6.)) / (1. - np.sin(np.pi / 6.))
    yield_function = k * s1 - s3 - 2. * 10. * np.sqrt(k)
    assert abs(yield_function) < 1e-6 * 300.
    assert state[6] > 0.


def test_mohr_coulomb_stays_elastic_inside_yield_surface():
    sims, manager = material_manager("MohrCoulomb", FRICTIONAL_SOIL)
    stress, state, tangent = manager.ConstitutiveDispatch(sims, 1, [-1e-5, 0., 0., 0., 0., 0.], stress_in=[-100., -100., -100., 0., 0., 0.])

    assert stress[0] < -100.
    np.testing.assert_allclose(state[0:7], 0.)


def test_mohr_coulomb_requires_valid_friction():
    with pytest.raises(RuntimeError, match="Friction"):
        material_manager("MohrCoulomb", dict(FRICTIONAL_SOIL, Friction=0.))


def test_plastic_points_are_counted(build_model):
    mpm = build_model(material=FRICTIONAL_SOIL, model="MohrCoulomb",
                      body={"Type": "List", "Position": [[0.5, 0.5], [1.5, 0.5]], "Volume": 0.25, "MaterialID": 1,
                            "InitialStress": [-100., -100., -100., 0., 0., 0.]})
    scene = mpm.scene
    scene.particle.dstrain[0] = [-0.02, 0.01, 0.01, 0., 0., 0.]
    scene.particle.dstrain[1] = [-1e-5, 0., 0., 0., 0., 0.]
    model = scene.material.models["MohrCoulomb"]
    diagnostics = StepDiagnostics()

    kernel_compute_stress(int(scene.particleNum[0]), scene.particle, scene.material.matProps, model, model.model_id(), scene.state_vars,
                          mpm.sims.dt, mpm.sims.hard_entity, diagnostics, False, False)

    counters = diagnostics.counters()
    assert counters["plastic"] + counters["negative_plastic"] == 1
    assert scene.particle.unloading_stiffness[0] == pytest.approx(1e4)
