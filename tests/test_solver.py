import os

import numpy as np
import pytest


FALLING_BODY = {"Type": "Box", "BoxPoint": [0.5, 2.], "BoxSize": [1., 1.], "MaterialID": 1, "ParticlesPerCell": 2}

SATURATED_SOIL = {
    "MaterialID":               1,
    "MaterialType":             "2-phase",
    "DensitySolid":             2650.,
    "DensityLiquid":            1000.,
    "Porosity":                 0.3,
    "YoungModulus":             1e4,
    "PoissonRatio":             0.3,
    "BulkModulusLiquid":        2.2e6,
    "HydraulicConductivity":    1e-2
}


def falling_model(build_model, solver=None):
    solver_parameters = {"Timestep": 1e-3, "SimulationTime": 2e-2}
    solver_parameters.update(solver or {})
    return build_model(body=FALLING_BODY, configuration={"domain": [2., 4.]}, solver=solver_parameters)


def test_free_fall_keeps_energy_balance(build_model):
    mpm = falling_model(build_model)
    dissipation = []

    def record_dissipation(step, sims, scene):
        engine = mpm.enginer
        dissipation.append(engine.state.dissipation(engine.diagnostics.get_kinetic_energy())[0])

    mpm.add_step_callback(record_dissipation)
    assert mpm.run()

    sims, scene = mpm.sims, mpm.scene
    number = int(scene.particleNum[0])
    assert sims.current_step == 20
    assert len(dissipation) == 20
    assert np.all(np.isfinite(dissipation))
    assert min(dissipation) >= -sims.divergence_tolerance
    assert mpm.enginer.diagnostics.get_force_error()[0] <= 1. + 1e-8

    velocity = scene.particle.v.to_numpy()[0:number]
    assert np.all(velocity[:, 1] < 0.)
    np.testing.assert_allclose(velocity[:, 0], 0., atol=1e-12)
    np.testing.assert_array_equal(scene.particle.pw.to_numpy()[0:number], 0.)
    np.testing.assert_array_equal(scene.particle.pg.to_numpy()[0:number], 0.)


def test_second_run_continues_the_analysis(build_model):
    mpm = falling_model(build_model, solver={"SimulationTime": 1e-2})
    mpm.run()
    assert mpm.sims.current_step == 10

    mpm.modify_parameters(SimulationTime=2e-2)
    mpm.run()
    assert mpm.sims.current_step == 20
    assert mpm.sims.current_time == pytest.approx(2e-2)


def test_recorder_writes_particle_and_grid_files(build_model, tmp_path):
    mpm = falling_model(build_model, solver={"SimulationTime": 1e-2, "SaveInterval": 5e-3, "SavePath": str(tmp_path)})
    mpm.select_save_data(particle=True, grid=True)
    mpm.run()

    particle_files = sorted(os.listdir(tmp_path / "particles"))
    grid_files = sorted(os.listdir(tmp_path / "grids"))
    assert particle_files[0] == "MPMParticle000000.npz"
    assert grid_files[0] == "MPMGrid000000.npz"
    assert len(particle_files) == len(grid_files) >= 3

    data = np.load(tmp_path / "particles" / particle_files[-1])
    assert int(data["body_num"]) == int(mpm.scene.particleNum[0])
    assert data["position"].shape == (int(data["body_num"]), 3)
    assert data["stress"].shape == (int(data["body_num"]), 6)
    assert float(data["t_current"]) == pytest.approx(1e-2)


def test_saturated_soil_runs_with_water_pressure(build_model):
    mpm = build_model(material=SATURATED_SOIL,
                      configuration={"check_divergence": False},
                      solver={"AdaptiveTimestep": True, "MaxTimesteps": 5},
                      boundary={"BoundaryType": "VelocityConstraint", "StartPoint": [0., 0.], "EndPoint": [2., 0.], "Velocity": [0., 0.]})
    assert mpm.run()

    number = int(mpm.scene.particleNum[0])
    assert mpm.sims.current_step == 5
    assert mpm.enginer.water and not mpm.enginer.gas
    assert np.all(np.isfinite(mpm.scene.particle.pw.to_numpy()[0:number]))
    np.testing.assert_array_equal(mpm.scene.particle.pg.to_numpy()[0:number], 0.)
    assert mpm.sims.dt[None] < 1e-3


def test_run_without_particles_is_rejected():
    from porotaichi.mpm.mainMPM import MPM

    mpm = MPM(log=False)
    with pytest.raises(RuntimeError, match="No material point"):
        mpm.run()


def test_invalid_configuration_is_rejected(build_model):
    with pytest.raises(RuntimeError, match="formulation"):
        build_model(configuration={"formulation": "ThreeLayer"})
    with pytest.raises(RuntimeError, match="local_damping"):
        build_model(configuration={"local_damping": 1.5})
