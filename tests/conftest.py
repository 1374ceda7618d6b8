import pytest
import taichi as ti


def pytest_configure(config):
    # Initialise before test modules are collected, so that module-level taichi constants are cooked as f64
    ti.init(arch=ti.cpu, default_fp=ti.f64, default_ip=ti.i32, offline_cache=False, log_level=ti.ERROR)


@pytest.fixture(scope="session", autouse=True)
def taichi_runtime():
    yield


ELASTIC_SOIL = {
    "MaterialID":           1,
    "MaterialType":         "1-phase-solid",
    "DensitySolid":         2000.,
    "Porosity":             0.,
    "YoungModulus":         1e4,
    "PoissonRatio":         0.3
}


@pytest.fixture
def build_model():
    """
    Factory of small two dimensional models on a 2 x 2 mesh of unit elements
    """
    from porotaichi.mpm.mainMPM import MPM

    def build(material=None, model="LinearElastic", body=None, configuration=None, solver=None, boundary=None, max_particle_number=64):
        mpm = MPM(log=False)
        config = {"dimension": 2, "domain": [2., 2.], "element_size": 1., "gravity": [0., -9.81], "free_surface_detection": False}
        config.update(configuration or {})
        mpm.set_configuration(log=False, **config)

        solver_parameters = {"Timestep": 1e-3, "SimulationTime": 1e-2, "AdaptiveTimestep": False, "SaveInterval": 1e6}
        solver_parameters.update(solver or {})
        mpm.set_solver(solver_parameters, log=False)
        mpm.memory_allocate({"max_material_number": 1, "max_particle_number": max_particle_number}, log=False)
        mpm.add_material(model=model, material=dict(ELASTIC_SOIL if material is None else material))
        mpm.add_element({})
        mpm.add_body(body if body is not None else {"Type": "Box", "BoxPoint": [0., 0.], "BoxSize": [1., 1.], "MaterialID": 1, "ParticlesPerCell": 2})
        if boundary is not None:
            mpm.add_boundary_condition(boundary)
        return mpm
    return build
