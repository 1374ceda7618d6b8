import pytest

from porotaichi.mpm.engines.ConvectiveKernel import kernel_update_particle_weight, kernel_update_particle_weight_two_layer, kernel_update_porosity
from porotaichi.mpm.MaterialManager import MaterialManager
from porotaichi.mpm.Simulation import Simulation
from porotaichi.mpm.structs import MaterialPoint
from porotaichi.utils.constants import LIQUID, MIXTURE, PHASE_LIQUID


WATER = {"MaterialID": 1, "MaterialType": "1-phase-liquid", "DensityLiquid": 1000., "BulkModulusLiquid": 2.2e6}
CAVITATING_WATER = dict(WATER, LiquidCavitation=-220.)


def single_point(model, material, mptype):
    sims = Simulation()
    sims.set_material_num(1)
    manager = MaterialManager()
    manager.add_material(sims, model, material)

    particle = MaterialPoint.field(shape=1)
    particle.active[0] = 1
    particle.materialID[0] = 1
    particle.mptype[0] = mptype
    particle.m[0] = 1.
    particle.density[0] = 1.
    particle.vol[0] = 1.
    return manager, particle


def test_liquid_density_pinned_to_threshold_when_partially_filled():
    manager, particle = single_point("Newtonian", WATER, LIQUID)
    particle.filling[0] = 0.5
    particle.pw[0] = 10.
    particle.dstrain[0] = [-0.01, 0., 0., 0., 0., 0.]
    kernel_update_particle_weight(1, particle, manager.matProps)

    assert particle.density[0] == pytest.approx(1.)
    assert particle.vol[0] == pytest.approx(1.)


def test_liquid_density_follows_compression_under_suction():
    manager, particle = single_point("Newtonian", WATER, LIQUID)
    particle.filling[0] = 0.5
    particle.pw[0] = -10.
    particle.dstrain[0] = [-0.01, 0., 0., 0., 0., 0.]
    kernel_update_particle_weight(1, particle, manager.matProps)

    assert particle.density[0] == pytest.approx(1. / 0.99)
    assert particle.vol[0] == pytest.approx(0.99)


def test_clamped_liquid_density_stays_at_threshold_over_steps():
    manager, particle = single_point("Newtonian", CAVITATING_WATER, LIQUID)
    threshold = manager.matProps.threshold_density[1] / 1000.
    particle.filling[0] = 0.5
    particle.pw[0] = 0.
    for dvolumetric in [-0.01, 0.02, -0.005]:
        particle.dstrain[0] = [dvolumetric, 0., 0., 0., 0., 0.]
        kernel_update_particle_weight(1, particle, manager.matProps)

        assert particle.density[0] == pytest.approx(threshold)
        assert particle.vol[0] == pytest.approx(1. / threshold)


def test_filled_liquid_follows_strain_then_snaps_back_to_threshold():
    manager, particle = single_point("Newtonian", CAVITATING_WATER, LIQUID)
    threshold = manager.matProps.threshold_density[1] / 1000.
    particle.pw[0] = 0.
    particle.dstrain[0] = [-0.01, 0., 0., 0., 0., 0.]

    particle.filling[0] = 1.2
    kernel_update_particle_weight(1, particle, manager.matProps)
    assert particle.density[0] == pytest.approx(1. / 0.99)

    particle.filling[0] = 0.8
    kernel_update_particle_weight(1, particle, manager.matProps)
    assert particle.density[0] == pytest.approx(threshold)
    assert threshold > 1.


def test_free_surface_liquid_updates_only_when_filled():
    manager, particle = single_point("Newtonian", CAVITATING_WATER, LIQUID)
    threshold = manager.matProps.threshold_density[1] / 1000.
    particle.pw[0] = -300.
    particle.free_surface[0] = 1
    particle.dstrain[0] = [-0.01, 0., 0., 0., 0., 0.]

    particle.filling[0] = 0.5
    kernel_update_particle_weight(1, particle, manager.matProps)
    assert particle.density[0] == pytest.approx(threshold)
    assert particle.free_surface[0] == 1

    particle.filling[0] = 1.2
    kernel_update_particle_weight(1, particle, manager.matProps)
    assert particle.density[0] == pytest.approx(threshold / 0.99)
    assert particle.free_surface[0] == 0


def liquid_in_two_layer_mesh(build_model, has_solid, filling):
    mpm = build_model(material=WATER, model="Newtonian", configuration={"formulation": "TwoLayer"},
                      body={"Type": "List", "Position": [[0.5, 0.5]], "Volume": 0.25, "MaterialID": 1})
    scene = mpm.scene
    scene.locate_particles()
    scene.update_element_index(mpm.sims)
    scene.element_cell.has_solid[0] = 1 if has_solid else 0
    scene.node.solid_concentration.fill(0.4)
    scene.particle.filling[0] = filling
    scene.particle.density[0] = 1.
    scene.particle.pw[0] = 10.
    scene.particle.dstrain[0] = [-0.01, 0., 0., 0., 0., 0.]
    kernel_update_particle_weight_two_layer(1, scene.particle, scene.material.matProps, scene.node, scene.element, scene.element_cell)
    return scene


def test_two_layer_liquid_beside_solid_is_filled_above_98_percent(build_model):
    scene = liquid_in_two_layer_mesh(build_model, True, 0.99)
    assert scene.particle.density[0] == pytest.approx(1. / 0.99)


def test_two_layer_liquid_beside_solid_takes_pore_density(build_model):
    scene = liquid_in_two_layer_mesh(build_model, True, 0.9)
    mass = scene.particle.m[0] + scene.particle.mw[0]

    assert scene.particle.density[0] == pytest.approx(0.6)
    assert scene.particle.vol[0] == pytest.approx(mass / 0.6)


def test_two_layer_liquid_alone_needs_full_element(build_model):
    scene = liquid_in_two_layer_mesh(build_model, False, 0.99)
    assert scene.particle.density[0] == pytest.approx(1.)


def test_solid_volume_follows_volumetric_strain():
    manager, particle = single_point("LinearElastic", {"MaterialID": 1, "YoungModulus": 1e4}, MIXTURE)
    particle.dstrain[0] = [0.01, 0.01, 0., 0., 0., 0.]
    kernel_update_particle_weight(1, particle, manager.matProps)

    assert particle.vol[0] == pytest.approx(1.02)


def test_porosity_is_clamped_at_zero():
    manager, particle = single_point("LinearElastic", {"MaterialID": 1, "YoungModulus": 1e4, "Porosity": 0.1}, MIXTURE)
    particle.porosity[0] = 0.1
    particle.dstrain[0] = [-0.5, 0., 0., 0., 0., 0.]
    kernel_update_porosity(1, particle, manager.matProps)

    assert particle.porosity[0] == 0.
    assert particle.phase_status[0] != PHASE_LIQUID


def test_porosity_beyond_maximum_turns_point_liquid():
    material = {"MaterialID": 1, "YoungModulus": 1e4, "Porosity": 0.4, "MaximumPorosity": 0.45}
    manager, particle = single_point("LinearElastic", material, MIXTURE)
    particle.porosity[0] = 0.4
    particle.dstrain[0] = [0.1, 0., 0., 0., 0., 0.]
    kernel_update_porosity(1, particle, manager.matProps)

    assert particle.porosity[0] == pytest.approx(0.46)
    assert particle.phase_status[0] == PHASE_LIQUID


def test_particle_is_relocated_to_new_element(build_model):
    mpm = build_model(body={"Type": "List", "Position": [[0.5, 0.5]], "Volume": 0.25, "MaterialID": 1})
    scene = mpm.scene
    scene.locate_particles()
    assert scene.particle.element[0] == 0

    scene.particle.x[0] = [1.5, 0.5, 0.]
    assert scene.locate_particles() == 0
    assert scene.particle.element[0] == 1
    assert scene.particle.active[0] == 1


def test_particle_leaving_mesh_is_deactivated(build_model):
    mpm = build_model(body={"Type": "List", "Position": [[0.5, 0.5], [1.5, 1.5]], "Volume": 0.25, "MaterialID": 1})
    scene = mpm.scene
    scene.particle.x[1] = [2.5, 1.5, 0.]
    with pytest.warns(UserWarning, match="left the computational mesh"):
        assert scene.locate_particles() == 1

    assert scene.particle.active[0] == 1
    assert scene.particle.active[1] == 0
    assert scene.active_particle_number() == 1


def test_particles_in_element_are_listed_in_ascending_order(build_model):
    mpm = build_model(body={"Type": "List", "Position": [[1.5, 0.5], [0.5, 0.5], [1.5, 0.6]], "Volume": 0.25, "MaterialID": 1})
    scene = mpm.scene
    scene.locate_particles()
    scene.update_element_index(mpm.sims)

    assert scene.particles_in_element(0).tolist() == [1]
    assert scene.particles_in_element(1).tolist() == [0, 2]
    assert scene.particles_in_element(3).tolist() == []


def test_clean_boundary_condition_releases_nodes(build_model):
    mpm = build_model(boundary={"BoundaryType": "VelocityConstraint", "StartPoint": [0., 0.], "EndPoint": [2., 0.], "Velocity": [0., 0.]})
    fix = mpm.scene.node.fix.to_numpy()
    assert fix[:, 1].sum() == 3

    mpm.clean_boundary_condition()
    assert mpm.scene.node.fix.to_numpy().sum() == 0
