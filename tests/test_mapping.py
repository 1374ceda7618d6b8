import numpy as np
import pytest
import taichi as ti

from porotaichi.mpm.engines.MappingKernel import kernel_map_velocity_to_particle, kernel_rotate_momentum_round_trip


MOVING_BODY = {"Type": "Box", "BoxPoint": [0.25, 0.25], "BoxSize": [1., 1.], "MaterialID": 1, "ParticlesPerCell": 2,
               "InitialVelocity": [1., 0.5]}


def prepared_model(build_model, **kwargs):
    mpm = build_model(body=MOVING_BODY, **kwargs)
    mpm.add_engine()
    mpm.enginer.pre_calculation(mpm.sims, mpm.scene)
    return mpm


def active_particles(scene):
    number = int(scene.particleNum[0])
    return scene.particle.active.to_numpy()[0:number] == 1


def test_mass_and_momentum_are_conserved_by_mapping(build_model):
    mpm = prepared_model(build_model)
    scene = mpm.scene
    number = int(scene.particleNum[0])
    active = active_particles(scene)
    mass = scene.particle.m.to_numpy()[0:number][active]

    nodal_mass = scene.entity_node.m.to_numpy()
    nodal_momentum = scene.entity_node.momentum.to_numpy()
    assert nodal_mass.sum() == pytest.approx(mass.sum(), rel=1e-12)
    np.testing.assert_allclose(nodal_momentum.sum(axis=(0, 1)), [mass.sum(), 0.5 * mass.sum(), 0.], rtol=1e-12, atol=1e-12)


def test_empty_nodes_have_zero_velocity(build_model):
    mpm = prepared_model(build_model)
    nodal_mass = mpm.scene.entity_node.m.to_numpy()
    nodal_velocity = mpm.scene.entity_node.v.to_numpy()

    assert np.all(np.isfinite(nodal_velocity))
    np.testing.assert_array_equal(nodal_velocity[nodal_mass == 0.], 0.)
    np.testing.assert_allclose(nodal_velocity[nodal_mass > 0.], np.tile([1., 0.5, 0.], (int((nodal_mass > 0.).sum()), 1)), rtol=1e-12)


def test_uniform_velocity_is_recovered_at_particles(build_model):
    mpm = prepared_model(build_model)
    scene = mpm.scene
    number = int(scene.particleNum[0])
    velocity = ti.Vector.field(3, float, shape=number)

    kernel_map_velocity_to_particle(number, scene.particle, scene.entity_node, scene.element, velocity)
    np.testing.assert_allclose(velocity.to_numpy()[active_particles(scene)], np.tile([1., 0.5, 0.], (number, 1)), rtol=1e-12, atol=1e-12)


def test_local_frame_rotation_round_trip(build_model):
    mpm = prepared_model(build_model, configuration={"cylindrical": True})
    scene = mpm.scene
    scene.set_cylindrical_frame(mpm.sims, [0., 0., 0.], [2., 2., 0.], [-1., -1., 0.], [0., 0., 1.], 1e-6)
    assert scene.node.rotated.to_numpy().sum() == scene.element.gridSum

    momentum = scene.entity_node.momentum.to_numpy()
    kernel_rotate_momentum_round_trip(scene.entity_node, scene.node)
    np.testing.assert_allclose(scene.entity_node.momentum.to_numpy(), momentum, rtol=1e-12, atol=1e-12)


def test_rotated_nodes_keep_unconstrained_velocity(build_model):
    mpm = prepared_model(build_model, configuration={"cylindrical": True})
    scene = mpm.scene
    scene.set_cylindrical_frame(mpm.sims, [0., 0., 0.], [2., 2., 0.], [-1., -1., 0.], [0., 0., 1.], 1e-6)
    mpm.enginer.pre_calculation(mpm.sims, scene)

    nodal_mass = scene.entity_node.m.to_numpy()
    nodal_velocity = scene.entity_node.v.to_numpy()
    np.testing.assert_allclose(nodal_velocity[nodal_mass > 0.], np.tile([1., 0.5, 0.], (int((nodal_mass > 0.).sum()), 1)), rtol=1e-10, atol=1e-12)
