import taichi as ti

from porotaichi.mpm.engines.ConvectiveKernel import *
from porotaichi.mpm.engines.Engine import Engine
from porotaichi.mpm.engines.LagrangianKernel import *
from porotaichi.mpm.engines.MappingKernel import *
from porotaichi.mpm.engines.Smoothing import *
from porotaichi.mpm.engines.StressKernel import *
from porotaichi.mpm.SceneManager import myScene
from porotaichi.mpm.Simulation import Simulation


@ti.data_oriented
class ExplicitEngine(Engine):
    def __init__(self, sims: Simulation) -> None:
        self.liquid_mass = None
        self.liquid_volume = None
        self.solid_volume = None
        super().__init__(sims)
        self.compute = self.explicit_updating

    # ========================================================= #
    #                    Lagrangian phase                       #
    # ========================================================= #
    def compute_nodal_mass(self, sims: Simulation, scene: myScene):
        kernel_grid_reset(scene.entity_node)
        kernel_mass_p2g(int(scene.particleNum[0]), scene.particle, scene.entity_node, scene.element)

    def compute_force(self, sims: Simulation, scene: myScene):
        kernel_force_p2g(int(scene.particleNum[0]), scene.particle, scene.entity_node, scene.element, sims.gravity, self.water, self.gas)

    def compute_force_two_layer(self, sims: Simulation, scene: myScene):
        kernel_force_p2g_two_layer(int(scene.particleNum[0]), scene.particle, scene.entity_node, scene.element, sims.gravity)

    def compute_nodal_accelerations(self, sims: Simulation, scene: myScene):
        kernel_compute_nodal_acceleration(scene.entity_node, scene.node, sims.local_damping, sims.mass_scaling, self.water, self.gas)

    def compute_nodal_acceleration_two_layer(self, sims: Simulation, scene: myScene):
        kernel_compute_nodal_acceleration_two_layer(scene.entity_node, scene.node, sims.local_damping, sims.mass_scaling, sims.gravity_norm())

    def compute_internal_force_ends(self, sims: Simulation, scene: myScene):
        kernel_end_force_reset(scene.entity_node)
        kernel_internal_force_end(int(scene.particleNum[0]), scene.particle, scene.entity_node, scene.element, self.water, self.gas)

    def compute_internal_force_end_two_layer(self, sims: Simulation, scene: myScene):
        kernel_end_force_reset(scene.entity_node)
        kernel_internal_force_end_two_layer(int(scene.particleNum[0]), scene.particle, scene.entity_node, scene.element)

    def lagrangian_phase(self, sims: Simulation, scene: myScene):
        self.compute_nodal_mass(sims, scene)
        self.compute_forces(sims, scene)
        self.compute_nodal_acceleration(sims, scene)

    # ========================================================= #
    #                     Convective phase                      #
    # ========================================================= #
    def map_momentum(self, sims: Simulation, scene: myScene):
        kernel_apply_particle_velocity(int(scene.particleNum[0]), scene.particle)
        kernel_momentum_reset(scene.entity_node)
        kernel_update_particle_velocity_map_momentum(int(scene.particleNum[0]), scene.particle, scene.entity_node, scene.element, sims.dt,
                                                     self.water, self.gas, self.two_layer)
        kernel_compute_nodal_velocity(scene.entity_node, scene.node, self.rotate)

    def update_mesh_coordinates(self, sims: Simulation, scene: myScene):
        kernel_update_mesh_coordinates(scene.node, scene.entity_node, sims.hard_entity)
        scene.update_element_geometry()
        scene.update_shape_gradients()

    def compute_nodal_liquid_field(self, sims: Simulation, scene: myScene):
        kernel_reset_liquid_field(scene.node)
        self.liquid_mass.fill(0)
        self.liquid_volume.fill(0)
        self.solid_volume.fill(0)
        kernel_liquid_field_p2g(int(scene.particleNum[0]), scene.particle, scene.node, scene.element, self.liquid_mass, self.liquid_volume,
                                self.solid_volume)
        kernel_liquid_field_average(scene.node, self.liquid_mass, self.liquid_volume, self.solid_volume)

    def interpolate_nodal_liquid_pressure(self, sims: Simulation, scene: myScene):
        kernel_liquid_pressure_g2p(int(scene.particleNum[0]), scene.particle, scene.node, scene.element)

    def compute_strain(self, sims: Simulation, scene: myScene):
        kernel_particle_strain_increment(int(scene.particleNum[0]), scene.particle, scene.entity_node, scene.element, scene.element_cell,
                                         self.mixed, self.water, self.gas, self.two_layer)
        self.smooth_strain(sims, scene)
        kernel_particle_displacement(int(scene.particleNum[0]), scene.particle, scene.entity_node, scene.element, self.two_layer)

    def strain_smoothing(self, sims: Simulation, scene: myScene):
        kernel_strain_smoothing(scene.element_cell, scene.particle, scene.particle_in_element)

    def liquid_pressure_smoothing(self, sims: Simulation, scene: myScene):
        kernel_liquid_pressure_smoothing(scene.element_cell, scene.particle, scene.particle_in_element)

    def external_stress(self, sims: Simulation, scene: myScene):
        update_external_stress(sims, scene)

    def bulk_viscosity(self, sims: Simulation, scene: myScene):
        kernel_element_volumetric_rate(scene.element_cell, scene.entity_node, scene.element, sims.hard_entity)
        kernel_bulk_viscosity(int(scene.particleNum[0]), scene.particle, scene.material.matProps, scene.element_cell, sims.bulk_viscosity_damping[0],
                              sims.bulk_viscosity_damping[1], sims.mass_scaling, self.mixture_density, self.water, self.two_layer)

    def broadcast_stiffness(self, sims: Simulation, scene: myScene):
        kernel_broadcast_unloading_stiffness(scene.element_cell, scene.particle, scene.particle_in_element)

    def compute_stress(self, sims: Simulation, scene: myScene):
        """
        Pressure increments first, then the constitutive update of each
        built-in model, the host-side external models and the bulk viscosity
        """
        particle_num = int(scene.particleNum[0])
        matProps = scene.material.matProps
        self.diagnostics.reset_counters()
        kernel_reset_skipped_points(particle_num, scene.particle, matProps, sims.hard_entity)
        kernel_pressure_increment(particle_num, scene.particle, matProps, self.balance, sims.hard_entity, sims.gravity_norm(), sims.current_step,
                                  sims.submerged_steps, self.water, self.gas, self.partial, sims.implicit_quasi_static)
        kernel_liquid_pressure_increment(particle_num, scene.particle, matProps, sims.hard_entity)
        self.smooth_liquid_pressure(sims, scene)
        self.interpolate_liquid_pressure(sims, scene)
        for model in scene.material.models.values():
            if not model.is_external and not model.is_rigid:
                kernel_compute_stress(particle_num, scene.particle, matProps, model, model.model_id(), scene.state_vars, sims.dt, sims.hard_entity,
                                      self.diagnostics, sims.objective_stress, self.two_layer)
        self.compute_external_stress(sims, scene)
        self.compute_bulk_viscosity(sims, scene)
        self.broadcast_unloading_stiffness(sims, scene)

    def update_particle_weights(self, sims: Simulation, scene: myScene):
        kernel_update_particle_weight(int(scene.particleNum[0]), scene.particle, scene.material.matProps)

    def update_particle_weight_two_layer(self, sims: Simulation, scene: myScene):
        kernel_update_particle_weight_two_layer(int(scene.particleNum[0]), scene.particle, scene.material.matProps, scene.node, scene.element,
                                                scene.element_cell)

    def update_porosities(self, sims: Simulation, scene: myScene):
        kernel_update_porosity(int(scene.particleNum[0]), scene.particle, scene.material.matProps)

    def update_particle_positions(self, sims: Simulation, scene: myScene):
        kernel_update_particle_position(int(scene.particleNum[0]), scene.particle, scene.entity_node, scene.element, self.two_layer)

    def update_particle_position_mesh(self, sims: Simulation, scene: myScene):
        kernel_update_particle_position_mesh(int(scene.particleNum[0]), scene.particle, scene.node, scene.element)

    def locate_particles(self, sims: Simulation, scene: myScene):
        scene.locate_particles()

    def mixed_smoothing(self, sims: Simulation, scene: myScene):
        kernel_mixed_smoothing(scene.element_cell, scene.particle, scene.particle_in_element, scene.state_vars)

    def update_saturations(self, sims: Simulation, scene: myScene):
        kernel_update_saturation(int(scene.particleNum[0]), scene.particle, scene.material.matProps, sims.gravity)

    def compute_energies(self, sims: Simulation, scene: myScene):
        kinetic_energy = self.convergence.kinetic_energy(scene, self.diagnostics)
        self.state.update_energy_baseline(kinetic_energy)
        self.convergence.accumulate_works(sims, scene, self.state)
        self.convergence.force_error(sims, scene, self.diagnostics)

    def convective_phase(self, sims: Simulation, scene: myScene):
        self.map_momentum(sims, scene)
        kernel_incremental_displacement(scene.entity_node, sims.dt)
        self.update_mesh(sims, scene)
        self.compute_liquid_field(sims, scene)
        self.compute_strain(sims, scene)
        self.compute_stress(sims, scene)
        self.compute_internal_force_end(sims, scene)
        self.update_particle_weight(sims, scene)
        self.update_porosity(sims, scene)
        self.update_particle_position(sims, scene)
        self.relocate_particles(sims, scene)
        scene.update_element_index(sims)
        self.smooth_mixed_integration(sims, scene)
        kernel_store_initial_stress(int(scene.particleNum[0]), scene.particle)
        self.update_saturation(sims, scene)
        self.compute_energies(sims, scene)

    def explicit_updating(self, sims: Simulation, scene: myScene):
        self.lagrangian_phase(sims, scene)
        self.convective_phase(sims, scene)

    def pre_calculation(self, sims: Simulation, scene: myScene):
        self.choose_material_functions(sims, scene)
        if self.two_layer:
            self.liquid_mass = ti.field(float, shape=scene.element.gridSum)
            self.liquid_volume = ti.field(float, shape=scene.element.gridSum)
            self.solid_volume = ti.field(float, shape=scene.element.gridSum)
        scene.locate_particles()
        scene.update_element_index(sims)
        self.update_saturation(sims, scene)
        self.compute_nodal_mass(sims, scene)
        kernel_momentum_reset(scene.entity_node)
        kernel_momentum_p2g(int(scene.particleNum[0]), scene.particle, scene.entity_node, scene.element, self.two_layer)
        kernel_compute_nodal_velocity(scene.entity_node, scene.node, self.rotate)
        self.compute_liquid_field(sims, scene)
        self.state.update_energy_baseline(self.convergence.kinetic_energy(scene, self.diagnostics))
