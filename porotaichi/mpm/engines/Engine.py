from porotaichi.mpm.CalculationState import StepDiagnostics, PersistentState
from porotaichi.mpm.engines.BalanceEquation import BalanceEquation
from porotaichi.mpm.engines.Convergence import Convergence
from porotaichi.mpm.engines.TimeStep import TimeStep
from porotaichi.mpm.SceneManager import myScene
from porotaichi.mpm.Simulation import Simulation
from porotaichi.utils.linalg import no_operation


class Engine(object):
    """
    Strategy table of the explicit solution cycle. Every branch on the
    formulation, the number of phases and the feature flags is resolved once
    in manage_function, the step loop only calls the selected members.
    """
    def __init__(self, sims: Simulation) -> None:
        self.compute = None
        self.compute_forces = None
        self.compute_nodal_acceleration = None
        self.compute_internal_force_end = None
        self.rotate = False
        self.update_mesh = None
        self.relocate_particles = None
        self.update_particle_position = None
        self.compute_liquid_field = None
        self.interpolate_liquid_pressure = None
        self.smooth_strain = None
        self.smooth_liquid_pressure = None
        self.compute_external_stress = None
        self.compute_bulk_viscosity = None
        self.broadcast_unloading_stiffness = None
        self.smooth_mixed_integration = None
        self.update_particle_weight = None
        self.update_porosity = None
        self.update_saturation = None

        self.water = False
        self.gas = False
        self.two_layer = False
        self.partial = False
        self.mixed = False
        self.mixture_density = 0

        self.balance = BalanceEquation(sims.gravity_norm())
        self.diagnostics = StepDiagnostics()
        self.state = PersistentState(sims)
        self.timestep = TimeStep()
        self.convergence = None
        self.manage_function(sims)

    def manage_function(self, sims: Simulation):
        self.compute_forces = no_operation
        self.compute_nodal_acceleration = no_operation
        self.compute_internal_force_end = no_operation
        self.update_mesh = no_operation
        self.relocate_particles = no_operation
        self.update_particle_position = no_operation
        self.compute_liquid_field = no_operation
        self.interpolate_liquid_pressure = no_operation
        self.smooth_strain = no_operation
        self.smooth_liquid_pressure = no_operation
        self.compute_external_stress = no_operation
        self.compute_bulk_viscosity = no_operation
        self.broadcast_unloading_stiffness = no_operation
        self.smooth_mixed_integration = no_operation
        self.update_particle_weight = no_operation
        self.update_porosity = no_operation
        self.update_saturation = no_operation

        self.two_layer = sims.is_two_layer()
        self.water = sims.number_of_phases >= 2 and not self.two_layer
        self.gas = sims.number_of_phases == 3 and not self.two_layer
        self.partial = sims.partial_saturation and self.water
        self.mixed = sims.is_mixed_integration()
        self.rotate = sims.cylindrical
        self.convergence = Convergence(sims)

        if self.two_layer:
            self.compute_forces = self.compute_force_two_layer
            self.compute_nodal_acceleration = self.compute_nodal_acceleration_two_layer
            self.compute_internal_force_end = self.compute_internal_force_end_two_layer
            self.compute_liquid_field = self.compute_nodal_liquid_field
            self.interpolate_liquid_pressure = self.interpolate_nodal_liquid_pressure
            self.update_particle_weight = self.update_particle_weight_two_layer
        else:
            self.compute_forces = self.compute_force
            self.compute_nodal_acceleration = self.compute_nodal_accelerations
            self.compute_internal_force_end = self.compute_internal_force_ends
            self.update_particle_weight = self.update_particle_weights

        if sims.is_updated_mesh():
            self.update_mesh = self.update_mesh_coordinates
            self.update_particle_position = self.update_particle_position_mesh
        else:
            self.relocate_particles = self.locate_particles
            self.update_particle_position = self.update_particle_positions

        if sims.strain_smoothing:
            self.smooth_strain = self.strain_smoothing
        if sims.liquid_pressure_smoothing:
            self.smooth_liquid_pressure = self.liquid_pressure_smoothing
        if sims.bulk_viscosity:
            self.compute_bulk_viscosity = self.bulk_viscosity
        if self.mixed:
            self.broadcast_unloading_stiffness = self.broadcast_stiffness
            self.smooth_mixed_integration = self.mixed_smoothing
        if sims.porosity_update:
            self.update_porosity = self.update_porosities
        if self.gas or self.partial:
            self.update_saturation = self.update_saturations

    def choose_material_functions(self, sims: Simulation, scene: myScene):
        self.mixture_density = 1 if (scene.material.has_undrained() or sims.number_of_phases >= 2) else 0
        if scene.material.has_external():
            self.compute_external_stress = self.external_stress

    def compute_force(self, sims, scene):
        raise NotImplementedError

    def compute_force_two_layer(self, sims, scene):
        raise NotImplementedError

    def compute_nodal_accelerations(self, sims, scene):
        raise NotImplementedError

    def compute_nodal_acceleration_two_layer(self, sims, scene):
        raise NotImplementedError

    def compute_internal_force_ends(self, sims, scene):
        raise NotImplementedError

    def compute_internal_force_end_two_layer(self, sims, scene):
        raise NotImplementedError

    def compute_nodal_liquid_field(self, sims, scene):
        raise NotImplementedError

    def interpolate_nodal_liquid_pressure(self, sims, scene):
        raise NotImplementedError

    def update_mesh_coordinates(self, sims, scene):
        raise NotImplementedError

    def locate_particles(self, sims, scene):
        raise NotImplementedError

    def update_particle_positions(self, sims, scene):
        raise NotImplementedError

    def update_particle_position_mesh(self, sims, scene):
        raise NotImplementedError

    def strain_smoothing(self, sims, scene):
        raise NotImplementedError

    def liquid_pressure_smoothing(self, sims, scene):
        raise NotImplementedError

    def external_stress(self, sims, scene):
        raise NotImplementedError

    def bulk_viscosity(self, sims, scene):
        raise NotImplementedError

    def broadcast_stiffness(self, sims, scene):
        raise NotImplementedError

    def mixed_smoothing(self, sims, scene):
        raise NotImplementedError

    def update_particle_weights(self, sims, scene):
        raise NotImplementedError

    def update_particle_weight_two_layer(self, sims, scene):
        raise NotImplementedError

    def update_porosities(self, sims, scene):
        raise NotImplementedError

    def update_saturations(self, sims, scene):
        raise NotImplementedError

    def pre_calculation(self, sims, scene):
        raise NotImplementedError
