import numpy as np
import taichi as ti

from porotaichi.utils.TypeDefination import vec3f


class Simulation(object):
    def __init__(self) -> None:
        self.dimension = 3
        self.domain = vec3f(0., 0., 0.)
        self.element_size = vec3f(0., 0., 0.)
        self.gravity = vec3f(0., 0., 0.)
        self.formulation = "SinglePoint"
        self.number_of_phases = 1
        self.max_entity_num = 1
        self.hard_entity = 0
        self.contact = False
        self.strain_smoothing = False
        self.bulk_viscosity = False
        self.bulk_viscosity_damping = [0.06, 1.2]
        self.partial_saturation = False
        self.absorbing_boundary = False
        self.implicit_quasi_static = False
        self.quasi_static = False
        self.porosity_update = False
        self.liquid_pressure_smoothing = False
        self.cylindrical = False
        self.mesh_mode = "Fixed"
        self.integration = "MaterialPoint"
        self.objective_stress = True
        self.free_surface_detection = True
        self.submerged_steps = 0
        self.local_damping = 0.
        self.mass_scaling = 1.
        self.external_props_size = 50
        self.external_state_size = 50

        self.dt = ti.field(float, shape=())
        self.delta = 0.
        self.current_time = 0.
        self.current_step = 0
        self.current_print = 0

        self.max_material_num = 0
        self.max_particle_num = 1

        self.time = 0.
        self.max_timesteps = 0
        self.CFL = 0.98
        self.isadaptive = True
        self.save_interval = 1e6
        self.path = None
        self.monitor_type = []

        self.force_tolerance = 0.01
        self.kinetic_tolerance = 0.01
        self.divergence_tolerance = 0.1
        self.check_divergence = True

    def get_simulation_domain(self):
        return self.domain

    def set_dimension(self, dimension):
        DIMENSION = {"2-Dimension": 2, "3-Dimension": 3, 2: 2, 3: 3}
        if not dimension in DIMENSION:
            raise RuntimeError(f"Keyword:: /dimension/ must be {list(DIMENSION.keys())}")
        self.dimension = DIMENSION[dimension]

    def set_domain(self, domain):
        if isinstance(domain, (list, tuple)):
            if len(domain) == 2:
                domain = [domain[0], domain[1], 0.]
            domain = vec3f(domain)
        for d in range(self.dimension):
            if domain[d] <= 0.:
                raise RuntimeError(f"Keyword:: /domain/ must be positive in each of the {self.dimension} directions")
        self.domain = domain

    def set_element_size(self, element_size):
        if isinstance(element_size, (int, float)):
            element_size = [element_size] * 3
        if isinstance(element_size, (list, tuple)):
            if len(element_size) == 2:
                element_size = [element_size[0], element_size[1], 1.]
            element_size = vec3f(element_size)
        for d in range(self.dimension):
            if element_size[d] <= 0.:
                raise RuntimeError("Keyword:: /element_size/ must be positive")
        self.element_size = element_size

    def set_gravity(self, gravity):
        if len(gravity) == 2:
            gravity = [gravity[0], gravity[1], 0.]
        if isinstance(gravity, (list, tuple)):
            gravity = vec3f(gravity)
        self.gravity = gravity

    def set_formulation(self, formulation):
        valid_list = ["SinglePoint", "TwoLayer"]
        if not formulation in valid_list:
            raise RuntimeError(f"Keyword:: /formulation: {formulation}/ is invalid. Only {valid_list} is valid!")
        self.formulation = formulation

    def set_number_of_phases(self, number_of_phases):
        if not number_of_phases in [1, 2, 3]:
            raise RuntimeError("Number of phases must be 1, 2 or 3")
        if self.formulation == "TwoLayer":
            if number_of_phases == 3:
                raise RuntimeError("Keyword:: /formulation: TwoLayer/ does not support unsaturated (3-phase) materials")
            number_of_phases = 2
        self.number_of_phases = number_of_phases

    def set_entity_num(self, entity_num):
        if entity_num <= 0:
            raise ValueError("Max entity number should be larger than 0!")
        self.max_entity_num = int(entity_num)

    def set_hard_entity(self, hard_entity):
        if hard_entity < 0 or hard_entity >= self.max_entity_num:
            raise RuntimeError(f"Keyword:: /hard_entity/ must lie in [0, {self.max_entity_num})")
        self.hard_entity = int(hard_entity)

    def set_contact(self, contact):
        self.contact = contact
        if contact and self.max_entity_num < 2:
            raise RuntimeError("Keyword:: /contact/ requires at least two entities")

    def set_strain_smoothing(self, strain_smoothing):
        self.strain_smoothing = strain_smoothing

    def set_bulk_viscosity(self, bulk_viscosity, bulk_viscosity_damping):
        self.bulk_viscosity = bulk_viscosity
        if len(bulk_viscosity_damping) != 2:
            raise RuntimeError("Keyword:: /bulk_viscosity_damping/ must be [linear coefficient, quadratic coefficient]")
        if bulk_viscosity_damping[0] < 0. or bulk_viscosity_damping[1] < 0.:
            raise RuntimeError("Keyword:: /bulk_viscosity_damping/ must be non-negative")
        self.bulk_viscosity_damping = list(bulk_viscosity_damping)

    def set_partial_saturation(self, partial_saturation):
        self.partial_saturation = partial_saturation

    def set_absorbing_boundary(self, absorbing_boundary):
        self.absorbing_boundary = absorbing_boundary

    def set_implicit_quasi_static(self, implicit_quasi_static):
        self.implicit_quasi_static = implicit_quasi_static

    def set_quasi_static(self, quasi_static):
        self.quasi_static = quasi_static

    def set_porosity_update(self, porosity_update):
        self.porosity_update = porosity_update

    def set_liquid_pressure_smoothing(self, liquid_pressure_smoothing):
        self.liquid_pressure_smoothing = liquid_pressure_smoothing

    def set_cylindrical(self, cylindrical):
        self.cylindrical = cylindrical

    def set_mesh_mode(self, mesh_mode):
        valid_list = ["Fixed", "UpdatedLagrangian"]
        if not mesh_mode in valid_list:
            raise RuntimeError(f"Keyword:: /mesh_mode: {mesh_mode}/ is invalid. Only {valid_list} is valid!")
        self.mesh_mode = mesh_mode

    def set_integration(self, integration):
        valid_list = ["MaterialPoint", "Mixed"]
        if not integration in valid_list:
            raise RuntimeError(f"Keyword:: /integration: {integration}/ is invalid. Only {valid_list} is valid!")
        self.integration = integration

    def set_objective_stress(self, objective_stress):
        self.objective_stress = objective_stress

    def set_free_surface_detection(self, free_surface_detection):
        self.free_surface_detection = free_surface_detection

    def set_submerged_steps(self, submerged_steps):
        if submerged_steps < 0:
            raise RuntimeError("Keyword:: /submerged_steps/ must be non-negative")
        self.submerged_steps = int(submerged_steps)

    def set_local_damping(self, local_damping):
        if local_damping < 0. or local_damping >= 1.:
            raise RuntimeError("Keyword:: /local_damping/ must lie in [0, 1)")
        self.local_damping = local_damping

    def set_mass_scaling(self, mass_scaling):
        if mass_scaling < 1.:
            raise RuntimeError("Keyword:: /mass_scaling/ must not be smaller than 1")
        self.mass_scaling = mass_scaling

    def set_external_array_size(self, props_size, state_size):
        if props_size <= 0:
            raise RuntimeError("Keyword:: /external_props_size/ must be positive")
        if state_size < 10:
            raise RuntimeError("Keyword:: /external_state_size/ must be at least 10, the built-in plastic models store 10 state variables")
        self.external_props_size = int(props_size)
        self.external_state_size = int(state_size)

    def set_timestep(self, timestep):
        self.dt[None] = timestep
        self.delta = timestep

    def set_simulation_time(self, time):
        if time <= 0.:
            raise RuntimeError("Keyword:: /SimulationTime/ must be positive")
        self.time = time

    def set_max_timesteps(self, max_timesteps):
        self.max_timesteps = int(max_timesteps)

    def set_CFL(self, CFL):
        if CFL <= 0. or CFL > 1.:
            raise RuntimeError("Keyword:: /CFL/ must lie in (0, 1]")
        self.CFL = CFL

    def set_adaptive_timestep(self, isadaptive):
        self.isadaptive = isadaptive

    def set_save_interval(self, save_interval):
        self.save_interval = save_interval

    def set_save_path(self, path):
        self.path = path

    def set_tolerance(self, force_tolerance, kinetic_tolerance, divergence_tolerance):
        self.force_tolerance = force_tolerance
        self.kinetic_tolerance = kinetic_tolerance
        self.divergence_tolerance = divergence_tolerance

    def set_check_divergence(self, check_divergence):
        self.check_divergence = check_divergence

    def set_material_num(self, material_num):
        if material_num <= 0:
            raise ValueError("Max material number should be larger than 0!")
        self.max_material_num = int(material_num + 1)

    def set_particle_num(self, particle_num):
        if particle_num <= 0:
            raise ValueError("Max particle number should be larger than 0!")
        self.max_particle_num = int(particle_num)

    def set_save_data(self, particle, grid):
        self.monitor_type = []
        if particle: self.monitor_type.append('particle')
        if grid: self.monitor_type.append('grid')

    def update_critical_timestep(self, dt):
        self.dt[None] = dt
        self.delta = dt

    def remaining_time(self):
        return self.time - self.current_time

    def gravity_norm(self):
        return float(np.linalg.norm(np.array([self.gravity[0], self.gravity[1], self.gravity[2]])))

    def is_two_layer(self):
        return self.formulation == "TwoLayer"

    def is_updated_mesh(self):
        return self.mesh_mode == "UpdatedLagrangian"

    def is_mixed_integration(self):
        return self.integration == "Mixed"
