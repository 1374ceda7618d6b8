import warnings

import numpy as np
from taichi.lang.impl import current_cfg

from porotaichi.mpm.engines.ExplicitEngine import ExplicitEngine
from porotaichi.mpm.MPMBase import Solver
from porotaichi.mpm.Recorder import WriteFile
from porotaichi.mpm.SceneManager import myScene
from porotaichi.mpm.Simulation import Simulation
from porotaichi.utils.ObjectIO import DictIO


class MPM(object):
    def __init__(self, title='An Explicit Material Point Method for Multiphase Geomechanics', log=True):
        if log:
            print('# =================================================================== #')
            print('#', "".center(67), '#')
            print('#', "Welcome to PoroTaichi -- Material Point Method Engine !".center(67), '#')
            print('#', "".center(67), '#')
            print('#', title.center(67), '#')
            print('#', "".center(67), '#')
            print('# =================================================================== #', '\n')
        self.sims = Simulation()
        self.scene = myScene()
        self.enginer = None
        self.recorder = None
        self.solver = None
        self.callbacks = []
        self.first_run = True

    def set_configuration(self, log=True, **kwargs):
        self.sims.set_dimension(DictIO.GetAlternative(kwargs, "dimension", "3-Dimension"))
        if np.linalg.norm(np.array(self.sims.get_simulation_domain())) < 1e-10:
            self.sims.set_domain(DictIO.GetEssential(kwargs, "domain"))
        self.sims.set_element_size(DictIO.GetEssential(kwargs, "element_size"))
        self.sims.set_gravity(DictIO.GetAlternative(kwargs, "gravity", [0., 0., -9.81] if self.sims.dimension == 3 else [0., -9.81]))
        self.sims.set_formulation(DictIO.GetAlternative(kwargs, "formulation", "SinglePoint"))
        self.sims.set_strain_smoothing(DictIO.GetAlternative(kwargs, "strain_smoothing", False))
        self.sims.set_bulk_viscosity(DictIO.GetAlternative(kwargs, "bulk_viscosity", False), DictIO.GetAlternative(kwargs, "bulk_viscosity_damping", [0.06, 1.2]))
        self.sims.set_partial_saturation(DictIO.GetAlternative(kwargs, "partial_saturation", False))
        self.sims.set_absorbing_boundary(DictIO.GetAlternative(kwargs, "absorbing_boundary", False))
        self.sims.set_implicit_quasi_static(DictIO.GetAlternative(kwargs, "implicit_quasi_static", False))
        self.sims.set_quasi_static(DictIO.GetAlternative(kwargs, "quasi_static", False))
        self.sims.set_porosity_update(DictIO.GetAlternative(kwargs, "porosity_update", False))
        self.sims.set_liquid_pressure_smoothing(DictIO.GetAlternative(kwargs, "liquid_pressure_smoothing", False))
        self.sims.set_cylindrical(DictIO.GetAlternative(kwargs, "cylindrical", False))
        self.sims.set_mesh_mode(DictIO.GetAlternative(kwargs, "mesh_mode", "Fixed"))
        self.sims.set_integration(DictIO.GetAlternative(kwargs, "integration", "MaterialPoint"))
        self.sims.set_objective_stress(DictIO.GetAlternative(kwargs, "objective_stress", True))
        self.sims.set_free_surface_detection(DictIO.GetAlternative(kwargs, "free_surface_detection", True))
        self.sims.set_submerged_steps(DictIO.GetAlternative(kwargs, "submerged_steps", 0))
        self.sims.set_local_damping(DictIO.GetAlternative(kwargs, "local_damping", 0.))
        self.sims.set_mass_scaling(DictIO.GetAlternative(kwargs, "mass_scaling", 1.))
        self.sims.set_external_array_size(DictIO.GetAlternative(kwargs, "external_props_size", 50), DictIO.GetAlternative(kwargs, "external_state_size", 50))
        self.sims.set_tolerance(DictIO.GetAlternative(kwargs, "force_tolerance", 0.01), DictIO.GetAlternative(kwargs, "kinetic_tolerance", 0.01),
                                DictIO.GetAlternative(kwargs, "divergence_tolerance", 0.1))
        self.sims.set_check_divergence(DictIO.GetAlternative(kwargs, "check_divergence", True))
        if self.sims.absorbing_boundary:
            warnings.warn("Keyword:: /absorbing_boundary/ is accepted but absorbing dashpots are not applied")
        if log:
            self.print_basic_simulation_info()
            print('\n')

    def set_solver(self, solver, log=True):
        self.sims.set_timestep(DictIO.GetEssential(solver, "Timestep"))
        self.sims.set_simulation_time(DictIO.GetEssential(solver, "SimulationTime"))
        self.sims.set_CFL(DictIO.GetAlternative(solver, "CFL", 0.98))
        self.sims.set_adaptive_timestep(DictIO.GetAlternative(solver, "AdaptiveTimestep", True))
        self.sims.set_save_interval(DictIO.GetAlternative(solver, "SaveInterval", self.sims.time / 20.))
        self.sims.set_save_path(DictIO.GetAlternative(solver, "SavePath", 'OutputData'))
        self.sims.set_max_timesteps(DictIO.GetAlternative(solver, "MaxTimesteps", 0))
        if log:
            self.print_solver_info()
            print('\n')

    def memory_allocate(self, memory, log=True):
        self.sims.set_material_num(DictIO.GetEssential(memory, "max_material_number"))
        self.sims.set_particle_num(DictIO.GetEssential(memory, "max_particle_number"))
        self.sims.set_entity_num(DictIO.GetAlternative(memory, "max_entity_number", 1))
        self.sims.set_hard_entity(DictIO.GetAlternative(memory, "hard_entity", 0))
        self.sims.set_contact(DictIO.GetAlternative(memory, "contact", False))
        self.scene.activate_material(self.sims)
        if log:
            self.print_simulation_info()
            print('\n')

    def print_basic_simulation_info(self):
        print(" MPM Basic Configuration ".center(71,"-"))
        print(("Simulation Type: " + str(current_cfg().arch)).ljust(67))
        print(("Simulation Domain: " + str(self.sims.domain)).ljust(67))
        print(("Element Size: " + str(self.sims.element_size)).ljust(67))
        print(("Gravity: " + str(self.sims.gravity)).ljust(67))
        print(("Formulation: " + str(self.sims.formulation)).ljust(67))
        print(("Mesh Mode: " + str(self.sims.mesh_mode)).ljust(67))
        print(("Integration: " + str(self.sims.integration)).ljust(67))
        print(("Local Damping: " + str(self.sims.local_damping)).ljust(67))
        print(("Mass Scaling: " + str(self.sims.mass_scaling)).ljust(67))
        print(("Bulk Viscosity: " + str(self.sims.bulk_viscosity) + " " + str(self.sims.bulk_viscosity_damping)).ljust(67))
        print(("Quasi Static: " + str(self.sims.quasi_static)).ljust(67))

    def print_simulation_info(self):
        print(" MPM Engine Information ".center(71,"-"))
        print(("Max Material Number: " + str(self.sims.max_material_num - 1)).ljust(67))
        print(("Max Particle Number: " + str(self.sims.max_particle_num)).ljust(67))
        print(("Max Entity Number: " + str(self.sims.max_entity_num)).ljust(67))
        print(("Hard Entity: " + str(self.sims.hard_entity)).ljust(67))

    def print_solver_info(self):
        print(" MPM Solver Information ".center(71,"-"))
        print(("Initial Simulation Time: " + str(self.sims.current_time)).ljust(67))
        print(("Finial Simulation Time: " + str(self.sims.time)).ljust(67))
        print(("Time Step: " + str(self.sims.dt[None])).ljust(67))
        print(("Adaptive Time Step: " + str(self.sims.isadaptive) + ", CFL = " + str(self.sims.CFL)).ljust(67))
        print(("Save Interval: " + str(self.sims.save_interval)).ljust(67))
        print(("Save Path: " + str(self.sims.path)).ljust(67))

    def add_material(self, model, material):
        self.scene.add_material(self.sims, model, material)

    def add_element(self, element={}):
        self.scene.activate_element(self.sims, element)
        self.scene.activate_particle(self.sims)

    def add_body(self, body):
        if self.scene.element is None:
            raise RuntimeError("The mesh should be generated by add_element before adding bodies")
        if type(body) is dict:
            self.scene.add_body(self.sims, body)
        elif type(body) is list:
            for body_dict in body:
                self.scene.add_body(self.sims, body_dict)

    def add_boundary_condition(self, boundary):
        if type(boundary) is dict:
            self.scene.add_boundary_condition(self.sims, boundary)
        elif type(boundary) is list:
            for boundary_dict in boundary:
                self.scene.add_boundary_condition(self.sims, boundary_dict)

    def clean_boundary_condition(self):
        self.scene.clear_velocity_constraint()

    def add_step_callback(self, function):
        self.callbacks.append(function)
        if not self.solver is None:
            self.solver.set_callback_function(function)

    def select_save_data(self, particle=True, grid=False):
        self.sims.set_save_data(particle, grid)

    def modify_parameters(self, **kwargs):
        if len(kwargs) > 0:
            self.sims.set_simulation_time(DictIO.GetEssential(kwargs, "SimulationTime"))
            if "Timestep" in kwargs: self.sims.set_timestep(DictIO.GetEssential(kwargs, "Timestep"))
            if "CFL" in kwargs: self.sims.set_CFL(DictIO.GetEssential(kwargs, "CFL"))
            if "AdaptiveTimestep" in kwargs: self.sims.set_adaptive_timestep(DictIO.GetEssential(kwargs, "AdaptiveTimestep"))
            if "SaveInterval" in kwargs: self.sims.set_save_interval(DictIO.GetEssential(kwargs, "SaveInterval"))
            if "MaxTimesteps" in kwargs: self.sims.set_max_timesteps(DictIO.GetEssential(kwargs, "MaxTimesteps"))
            if "gravity" in kwargs: self.sims.set_gravity(DictIO.GetEssential(kwargs, "gravity"))
            if "local_damping" in kwargs: self.sims.set_local_damping(DictIO.GetEssential(kwargs, "local_damping"))

    def add_engine(self):
        if self.enginer is None:
            self.sims.set_number_of_phases(self.scene.material.number_of_phases())
            self.enginer = ExplicitEngine(self.sims)

    def add_recorder(self):
        if self.recorder is None and len(self.sims.monitor_type) > 0:
            self.recorder = WriteFile(self.sims)

    def add_solver(self):
        if self.solver is None:
            self.solver = Solver(self.sims, self.enginer, self.recorder)
            self.solver.set_callback_function(self.callbacks)

    def run(self):
        """
        Run the explicit solution cycle until the convergence criterion of
        the current stage is met
        """
        if self.scene.particle is None or int(self.scene.particleNum[0]) == 0:
            raise RuntimeError("No material point has been added")
        if self.first_run:
            self.scene.material.print_message()
            self.scene.print_particle_message()
            self.scene.check_masses()
            self.add_engine()
            self.add_recorder()
            self.add_solver()
        else:
            self.solver.converged = False
            self.enginer.state.reset()
        self.solver.Solver(self.scene)
        self.first_run = False
        return self.solver.converged
