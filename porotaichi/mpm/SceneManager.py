import warnings

import numpy as np
import taichi as ti

from porotaichi.mpm.BaseKernel import *
from porotaichi.mpm.elements.ElementKernel import *
from porotaichi.mpm.elements.HexahedronElement8Nodes import HexahedronElement8Nodes
from porotaichi.mpm.elements.QuadrilateralElement4Nodes import QuadrilateralElement4Nodes
from porotaichi.mpm.MaterialManager import MaterialManager
from porotaichi.mpm.materials.MaterialParameters import LIQUID_1PHASE
from porotaichi.mpm.Simulation import Simulation
from porotaichi.mpm.structs import *
from porotaichi.utils.constants import MIXTURE, SOLID, LIQUID, Threshold
from porotaichi.utils.linalg import cylindrical_axes
from porotaichi.utils.ObjectIO import DictIO
from porotaichi.utils.TypeDefination import vec3f, vec3i, vec6f


FIX = {"Free": 0, "Fix": 1}


class myScene(object):
    def __init__(self) -> None:
        self.material = MaterialManager()
        self.element = None
        self.node = None
        self.entity_node = None
        self.element_cell = None
        self.material_count = None
        self.entity_count = None
        self.particle_in_element = None
        self.leaving = None
        self.particle = None
        self.state_vars = None
        self.bodies = []

        self.particleNum = np.zeros(1, dtype=np.int32)

    def activate_material(self, sims: Simulation):
        self.material.activate_material(sims)

    def add_material(self, sims: Simulation, model, material):
        self.material.add_material(sims, model, material)

    def activate_element(self, sims: Simulation, element):
        if not self.element is None:
            print("Warning: Previous elements will be override!")
        if sims.dimension == 2:
            self.element = QuadrilateralElement4Nodes()
        elif sims.dimension == 3:
            self.element = HexahedronElement8Nodes()
        self.element.create_nodes(sims, DictIO.GetAlternative(element, "ElementSize", sims.element_size))
        self.element.element_initialize(sims)

        self.node = MeshNode.field(shape=self.element.gridSum)
        self.entity_node = EntityNode.field(shape=(self.element.gridSum, sims.max_entity_num))
        self.element_cell = ElementCell.field(shape=self.element.cellSum)
        self.material_count = ti.field(int, shape=(self.element.cellSum, max(sims.max_material_num, 1)))
        self.entity_count = ti.field(int, shape=(self.element.cellSum, sims.max_entity_num))
        self.particle_in_element = ti.field(int, shape=sims.max_particle_num)
        self.leaving = ti.field(int, shape=sims.max_particle_num)

        kernel_initialize_node_coordinates(self.element.element_size, self.element.gnum, self.node)
        self.update_element_geometry()
        self.element.print_message()

    def update_element_geometry(self):
        kernel_element_geometry(self.element_cell, self.node, self.element)
        kernel_centre_gradients(self.element_cell, self.node, self.element)

    def activate_particle(self, sims: Simulation):
        if self.particle is None:
            self.particle = MaterialPoint.field(shape=sims.max_particle_num)
            self.state_vars = ti.field(float, shape=(sims.max_particle_num, sims.external_state_size))

    def check_particle_num(self, sims: Simulation, particle_number):
        if self.particleNum[0] + particle_number > sims.max_particle_num:
            raise ValueError("The MPM particles should be set as: ", self.particleNum[0] + particle_number)

    # ========================================================= #
    #                        Bodies                             #
    # ========================================================= #
    def generate_box_particles(self, sims: Simulation, body):
        start_point = np.array(DictIO.GetEssential(body, "BoxPoint"), dtype=float)
        box_size = np.array(DictIO.GetEssential(body, "BoxSize"), dtype=float)
        ppc = DictIO.GetAlternative(body, "ParticlesPerCell", 2)
        if isinstance(ppc, int):
            ppc = [ppc] * sims.dimension
        start = np.zeros(3)
        size = np.zeros(3)
        start[0:start_point.shape[0]] = start_point
        size[0:box_size.shape[0]] = box_size

        spacing = np.ones(3)
        counts = np.ones(3, dtype=np.int32)
        for d in range(sims.dimension):
            if size[d] <= 0.:
                raise RuntimeError("Keyword:: /BoxSize/ must be positive")
            spacing[d] = self.element.element_size[d] / ppc[d]
            counts[d] = max(int(np.round(size[d] / spacing[d])), 1)
            spacing[d] = size[d] / counts[d]

        axes = [start[d] + (np.arange(counts[d]) + 0.5) * spacing[d] if d < sims.dimension else np.zeros(1) for d in range(3)]
        grid = np.meshgrid(axes[0], axes[1], axes[2], indexing='ij')
        position = np.stack([g.ravel(order='F') for g in grid], axis=1)
        volume = np.full(position.shape[0], np.prod(spacing[0:sims.dimension]))
        return position, volume

    def generate_list_particles(self, sims: Simulation, body):
        position = np.array(DictIO.GetEssential(body, "Position"), dtype=float).reshape(-1, sims.dimension)
        if sims.dimension == 2:
            position = np.concatenate([position, np.zeros((position.shape[0], 1))], axis=1)
        volume = np.array(DictIO.GetEssential(body, "Volume"), dtype=float)
        if volume.ndim == 0:
            volume = np.full(position.shape[0], float(volume))
        if volume.shape[0] != position.shape[0]:
            raise RuntimeError("Keyword:: /Volume/ must be a scalar or hold one value per particle")
        return position, volume

    def particle_type(self, sims: Simulation, parameter):
        if parameter.mtype == LIQUID_1PHASE:
            return LIQUID
        elif sims.is_two_layer():
            return SOLID
        return MIXTURE

    def add_body(self, sims: Simulation, body):
        body_type = DictIO.GetAlternative(body, "Type", "Box")
        if body_type == "Box":
            position, volume = self.generate_box_particles(sims, body)
        elif body_type == "List":
            position, volume = self.generate_list_particles(sims, body)
        else:
            raise RuntimeError(f"Keyword:: /Type: {body_type}/ is invalid. Only ['Box', 'List'] is valid!")

        materialID = DictIO.GetEssential(body, "MaterialID")
        parameter = self.material.LookupMaterial(materialID)
        entityID = DictIO.GetAlternative(body, "EntityID", 0)
        if entityID < 0 or entityID >= sims.max_entity_num:
            raise RuntimeError(f"Keyword:: /EntityID/ must lie in [0, {sims.max_entity_num})")
        init_v = DictIO.GetAlternative(body, "InitialVelocity", [0., 0., 0.])
        fix_v = DictIO.GetAlternative(body, "FixVelocity", ["Free", "Free", "Free"])
        init_stress = DictIO.GetAlternative(body, "InitialStress", [0., 0., 0., 0., 0., 0.])
        temperature = DictIO.GetAlternative(body, "Temperature", 20.)
        water_pressure = DictIO.GetAlternative(body, "InitialWaterPressure", 0.)
        gas_pressure = DictIO.GetAlternative(body, "InitialGasPressure", 0.)
        if len(init_v) == 2: init_v = list(init_v) + [0.]
        if len(fix_v) == 2: fix_v = list(fix_v) + ["Free"]
        for fix in fix_v:
            if not fix in FIX:
                raise RuntimeError(f"Keyword:: /FixVelocity: {fix}/ is invalid. Only {list(FIX.keys())} is valid!")
        if len(init_stress) != 6:
            raise RuntimeError("Keyword:: /InitialStress/ must hold the six Voigt components [xx, yy, zz, xy, yz, xz]")

        particle_number = position.shape[0]
        self.activate_particle(sims)
        self.check_particle_num(sims, particle_number)
        start = int(self.particleNum[0])
        mptype = self.particle_type(sims, parameter)
        kernel_add_particles(self.particle, start, particle_number, position, volume, materialID, entityID, mptype, vec3f(init_v),
                             vec3i([FIX[fix] for fix in fix_v]), vec6f(init_stress), parameter.porosity, parameter.saturation, temperature)
        kernel_initialize_particle_mass(start, start + particle_number, self.particle, self.material.matProps, int(sims.is_two_layer()),
                                        water_pressure, gas_pressure)
        self.particleNum[0] += particle_number
        self.bodies.append({"MaterialID": materialID, "EntityID": entityID, "Start": start, "End": start + particle_number})

        print(" Body Information ".center(71, '-'))
        print(("Body Type: " + body_type).ljust(67))
        print(("Material ID = " + str(materialID) + ", Entity ID = " + str(entityID)).ljust(67))
        print(("The number of particles = " + str(particle_number)).ljust(67))
        print(("Initial Velocity = " + str(list(init_v))).ljust(67))
        print(("Fixed Velocity = " + str(list(fix_v))).ljust(67), '\n')

    # ========================================================= #
    #                   Boundary conditions                     #
    # ========================================================= #
    def read_box(self, sims: Simulation, boundary):
        start_point = np.zeros(3)
        end_point = np.zeros(3)
        start = DictIO.GetAlternative(boundary, "StartPoint", [0., 0., 0.])
        end = DictIO.GetAlternative(boundary, "EndPoint", list(sims.domain))
        start_point[0:len(start)] = start
        end_point[0:len(end)] = end
        return vec3f(start_point), vec3f(end_point)

    def read_dofs(self, values):
        values = list(values)
        if len(values) == 2:
            values.append(None)
        fix = vec3i([0 if value is None else 1 for value in values])
        prescribed = vec3f([0. if value is None else value for value in values])
        return fix, prescribed

    def add_boundary_condition(self, sims: Simulation, boundary):
        boundary_type = DictIO.GetEssential(boundary, "BoundaryType")
        start_point, end_point = self.read_box(sims, boundary)
        if boundary_type == "VelocityConstraint":
            fix, velocity = self.read_dofs(DictIO.GetEssential(boundary, "Velocity"))
            frame = DictIO.GetAlternative(boundary, "Frame", "Cartesian")
            tolerance = 1e-6 * min(self.element.element_size[d] for d in range(sims.dimension))
            if frame == "Cylindrical":
                if not sims.cylindrical:
                    raise RuntimeError("Keyword:: /Frame: Cylindrical/ requires the cylindrical rotation to be activated")
                self.set_cylindrical_frame(sims, start_point, end_point, DictIO.GetAlternative(boundary, "Origin", [0., 0., 0.]),
                                           DictIO.GetAlternative(boundary, "Axis", [0., 0., 1.]), tolerance)
            elif frame != "Cartesian":
                raise RuntimeError(f"Keyword:: /Frame: {frame}/ is invalid. Only ['Cartesian', 'Cylindrical'] is valid!")
            number = kernel_set_velocity_constraint(self.node, start_point, end_point, fix, velocity, tolerance)
        elif boundary_type == "ParticleForce":
            force = DictIO.GetEssential(boundary, "Force")
            if len(force) == 2: force = list(force) + [0.]
            per_volume = 1 if DictIO.GetAlternative(boundary, "PerVolume", False) else 0
            number = kernel_set_particle_force(int(self.particleNum[0]), self.particle, start_point, end_point, vec3f(force), per_volume)
        elif boundary_type == "ParticleVelocity":
            fix, velocity = self.read_dofs(DictIO.GetEssential(boundary, "Velocity"))
            number = kernel_set_particle_velocity(int(self.particleNum[0]), self.particle, start_point, end_point, fix, velocity)
        else:
            raise RuntimeError(f"Keyword:: /BoundaryType: {boundary_type}/ is invalid. Only ['VelocityConstraint', 'ParticleForce', 'ParticleVelocity'] is valid!")

        if number == 0:
            warnings.warn(f"No node or particle lies inside the region of boundary condition {boundary_type}")
        print(" Boundary Information ".center(71, '-'))
        print(("Boundary Type: " + boundary_type).ljust(67))
        print(("Start Point: " + str(start_point) + ", End Point: " + str(end_point)).ljust(67))
        print(("The number of constrained objects = " + str(number)).ljust(67), '\n')

    def set_cylindrical_frame(self, sims: Simulation, start_point, end_point, origin, axis, tolerance):
        position = self.node.x0.to_numpy()
        rotation = self.node.rotation.to_numpy()
        rotated = self.node.rotated.to_numpy()
        lower, upper = np.array(start_point) - tolerance, np.array(end_point) + tolerance
        selected = np.where(np.all(np.logical_and(position >= lower, position <= upper), axis=1))[0]
        for ng in selected:
            rotation[ng] = cylindrical_axes(position[ng], origin, axis)
            rotated[ng] = 1
        self.node.rotation.from_numpy(rotation)
        self.node.rotated.from_numpy(rotated)

    def clear_velocity_constraint(self):
        kernel_clear_velocity_constraint(self.node)

    # ========================================================= #
    #                 Spatial index maintenance                 #
    # ========================================================= #
    def locate_particles(self):
        self.leaving.fill(0)
        leaving_num = kernel_locate_particles(int(self.particleNum[0]), self.particle, self.node, self.element, self.leaving)
        if leaving_num > 0:
            leaving_id = np.where(self.leaving.to_numpy()[0:int(self.particleNum[0])] == 1)[0]
            warnings.warn(f"{leaving_num} particles left the computational mesh and are deactivated: {leaving_id.tolist()}")
        return leaving_num

    def update_shape_gradients(self):
        kernel_update_shape_gradients(int(self.particleNum[0]), self.particle, self.node, self.element)

    def update_element_index(self, sims: Simulation):
        kernel_reset_elements(self.element_cell, self.material_count, self.entity_count)
        kernel_count_particles(int(self.particleNum[0]), self.particle, self.material.matProps, self.element_cell, self.material_count, self.entity_count)
        kernel_element_offset(self.element_cell, self.material_count, self.material_count.shape[1])
        kernel_fill_particle_index(int(self.particleNum[0]), self.particle, self.element_cell, self.particle_in_element)
        kernel_particle_filling(int(self.particleNum[0]), self.particle, self.element_cell)
        if sims.free_surface_detection:
            self.particle.free_surface.fill(0)
            kernel_detect_free_surface(int(self.particleNum[0]), self.particle, self.element_cell, self.element.cnum, sims.dimension)

    def particles_in_element(self, element_id):
        nparticles = int(self.element_cell[element_id].nparticles)
        offset = int(self.element_cell[element_id].offset)
        return self.particle_in_element.to_numpy()[offset:offset + nparticles]

    def active_particle_number(self):
        return int(np.sum(self.particle.active.to_numpy()[0:int(self.particleNum[0])]))

    def print_particle_message(self):
        print(" Particle Information ".center(71, '-'))
        print(("The number of particles = " + str(int(self.particleNum[0]))).ljust(67))
        print(("The number of bodies = " + str(len(self.bodies))).ljust(67), '\n')

    def check_masses(self):
        mass = self.particle.m.to_numpy()[0:int(self.particleNum[0])] + self.particle.mw.to_numpy()[0:int(self.particleNum[0])]
        if np.any(mass <= Threshold):
            warnings.warn("Some particles carry no mass, check the material densities and porosities")
