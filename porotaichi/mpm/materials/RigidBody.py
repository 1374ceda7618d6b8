import taichi as ti

from porotaichi.mpm.materials.ConstitutiveModelBase import ConstitutiveModelBase
from porotaichi.mpm.Simulation import Simulation
from porotaichi.utils.ObjectIO import DictIO


@ti.dataclass
class RigidModel:
    density: float

    def add_material(self, density):
        self.density = density

    def print_message(self, materialID):
        print(" Constitutive Model Information ".center(71, '-'))
        print('Constitutive model = Rigid Body')
        print("Model ID: ", materialID, '\n')


@ti.data_oriented
class RigidBody(ConstitutiveModelBase):
    model_name = "RigidBody"

    def __init__(self, sims: Simulation):
        super().__init__()
        self.is_rigid = True
        self.add_material(sims.max_material_num, RigidModel)

    def model_initialize(self, material):
        materialID = self.register(material)
        density = DictIO.GetAlternative(material, 'DensitySolid', 2650)
        self.matProps[materialID].add_material(density)
        self.matProps[materialID].print_message(materialID)
