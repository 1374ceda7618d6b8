import taichi as ti

from porotaichi.mpm.materials.ConstitutiveModelBase import ConstitutiveModelBase
from porotaichi.mpm.Simulation import Simulation
from porotaichi.utils.MaterialKernel import ElasticTensorMultiplyVector
from porotaichi.utils.ObjectIO import DictIO


@ti.dataclass
class LinearElasticModel:
    young: float
    possion: float
    shear: float
    bulk: float

    def add_material(self, young, possion):
        self.young = young
        self.possion = possion

        self.shear = 0.5 * self.young / (1. + self.possion)
        self.bulk = self.young / (3. * (1 - 2. * self.possion))

    def print_message(self, materialID):
        print(" Constitutive Model Information ".center(71, '-'))
        print('Constitutive model: Elastic Model')
        print("Model ID: ", materialID)
        print('Young Modulus: ', self.young)
        print('Possion Ratio: ', self.possion, '\n')


@ti.data_oriented
class LinearElastic(ConstitutiveModelBase):
    model_name = "LinearElastic"

    def __init__(self, sims: Simulation):
        super().__init__()
        self.add_material(sims.max_material_num, LinearElasticModel)

    def model_initialize(self, material):
        materialID = self.register(material)
        young = DictIO.GetEssential(material, 'YoungModulus')
        possion = DictIO.GetAlternative(material, 'PoissonRatio', 0.3)
        self.matProps[materialID].add_material(young, possion)
        self.matProps[materialID].print_message(materialID)

    @ti.func
    def UnloadingStiffness(self, np, materialID, state_vars):
        return self.matProps[materialID].young

    @ti.func
    def ComputeStress(self, np, materialID, stress, dstrain, pressure, state_vars, dt):
        bulk_modulus = self.matProps[materialID].bulk
        shear_modulus = self.matProps[materialID].shear
        return stress + ElasticTensorMultiplyVector(dstrain, bulk_modulus, shear_modulus), 0, 0
