import numpy as np
import taichi as ti

from porotaichi.mpm.materials.ConstitutiveModelBase import ConstitutiveModelBase
from porotaichi.mpm.materials.strain_rate.Bingham import regularized_viscous_stress
from porotaichi.mpm.Simulation import Simulation
from porotaichi.utils.MaterialKernel import DeviatoricStrainRate
from porotaichi.utils.ObjectIO import DictIO


@ti.dataclass
class FrictionalLiquidModel:
    viscosity: float
    friction: float
    regularization: float

    def add_material(self, viscosity, friction, regularization):
        self.viscosity = viscosity
        self.friction = friction * np.pi / 180.
        self.regularization = regularization

    def print_message(self, materialID):
        print(" Constitutive Model Information ".center(71, '-'))
        print('Constitutive model = Frictional Liquid Model')
        print("Model ID: ", materialID)
        print('Viscosity = ', self.viscosity)
        print('Angle of Internal Friction = ', self.friction * 180 / np.pi)
        print('Regularization Parameter = ', self.regularization, '\n')


@ti.data_oriented
class FrictionalLiquid(ConstitutiveModelBase):
    model_name = "FrictionalLiquid"

    def __init__(self, sims: Simulation):
        super().__init__()
        self.is_liquid = True
        self.add_material(sims.max_material_num, FrictionalLiquidModel)

    def model_initialize(self, material):
        materialID = self.register(material)
        viscosity = DictIO.GetAlternative(material, 'ViscosityLiquid', 1e-6)
        friction = DictIO.GetEssential(material, 'Friction')
        regularization = DictIO.GetAlternative(material, 'Regularization', 1000.)
        if friction < 0. or friction >= 90.:
            raise RuntimeError("Keyword:: /Friction/ must lie in [0, 90) degrees")
        self.matProps[materialID].add_material(viscosity, friction, regularization)
        self.matProps[materialID].print_message(materialID)

    @ti.func
    def ComputeStress(self, np, materialID, stress, dstrain, pressure, state_vars, dt):
        # the yield stress follows the liquid pressure, compression negative
        _yield = ti.max(-pressure * ti.tan(self.matProps[materialID].friction), 0.)
        deviatoric_rate = DeviatoricStrainRate(dstrain) / dt[None]
        return regularized_viscous_stress(deviatoric_rate, self.matProps[materialID].viscosity, _yield,
                                          self.matProps[materialID].regularization), 0, 0
