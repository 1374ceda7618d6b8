import taichi as ti

from porotaichi.mpm.materials.ConstitutiveModelBase import ConstitutiveModelBase
from porotaichi.mpm.Simulation import Simulation
from porotaichi.utils.constants import Threshold
from porotaichi.utils.MaterialKernel import DeviatoricStrainRate, EquivalentShearRate
from porotaichi.utils.ObjectIO import DictIO


@ti.func
def regularized_viscous_stress(deviatoric_rate, viscosity, yield_stress, regularization):
    # Papanastasiou regularization, apparent viscosity tends to viscosity + yield * m at vanishing shear rate
    shear_rate = EquivalentShearRate(deviatoric_rate)
    apparent_viscosity = viscosity + yield_stress * regularization
    if shear_rate > Threshold:
        apparent_viscosity = viscosity + yield_stress * (1. - ti.exp(-regularization * shear_rate)) / shear_rate
    return 2. * apparent_viscosity * deviatoric_rate


@ti.dataclass
class BinghamModel:
    viscosity: float
    _yield: float
    regularization: float

    def add_material(self, viscosity, _yield, regularization):
        self.viscosity = viscosity
        self._yield = _yield
        self.regularization = regularization

    def print_message(self, materialID):
        print(" Constitutive Model Information ".center(71, '-'))
        print('Constitutive model = Bingham Model')
        print("Model ID: ", materialID)
        print('Viscosity = ', self.viscosity)
        print('Yield Stress = ', self._yield)
        print('Regularization Parameter = ', self.regularization, '\n')


@ti.data_oriented
class Bingham(ConstitutiveModelBase):
    model_name = "Bingham"

    def __init__(self, sims: Simulation):
        super().__init__()
        self.is_liquid = True
        self.add_material(sims.max_material_num, BinghamModel)

    def model_initialize(self, material):
        materialID = self.register(material)
        viscosity = DictIO.GetAlternative(material, 'ViscosityLiquid', 1e-6)
        _yield = DictIO.GetEssential(material, 'YieldStress')
        regularization = DictIO.GetAlternative(material, 'Regularization', 1000.)
        if _yield < 0. or regularization <= 0.:
            raise RuntimeError("Keyword:: /YieldStress/ must be non-negative and /Regularization/ must be positive")
        self.matProps[materialID].add_material(viscosity, _yield, regularization)
        self.matProps[materialID].print_message(materialID)

    @ti.func
    def ComputeStress(self, np, materialID, stress, dstrain, pressure, state_vars, dt):
        deviatoric_rate = DeviatoricStrainRate(dstrain) / dt[None]
        return regularized_viscous_stress(deviatoric_rate, self.matProps[materialID].viscosity, self.matProps[materialID]._yield,
                                          self.matProps[materialID].regularization), 0, 0
