import taichi as ti

from porotaichi.mpm.materials.ConstitutiveModelBase import ConstitutiveModelBase
from porotaichi.mpm.Simulation import Simulation
from porotaichi.utils.MaterialKernel import DeviatoricStrainRate
from porotaichi.utils.ObjectIO import DictIO


@ti.dataclass
class NewtonianModel:
    viscosity: float

    def add_material(self, viscosity):
        self.viscosity = viscosity

    def print_message(self, materialID):
        print(" Constitutive Model Information ".center(71, '-'))
        print('Constitutive model = Newtonian Model')
        print("Model ID: ", materialID)
        print('Viscosity = ', self.viscosity, '\n')


@ti.data_oriented
class Newtonian(ConstitutiveModelBase):
    model_name = "Newtonian"

    def __init__(self, sims: Simulation):
        super().__init__()
        self.is_liquid = True
        self.add_material(sims.max_material_num, NewtonianModel)

    def model_initialize(self, material):
        materialID = self.register(material)
        viscosity = DictIO.GetAlternative(material, 'ViscosityLiquid', 1e-6)
        if viscosity < 0.:
            raise RuntimeError("Keyword:: /ViscosityLiquid/ must be non-negative")
        self.matProps[materialID].add_material(viscosity)
        self.matProps[materialID].print_message(materialID)

    @ti.func
    def ComputeStress(self, np, materialID, stress, dstrain, pressure, state_vars, dt):
        deviatoric_rate = DeviatoricStrainRate(dstrain) / dt[None]
        return 2. * self.matProps[materialID].viscosity * deviatoric_rate, 0, 0
