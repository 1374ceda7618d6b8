import warnings

import numpy as np
import taichi as ti

from porotaichi.mpm.materials.RetentionCurve import (RETENTION_CURVE, CONDUCTIVITY_CURVE, SWRC_VANGENUCHTEN, SWRC_LINEAR,
                                                     HCC_HILLEL, HCC_MUALEM, degree_of_saturation, saturation_derivative, relative_conductivity)
from porotaichi.utils.ObjectIO import DictIO


MATERIAL_TYPE = {"1-phase-solid": 0, "1-phase-liquid": 1, "2-phase": 2, "3-phase": 3, "2-phase-undrained": 4}
SOLID_1PHASE = 0
LIQUID_1PHASE = 1
SATURATED_2PHASE = 2
UNSATURATED_3PHASE = 3
UNDRAINED_EFFECTIVE = 4

LIQUID_POISSON_RATIO = 0.45
DEFAULT_UNDRAINED_POISSON_RATIO = 0.495
BULK_MODULUS_WATER_RANGE = [2.1e6, 2.2e6]
UPLOADED_KEYS = ["density_solid", "density_liquid", "density_gas", "density_mixture", "porosity", "max_porosity", "saturation",
                 "young", "poisson", "shear", "bulk_liquid", "bulk_gas", "bulk_water", "viscosity_liquid", "viscosity_gas",
                 "permeability_liquid", "permeability_gas", "conductivity_liquid", "conductivity_gas", "threshold_density",
                 "weight_dry", "weight_liquid", "weight_gas", "weight_mixture", "smin", "smax", "p0", "lambda_", "av", "hillel_exponent"]


@ti.dataclass
class MaterialProperty:
    mtype: int
    model: int
    density_solid: float
    density_liquid: float
    density_gas: float
    density_mixture: float
    porosity: float
    max_porosity: float
    saturation: float
    young: float
    poisson: float
    shear: float
    bulk_liquid: float
    bulk_gas: float
    bulk_water: float
    viscosity_liquid: float
    viscosity_gas: float
    permeability_liquid: float
    permeability_gas: float
    conductivity_liquid: float
    conductivity_gas: float
    cavitation: float
    has_cavitation: ti.u8
    threshold_density: float
    weight_dry: float
    weight_liquid: float
    weight_gas: float
    weight_mixture: float
    retention: int
    smin: float
    smax: float
    p0: float
    lambda_: float
    av: float
    conductivity_curve: int
    hillel_exponent: float

    def add_material(self, parameter, model_id):
        self.mtype = parameter.mtype
        self.model = model_id
        for key in UPLOADED_KEYS:
            setattr(self, key, float(getattr(parameter, key)))
        self.retention = parameter.retention
        self.conductivity_curve = parameter.conductivity_curve
        self.has_cavitation = 0 if parameter.cavitation is None else 1
        self.cavitation = 0. if parameter.cavitation is None else float(parameter.cavitation)

    @ti.func
    def _has_water(self):
        return self.mtype == SATURATED_2PHASE or self.mtype == UNSATURATED_3PHASE

    @ti.func
    def _saturation(self, suction):
        return degree_of_saturation(self.retention, suction, self.smin, self.smax, self.p0, self.lambda_, self.av)

    @ti.func
    def _dsaturation(self, suction):
        return saturation_derivative(self.retention, suction, self.smin, self.smax, self.p0, self.lambda_, self.av)

    @ti.func
    def _conductivity(self, saturation):
        return self.conductivity_liquid * relative_conductivity(self.conductivity_curve, saturation, self.lambda_, self.hillel_exponent)


class MaterialParameters(object):
    """
    Host-side material record. Raw values are read from the user dictionary,
    the derived values are evaluated once by finalize() and then uploaded into
    the MaterialProperty field.
    """
    def __init__(self, materialID, material, gravity=9.81, formulation="SinglePoint") -> None:
        self.materialID = materialID
        self.name = DictIO.GetAlternative(material, 'Name', f"Material{materialID}")
        material_type = DictIO.GetAlternative(material, 'MaterialType', "1-phase-solid")
        if not material_type in MATERIAL_TYPE:
            raise RuntimeError(f"Keyword:: /MaterialType: {material_type}/ is invalid. Only {list(MATERIAL_TYPE.keys())} is valid!")
        self.material_type = material_type
        self.mtype = MATERIAL_TYPE[material_type]
        self.gravity = gravity
        self.formulation = formulation

        self.density_solid = DictIO.GetAlternative(material, 'DensitySolid', 2650.)
        self.density_liquid = DictIO.GetAlternative(material, 'DensityLiquid', 1000.)
        self.density_gas = DictIO.GetAlternative(material, 'DensityGas', 1.2)
        self.porosity = DictIO.GetAlternative(material, 'Porosity', 0.)
        self.max_porosity = DictIO.GetAlternative(material, 'MaximumPorosity', 1.)
        self.saturation = DictIO.GetAlternative(material, 'DegreeSaturation', 1.)
        self.young = DictIO.GetAlternative(material, 'YoungModulus', 0.)
        self.poisson = DictIO.GetAlternative(material, 'PoissonRatio', 0.3)
        self.undrained_poisson = DictIO.GetAlternative(material, 'UndrainedPoissonRatio', DEFAULT_UNDRAINED_POISSON_RATIO)
        self.bulk_liquid = DictIO.GetAlternative(material, 'BulkModulusLiquid', 0.)
        self.bulk_gas = DictIO.GetAlternative(material, 'BulkModulusGas', 0.)
        self.viscosity_liquid = DictIO.GetAlternative(material, 'ViscosityLiquid', 1e-6)
        self.viscosity_gas = DictIO.GetAlternative(material, 'ViscosityGas', 1.8e-8)
        self.permeability_liquid = DictIO.GetAlternative(material, 'IntrinsicPermeabilityLiquid', 0.)
        self.permeability_gas = DictIO.GetAlternative(material, 'IntrinsicPermeabilityGas', 0.)
        self.cavitation = DictIO.GetOptional(material, 'LiquidCavitation')
        self.hydraulic_conductivity = DictIO.GetOptional(material, 'HydraulicConductivity')

        retention = DictIO.GetAlternative(material, 'RetentionCurve', {"Type": "None"})
        retention_type = DictIO.GetAlternative(retention, 'Type', "None")
        if not retention_type in RETENTION_CURVE:
            raise RuntimeError(f"Keyword:: /RetentionCurve: {retention_type}/ is invalid. Only {list(RETENTION_CURVE.keys())} is valid!")
        self.retention = RETENTION_CURVE[retention_type]
        self.smin = DictIO.GetAlternative(retention, 'Smin', 0.)
        self.smax = DictIO.GetAlternative(retention, 'Smax', 1.)
        self.p0 = DictIO.GetAlternative(retention, 'P0', 1.)
        self.lambda_ = DictIO.GetAlternative(retention, 'Lambda', 0.5)
        self.av = DictIO.GetAlternative(retention, 'av', 0.)

        conductivity = DictIO.GetAlternative(material, 'ConductivityCurve', {"Type": "Constant"})
        conductivity_type = DictIO.GetAlternative(conductivity, 'Type', "Constant")
        if not conductivity_type in CONDUCTIVITY_CURVE:
            raise RuntimeError(f"Keyword:: /ConductivityCurve: {conductivity_type}/ is invalid. Only {list(CONDUCTIVITY_CURVE.keys())} is valid!")
        self.conductivity_curve = CONDUCTIVITY_CURVE[conductivity_type]
        self.hillel_exponent = DictIO.GetAlternative(conductivity, 'r', 3.)

        self.shear = 0.
        self.density_mixture = 0.
        self.conductivity_liquid = 0.
        self.conductivity_gas = 0.
        self.threshold_density = 0.
        self.bulk_water = 0.
        self.weight_dry = 0.
        self.weight_liquid = 0.
        self.weight_gas = 0.
        self.weight_mixture = 0.
        self.finalized = False

    def is_liquid(self):
        return self.mtype == LIQUID_1PHASE

    def number_of_phases(self):
        if self.mtype == SATURATED_2PHASE:
            return 2
        elif self.mtype == UNSATURATED_3PHASE:
            return 3
        return 1

    def check(self):
        if self.porosity < 0. or self.porosity >= 1.:
            if not (self.is_liquid() and self.formulation == "TwoLayer"):
                raise RuntimeError(f"Keyword:: /Porosity/ of material {self.materialID} must lie in [0, 1)")
        if self.young < 0.:
            raise RuntimeError(f"Keyword:: /YoungModulus/ of material {self.materialID} must be non-negative")
        if self.bulk_liquid < 0. or self.bulk_gas < 0.:
            raise RuntimeError(f"Keyword:: /BulkModulusLiquid/ and /BulkModulusGas/ of material {self.materialID} must be non-negative")
        if self.poisson < -1. or self.poisson >= 0.5:
            raise RuntimeError(f"Keyword:: /PoissonRatio/ of material {self.materialID} must lie in (-1, 0.5)")
        if self.saturation < 0. or self.saturation > 1.:
            raise RuntimeError(f"Keyword:: /DegreeSaturation/ of material {self.materialID} must lie in [0, 1]")
        if self.viscosity_liquid <= 0. or self.viscosity_gas <= 0.:
            raise RuntimeError(f"Keyword:: /ViscosityLiquid/ and /ViscosityGas/ of material {self.materialID} must be positive")

        if self.density_solid >= 10000. or self.density_liquid >= 10000. or self.density_gas >= 10000.:
            warnings.warn(f"Density of material {self.materialID} seems to be high (>= 10000 kg/m3)")
        if self.permeability_liquid >= 1. or self.permeability_gas >= 1.:
            warnings.warn(f"Intrinsic permeability of material {self.materialID} seems to be high (>= 1 m2)")
        if self.bulk_liquid > 0. and (self.bulk_liquid < BULK_MODULUS_WATER_RANGE[0] or self.bulk_liquid > BULK_MODULUS_WATER_RANGE[1]):
            warnings.warn(f"Bulk modulus of liquid of material {self.materialID} lies outside {BULK_MODULUS_WATER_RANGE} kPa, K: {self.bulk_liquid}")

    def finalize(self):
        if self.finalized:
            return
        self.check()

        n = self.porosity
        if self.mtype == LIQUID_1PHASE:
            self.poisson = LIQUID_POISSON_RATIO
            self.shear = 3. * self.bulk_liquid * (1. - 2. * self.poisson) / (2. * (1. + self.poisson))
            self.density_mixture = self.density_liquid
            self.saturation = 1.
        else:
            self.shear = 0.5 * self.young / (1. + self.poisson)
            if self.mtype == SOLID_1PHASE:
                self.density_mixture = (1. - n) * self.density_solid
            elif self.mtype == SATURATED_2PHASE or self.mtype == UNDRAINED_EFFECTIVE:
                self.density_mixture = (1. - n) * self.density_solid + n * self.density_liquid
            elif self.mtype == UNSATURATED_3PHASE:
                Sr = self.saturation
                self.density_mixture = (1. - n) * self.density_solid + n * Sr * self.density_liquid + n * (1. - Sr) * self.density_gas

        if self.mtype != UNSATURATED_3PHASE:
            self.saturation = 1.

        g = self.gravity
        self.weight_dry = (1. - n) * self.density_solid * g / 1000.
        self.weight_liquid = self.density_liquid * g / 1000.
        self.weight_gas = self.density_gas * g / 1000.
        self.weight_mixture = self.density_mixture * g / 1000.
        if self.mtype == SOLID_1PHASE or self.mtype == UNDRAINED_EFFECTIVE:
            self.weight_liquid = 0.
            self.weight_gas = 0.
        elif self.mtype == SATURATED_2PHASE:
            self.weight_gas = 0.

        self.conductivity_liquid = self.density_liquid * g * self.permeability_liquid / (1000. * self.viscosity_liquid)
        self.conductivity_gas = self.density_gas * g * self.permeability_gas / (1000. * self.viscosity_gas)
        if self.hydraulic_conductivity is not None:
            self.conductivity_liquid = self.hydraulic_conductivity
        if (self.mtype == SATURATED_2PHASE or self.mtype == UNSATURATED_3PHASE) and self.conductivity_liquid <= 0.:
            raise RuntimeError(f"Keyword:: /IntrinsicPermeabilityLiquid/ or /HydraulicConductivity/ of material {self.materialID} must be positive")

        if self.mtype == UNDRAINED_EFFECTIVE:
            nu_u, nu, E = self.undrained_poisson, self.poisson, self.young
            if nu_u <= nu or nu_u >= 0.5:
                raise RuntimeError(f"Keyword:: /UndrainedPoissonRatio/ of material {self.materialID} must lie in (PoissonRatio, 0.5)")
            self.bulk_water = n * (nu_u - nu) * E / ((1. - 2. * nu_u) * (1. + nu) * (1. - 2. * nu))
        elif self.mtype == SATURATED_2PHASE or self.mtype == UNSATURATED_3PHASE or self.mtype == LIQUID_1PHASE:
            self.bulk_water = self.bulk_liquid

        if self.bulk_liquid > 0. and (self.mtype == LIQUID_1PHASE or self.mtype == SATURATED_2PHASE or self.mtype == UNSATURATED_3PHASE):
            cavitation = 0. if self.cavitation is None else self.cavitation
            self.threshold_density = self.density_liquid * (1. - cavitation / self.bulk_liquid)
            if self.threshold_density <= 0.:
                raise RuntimeError(f"FluidThresholdDensity of material {self.materialID} is zero or negative! "
                                   "Keyword:: /LiquidCavitation/ is too large or /BulkModulusLiquid/ is too small. "
                                   "Note the requirement: Cavitation pressure < Bulk modulus")
        self.finalized = True

    def upload(self, matProps, model_id):
        self.finalize()
        matProps[self.materialID].add_material(self, model_id)

    def saturation_curve(self, suction):
        suction = np.asarray(suction, dtype=float)
        if self.retention == SWRC_VANGENUCHTEN:
            x = np.power(np.maximum(suction, 0.) / self.p0, 1. / (1. - self.lambda_))
            return np.where(suction > 0., self.smin + (self.smax - self.smin) * np.power(1. + x, -self.lambda_), self.smax)
        elif self.retention == SWRC_LINEAR:
            return np.where(suction > 0., np.clip(1. - self.av * suction, 0., 1.), 1.)
        return np.ones_like(suction)

    def conductivity_function(self, saturation):
        saturation = np.asarray(saturation, dtype=float)
        if self.conductivity_curve == HCC_HILLEL:
            return np.where(saturation < 1., self.conductivity_liquid * np.power(saturation, self.hillel_exponent), self.conductivity_liquid)
        elif self.conductivity_curve == HCC_MUALEM:
            krel = np.sqrt(saturation) * (1. - np.power(1. - np.power(saturation, 1. / self.lambda_), self.lambda_)) ** 2
            return np.where(saturation < 1., self.conductivity_liquid * krel, self.conductivity_liquid)
        return np.full_like(saturation, self.conductivity_liquid)

    def print_message(self):
        print(" Material Information ".center(71, '-'))
        print("Material ID: ", self.materialID)
        print("Material name: ", self.name)
        print("Material type: ", self.material_type)
        print("Porosity: ", self.porosity)
        print("Density of mixture: ", self.density_mixture)
        print("Shear modulus: ", self.shear)
        if self.mtype != SOLID_1PHASE:
            print("Bulk modulus of water: ", self.bulk_water)
            print("Hydraulic conductivity (liquid): ", self.conductivity_liquid)
        if self.threshold_density > 0.:
            print("Fluid threshold density: ", self.threshold_density)
        print('\n')
