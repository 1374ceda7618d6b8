import math

import numpy as np
import pytest

from porotaichi.mpm.MaterialManager import MaterialManager
from porotaichi.mpm.materials.MaterialParameters import MaterialParameters
from porotaichi.mpm.materials.UserDefined import bind_external_function
from porotaichi.mpm.Simulation import Simulation


SATURATED_SOIL = {
    "MaterialType":                 "2-phase",
    "DensitySolid":                 2650.,
    "DensityLiquid":                1000.,
    "Porosity":                     0.3,
    "YoungModulus":                 1e4,
    "PoissonRatio":                 0.3,
    "BulkModulusLiquid":            2.2e6,
    "IntrinsicPermeabilityLiquid":  1e-12,
    "ViscosityLiquid":              1e-6
}


def test_derived_fields_of_saturated_soil():
    parameter = MaterialParameters(1, SATURATED_SOIL, gravity=9.81)
    parameter.finalize()

    assert parameter.density_mixture == pytest.approx(0.7 * 2650. + 0.3 * 1000.)
    assert parameter.shear == pytest.approx(1e4 / 2.6)
    assert parameter.weight_mixture == pytest.approx(2155. * 9.81 / 1000.)
    assert parameter.weight_dry == pytest.approx(0.7 * 2650. * 9.81 / 1000.)
    assert parameter.weight_gas == 0.
    assert parameter.conductivity_liquid == pytest.approx(1000. * 9.81 * 1e-12 / (1000. * 1e-6))
    assert parameter.bulk_water == 2.2e6
    assert parameter.threshold_density == pytest.approx(1000.)
    assert parameter.number_of_phases() == 2


def test_undrained_bulk_modulus_of_water():
    material = {"MaterialType": "2-phase-undrained", "Porosity": 0.3, "YoungModulus": 1e4, "PoissonRatio": 0.3, "UndrainedPoissonRatio": 0.495}
    parameter = MaterialParameters(1, material)
    parameter.finalize()

    expected = 0.3 * (0.495 - 0.3) * 1e4 / ((1. - 2. * 0.495) * 1.3 * 0.4)
    assert parameter.bulk_water == pytest.approx(expected)


def test_liquid_takes_fixed_poisson_ratio():
    parameter = MaterialParameters(1, {"MaterialType": "1-phase-liquid", "BulkModulusLiquid": 2.2e6})
    parameter.finalize()

    assert parameter.poisson == 0.45
    assert parameter.shear == pytest.approx(3. * 2.2e6 * 0.1 / 2.9)
    assert parameter.density_mixture == 1000.


def test_cavitation_beyond_bulk_modulus_is_fatal():
    material = {"MaterialType": "1-phase-liquid", "BulkModulusLiquid": 2.2e6, "LiquidCavitation": 3e6}
    with pytest.raises(RuntimeError, match="FluidThresholdDensity"):
        MaterialParameters(1, material).finalize()


def test_invalid_material_type():
    with pytest.raises(RuntimeError, match="MaterialType"):
        MaterialParameters(1, {"MaterialType": "4-phase"})


def test_saturated_soil_requires_conductivity():
    material = dict(SATURATED_SOIL)
    material.pop("IntrinsicPermeabilityLiquid")
    with pytest.raises(RuntimeError, match="HydraulicConductivity"):
        MaterialParameters(1, material).finalize()


def test_van_genuchten_retention_curve():
    material = dict(SATURATED_SOIL, MaterialType="3-phase", RetentionCurve={"Type": "VanGenuchten", "Smin": 0.1, "Smax": 1., "P0": 10., "Lambda": 0.5})
    parameter = MaterialParameters(1, material)
    parameter.finalize()

    saturation = parameter.saturation_curve([-5., 0., 10.])
    assert saturation[0] == 1.
    assert saturation[1] == 1.
    assert saturation[2] == pytest.approx(0.1 + 0.9 * 2. ** -0.5)


def test_linear_retention_curve():
    material = dict(SATURATED_SOIL, MaterialType="3-phase", RetentionCurve={"Type": "Linear", "av": 0.01})
    parameter = MaterialParameters(1, material)
    parameter.finalize()

    np.testing.assert_allclose(parameter.saturation_curve([0., 50., 200.]), [1., 0.5, 0.])


def test_conductivity_curves():
    hillel = MaterialParameters(1, dict(SATURATED_SOIL, MaterialType="3-phase", ConductivityCurve={"Type": "Hillel", "r": 3.}))
    hillel.finalize()
    k = hillel.conductivity_liquid
    np.testing.assert_allclose(hillel.conductivity_function([0.5, 1.]), [0.125 * k, k])

    mualem = MaterialParameters(1, dict(SATURATED_SOIL, MaterialType="3-phase", ConductivityCurve={"Type": "Mualem"},
                                        RetentionCurve={"Type": "VanGenuchten", "Lambda": 0.5}))
    mualem.finalize()
    conductivity = mualem.conductivity_function([0.5, 1.])
    assert 0. < conductivity[0] < k
    assert conductivity[1] == pytest.approx(k)


def test_external_binding_failures():
    with pytest.raises(RuntimeError, match="module:function"):
        bind_external_function("no_separator")
    with pytest.raises(RuntimeError, match="can not be loaded"):
        bind_external_function("porotaichi_missing_module:update")
    with pytest.raises(RuntimeError, match="not a callable"):
        bind_external_function("math:pi")


def test_external_binding_resolves_module_function():
    assert bind_external_function("math:sqrt") is math.sqrt


def scaled_elastic_update(stress, dstrain, statev, props):
    statev[0] += 1.
    return stress + props[0] * dstrain, statev


def test_external_model_dispatch():
    sims = Simulation()
    sims.set_material_num(1)
    manager = MaterialManager()
    manager.add_material(sims, "UserDefined", {"MaterialID": 1, "MaterialType": "1-phase-solid", "DensitySolid": 2000., "YoungModulus": 1e4,
                                               "Function": scaled_elastic_update, "Properties": [100.]})

    stress, state, tangent = manager.ConstitutiveDispatch(sims, 1, np.array([0.001, 0., 0., 0., 0., 0.]))
    assert stress[0] == pytest.approx(0.1)
    assert state[0] == 1.
    assert state.shape[0] == sims.external_state_size
    assert tangent is None
    assert manager.has_external()


def test_unknown_material_lookup():
    sims = Simulation()
    sims.set_material_num(2)
    manager = MaterialManager()
    with pytest.raises(RuntimeError, match="has not been defined"):
        manager.LookupMaterial(2)
    with pytest.raises(RuntimeError, match="Constitutive Model"):
        manager.add_material(sims, "CamClay", {"MaterialID": 1})
