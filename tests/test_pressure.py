import pytest

from porotaichi.mpm.engines.BalanceEquation import BalanceEquation
from porotaichi.mpm.engines.StressKernel import kernel_pressure_increment
from porotaichi.mpm.MaterialManager import MaterialManager
from porotaichi.mpm.Simulation import Simulation
from porotaichi.mpm.structs import MaterialPoint
from porotaichi.utils.constants import MIXTURE


SATURATED_SOIL = {
    "MaterialID":           1,
    "MaterialType":         "2-phase",
    "DensitySolid":         2650.,
    "DensityLiquid":        1000.,
    "Porosity":             0.3,
    "YoungModulus":         1e4,
    "PoissonRatio":         0.3,
    "BulkModulusLiquid":    2.2e6,
    "HydraulicConductivity":1e-4
}


def single_point(material, bulk_water=2.2e6, saturation=1.):
    sims = Simulation()
    sims.set_material_num(1)
    manager = MaterialManager()
    manager.add_material(sims, "LinearElastic", material)

    particle = MaterialPoint.field(shape=1)
    particle.active[0] = 1
    particle.materialID[0] = 1
    particle.mptype[0] = MIXTURE
    particle.porosity[0] = 0.3
    particle.saturation[0] = saturation
    particle.bulk_water[0] = bulk_water
    particle.weight_w[0] = 9.81
    particle.dstrain[0] = [-0.0001, 0., 0., 0., 0., 0.]
    particle.dstrain_w[0] = -0.00005
    return manager, particle


def pressure_increment(manager, particle, step=1, submerged_steps=0, water=True, gas=False, partial=False, implicit=False):
    kernel_pressure_increment(1, particle, manager.matProps, BalanceEquation(9.81), 0, 9.81, step, submerged_steps,
                              water, gas, partial, implicit)


def test_saturated_water_pressure_increment():
    manager, particle = single_point(SATURATED_SOIL)
    pressure_increment(manager, particle)

    expected = 2.2e6 * (-0.00005) + 0.7 / 0.3 * 2.2e6 * (-0.0001)
    assert particle.pw[0] == pytest.approx(expected, rel=1e-10)
    assert particle.dpw[0] == pytest.approx(expected, rel=1e-10)
    assert particle.pw0[0] == 0.
    assert particle.pg[0] == 0.


def test_water_pressure_is_frozen_without_water_phase():
    manager, particle = single_point(SATURATED_SOIL)
    pressure_increment(manager, particle, water=False)

    assert particle.pw[0] == 0.
    assert particle.pg[0] == 0.


def test_submerged_steps_freeze_water_pressure():
    manager, particle = single_point(SATURATED_SOIL)
    pressure_increment(manager, particle, step=2, submerged_steps=2)
    assert particle.pw[0] == 0.

    pressure_increment(manager, particle, step=3, submerged_steps=2)
    assert particle.pw[0] < 0.


def test_undrained_pressure_increment():
    material = {"MaterialID": 1, "MaterialType": "2-phase-undrained", "Porosity": 0.3, "YoungModulus": 1e4, "PoissonRatio": 0.3,
                "UndrainedPoissonRatio": 0.495}
    manager, particle = single_point(material, bulk_water=5e4)
    pressure_increment(manager, particle, water=False)

    assert particle.pw[0] == pytest.approx(5e4 / 0.3 * (-0.0001), rel=1e-10)


def test_implicit_mode_reports_external_pressure_change():
    manager, particle = single_point(SATURATED_SOIL)
    particle.pw0[0] = 10.
    particle.pw[0] = 50.
    pressure_increment(manager, particle, implicit=True)

    assert particle.dpw[0] == pytest.approx(40.)
    assert particle.pw[0] == 50.
    assert particle.pw0[0] == 50.


def test_gas_pressure_requires_gas_phase():
    material = dict(SATURATED_SOIL, MaterialType="3-phase", DegreeSaturation=0.8)
    manager, particle = single_point(material, saturation=0.8)
    pressure_increment(manager, particle, partial=True)
    assert particle.pg[0] == 0.

    manager, particle = single_point(material, saturation=0.8)
    pressure_increment(manager, particle, gas=True, partial=True)
    assert particle.pg[0] != 0.
