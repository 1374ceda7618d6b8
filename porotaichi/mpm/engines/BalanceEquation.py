import taichi as ti

from porotaichi.utils.constants import ATMOSPHERIC_PRESSURE, Threshold


@ti.func
def undrained_pressure_increment(bulk_water, porosity, dvolumetric):
    dpressure = 0.
    if porosity > Threshold:
        dpressure = bulk_water / porosity * dvolumetric
    return dpressure


@ti.func
def liquid_density(weight, gravity):
    density = 0.
    if gravity > Threshold:
        density = weight / gravity
    return density


@ti.func
def water_pressure_increment(particle, np, gravity, partial: ti.template()):
    """
    Water mass balance of a single point. The saturated form reads
    dPw = Kf / n * (n * dEpsVw + (1 - n) * dEpsV), the partially saturated
    form replaces the water storage by the retention curve derivative.
    """
    n = particle[np].porosity
    bulk = particle[np].bulk_water
    dvolumetric = particle[np].dstrain[0] + particle[np].dstrain[1] + particle[np].dstrain[2]
    dvolumetric_w = particle[np].dstrain_w
    dpressure = 0.
    if n > Threshold and particle[np].weight_w > 0. and bulk > Threshold:
        dpressure = bulk / n * (n * dvolumetric_w + (1. - n) * dvolumetric)
        if ti.static(partial):
            Sr = particle[np].saturation
            if Sr > 0. and Sr < 1.:
                rho_w = liquid_density(particle[np].weight_w, gravity)
                # relative volumetric flux of the water through the skeleton
                flux = Sr * rho_w * n * (dvolumetric_w - dvolumetric)
                particle[np].flux_w = flux
                denominator = n * Sr * rho_w / bulk - n * rho_w * particle[np].dsaturation
                if ti.abs(denominator) > Threshold:
                    dpressure = (Sr * rho_w * dvolumetric + flux) / denominator
    return dpressure


@ti.func
def gas_pressure_increment(particle, np):
    n = particle[np].porosity
    Sr = particle[np].saturation
    dvolumetric = particle[np].dstrain[0] + particle[np].dstrain[1] + particle[np].dstrain[2]
    gas_fraction = n * (1. - Sr)
    dpressure = 0.
    if gas_fraction > Threshold:
        absolute_pressure = ATMOSPHERIC_PRESSURE - particle[np].pg
        particle[np].flux_g = gas_fraction * (particle[np].dstrain_g - dvolumetric)
        dpressure = absolute_pressure / gas_fraction * ((1. - n) * dvolumetric + gas_fraction * particle[np].dstrain_g)
    return dpressure


@ti.data_oriented
class BalanceEquation(object):
    """
    Isothermal linearized water and gas mass balance of the three phase
    formulation. Subclasses may replace SolveBalanceEquations with a coupled
    or thermal solution, it returns (dPw, dPg, dT).
    """
    def __init__(self, gravity=9.81) -> None:
        self.gravity = gravity

    @ti.func
    def SolveBalanceEquations(self, particle, np):
        dpressure_w = water_pressure_increment(particle, np, self.gravity, True)
        dpressure_g = gas_pressure_increment(particle, np)
        return dpressure_w, dpressure_g, 0.
