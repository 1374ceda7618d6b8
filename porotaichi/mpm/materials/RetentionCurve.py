import taichi as ti


# Soil water retention curves
SWRC_NONE = 0
SWRC_VANGENUCHTEN = 1
SWRC_LINEAR = 2
RETENTION_CURVE = {"None": SWRC_NONE, "VanGenuchten": SWRC_VANGENUCHTEN, "Linear": SWRC_LINEAR}

# Hydraulic conductivity curves
HCC_CONSTANT = 0
HCC_HILLEL = 1
HCC_MUALEM = 2
CONDUCTIVITY_CURVE = {"Constant": HCC_CONSTANT, "Hillel": HCC_HILLEL, "Mualem": HCC_MUALEM}


# Suction is taken as Pw - Pg (tension positive), Sr = Smax for non-positive suction
@ti.func
def degree_of_saturation(curve, suction, smin, smax, p0, lambda_, av):
    saturation = 1.
    if curve == SWRC_VANGENUCHTEN:
        saturation = smax
        if suction > 0.:
            x = (suction / p0) ** (1. / (1. - lambda_))
            saturation = smin + (smax - smin) * (1. + x) ** (-lambda_)
    elif curve == SWRC_LINEAR:
        if suction > 0.:
            saturation = ti.min(ti.max(1. - av * suction, 0.), 1.)
    return saturation

@ti.func
def saturation_derivative(curve, suction, smin, smax, p0, lambda_, av):
    # dSr/dPw
    derivative = 0.
    if curve == SWRC_VANGENUCHTEN:
        if suction > 0.:
            x = (suction / p0) ** (1. / (1. - lambda_))
            derivative = -(smax - smin) * lambda_ * (1. + x) ** (-lambda_ - 1.) * x / ((1. - lambda_) * suction)
    elif curve == SWRC_LINEAR:
        saturation = 1. - av * suction
        if suction > 0. and saturation > 0.:
            derivative = -av
    return derivative

@ti.func
def relative_conductivity(curve, saturation, lambda_, exponent):
    krel = 1.
    if saturation < 1.:
        if curve == HCC_HILLEL:
            krel = saturation ** exponent
        elif curve == HCC_MUALEM:
            w = 1. - (1. - saturation ** (1. / lambda_)) ** lambda_
            krel = ti.sqrt(saturation) * w * w
    return krel
