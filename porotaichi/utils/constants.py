from porotaichi.utils.TypeDefination import vec3f, mat3x3, vec6f


Threshold = 1e-14

EYE = vec6f([1., 1., 1., 0., 0., 0.])
DELTA = mat3x3([[1., 0., 0.], [0., 1., 0.],[0., 0., 1.]])

ZEROVEC3f = vec3f([0., 0., 0.])
ZEROVEC6f = vec6f([0., 0., 0., 0., 0., 0.])
ZEROMAT3x3 = mat3x3([[0., 0., 0.], [0., 0., 0.], [0., 0., 0.]])

# Time integration
MINIMUM_TIME_INCREMENT = 1e-10
NOT_USED = -1.
FULLY_FILLED_RATIO = 1.
SOLID_FILLED_RATIO = 0.98

# Constitutive models
FTOL = 1.e-9        # yield function tolerance

# Material point types
MIXTURE = 0
SOLID = 1
LIQUID = 2

# Phase status (two-layer formulation)
PHASE_SOLID = 0
PHASE_LIQUID = 1

# Water and air properties
REFERENCE_WATER_DENSITY = 1.0026       # t/m3
WATER_THERMAL_EXPANSION = -0.00034     # 1/degree
MOLAR_MASS_AIR = 0.028                 # kg/mol
MOLAR_MASS_WATER = 0.018               # kg/mol
GAS_CONSTANT = 0.008314                # kJ/(mol K)
HENRY_CONSTANT = 0.0187             # dimensionless Henry coefficient of air in water
ABSOLUTE_ZERO = 273.15
ATMOSPHERIC_PRESSURE = 101.325         # kPa
