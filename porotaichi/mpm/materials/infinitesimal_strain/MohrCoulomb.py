import numpy as np
import taichi as ti

from porotaichi.mpm.materials.ConstitutiveModelBase import ConstitutiveModelBase
from porotaichi.mpm.Simulation import Simulation
from porotaichi.utils.constants import FTOL, Threshold, ZEROVEC6f
from porotaichi.utils.MaterialKernel import (ElasticTensorMultiplyVector, PrincipalStress, PrincipalToVigot,
                                             ComputePlasticDeviatoricStrain)
from porotaichi.utils.ObjectIO import DictIO
from porotaichi.utils.TypeDefination import vec3f, mat3x3


# State variables: 0-5 plastic strain, 6 equivalent plastic deviatoric strain, 7-9 mobilised friction, cohesion and dilation
PLASTIC_DEVIATORIC_STRAIN = 6
MOBILISED_FRICTION = 7
MOBILISED_COHESION = 8
MOBILISED_DILATION = 9

# Stress return regions
ELASTIC = 0
REGION_PLANE = 1
REGION_COMPRESSION_LINE = 2
REGION_EXTENSION_LINE = 3
REGION_APEX = 4


@ti.dataclass
class MohrCoulombModel:
    young: float
    possion: float
    shear: float
    bulk: float
    phi_peak: float
    phi_residual: float
    c_peak: float
    c_residual: float
    psi_peak: float
    psi_residual: float
    softening: float
    tensile: float

    def add_material(self, young, possion, c_peak, phi_peak, psi_peak, tensile, c_residual, phi_residual, psi_residual, softening):
        self.young = young
        self.possion = possion
        self.c_peak = c_peak
        self.phi_peak = phi_peak * np.pi / 180.
        self.psi_peak = psi_peak * np.pi / 180.
        self.c_residual = c_residual
        self.phi_residual = phi_residual * np.pi / 180.
        self.psi_residual = psi_residual * np.pi / 180.
        self.softening = softening
        self.tensile = tensile

        self.shear = 0.5 * self.young / (1. + self.possion)
        self.bulk = self.young / (3. * (1 - 2. * self.possion))

    def print_message(self, materialID):
        print(" Constitutive Model Information ".center(71, '-'))
        print('Constitutive model: Mohr-Coulomb Model')
        print("Model ID: ", materialID)
        print('Young Modulus: ', self.young)
        print('Possion Ratio: ', self.possion)
        print('Cohesion Coefficient (peak/residual): ', self.c_peak, self.c_residual)
        print('Angle of Internal Friction (peak/residual): ', self.phi_peak * 180 / np.pi, self.phi_residual * 180 / np.pi)
        print('Angle of Dilatation (peak/residual): ', self.psi_peak * 180 / np.pi, self.psi_residual * 180 / np.pi)
        print('Softening Shape Factor: ', self.softening)
        print('Tensile Strength: ', self.tensile, '\n')

    @ti.func
    def _strength(self, plastic_deviatoric_strain):
        decay = ti.exp(-self.softening * plastic_deviatoric_strain)
        phi = self.phi_residual + (self.phi_peak - self.phi_residual) * decay
        cohesion = self.c_residual + (self.c_peak - self.c_residual) * decay
        psi = self.psi_residual + (self.psi_peak - self.psi_residual) * decay
        return phi, cohesion, psi

    @ti.func
    def _elastic_principal_matrix(self):
        a = self.bulk + 4. / 3. * self.shear
        b = self.bulk - 2. / 3. * self.shear
        return mat3x3([[a, b, b], [b, a, b], [b, b, a]])

    @ti.func
    def _plastic_principal_strain(self, dsigma):
        # elastic compliance in principal space
        return vec3f([dsigma[0] - self.possion * (dsigma[1] + dsigma[2]),
                      dsigma[1] - self.possion * (dsigma[0] + dsigma[2]),
                      dsigma[2] - self.possion * (dsigma[0] + dsigma[1])]) / self.young


@ti.func
def return_direction(D, m, k, i: ti.template(), j: ti.template()):
    # D b / (a^T D b) for the yield plane a = k e_i - e_j and the potential b = m e_i - e_j
    direction = vec3f([D[0, i] * m - D[0, j], D[1, i] * m - D[1, j], D[2, i] * m - D[2, j]])
    return direction / (k * direction[i] - direction[j])

@ti.func
def principal_return(trial, f, k, comp, m, D):
    """
    Principal stress return of Clausen et al. (2006), the trial stresses are sorted as sig1 >= sig2 >= sig3
    """
    apex = comp / (k - 1.)
    Rp = return_direction(D, m, k, 0, 2)
    multiplier = f / (k * (D[0, 0] * m - D[0, 2]) - (D[2, 0] * m - D[2, 2]))
    relative = trial - apex

    NI_II = vec3f([Rp[1] * k - Rp[2], Rp[2] - Rp[0] * k, Rp[0] - Rp[1]])
    pI_II = NI_II.dot(relative)
    NI_III = vec3f([Rp[1] * k - Rp[2] * k, Rp[2] - Rp[0] * k, Rp[0] * k - Rp[1]])
    pI_III = NI_III.dot(relative)

    N2 = Rp.cross(return_direction(D, m, k, 1, 2))
    t1 = 0.
    denominator = N2[0] + N2[1] + k * N2[2]
    if ti.abs(denominator) > Threshold:
        t1 = N2.dot(relative) / denominator

    N3 = Rp.cross(return_direction(D, m, k, 0, 1))
    t2 = 0.
    denominator = N3[0] + k * N3[1] + k * N3[2]
    if ti.abs(denominator) > Threshold:
        t2 = N3.dot(relative) / denominator

    updated = trial
    region = REGION_PLANE
    if t1 > 0. and t2 > 0.:
        region = REGION_APEX
        updated = vec3f(apex, apex, apex)
    elif pI_II < 0.:
        region = REGION_COMPRESSION_LINE
        updated = vec3f(t1 + apex, t1 + apex, t1 * k + apex)
    elif pI_III <= 0.:
        region = REGION_PLANE
        updated = trial - f * Rp
    else:
        region = REGION_EXTENSION_LINE
        updated = vec3f(t2 + apex, t2 * k + apex, t2 * k + apex)
    return updated, region, multiplier


@ti.data_oriented
class MohrCoulomb(ConstitutiveModelBase):
    model_name = "MohrCoulomb"

    def __init__(self, sims: Simulation):
        super().__init__()
        self.add_material(sims.max_material_num, MohrCoulombModel)

    def read_softening(self, material, c_peak, phi_peak, psi_peak):
        return c_peak, phi_peak, psi_peak, 0.

    def model_initialize(self, material):
        materialID = self.register(material)
        young = DictIO.GetEssential(material, 'YoungModulus')
        possion = DictIO.GetAlternative(material, 'PoissonRatio', 0.3)
        c_peak = DictIO.GetAlternative(material, 'Cohesion', 0.)
        phi_peak = DictIO.GetAlternative(material, 'Friction', 0.)
        psi_peak = DictIO.GetAlternative(material, 'Dilation', 0.)
        if phi_peak <= 0. or phi_peak >= 90.:
            raise RuntimeError("Keyword:: /Friction/ must lie in (0, 90) degrees")
        if psi_peak < 0. or psi_peak > phi_peak:
            raise RuntimeError("Keyword:: /Dilation/ must lie in [0, Friction] degrees")
        c_residual, phi_residual, psi_residual, softening = self.read_softening(material, c_peak, phi_peak, psi_peak)
        sphi = np.sin(phi_peak * np.pi / 180.)
        apex = 2. * c_peak * np.sqrt((1. + sphi) / (1. - sphi)) / ((1. + sphi) / (1. - sphi) - 1.)
        tensile = DictIO.GetAlternative(material, 'TensileStrength', apex)
        self.matProps[materialID].add_material(young, possion, c_peak, phi_peak, psi_peak, tensile, c_residual, phi_residual, psi_residual, softening)
        self.matProps[materialID].print_message(materialID)

    @ti.func
    def UnloadingStiffness(self, np, materialID, state_vars):
        return self.matProps[materialID].young

    @ti.func
    def ComputeStress(self, np, materialID, stress, dstrain, pressure, state_vars, dt):
        bulk_modulus = self.matProps[materialID].bulk
        shear_modulus = self.matProps[materialID].shear
        phi, cohesion, psi = self.matProps[materialID]._strength(state_vars[np, PLASTIC_DEVIATORIC_STRAIN])
        state_vars[np, MOBILISED_FRICTION] = phi
        state_vars[np, MOBILISED_COHESION] = cohesion
        state_vars[np, MOBILISED_DILATION] = psi

        trial_stress = stress + ElasticTensorMultiplyVector(dstrain, bulk_modulus, shear_modulus)
        trial, vectors = PrincipalStress(trial_stress)

        sphi = ti.sin(phi)
        k = (1. + sphi) / (1. - sphi)
        comp = 2. * cohesion * ti.sqrt(k)
        m = (1. + ti.sin(psi)) / (1. - ti.sin(psi))
        f = k * trial[0] - trial[2] - comp

        plastic_flag = ELASTIC
        tension_flag = 0
        updated = trial
        if f > FTOL * ti.max(ti.abs(comp), 1.):
            D = self.matProps[materialID]._elastic_principal_matrix()
            updated, region, multiplier = principal_return(trial, f, k, comp, m, D)
            plastic_flag = region
            if multiplier < 0.:
                plastic_flag = -region

        tensile = ti.min(self.matProps[materialID].tensile, comp / (k - 1.))
        for i in ti.static(range(3)):
            if updated[i] > tensile:
                updated[i] = tensile
                tension_flag = 1

        new_stress = trial_stress
        if plastic_flag != ELASTIC or tension_flag == 1:
            new_stress = PrincipalToVigot(updated, vectors)
            dplastic = PrincipalToVigot(self.matProps[materialID]._plastic_principal_strain(trial - updated), vectors)
            for i in ti.static(range(3, 6)):
                dplastic[i] *= 2.
            for i in ti.static(range(6)):
                state_vars[np, i] += dplastic[i]
            plastic_strain = ZEROVEC6f
            for i in ti.static(range(6)):
                plastic_strain[i] = state_vars[np, i]
            state_vars[np, PLASTIC_DEVIATORIC_STRAIN] = ComputePlasticDeviatoricStrain(plastic_strain)
        return new_stress, plastic_flag, tension_flag


@ti.data_oriented
class StrainSofteningMohrCoulomb(MohrCoulomb):
    model_name = "StrainSofteningMohrCoulomb"

    def read_softening(self, material, c_peak, phi_peak, psi_peak):
        c_residual = DictIO.GetAlternative(material, 'ResidualCohesion', c_peak)
        phi_residual = DictIO.GetAlternative(material, 'ResidualFriction', phi_peak)
        psi_residual = DictIO.GetAlternative(material, 'ResidualDilation', psi_peak)
        softening = DictIO.GetEssential(material, 'ShapeFactor')
        if c_residual > c_peak or phi_residual > phi_peak or psi_residual > psi_peak:
            raise RuntimeError("Keyword:: /ResidualCohesion/, /ResidualFriction/ and /ResidualDilation/ must not exceed the peak values")
        if phi_residual <= 0.:
            raise RuntimeError("Keyword:: /ResidualFriction/ must be positive")
        if softening < 0.:
            raise RuntimeError("Keyword:: /ShapeFactor/ must be non-negative")
        return c_residual, phi_residual, psi_residual, softening
