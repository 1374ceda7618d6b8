import taichi as ti

from porotaichi.utils.constants import ZEROMAT3x3, ZEROVEC6f, Threshold
from porotaichi.utils.TypeDefination import vec6f, vec3f


# ================================================================================ #
# Voigt Notation:                                                                  #
#                 notation1: tensor11,                                             #
#                 notation2: tensor22,                                             #
#                 notation3: tensor33,                                             #
#                 notation4: tensor12 = tensor21,                                  #
#                 notation5: tensor23 = tensor32,                                  #
#                 notation6: tensor13 = tensor31;                                  #
# Shear strains are engineering strains (gamma = 2 * epsilon)                      #
# ================================================================================ #
# ========================== Constitutive Model Utility ========================== #
@ti.func
def calculate_strain_increment(displacement_gradient):
    # displacement_gradient[i, j] = d(du_j) / dx_i
    return vec6f(displacement_gradient[0, 0],
                 displacement_gradient[1, 1],
                 displacement_gradient[2, 2],
                 displacement_gradient[0, 1] + displacement_gradient[1, 0],
                 displacement_gradient[1, 2] + displacement_gradient[2, 1],
                 displacement_gradient[0, 2] + displacement_gradient[2, 0])

@ti.func
def calculate_vorticity_increment(displacement_gradient):
    return 0.5 * vec3f(displacement_gradient[1, 0] - displacement_gradient[0, 1],
                       displacement_gradient[2, 1] - displacement_gradient[1, 2],
                       displacement_gradient[2, 0] - displacement_gradient[0, 2])

@ti.func
def Sigrot(stress, dw):
    sigrot = ZEROVEC6f
    sigrot[0] = 2. * (dw[0] * stress[3] + dw[2] * stress[5])
    sigrot[1] = 2. * (-dw[0] * stress[3] + dw[1] * stress[4])
    sigrot[2] = -2. * (dw[2] * stress[5] + dw[1] * stress[4])
    sigrot[3] = dw[1] * stress[5] + dw[2] * stress[4] + dw[0] * (stress[1] - stress[0])
    sigrot[4] = -dw[0] * stress[5] - dw[2] * stress[3] + dw[1] * (stress[2] - stress[1])
    sigrot[5] = dw[0] * stress[4] - dw[1] * stress[3] + dw[2] * (stress[2] - stress[0])
    return sigrot

@ti.func
def VolumetricStrain(strain):
    return strain[0] + strain[1] + strain[2]

@ti.func
def DeviatoricStrainRate(strain_rate):
    # returns tensorial (not engineering) deviatoric components
    volumetric = VolumetricStrain(strain_rate) / 3.
    deviatoric = ZEROVEC6f
    for i in ti.static(range(3)):
        deviatoric[i] = strain_rate[i] - volumetric
    for i in ti.static(range(3, 6)):
        deviatoric[i] = 0.5 * strain_rate[i]
    return deviatoric

@ti.func
def EquivalentShearRate(deviatoric_rate):
    # sqrt(2 D:D) with tensorial deviatoric components
    contraction = deviatoric_rate[0] * deviatoric_rate[0] + deviatoric_rate[1] * deviatoric_rate[1] + deviatoric_rate[2] * deviatoric_rate[2] \
                + 2. * (deviatoric_rate[3] * deviatoric_rate[3] + deviatoric_rate[4] * deviatoric_rate[4] + deviatoric_rate[5] * deviatoric_rate[5])
    return ti.sqrt(2. * contraction)

@ti.func
def ElasticTensorMultiplyVector(vector, bulk_modulus, shear_modulus):
    a = bulk_modulus + (4./3.) * shear_modulus
    b = bulk_modulus - (2./3.) * shear_modulus
    return vec6f([a * vector[0] + b * (vector[1] + vector[2]),
                  a * vector[1] + b * (vector[0] + vector[2]),
                  a * vector[2] + b * (vector[0] + vector[1]),
                  shear_modulus * vector[3], shear_modulus * vector[4], shear_modulus * vector[5]])

@ti.func
def ComputePlasticDeviatoricStrain(plastic_strain):
    pdstrain = ti.sqrt(2./9. * ((plastic_strain[0] - plastic_strain[1]) * (plastic_strain[0] - plastic_strain[1]) \
                + (plastic_strain[1] - plastic_strain[2]) * (plastic_strain[1] - plastic_strain[2]) \
                + (plastic_strain[0] - plastic_strain[2]) * (plastic_strain[0] - plastic_strain[2])) \
                + 1./3. * (plastic_strain[3] * plastic_strain[3] + plastic_strain[4] * plastic_strain[4] + plastic_strain[5] * plastic_strain[5]))
    return pdstrain

@ti.func
def VigotVec2Tensor(vector):
    matrix_tensor = ZEROMAT3x3
    matrix_tensor[0, 0] = vector[0]
    matrix_tensor[0, 1] = vector[3]
    matrix_tensor[0, 2] = vector[5]
    matrix_tensor[1, 0] = vector[3]
    matrix_tensor[1, 1] = vector[1]
    matrix_tensor[1, 2] = vector[4]
    matrix_tensor[2, 0] = vector[5]
    matrix_tensor[2, 1] = vector[4]
    matrix_tensor[2, 2] = vector[2]
    return matrix_tensor

@ti.func
def Tensor2VigotVec(matrix_tensor):
    vector = ZEROVEC6f
    vector[0] = matrix_tensor[0, 0]
    vector[1] = matrix_tensor[1, 1]
    vector[2] = matrix_tensor[2, 2]
    vector[3] = matrix_tensor[1, 0]
    vector[4] = matrix_tensor[1, 2]
    vector[5] = matrix_tensor[2, 0]
    return vector

@ti.func
def OedometricModulus(shear_modulus, poisson):
    modulus = 0.
    if poisson < 0.5 - Threshold:
        modulus = 2. * shear_modulus * (1. - poisson) / (1. - 2. * poisson)
    return modulus

@ti.func
def PrincipalStress(stress):
    # principal values in descending order, eigenvectors stored column-wise
    sigma, vectors = ti.sym_eig(VigotVec2Tensor(stress))
    for i in ti.static(range(2)):
        for j in ti.static(range(2 - i)):
            if sigma[j] < sigma[j + 1]:
                temp = sigma[j]
                sigma[j] = sigma[j + 1]
                sigma[j + 1] = temp
                for d in ti.static(range(3)):
                    component = vectors[d, j]
                    vectors[d, j] = vectors[d, j + 1]
                    vectors[d, j + 1] = component
    return sigma, vectors

@ti.func
def PrincipalToVigot(principal, vectors):
    tensor = ZEROMAT3x3
    for i in ti.static(range(3)):
        for j in ti.static(range(3)):
            for k in ti.static(range(3)):
                tensor[i, j] += vectors[i, k] * principal[k] * vectors[j, k]
    return Tensor2VigotVec(tensor)
