import taichi as ti


@ti.func
def vectorize_id(index, countVec):
    ig = (index % (countVec[0] * countVec[1])) % countVec[0]
    jg = (index % (countVec[0] * countVec[1])) // countVec[0]
    kg = index // (countVec[0] * countVec[1])
    return ig, jg, kg

@ti.func
def sgn(x):
    return ti.select(x >= 0., 1, 0) - ti.select(x <= 0., 1, 0)

@ti.func
def is_finite(x):
    return (x == x) and (ti.abs(x) < 1e300)
