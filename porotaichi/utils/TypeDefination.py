import taichi as ti


#===================================== #
#           Type Definition            #
#===================================== #
vec3f = ti.types.vector(3, float)
vec4f = ti.types.vector(4, float)
vec6f = ti.types.vector(6, float)
vec8f = ti.types.vector(8, float)
vec3i = ti.types.vector(3, int)
vec3u8 = ti.types.vector(3, ti.u8)

mat3x3 = ti.types.matrix(3, 3, float)
mat4x3 = ti.types.matrix(4, 3, float)
mat8x3 = ti.types.matrix(8, 3, float)
