import taichi as ti

from porotaichi.mpm.elements.ElementBase import ElementBase
from porotaichi.utils.TypeDefination import vec4f, mat4x3


@ti.kernel
def kernel_set_connectivity_2D(cnum: ti.types.vector(3, int), gnum: ti.types.vector(3, int), node_connectivity: ti.template()):
    #     3 *_ _ _ _ _ _* 2
    #       |           |
    #       |           |
    #       |           |
    #     0 *_ _ _ _ _ _* 1
    for nc in node_connectivity:
        ie = nc % cnum[0]
        je = nc // cnum[0]
        base = ie + je * gnum[0]
        node_connectivity[nc][0] = base
        node_connectivity[nc][1] = base + 1
        node_connectivity[nc][2] = base + gnum[0] + 1
        node_connectivity[nc][3] = base + gnum[0]


@ti.data_oriented
class QuadrilateralElement4Nodes(ElementBase):
    def __init__(self) -> None:
        super().__init__()
        self.dimension = 2
        self.nodes_per_element = 4
        self.edges = [(0, 1), (1, 2), (2, 3), (3, 0)]

    def calc_volume(self):
        return self.element_size[0] * self.element_size[1]

    def set_connectivity(self):
        kernel_set_connectivity_2D(self.cnum, self.gnum, self.node_connectivity)

    @ti.func
    def shapefn(self, xi):
        return vec4f([0.25 * (1. - xi[0]) * (1. - xi[1]),
                      0.25 * (1. + xi[0]) * (1. - xi[1]),
                      0.25 * (1. + xi[0]) * (1. + xi[1]),
                      0.25 * (1. - xi[0]) * (1. + xi[1])])

    @ti.func
    def local_grad_shapefn(self, xi):
        return mat4x3([[-0.25 * (1. - xi[1]), -0.25 * (1. - xi[0]), 0.],
                       [ 0.25 * (1. - xi[1]), -0.25 * (1. + xi[0]), 0.],
                       [ 0.25 * (1. + xi[1]),  0.25 * (1. + xi[0]), 0.],
                       [-0.25 * (1. + xi[1]),  0.25 * (1. - xi[0]), 0.]])
