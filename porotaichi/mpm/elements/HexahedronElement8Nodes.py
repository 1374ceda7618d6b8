import taichi as ti

from porotaichi.mpm.elements.ElementBase import ElementBase
from porotaichi.utils.TypeDefination import vec8f, mat8x3


NATURAL_NODES = [(-1., -1., -1.), (1., -1., -1.), (1., 1., -1.), (-1., 1., -1.),
                 (-1., -1., 1.), (1., -1., 1.), (1., 1., 1.), (-1., 1., 1.)]


@ti.kernel
def kernel_set_connectivity_3D(cnum: ti.types.vector(3, int), gnum: ti.types.vector(3, int), node_connectivity: ti.template()):
    #        7               6
    #          *_ _ _ _ _ _*
    #         /|           /|
    #        / |          / |
    #     4 *_ |_ _ _ _ _* 5|
    #       |  |         |  |
    #       |  |         |  |
    #       |  *_ _ _ _ _|_ *
    #       | / 3        | / 2
    #       |/           |/
    #       *_ _ _ _ _ _ *
    #     0               1
    for nc in node_connectivity:
        ie = nc % cnum[0]
        je = (nc // cnum[0]) % cnum[1]
        ke = nc // (cnum[0] * cnum[1])
        xgrid = gnum[0]
        xygrid = gnum[0] * gnum[1]
        base = ie + je * xgrid + ke * xygrid
        node_connectivity[nc][0] = base
        node_connectivity[nc][1] = base + 1
        node_connectivity[nc][2] = base + xgrid + 1
        node_connectivity[nc][3] = base + xgrid
        node_connectivity[nc][4] = base + xygrid
        node_connectivity[nc][5] = base + xygrid + 1
        node_connectivity[nc][6] = base + xygrid + xgrid + 1
        node_connectivity[nc][7] = base + xygrid + xgrid


@ti.data_oriented
class HexahedronElement8Nodes(ElementBase):
    def __init__(self) -> None:
        super().__init__()
        self.dimension = 3
        self.nodes_per_element = 8
        self.edges = [(0, 1), (1, 2), (2, 3), (3, 0), (4, 5), (5, 6), (6, 7), (7, 4), (0, 4), (1, 5), (2, 6), (3, 7)]

    def calc_volume(self):
        return self.element_size[0] * self.element_size[1] * self.element_size[2]

    def set_connectivity(self):
        kernel_set_connectivity_3D(self.cnum, self.gnum, self.node_connectivity)

    @ti.func
    def shapefn(self, xi):
        shape = vec8f(0., 0., 0., 0., 0., 0., 0., 0.)
        for k in ti.static(range(8)):
            shape[k] = 0.125 * (1. + NATURAL_NODES[k][0] * xi[0]) * (1. + NATURAL_NODES[k][1] * xi[1]) * (1. + NATURAL_NODES[k][2] * xi[2])
        return shape

    @ti.func
    def local_grad_shapefn(self, xi):
        grad = mat8x3(0.)
        for k in ti.static(range(8)):
            sx, sy, sz = ti.static(NATURAL_NODES[k][0], NATURAL_NODES[k][1], NATURAL_NODES[k][2])
            grad[k, 0] = 0.125 * sx * (1. + sy * xi[1]) * (1. + sz * xi[2])
            grad[k, 1] = 0.125 * sy * (1. + sx * xi[0]) * (1. + sz * xi[2])
            grad[k, 2] = 0.125 * sz * (1. + sx * xi[0]) * (1. + sy * xi[1])
        return grad
