import numpy as np
import taichi as ti

from porotaichi.mpm.Simulation import Simulation
from porotaichi.utils.TypeDefination import vec3f, vec3i


class ElementBase(object):
    def __init__(self) -> None:
        self.element_size = vec3f(0., 0., 0.)
        self.ielement_size = vec3f(0., 0., 0.)
        self.cnum = vec3i(1, 1, 1)
        self.gnum = vec3i(1, 1, 1)
        self.gridSum = 0
        self.cellSum = 0
        self.cell_volume = 0.
        self.nodes_per_element = 0
        self.node_connectivity = None
        self.shape_fn = None
        self.dshape_fn = None
        self.dshape_fnc = None

    def create_nodes(self, sims: Simulation, element_size):
        domain = np.array(sims.domain)
        element_size = np.array(element_size)
        cnum = np.ones(3, dtype=np.int32)
        for d in range(sims.dimension):
            cnum[d] = max(int(np.floor((domain[d] + 1e-10) / element_size[d])), 1)
        gnum = cnum + 1
        if sims.dimension == 2:
            gnum[2] = 1

        size = np.ones(3)
        size[0:sims.dimension] = domain[0:sims.dimension] / cnum[0:sims.dimension]
        self.element_size = vec3f(size)
        self.ielement_size = vec3f(1. / size)
        self.cnum = vec3i(cnum)
        self.gnum = vec3i(gnum)
        self.gridSum = int(gnum[0] * gnum[1] * gnum[2])
        self.cellSum = int(cnum[0] * cnum[1] * cnum[2])
        self.cell_volume = self.calc_volume()

    def element_initialize(self, sims: Simulation):
        self.node_connectivity = ti.Vector.field(self.nodes_per_element, int, shape=self.cellSum)
        self.shape_fn = ti.Vector.field(self.nodes_per_element, float, shape=sims.max_particle_num)
        self.dshape_fn = ti.Matrix.field(self.nodes_per_element, 3, float, shape=sims.max_particle_num)
        self.dshape_fnc = ti.Matrix.field(self.nodes_per_element, 3, float, shape=self.cellSum)
        self.set_connectivity()

    def calc_volume(self):
        raise NotImplementedError

    def set_connectivity(self):
        raise NotImplementedError

    def print_message(self):
        print(" Mesh Information ".center(71, '-'))
        print(("Element type: " + type(self).__name__).ljust(67))
        print(("Element size: " + str(self.element_size)).ljust(67))
        print(("The number of elements: " + str(self.cnum)).ljust(67))
        print(("The number of nodes: " + str(self.gnum)).ljust(67), '\n')

    # ========================================================= #
    #                  Mesh geometry functions                  #
    # ========================================================= #
    @ti.func
    def locate(self, position):
        index = ti.floor(position * self.ielement_size, int)
        inside = 1
        for d in ti.static(range(self.dimension)):
            if index[d] < 0 or index[d] >= self.cnum[d]:
                inside = 0
        element_id = -1
        if inside == 1:
            element_id = self.linearize_element(index)
        return element_id

    @ti.func
    def linearize_element(self, index):
        linear = index[0] + index[1] * self.cnum[0]
        if ti.static(self.dimension == 3):
            linear += index[2] * self.cnum[0] * self.cnum[1]
        return int(linear)

    @ti.func
    def natural_coordinate(self, position, element_id, node):
        corner = node[self.node_connectivity[element_id][0]].x0
        xi = 2. * (position - corner) * self.ielement_size - 1.
        if ti.static(self.dimension == 2):
            xi[2] = 0.
        return xi

    @ti.func
    def jacobian(self, element_id, local_grad_shapefn, node):
        jacobian = ti.Matrix.zero(float, 3, 3)
        for k in ti.static(range(self.nodes_per_element)):
            coord = node[self.node_connectivity[element_id][k]].x
            for i in ti.static(range(3)):
                for j in ti.static(range(3)):
                    jacobian[i, j] += local_grad_shapefn[k, i] * coord[j]
        if ti.static(self.dimension == 2):
            jacobian[2, 2] = 1.
        return jacobian

    @ti.func
    def global_grad_shapefn(self, element_id, xi, node):
        local_grad_shapefn = self.local_grad_shapefn(xi)
        jacobian = self.jacobian(element_id, local_grad_shapefn, node)
        return local_grad_shapefn @ jacobian.inverse().transpose()

    @ti.func
    def global_position(self, element_id, xi, node):
        shape = self.shapefn(xi)
        position = vec3f(0., 0., 0.)
        for k in ti.static(range(self.nodes_per_element)):
            position += shape[k] * node[self.node_connectivity[element_id][k]].x
        return position

    @ti.func
    def element_volume(self, element_id, node):
        local_grad_shapefn = self.local_grad_shapefn(vec3f(0., 0., 0.))
        return self.jacobian(element_id, local_grad_shapefn, node).determinant() * (2. ** self.dimension)

    @ti.func
    def characteristic_length(self, element_id, node):
        lmin = 1e300
        for e in ti.static(self.edges):
            start = node[self.node_connectivity[element_id][e[0]]].x
            end = node[self.node_connectivity[element_id][e[1]]].x
            lmin = ti.min(lmin, (end - start).norm())
        return lmin
