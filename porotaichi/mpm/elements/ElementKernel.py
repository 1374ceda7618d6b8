import taichi as ti

from porotaichi.utils.constants import DELTA, LIQUID, FULLY_FILLED_RATIO
from porotaichi.utils.ScalarFunction import vectorize_id
from porotaichi.utils.TypeDefination import vec3f


@ti.kernel
def kernel_initialize_node_coordinates(element_size: ti.types.vector(3, float), gnum: ti.types.vector(3, int), node: ti.template()):
    for ng in node:
        ig, jg, kg = vectorize_id(ng, gnum)
        position = vec3f(ig, jg, kg) * element_size
        node[ng].x0 = position
        node[ng].x = position
        node[ng].rotation = DELTA


@ti.kernel
def kernel_element_geometry(element_cell: ti.template(), node: ti.template(), element: ti.template()):
    for nc in element_cell:
        element_cell[nc].volume = element.element_volume(nc, node)
        element_cell[nc].lmin = element.characteristic_length(nc, node)


@ti.kernel
def kernel_centre_gradients(element_cell: ti.template(), node: ti.template(), element: ti.template()):
    for nc in element_cell:
        element.dshape_fnc[nc] = element.global_grad_shapefn(nc, vec3f(0., 0., 0.), node)


@ti.kernel
def kernel_locate_particles(particleNum: int, particle: ti.template(), node: ti.template(), element: ti.template(), leaving: ti.template()) -> int:
    leaving_num = 0
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            element_id = element.locate(particle[np].x)
            if element_id == -1:
                leaving[np] = 1
                particle[np]._deactivate()
                leaving_num += 1
            else:
                xi = element.natural_coordinate(particle[np].x, element_id, node)
                particle[np].element = element_id
                particle[np].xi = xi
                element.shape_fn[np] = element.shapefn(xi)
                element.dshape_fn[np] = element.global_grad_shapefn(element_id, xi, node)
    return leaving_num


@ti.kernel
def kernel_update_shape_gradients(particleNum: int, particle: ti.template(), node: ti.template(), element: ti.template()):
    # updated mesh: local coordinates are kept, gradients follow the current node coordinates
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            element.dshape_fn[np] = element.global_grad_shapefn(particle[np].element, particle[np].xi, node)


@ti.kernel
def kernel_reset_elements(element_cell: ti.template(), material_count: ti.template(), entity_count: ti.template()):
    for nc in element_cell:
        element_cell[nc]._reset()
    for nc, m in material_count:
        material_count[nc, m] = 0
    for nc, e in entity_count:
        entity_count[nc, e] = 0


@ti.kernel
def kernel_count_particles(particleNum: int, particle: ti.template(), matProps: ti.template(), element_cell: ti.template(),
                           material_count: ti.template(), entity_count: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            nc = particle[np].element
            materialID = int(particle[np].materialID)
            element_cell[nc].nparticles += 1
            element_cell[nc].particle_volume += particle[np].vol
            material_count[nc, materialID] += 1
            entity_count[nc, int(particle[np].entityID)] += 1
            if int(particle[np].mptype) == LIQUID:
                element_cell[nc].has_liquid = ti.u8(1)
            else:
                element_cell[nc].has_solid = ti.u8(1)


@ti.kernel
def kernel_element_offset(element_cell: ti.template(), material_count: ti.template(), max_material_num: int):
    ti.loop_config(serialize=True)
    for nc in range(element_cell.shape[0]):
        offset = 0
        if nc > 0:
            offset = element_cell[nc - 1].offset + element_cell[nc - 1].nparticles
        element_cell[nc].offset = offset
        element_cell[nc].cursor = offset
        nmaterials = 0
        for m in range(max_material_num):
            if material_count[nc, m] > 0:
                nmaterials += 1
        element_cell[nc].nmaterials = nmaterials
        element_cell[nc]._update_filling(FULLY_FILLED_RATIO)


@ti.kernel
def kernel_fill_particle_index(particleNum: int, particle: ti.template(), element_cell: ti.template(), particle_in_element: ti.template()):
    # serialized so that the particles of each element are stored in ascending order
    ti.loop_config(serialize=True)
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            nc = particle[np].element
            particle_in_element[element_cell[nc].cursor] = np
            element_cell[nc].cursor += 1


@ti.kernel
def kernel_particle_filling(particleNum: int, particle: ti.template(), element_cell: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            particle[np].filling = element_cell[particle[np].element].filling


@ti.kernel
def kernel_detect_free_surface(particleNum: int, particle: ti.template(), element_cell: ti.template(), cnum: ti.types.vector(3, int), dimension: int):
    # a liquid point lies on the free surface when its element touches an inactive element or the mesh boundary
    for np in range(particleNum):
        if int(particle[np].active) == 1 and int(particle[np].mptype) == LIQUID:
            nc = particle[np].element
            ie, je, ke = vectorize_id(nc, cnum)
            index = ti.Vector([ie, je, ke])
            surface = 0
            for d in ti.static(range(3)):
                for offset in ti.static([-1, 1]):
                    if d < dimension:
                        neighbour = index
                        neighbour[d] += offset
                        if neighbour[d] < 0 or neighbour[d] >= cnum[d]:
                            surface = 1
                        else:
                            neighbour_id = neighbour[0] + neighbour[1] * cnum[0] + neighbour[2] * cnum[0] * cnum[1]
                            if int(element_cell[neighbour_id].active) == 0:
                                surface = 1
            if surface == 1:
                particle[np].free_surface = ti.u8(1)
