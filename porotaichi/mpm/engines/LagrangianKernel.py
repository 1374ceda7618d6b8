import taichi as ti

from porotaichi.utils.constants import LIQUID, MIXTURE, Threshold, ZEROVEC3f, EYE
from porotaichi.utils.TypeDefination import vec3f


@ti.func
def voigt_divergence(stress, grad):
    # B^T sigma for a single node
    return vec3f(stress[0] * grad[0] + stress[3] * grad[1] + stress[5] * grad[2],
                 stress[3] * grad[0] + stress[1] * grad[1] + stress[4] * grad[2],
                 stress[5] * grad[0] + stress[4] * grad[1] + stress[2] * grad[2])


@ti.func
def node_gradient(dshape, k: ti.template()):
    return vec3f(dshape[k, 0], dshape[k, 1], dshape[k, 2])


@ti.kernel
def kernel_grid_reset(entity_node: ti.template()):
    for ng, ne in entity_node:
        entity_node[ng, ne]._grid_reset()


@ti.kernel
def kernel_end_force_reset(entity_node: ti.template()):
    for ng, ne in entity_node:
        entity_node[ng, ne]._end_force_reset()


@ti.kernel
def kernel_mass_p2g(particleNum: int, particle: ti.template(), entity_node: ti.template(), element: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            nc = particle[np].element
            ne = particle[np].entityID
            shape = element.shape_fn[np]
            for k in ti.static(range(element.nodes_per_element)):
                ng = element.node_connectivity[nc][k]
                entity_node[ng, ne].m += shape[k] * particle[np].m
                entity_node[ng, ne].mw += shape[k] * particle[np].mw
                entity_node[ng, ne].mg += shape[k] * particle[np].mg
                if int(particle[np].mptype) != LIQUID:
                    entity_node[ng, ne].vol_s += shape[k] * particle[np].vol


@ti.func
def single_point_internal_force(np, particle, entity_node, element, water: ti.template(), gas: ti.template(), end: ti.template()):
    nc = particle[np].element
    ne = particle[np].entityID
    dshape = element.dshape_fn[np]
    volume = particle[np].vol
    stress = particle[np]._total_stress()
    n = particle[np].porosity
    Sr = particle[np].saturation
    is_mixture = int(particle[np].mptype) == MIXTURE
    for k in ti.static(range(element.nodes_per_element)):
        ng = element.node_connectivity[nc][k]
        grad = node_gradient(dshape, k)
        fint = voigt_divergence(stress, grad) * volume
        if ti.static(end):
            entity_node[ng, ne].fint_end += fint
        else:
            entity_node[ng, ne].fint += fint
        if ti.static(water):
            if is_mixture:
                fint_w = n * Sr * particle[np].pw * volume * grad
                if ti.static(end):
                    entity_node[ng, ne].fint_w_end += fint_w
                else:
                    entity_node[ng, ne].fint_w += fint_w
        if ti.static(gas):
            if is_mixture:
                fint_g = n * (1. - Sr) * particle[np].pg * volume * grad
                if ti.static(end):
                    entity_node[ng, ne].fint_g_end += fint_g
                else:
                    entity_node[ng, ne].fint_g += fint_g


@ti.kernel
def kernel_force_p2g(particleNum: int, particle: ti.template(), entity_node: ti.template(), element: ti.template(), gravity: ti.types.vector(3, float),
                     water: ti.template(), gas: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            single_point_internal_force(np, particle, entity_node, element, water, gas, False)

            nc = particle[np].element
            ne = particle[np].entityID
            shape = element.shape_fn[np]
            volume = particle[np].vol
            n = particle[np].porosity
            Sr = particle[np].saturation
            is_mixture = int(particle[np].mptype) == MIXTURE
            for k in ti.static(range(element.nodes_per_element)):
                ng = element.node_connectivity[nc][k]
                entity_node[ng, ne].fext += shape[k] * particle[np].external_force
                entity_node[ng, ne].fgrav += shape[k] * particle[np].m * gravity
                if ti.static(water):
                    entity_node[ng, ne].fgrav_w += shape[k] * particle[np].mw * gravity
                    if is_mixture and particle[np].conductivity > Threshold:
                        nw = n * Sr
                        entity_node[ng, ne].drag_w += shape[k] * nw * nw * particle[np].weight_w / particle[np].conductivity * volume
                if ti.static(gas):
                    entity_node[ng, ne].fgrav_g += shape[k] * particle[np].mg * gravity
                    if is_mixture and particle[np].conductivity_g > Threshold:
                        ng_ = n * (1. - Sr)
                        entity_node[ng, ne].drag_g += shape[k] * ng_ * ng_ * particle[np].weight_g / particle[np].conductivity_g * volume


@ti.kernel
def kernel_internal_force_end(particleNum: int, particle: ti.template(), entity_node: ti.template(), element: ti.template(),
                              water: ti.template(), gas: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            single_point_internal_force(np, particle, entity_node, element, water, gas, True)


@ti.func
def two_layer_internal_force(np, particle, entity_node, element, end: ti.template()):
    nc = particle[np].element
    ne = particle[np].entityID
    dshape = element.dshape_fn[np]
    volume = particle[np].vol
    if int(particle[np].mptype) == LIQUID:
        stress = particle[np].stress + particle[np].pw * EYE
        for k in ti.static(range(element.nodes_per_element)):
            ng = element.node_connectivity[nc][k]
            fint = voigt_divergence(stress, node_gradient(dshape, k)) * volume
            if ti.static(end):
                entity_node[ng, ne].fint_w_end += fint
            else:
                entity_node[ng, ne].fint_w += fint
    else:
        # the solid skeleton carries the partial liquid pressure of the surrounding liquid
        stress = particle[np].stress + ((1. - particle[np].porosity) * particle[np].pw + particle[np].pbv) * EYE
        for k in ti.static(range(element.nodes_per_element)):
            ng = element.node_connectivity[nc][k]
            fint = voigt_divergence(stress, node_gradient(dshape, k)) * volume
            if ti.static(end):
                entity_node[ng, ne].fint_end += fint
            else:
                entity_node[ng, ne].fint += fint


@ti.kernel
def kernel_force_p2g_two_layer(particleNum: int, particle: ti.template(), entity_node: ti.template(), element: ti.template(),
                               gravity: ti.types.vector(3, float)):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            two_layer_internal_force(np, particle, entity_node, element, False)

            nc = particle[np].element
            ne = particle[np].entityID
            shape = element.shape_fn[np]
            volume = particle[np].vol
            n = particle[np].porosity
            for k in ti.static(range(element.nodes_per_element)):
                ng = element.node_connectivity[nc][k]
                if int(particle[np].mptype) == LIQUID:
                    entity_node[ng, ne].fgrav_w += shape[k] * (particle[np].mw * gravity + particle[np].external_force)
                else:
                    entity_node[ng, ne].fext += shape[k] * particle[np].external_force
                    entity_node[ng, ne].fgrav += shape[k] * particle[np].m * gravity
                    if particle[np].conductivity > Threshold:
                        entity_node[ng, ne].drag_w += shape[k] * n * n / particle[np].conductivity * volume


@ti.kernel
def kernel_internal_force_end_two_layer(particleNum: int, particle: ti.template(), entity_node: ti.template(), element: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            two_layer_internal_force(np, particle, entity_node, element, True)


@ti.kernel
def kernel_compute_nodal_acceleration(entity_node: ti.template(), node: ti.template(), damp: float, mass_scaling: float,
                                      water: ti.template(), gas: ti.template()):
    for ng, ne in entity_node:
        aw = ZEROVEC3f
        ag = ZEROVEC3f
        if ti.static(water):
            if entity_node[ng, ne].mw > Threshold:
                fdrag = entity_node[ng, ne].drag_w * (entity_node[ng, ne].vw - entity_node[ng, ne].v)
                force = entity_node[ng, ne].fgrav_w - entity_node[ng, ne].fint_w - fdrag
                force = entity_node[ng, ne]._damped_force(force, entity_node[ng, ne].vw, damp)
                aw = node[ng]._constrain_acceleration(force / (mass_scaling * entity_node[ng, ne].mw))
                entity_node[ng, ne].fdrag_w = fdrag
        if ti.static(gas):
            if entity_node[ng, ne].mg > Threshold:
                fdrag = entity_node[ng, ne].drag_g * (entity_node[ng, ne].vg - entity_node[ng, ne].v)
                force = entity_node[ng, ne].fgrav_g - entity_node[ng, ne].fint_g - fdrag
                force = entity_node[ng, ne]._damped_force(force, entity_node[ng, ne].vg, damp)
                ag = node[ng]._constrain_acceleration(force / (mass_scaling * entity_node[ng, ne].mg))
                entity_node[ng, ne].fdrag_g = fdrag

        a = ZEROVEC3f
        if entity_node[ng, ne].m > Threshold:
            force = entity_node[ng, ne].fext + entity_node[ng, ne].fgrav + entity_node[ng, ne].fgrav_w + entity_node[ng, ne].fgrav_g - entity_node[ng, ne].fint
            force = entity_node[ng, ne]._damped_force(force, entity_node[ng, ne].v, damp)
            inertia = mass_scaling * (entity_node[ng, ne].mw * aw + entity_node[ng, ne].mg * ag)
            a = node[ng]._constrain_acceleration((force - inertia) / (mass_scaling * entity_node[ng, ne].m))
        entity_node[ng, ne].a = a
        entity_node[ng, ne].aw = aw
        entity_node[ng, ne].ag = ag


@ti.kernel
def kernel_compute_nodal_acceleration_two_layer(entity_node: ti.template(), node: ti.template(), damp: float, mass_scaling: float, gravity: float):
    for ng, ne in entity_node:
        drag = 0.
        if entity_node[ng, ne].mw > Threshold and entity_node[ng, ne].m > Threshold:
            drag = entity_node[ng, ne].drag_w * node[ng].liquid_density * gravity
        fdrag = drag * (entity_node[ng, ne].vw - entity_node[ng, ne].v)
        entity_node[ng, ne].fdrag_w = fdrag

        aw = ZEROVEC3f
        if entity_node[ng, ne].mw > Threshold:
            force = entity_node[ng, ne].fgrav_w - entity_node[ng, ne].fint_w - fdrag
            force = entity_node[ng, ne]._damped_force(force, entity_node[ng, ne].vw, damp)
            aw = node[ng]._constrain_acceleration(force / (mass_scaling * entity_node[ng, ne].mw))

        a = ZEROVEC3f
        if entity_node[ng, ne].m > Threshold:
            force = entity_node[ng, ne].fext + entity_node[ng, ne].fgrav - entity_node[ng, ne].fint + fdrag
            force = entity_node[ng, ne]._damped_force(force, entity_node[ng, ne].v, damp)
            a = node[ng]._constrain_acceleration(force / (mass_scaling * entity_node[ng, ne].m))
        entity_node[ng, ne].a = a
        entity_node[ng, ne].aw = aw
