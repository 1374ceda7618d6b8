import taichi as ti

from porotaichi.utils.constants import LIQUID, MIXTURE, ZEROVEC3f


@ti.kernel
def kernel_momentum_reset(entity_node: ti.template()):
    for ng, ne in entity_node:
        entity_node[ng, ne]._momentum_reset()


@ti.kernel
def kernel_apply_particle_velocity(particleNum: int, particle: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            particle[np]._apply_prescribed_velocity()


@ti.func
def update_liquid_point(np, particle, entity_node, element, dt):
    nc = particle[np].element
    ne = particle[np].entityID
    shape = element.shape_fn[np]
    acceleration = ZEROVEC3f
    for k in ti.static(range(element.nodes_per_element)):
        acceleration += shape[k] * entity_node[element.node_connectivity[nc][k], ne].aw
    particle[np].aw = acceleration
    particle[np].vw += dt[None] * acceleration
    for d in ti.static(range(3)):
        if int(particle[np].fix_v[d]) == 1:
            particle[np].vw[d] = particle[np].prescribed_v[d]
    for k in ti.static(range(element.nodes_per_element)):
        ng = element.node_connectivity[nc][k]
        entity_node[ng, ne].momentum_w += shape[k] * particle[np].mw * particle[np].vw


@ti.func
def update_mixture_point(np, particle, entity_node, element, dt, water: ti.template(), gas: ti.template()):
    nc = particle[np].element
    ne = particle[np].entityID
    shape = element.shape_fn[np]
    acceleration = ZEROVEC3f
    for k in ti.static(range(element.nodes_per_element)):
        acceleration += shape[k] * entity_node[element.node_connectivity[nc][k], ne].a
    particle[np].a = acceleration
    particle[np].v += dt[None] * acceleration

    if ti.static(water or gas):
        if int(particle[np].mptype) == MIXTURE:
            acceleration_w = ZEROVEC3f
            acceleration_g = ZEROVEC3f
            for k in ti.static(range(element.nodes_per_element)):
                ng = element.node_connectivity[nc][k]
                if ti.static(water):
                    acceleration_w += shape[k] * entity_node[ng, ne].aw
                if ti.static(gas):
                    acceleration_g += shape[k] * entity_node[ng, ne].ag
            particle[np].aw = acceleration_w
            particle[np].ag = acceleration_g
            particle[np].vw += dt[None] * acceleration_w
            particle[np].vg += dt[None] * acceleration_g

    particle[np]._apply_prescribed_velocity()
    for k in ti.static(range(element.nodes_per_element)):
        ng = element.node_connectivity[nc][k]
        entity_node[ng, ne].momentum += shape[k] * particle[np].m * particle[np].v
        if ti.static(water):
            entity_node[ng, ne].momentum_w += shape[k] * particle[np].mw * particle[np].vw
        if ti.static(gas):
            entity_node[ng, ne].momentum_g += shape[k] * particle[np].mg * particle[np].vg


@ti.kernel
def kernel_update_particle_velocity_map_momentum(particleNum: int, particle: ti.template(), entity_node: ti.template(), element: ti.template(),
                                                 dt: ti.template(), water: ti.template(), gas: ti.template(), two_layer: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            if ti.static(two_layer):
                if int(particle[np].mptype) == LIQUID:
                    update_liquid_point(np, particle, entity_node, element, dt)
                else:
                    update_mixture_point(np, particle, entity_node, element, dt, False, False)
            else:
                update_mixture_point(np, particle, entity_node, element, dt, water, gas)


@ti.kernel
def kernel_momentum_p2g(particleNum: int, particle: ti.template(), entity_node: ti.template(), element: ti.template(), two_layer: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            nc = particle[np].element
            ne = particle[np].entityID
            shape = element.shape_fn[np]
            velocity = particle[np].v
            if ti.static(two_layer):
                if int(particle[np].mptype) == LIQUID:
                    velocity = particle[np].vw
            for k in ti.static(range(element.nodes_per_element)):
                ng = element.node_connectivity[nc][k]
                entity_node[ng, ne].momentum += shape[k] * particle[np].m * velocity
                entity_node[ng, ne].momentum_w += shape[k] * particle[np].mw * particle[np].vw
                entity_node[ng, ne].momentum_g += shape[k] * particle[np].mg * particle[np].vg


@ti.func
def nodal_velocity(entity_node, node, ng, ne, rotated: ti.template()):
    # rotation in and out are paired so that the boundary condition is applied in the local frame
    if ti.static(rotated):
        if int(node[ng].rotated) == 1:
            entity_node[ng, ne].momentum = node[ng]._rotate_in(entity_node[ng, ne].momentum)
            entity_node[ng, ne].momentum_w = node[ng]._rotate_in(entity_node[ng, ne].momentum_w)
            entity_node[ng, ne].momentum_g = node[ng]._rotate_in(entity_node[ng, ne].momentum_g)

    entity_node[ng, ne]._compute_nodal_velocity()
    entity_node[ng, ne].v = node[ng]._constrain_velocity(entity_node[ng, ne].v)
    entity_node[ng, ne].vw = node[ng]._constrain_velocity(entity_node[ng, ne].vw)
    entity_node[ng, ne].vg = node[ng]._constrain_velocity(entity_node[ng, ne].vg)
    entity_node[ng, ne].momentum = entity_node[ng, ne].m * entity_node[ng, ne].v
    entity_node[ng, ne].momentum_w = entity_node[ng, ne].mw * entity_node[ng, ne].vw
    entity_node[ng, ne].momentum_g = entity_node[ng, ne].mg * entity_node[ng, ne].vg

    if ti.static(rotated):
        if int(node[ng].rotated) == 1:
            entity_node[ng, ne].momentum = node[ng]._rotate_out(entity_node[ng, ne].momentum)
            entity_node[ng, ne].momentum_w = node[ng]._rotate_out(entity_node[ng, ne].momentum_w)
            entity_node[ng, ne].momentum_g = node[ng]._rotate_out(entity_node[ng, ne].momentum_g)
            entity_node[ng, ne].v = node[ng]._rotate_out(entity_node[ng, ne].v)
            entity_node[ng, ne].vw = node[ng]._rotate_out(entity_node[ng, ne].vw)
            entity_node[ng, ne].vg = node[ng]._rotate_out(entity_node[ng, ne].vg)


@ti.kernel
def kernel_compute_nodal_velocity(entity_node: ti.template(), node: ti.template(), rotated: ti.template()):
    for ng, ne in entity_node:
        nodal_velocity(entity_node, node, ng, ne, rotated)


@ti.kernel
def kernel_rotate_momentum_round_trip(entity_node: ti.template(), node: ti.template()):
    for ng, ne in entity_node:
        if int(node[ng].rotated) == 1:
            entity_node[ng, ne].momentum = node[ng]._rotate_out(node[ng]._rotate_in(entity_node[ng, ne].momentum))


@ti.kernel
def kernel_map_velocity_to_particle(particleNum: int, particle: ti.template(), entity_node: ti.template(), element: ti.template(),
                                    velocity: ti.template()):
    for np in range(particleNum):
        if int(particle[np].active) == 1:
            nc = particle[np].element
            ne = particle[np].entityID
            shape = element.shape_fn[np]
            interpolated = ZEROVEC3f
            for k in ti.static(range(element.nodes_per_element)):
                interpolated += shape[k] * entity_node[element.node_connectivity[nc][k], ne].v
            velocity[np] = interpolated
