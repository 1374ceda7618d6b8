import taichi as ti

from porotaichi.utils.constants import ZEROVEC3f, Threshold
from porotaichi.utils.ScalarFunction import sgn
from porotaichi.utils.TypeDefination import vec3f, vec3u8, mat3x3


@ti.dataclass
class MeshNode:
    x0: vec3f
    x: vec3f
    fix: vec3u8
    prescribed_v: vec3f
    rotated: ti.u8
    rotation: mat3x3
    liquid_density: float
    liquid_volume: float
    liquid_pressure: float
    solid_concentration: float

    @ti.func
    def _rotate_in(self, vector):
        return self.rotation @ vector

    @ti.func
    def _rotate_out(self, vector):
        return self.rotation.transpose() @ vector

    @ti.func
    def _constrain_velocity(self, velocity):
        constrained = velocity
        for d in ti.static(range(3)):
            if int(self.fix[d]) == 1:
                constrained[d] = self.prescribed_v[d]
        return constrained

    @ti.func
    def _constrain_acceleration(self, acceleration):
        local = acceleration
        if int(self.rotated) == 1:
            local = self._rotate_in(acceleration)
        for d in ti.static(range(3)):
            if int(self.fix[d]) == 1:
                local[d] = 0.
        if int(self.rotated) == 1:
            local = self._rotate_out(local)
        return local


@ti.dataclass
class EntityNode:
    m: float
    mw: float
    mg: float
    vol_s: float
    momentum: vec3f
    momentum_w: vec3f
    momentum_g: vec3f
    v: vec3f
    vw: vec3f
    vg: vec3f
    a: vec3f
    aw: vec3f
    ag: vec3f
    fint: vec3f
    fext: vec3f
    fgrav: vec3f
    fint_w: vec3f
    fgrav_w: vec3f
    fint_g: vec3f
    fgrav_g: vec3f
    drag_w: float
    drag_g: float
    fdrag_w: vec3f
    fdrag_g: vec3f
    fint_end: vec3f
    fint_w_end: vec3f
    fint_g_end: vec3f
    du: vec3f
    du_w: vec3f
    du_g: vec3f
    disp: vec3f

    @ti.func
    def _grid_reset(self):
        self.m = 0.
        self.mw = 0.
        self.mg = 0.
        self.vol_s = 0.
        self.fint = ZEROVEC3f
        self.fext = ZEROVEC3f
        self.fgrav = ZEROVEC3f
        self.fint_w = ZEROVEC3f
        self.fgrav_w = ZEROVEC3f
        self.fint_g = ZEROVEC3f
        self.fgrav_g = ZEROVEC3f
        self.drag_w = 0.
        self.drag_g = 0.
        self.fdrag_w = ZEROVEC3f
        self.fdrag_g = ZEROVEC3f

    @ti.func
    def _momentum_reset(self):
        self.momentum = ZEROVEC3f
        self.momentum_w = ZEROVEC3f
        self.momentum_g = ZEROVEC3f

    @ti.func
    def _end_force_reset(self):
        self.fint_end = ZEROVEC3f
        self.fint_w_end = ZEROVEC3f
        self.fint_g_end = ZEROVEC3f

    @ti.func
    def _compute_nodal_velocity(self):
        self.v = ZEROVEC3f
        self.vw = ZEROVEC3f
        self.vg = ZEROVEC3f
        if self.m > Threshold:
            self.v = self.momentum / self.m
        if self.mw > Threshold:
            self.vw = self.momentum_w / self.mw
        if self.mg > Threshold:
            self.vg = self.momentum_g / self.mg

    @ti.func
    def _damped_force(self, unbalanced_force, velocity, damp):
        force = unbalanced_force
        for d in ti.static(range(3)):
            if velocity[d] * force[d] > 0.:
                force[d] -= damp * ti.abs(force[d]) * sgn(velocity[d])
        return force

