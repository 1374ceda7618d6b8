import taichi as ti

from porotaichi.utils.constants import ZEROVEC3f, ZEROVEC6f, EYE, PHASE_SOLID
from porotaichi.utils.TypeDefination import vec3f, vec3u8, vec6f


@ti.dataclass
class MaterialPoint:
    active: ti.u8
    materialID: int
    entityID: int
    element: int
    mptype: ti.u8
    phase_status: ti.u8
    free_surface: ti.u8
    fix_v: vec3u8
    x: vec3f
    xi: vec3f
    u: vec3f
    m: float
    mw: float
    mg: float
    vol: float
    vol0: float
    density: float
    v: vec3f
    vw: vec3f
    vg: vec3f
    a: vec3f
    aw: vec3f
    ag: vec3f
    prescribed_v: vec3f
    external_force: vec3f
    stress: vec6f
    stress0: vec6f
    strain: vec6f
    dstrain: vec6f
    spin: vec3f
    pw: float
    pw0: float
    pg: float
    pg0: float
    pbv: float
    dpw: float
    dstrain_w: float
    dstrain_g: float
    flux_w: float
    flux_g: float
    porosity: float
    saturation: float
    dsaturation: float
    conductivity: float
    conductivity_g: float
    bulk_water: float
    weight_dry: float
    weight_w: float
    weight_g: float
    weight_mix: float
    fbody: vec3f
    temperature: float
    air_in_water: float
    vapour_in_gas: float
    unloading_stiffness: float
    filling: float

    @ti.func
    def _set_essential(self, materialID, entityID, mptype, volume, position, init_v, fix_v, init_stress, porosity, saturation, temperature):
        self.active = ti.u8(1)
        self.materialID = materialID
        self.entityID = entityID
        self.element = -1
        self.mptype = ti.u8(mptype)
        self.phase_status = ti.u8(PHASE_SOLID)
        self.free_surface = ti.u8(0)
        self.fix_v = ti.cast(fix_v, ti.u8)
        self.x = position
        self.u = ZEROVEC3f
        self.vol = float(volume)
        self.vol0 = float(volume)
        self.v = init_v
        self.vw = init_v
        self.vg = init_v
        self.prescribed_v = init_v
        self.stress = init_stress
        self.stress0 = init_stress
        self.strain = ZEROVEC6f
        self.porosity = float(porosity)
        self.saturation = float(saturation)
        self.temperature = float(temperature)

    @ti.func
    def _total_stress(self):
        pore_pressure = self.saturation * self.pw + (1. - self.saturation) * self.pg
        return self.stress + (pore_pressure + self.pbv) * EYE

    @ti.func
    def _is_prescribed(self):
        return int(self.fix_v[0]) == 1 and int(self.fix_v[1]) == 1 and int(self.fix_v[2]) == 1

    @ti.func
    def _apply_prescribed_velocity(self):
        for d in ti.static(range(3)):
            if int(self.fix_v[d]) == 1:
                self.v[d] = self.prescribed_v[d]
                self.vw[d] = self.prescribed_v[d]
                self.vg[d] = self.prescribed_v[d]

    @ti.func
    def _deactivate(self):
        self.active = ti.u8(0)
        self.element = -1
        self.v = ZEROVEC3f
        self.vw = ZEROVEC3f
        self.vg = ZEROVEC3f
