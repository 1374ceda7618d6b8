import taichi as ti


@ti.dataclass
class ElementCell:
    active: ti.u8
    nparticles: int
    offset: int
    cursor: int
    volume: float
    particle_volume: float
    filling: float
    fully_filled: ti.u8
    nmaterials: int
    has_solid: ti.u8
    has_liquid: ti.u8
    lmin: float
    rate_vol: float

    @ti.func
    def _reset(self):
        self.active = ti.u8(0)
        self.nparticles = 0
        self.cursor = 0
        self.particle_volume = 0.
        self.filling = 0.
        self.fully_filled = ti.u8(0)
        self.nmaterials = 0
        self.has_solid = ti.u8(0)
        self.has_liquid = ti.u8(0)

    @ti.func
    def _update_filling(self, threshold):
        if self.nparticles > 0:
            self.active = ti.u8(1)
        if self.volume > 0.:
            self.filling = self.particle_volume / self.volume
        if self.filling > threshold:
            self.fully_filled = ti.u8(1)

    @ti.func
    def _is_homogeneous(self):
        return self.nmaterials == 1
