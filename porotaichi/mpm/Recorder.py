import os

import numpy as np

from porotaichi.mpm.SceneManager import myScene
from porotaichi.mpm.Simulation import Simulation
from porotaichi.utils.linalg import no_operation


class WriteFile:
    def __init__(self, sims: Simulation):
        self.particle_path = None
        self.grid_path = None

        self.save_particle = no_operation
        self.save_grid = no_operation

        self.mkdir(sims)
        self.manage_function(sims)

    def manage_function(self, sims: Simulation):
        if 'particle' in sims.monitor_type:
            self.save_particle = self.MonitorParticle
        if 'grid' in sims.monitor_type:
            self.save_grid = self.MonitorGrid

    def output(self, sims: Simulation, scene: myScene):
        self.save_particle(sims, scene)
        self.save_grid(sims, scene)

    def mkdir(self, sims: Simulation):
        if sims.path is None:
            raise RuntimeError("Keyword:: /SavePath/ should be set before recording")
        self.particle_path = os.path.join(sims.path, 'particles')
        self.grid_path = os.path.join(sims.path, 'grids')
        if not os.path.exists(self.particle_path):
            os.makedirs(self.particle_path)
        if not os.path.exists(self.grid_path):
            os.makedirs(self.grid_path)

    def MonitorParticle(self, sims: Simulation, scene: myScene):
        particle_num = int(scene.particleNum[0])
        particle = scene.particle
        output = {
            "t_current": sims.current_time,
            "step": sims.current_step,
            "body_num": particle_num,
            "materialID": particle.materialID.to_numpy()[0:particle_num],
            "entityID": particle.entityID.to_numpy()[0:particle_num],
            "active": particle.active.to_numpy()[0:particle_num],
            "element": particle.element.to_numpy()[0:particle_num],
            "position": particle.x.to_numpy()[0:particle_num],
            "displacement": particle.u.to_numpy()[0:particle_num],
            "velocity": particle.v.to_numpy()[0:particle_num],
            "velocity_water": particle.vw.to_numpy()[0:particle_num],
            "volume": particle.vol.to_numpy()[0:particle_num],
            "mass": particle.m.to_numpy()[0:particle_num],
            "porosity": particle.porosity.to_numpy()[0:particle_num],
            "saturation": particle.saturation.to_numpy()[0:particle_num],
            "stress": particle.stress.to_numpy()[0:particle_num],
            "strain": particle.strain.to_numpy()[0:particle_num],
            "water_pressure": particle.pw.to_numpy()[0:particle_num],
            "gas_pressure": particle.pg.to_numpy()[0:particle_num],
            "state_vars": scene.state_vars.to_numpy()[0:particle_num],
        }
        np.savez(os.path.join(self.particle_path, f'MPMParticle{sims.current_print:06d}'), **output)

    def MonitorGrid(self, sims: Simulation, scene: myScene):
        output = {
            "t_current": sims.current_time,
            "step": sims.current_step,
            "coords": scene.node.x.to_numpy(),
            "mass": scene.entity_node.m.to_numpy(),
            "momentum": scene.entity_node.momentum.to_numpy(),
            "velocity": scene.entity_node.v.to_numpy(),
            "liquid_pressure": scene.node.liquid_pressure.to_numpy(),
        }
        np.savez(os.path.join(self.grid_path, f'MPMGrid{sims.current_print:06d}'), **output)
