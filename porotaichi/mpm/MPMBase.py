import time

from porotaichi.mpm.engines.Engine import Engine
from porotaichi.mpm.Recorder import WriteFile
from porotaichi.mpm.SceneManager import myScene
from porotaichi.mpm.Simulation import Simulation
from porotaichi.utils.constants import Threshold


class Solver:
    sims: Simulation
    engine: Engine
    recorder: WriteFile

    def __init__(self, sims, engine, recorder):
        self.sims = sims
        self.engine = engine
        self.recorder = recorder

        self.last_save_time = 0.
        self.postprocess = []
        self.converged = False

    def set_callback_function(self, functions):
        if not functions is None:
            if isinstance(functions, list):
                for f in functions:
                    self.postprocess.append(f)
            elif isinstance(functions, dict):
                for f in functions.values():
                    self.postprocess.append(f)
            elif callable(functions):
                self.postprocess.append(functions)

    def save_file(self, scene):
        if self.recorder is None:
            return
        print('# Step =', self.sims.current_step, '   ', 'Save Number =', self.sims.current_print, '   ', 'Simulation time =', self.sims.current_time, '\n')
        self.recorder.output(self.sims, scene)
        self.last_save_time = 1. * self.sims.current_time
        self.sims.current_print += 1

    def EmitStepResult(self, scene):
        for functions in self.postprocess:
            functions(self.sims.current_step, self.sims, scene)

    def compile(self, scene):
        print("Compiling first ... ...")
        start_time = time.time()
        self.core(scene)
        end_time = time.time()
        print(f'Compiling time = {end_time - start_time} \n')

    def Solver(self, scene: myScene):
        print("#", " Start Simulation ".center(67,"="), "#")

        self.engine.pre_calculation(self.sims, scene)
        self.engine.timestep.update(self.sims, scene, self.engine.water, self.engine.two_layer)
        if self.sims.current_time < Threshold:
            self.save_file(scene)

        start_time = time.time()
        self.compile(scene)
        while not self.converged:
            self.core(scene)

        end_time = time.time()
        if self.sims.current_time - self.last_save_time > Threshold:
            self.save_file(scene)

        print(('Number of steps = ' + str(self.sims.current_step)).ljust(67))
        print(('Simulation time = ' + str(self.sims.current_time)).ljust(67))
        print(('Plastic points of the last step = ' + str(self.engine.diagnostics.counters()["plastic"])).ljust(67))
        print('Physical time = ', end_time - start_time)
        print("#", " End Simulation ".center(67,"="), "#", '\n')

    def core(self, scene: myScene):
        """
        One explicit step: the solution cycle with the current increment,
        then the convergence and divergence checks, the step result and the
        increment of the next step
        """
        if self.converged:
            return
        self.sims.current_step += 1
        self.engine.compute(self.sims, scene)
        self.sims.current_time += self.sims.delta

        self.converged = self.engine.convergence.ConvergenceCheck(self.sims, self.engine.diagnostics, self.engine.state)
        self.engine.convergence.DivergenceCheck(self.sims, self.engine.diagnostics, self.engine.state)
        self.EmitStepResult(scene)

        if self.sims.current_time - self.last_save_time + 0.1 * self.sims.delta > self.sims.save_interval:
            self.save_file(scene)
        if not self.converged:
            self.engine.timestep.update(self.sims, scene, self.engine.water, self.engine.two_layer)
