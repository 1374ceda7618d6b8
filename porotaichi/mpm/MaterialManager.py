import numpy as np
import taichi as ti

from porotaichi.mpm.materials.ConstitutiveModelBase import MODEL_ID
from porotaichi.mpm.materials.MaterialParameters import MaterialParameters, MaterialProperty, LIQUID_1PHASE, UNDRAINED_EFFECTIVE
from porotaichi.mpm.Simulation import Simulation
from porotaichi.utils.ObjectIO import DictIO
from porotaichi.utils.TypeDefination import vec6f


@ti.kernel
def kernel_dispatch_point(model: ti.template(), materialID: int, dt: ti.template(), stress: ti.types.vector(6, float), dstrain: ti.types.vector(6, float),
                          pressure: float, state_vars: ti.template(), output: ti.template()):
    # single point evaluation, the scratch row 0 of state_vars holds the state of the point
    for _ in range(1):
        new_stress, plastic_flag, tension_flag = model.ComputeStress(0, materialID, stress, dstrain, pressure, state_vars, dt)
        output[None] = new_stress


class MaterialManager(object):
    def __init__(self) -> None:
        self.matProps = None
        self.parameters = {}
        self.models = {}
        self.model_names = {}
        self.scratch_state = None
        self.scratch_stress = None
        self.scratch_dt = None

    def activate_material(self, sims: Simulation):
        if self.matProps is None:
            if sims.max_material_num <= 1:
                raise RuntimeError("Keyword:: /max_material_number/ should be set before adding materials")
            self.matProps = MaterialProperty.field(shape=sims.max_material_num)

    def model_handle(self, sims: Simulation, model):
        if model == "RigidBody":
            from porotaichi.mpm.materials.RigidBody import RigidBody
            return RigidBody(sims)
        elif model == "LinearElastic":
            from porotaichi.mpm.materials.infinitesimal_strain.LinearElastic import LinearElastic
            return LinearElastic(sims)
        elif model == "MohrCoulomb":
            from porotaichi.mpm.materials.infinitesimal_strain.MohrCoulomb import MohrCoulomb
            return MohrCoulomb(sims)
        elif model == "StrainSofteningMohrCoulomb":
            from porotaichi.mpm.materials.infinitesimal_strain.MohrCoulomb import StrainSofteningMohrCoulomb
            return StrainSofteningMohrCoulomb(sims)
        elif model == "Newtonian":
            from porotaichi.mpm.materials.strain_rate.Newtonian import Newtonian
            return Newtonian(sims)
        elif model == "Bingham":
            from porotaichi.mpm.materials.strain_rate.Bingham import Bingham
            return Bingham(sims)
        elif model == "FrictionalLiquid":
            from porotaichi.mpm.materials.strain_rate.FrictionalLiquid import FrictionalLiquid
            return FrictionalLiquid(sims)
        elif model == "UserDefined":
            from porotaichi.mpm.materials.UserDefined import UserDefined
            return UserDefined(sims)
        raise RuntimeError(f"Constitutive Model: {model} error! Only the following is aviliable:\n{list(MODEL_ID.keys())}")

    def add_material(self, sims: Simulation, model, material):
        if not model in MODEL_ID:
            raise RuntimeError(f"Constitutive Model: {model} error! Only the following is aviliable:\n{list(MODEL_ID.keys())}")
        self.activate_material(sims)
        if type(material) is list:
            for m in material:
                self.add_material(sims, model, m)
            return

        if not model in self.models:
            self.models[model] = self.model_handle(sims, model)
        constitutive_model = self.models[model]

        parameter = MaterialParameters(DictIO.GetEssential(material, "MaterialID"), material, gravity=sims.gravity_norm(), formulation=sims.formulation)
        constitutive_model.check_materialID(parameter.materialID, sims.max_material_num)
        if constitutive_model.is_liquid and parameter.mtype != LIQUID_1PHASE:
            raise RuntimeError(f"Keyword:: /MaterialType/ of material {parameter.materialID} should be 1-phase-liquid for the {model} model")
        if not constitutive_model.is_liquid and not constitutive_model.is_rigid and parameter.mtype == LIQUID_1PHASE:
            raise RuntimeError(f"Keyword:: /MaterialType: 1-phase-liquid/ of material {parameter.materialID} requires a liquid model ['Newtonian', 'Bingham', 'FrictionalLiquid']")
        if parameter.materialID in self.model_names and self.model_names[parameter.materialID] != model:
            self.models[self.model_names[parameter.materialID]].materialIDs.remove(parameter.materialID)

        parameter.finalize()
        constitutive_model.model_initialize(material)
        parameter.upload(self.matProps, constitutive_model.model_id())
        parameter.print_message()
        self.parameters[parameter.materialID] = parameter
        self.model_names[parameter.materialID] = model

    def LookupMaterial(self, materialID) -> MaterialParameters:
        if materialID <= 0:
            raise RuntimeError(f"MaterialID {materialID} should be larger than 0")
        if not materialID in self.parameters:
            raise RuntimeError(f"MaterialID {materialID} has not been defined")
        return self.parameters[materialID]

    def lookup_model(self, materialID):
        self.LookupMaterial(materialID)
        return self.models[self.model_names[materialID]]

    def number_of_phases(self):
        phases = [parameter.number_of_phases() for parameter in self.parameters.values()]
        return max(phases) if len(phases) > 0 else 1

    def has_undrained(self):
        return any(parameter.mtype == UNDRAINED_EFFECTIVE for parameter in self.parameters.values())

    def has_liquid(self):
        return any(parameter.is_liquid() for parameter in self.parameters.values())

    def has_external(self):
        return "UserDefined" in self.models

    def activate_scratch(self, sims: Simulation):
        if self.scratch_state is None:
            self.scratch_state = ti.field(float, shape=(1, sims.external_state_size))
            self.scratch_stress = ti.Vector.field(6, float, shape=())
            self.scratch_dt = ti.field(float, shape=())

    def ConstitutiveDispatch(self, sims: Simulation, materialID, dstrain, state_in=None, stress_in=None, pressure=0., dt=1.):
        """
        Evaluate the constitutive model of one material for a single point.
        Returns (stress, state variables, tangent or None). The tangent is only
        provided by external models that return one.
        """
        constitutive_model = self.lookup_model(materialID)
        self.activate_scratch(sims)
        stress_in = np.zeros(6) if stress_in is None else np.asarray(stress_in, dtype=float)
        state = np.zeros(sims.external_state_size)
        if state_in is not None:
            state_in = np.asarray(state_in, dtype=float)
            state[0:state_in.shape[0]] = state_in

        if constitutive_model.is_rigid:
            return np.zeros(6), state, None
        if constitutive_model.is_external:
            return constitutive_model.call(materialID, stress_in, dstrain, state)

        self.scratch_state.from_numpy(state.reshape(1, -1))
        self.scratch_dt[None] = dt
        kernel_dispatch_point(constitutive_model, materialID, self.scratch_dt, vec6f(stress_in.tolist()), vec6f(np.asarray(dstrain, dtype=float).tolist()), pressure,
                              self.scratch_state, self.scratch_stress)
        return self.scratch_stress[None].to_numpy(), self.scratch_state.to_numpy()[0], None

    def print_message(self):
        print(" Material Summary ".center(71, '-'))
        for materialID, parameter in sorted(self.parameters.items()):
            print((f"Material {materialID}: " + parameter.name + " / " + self.model_names[materialID] + " / " + parameter.material_type).ljust(67))
        print('\n')
