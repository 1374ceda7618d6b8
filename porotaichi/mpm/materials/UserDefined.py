import importlib

import numpy as np

from porotaichi.mpm.materials.ConstitutiveModelBase import ConstitutiveModelBase
from porotaichi.mpm.Simulation import Simulation
from porotaichi.utils.ObjectIO import DictIO


def bind_external_function(binding):
    """
    Resolve a "module:function" string into a callable of the form
    f(stress, dstrain, statev, props) -> (stress, statev[, tangent])
    """
    if callable(binding):
        return binding
    if not isinstance(binding, str) or binding.count(':') != 1:
        raise RuntimeError(f"Keyword:: /Function: {binding}/ must be given as 'module:function'")
    module_name, function_name = binding.split(':')
    try:
        module = importlib.import_module(module_name)
    except ImportError as error:
        raise RuntimeError(f"External constitutive model /{binding}/ can not be loaded: {error}") from error
    function = getattr(module, function_name, None)
    if function is None or not callable(function):
        raise RuntimeError(f"External constitutive model /{binding}/ is not a callable")
    return function


class UserDefined(ConstitutiveModelBase):
    model_name = "UserDefined"

    def __init__(self, sims: Simulation):
        super().__init__()
        self.is_external = True
        self.props_size = sims.external_props_size
        self.state_size = sims.external_state_size
        self.functions = {}
        self.props = {}

    def model_initialize(self, material):
        materialID = DictIO.GetEssential(material, 'MaterialID')
        if materialID <= 0:
            raise RuntimeError(f"MaterialID {materialID} should be larger than 0")
        if not materialID in self.materialIDs:
            self.materialIDs.append(materialID)
        self.functions[materialID] = bind_external_function(DictIO.GetEssential(material, 'Function'))

        properties = np.asarray(DictIO.GetAlternative(material, 'Properties', []), dtype=float)
        if properties.shape[0] > self.props_size:
            raise RuntimeError(f"Keyword:: /Properties/ holds {properties.shape[0]} values, /external_props_size/ is {self.props_size}")
        self.props[materialID] = np.zeros(self.props_size)
        self.props[materialID][0:properties.shape[0]] = properties
        self.print_message(materialID, material)

    def print_message(self, materialID, material):
        print(" Constitutive Model Information ".center(71, '-'))
        print('Constitutive model = User Defined Model')
        print("Model ID: ", materialID)
        print("Function: ", DictIO.GetEssential(material, 'Function'), '\n')

    def compute(self, materialID, stress, dstrain, statev):
        stress_out, statev_out, tangent = self.call(materialID, stress, dstrain, statev)
        return stress_out, statev_out

    def call(self, materialID, stress, dstrain, statev):
        result = self.functions[materialID](np.array(stress, dtype=float), np.array(dstrain, dtype=float),
                                            np.array(statev, dtype=float), self.props[materialID])
        if not isinstance(result, (tuple, list)) or len(result) not in [2, 3]:
            raise RuntimeError(f"External constitutive model of material {materialID} must return (stress, statev[, tangent])")
        stress_out = np.asarray(result[0], dtype=float).reshape(6)
        statev_out = np.asarray(result[1], dtype=float).reshape(-1)
        if statev_out.shape[0] != self.state_size:
            state = np.zeros(self.state_size)
            size = min(self.state_size, statev_out.shape[0])
            state[0:size] = statev_out[0:size]
            statev_out = state
        tangent = None if len(result) == 2 else np.asarray(result[2], dtype=float)
        return stress_out, statev_out, tangent

    def compute_stress(self, materialID, active, materials, stress, dstrain, statev):
        """
        Host-side update over all active particles of one external material
        """
        selected = np.where(np.logical_and(active == 1, materials == materialID))[0]
        for np_ in selected:
            stress[np_], statev[np_] = self.compute(materialID, stress[np_], dstrain[np_], statev[np_])
        return selected
