import taichi as ti

from porotaichi.utils.ObjectIO import DictIO


MODEL_ID = {"RigidBody": 0, "LinearElastic": 1, "MohrCoulomb": 2, "StrainSofteningMohrCoulomb": 3,
            "Newtonian": 4, "Bingham": 5, "FrictionalLiquid": 6, "UserDefined": 7}


class ConstitutiveModelBase:
    model_name = None

    def __init__(self) -> None:
        self.matProps = None
        self.materialIDs = []
        self.is_rigid = False
        self.is_liquid = False
        self.is_external = False

    def add_material(self, max_material_num, material_struct):
        self.matProps = material_struct.field(shape=max_material_num)

    def model_id(self):
        return MODEL_ID[self.model_name]

    def check_materialID(self, materialID, max_material_num):
        if materialID <= 0:
            raise RuntimeError(f"MaterialID {materialID} should be larger than 0")
        if materialID > max_material_num - 1:
            raise RuntimeError(f"Keyword:: /max_material_number/ should be set as {materialID + 1}")

    def model_initialize(self, material):
        raise NotImplementedError

    def register(self, material):
        materialID = DictIO.GetEssential(material, 'MaterialID')
        self.check_materialID(materialID, self.matProps.shape[0])
        if materialID in self.materialIDs:
            print("Previous Material Property will be overwritten!")
        else:
            self.materialIDs.append(materialID)
        return materialID

    @ti.func
    def UnloadingStiffness(self, np, materialID, state_vars):
        return 0.
