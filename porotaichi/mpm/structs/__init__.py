from porotaichi.mpm.structs.Particle import MaterialPoint
from porotaichi.mpm.structs.GridNode import MeshNode, EntityNode
from porotaichi.mpm.structs.Element import ElementCell
