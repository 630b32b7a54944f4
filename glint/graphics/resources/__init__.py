from glint.graphics.resources.buffer import GPUMesh
from glint.graphics.resources.manager import GPUResourceManager
from glint.graphics.resources.material import GPUMaterial
from glint.graphics.resources.model import GPUModel, MeshPart, ModelNode
from glint.graphics.resources.settings import ResourceManagerSettings
from glint.graphics.resources.texture import GPUTexture
from glint.graphics.resources.types import (
    ResourceEntry,
    ResourceKind,
    ResourceStats,
)

__all__ = [
    "GPUResourceManager",
    "ResourceManagerSettings",
    "ResourceKind",
    "ResourceEntry",
    "ResourceStats",
    "GPUMesh",
    "GPUMaterial",
    "GPUModel",
    "GPUTexture",
    "MeshPart",
    "ModelNode",
]
