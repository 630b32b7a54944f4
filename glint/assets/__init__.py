from glint.assets.loader import AssetLoader, LoadResult
from glint.assets.types import (
    MaterialData,
    MeshData,
    MeshPartData,
    ModelData,
    TextureData,
    VertexLayout,
)

__all__ = [
    "AssetLoader",
    "LoadResult",
    "MeshData",
    "MeshPartData",
    "ModelData",
    "MaterialData",
    "TextureData",
    "VertexLayout",
]
