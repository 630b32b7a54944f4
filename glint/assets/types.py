# glint/assets/types.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class VertexLayout:
    """Describes vertex attributes for VAO creation."""

    attributes: List[str]  # e.g. ["in_pos", "in_normal", "in_uv"]
    format: str  # moderngl buffer format string e.g. "3f 3f 2f"
    stride_bytes: int  # e.g. 32


@dataclass(frozen=True)
class MeshData:
    """Raw mesh data loaded from disk, ready for GPU upload."""

    vertices: bytes
    vertex_layout: VertexLayout
    aabb: Tuple[Tuple[float, float, float], Tuple[float, float, float]]
    indices: Optional[bytes] = None
    index_count: int = 0

    @property
    def vertex_count(self) -> int:
        return len(self.vertices) // self.vertex_layout.stride_bytes


@dataclass(frozen=True)
class TextureData:
    """Raw texture data and metadata."""

    data: bytes
    width: int
    height: int
    components: int  # 3 (RGB) or 4 (RGBA)


@dataclass(frozen=True)
class MaterialData:
    """Surface parameters, as read from an .mtl library."""

    name: str
    base_color: Tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    roughness: float = 0.5
    metallic: float = 0.0


@dataclass(frozen=True)
class MeshPartData:
    """One drawable piece of a model: geometry plus the materials it uses."""

    name: str
    mesh: MeshData
    material_names: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ModelData:
    """A composite model: several mesh parts sharing a material library."""

    parts: List[MeshPartData]
    materials: Dict[str, MaterialData] = field(default_factory=dict)

    @property
    def vertex_count(self) -> int:
        return sum(part.mesh.vertex_count for part in self.parts)
