# glint/graphics/resources/types.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ResourceKind(str, Enum):
    """What a registry entry holds; decides how it is sized and released."""

    TEXTURE = "texture"
    GEOMETRY = "geometry"
    MATERIAL = "material"
    MODEL = "model"


@dataclass(slots=True)
class ResourceEntry:
    """One managed GPU resource. The registry is the only owner of `handle`."""

    key: str
    kind: ResourceKind
    handle: Any
    last_accessed_at: float
    approximate_size_bytes: int = 0

    def idle_for(self, now: float) -> float:
        return now - self.last_accessed_at


@dataclass(frozen=True, slots=True)
class ResourceStats:
    """Aggregate snapshot, recomputed on the stats interval."""

    textures_loaded: int = 0
    texture_memory_mb: float = 0.0
    geometries_loaded: int = 0
    geometry_memory_mb: float = 0.0
    materials_loaded: int = 0
    models_loaded: int = 0
    draw_calls: int = 0
    triangles: int = 0
    fps: int = 0
