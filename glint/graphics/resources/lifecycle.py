"""
Per-kind sizing and release rules for registry entries.

Both functions branch on every ResourceKind explicitly; a kind without a
rule raises instead of leaking its native memory.
"""

from __future__ import annotations

from typing import Any

from glint.errors import UnknownResourceKindError
from glint.graphics.resources.types import ResourceKind

BYTES_PER_TEXEL = 4  # RGBA8
BYTES_PER_VERTEX = 12  # vec3 position


def _texture_size(handle: Any) -> int:
    width = getattr(handle, "width", 0) or 0
    height = getattr(handle, "height", 0) or 0
    return width * height * BYTES_PER_TEXEL


def _geometry_size(handle: Any) -> int:
    return (getattr(handle, "vertex_count", 0) or 0) * BYTES_PER_VERTEX


def estimate_size(kind: ResourceKind, handle: Any) -> int:
    """Best-effort footprint in bytes; 0 when the handle does not say."""
    if kind is ResourceKind.TEXTURE:
        return _texture_size(handle)
    if kind is ResourceKind.GEOMETRY:
        return _geometry_size(handle)
    if kind is ResourceKind.MATERIAL:
        return 0
    if kind is ResourceKind.MODEL:
        meshes = getattr(handle, "meshes", None)
        if meshes is None:
            return 0
        return sum(_geometry_size(mesh.geometry) for mesh in meshes())

    raise UnknownResourceKindError(kind)


def release_handle(kind: ResourceKind, handle: Any) -> int:
    """
    Free the native resources behind `handle`.

    Models release every mesh's geometry and each of its materials.
    Returns the number of release() calls made.
    """
    if kind in (ResourceKind.TEXTURE, ResourceKind.GEOMETRY, ResourceKind.MATERIAL):
        handle.release()
        return 1

    if kind is ResourceKind.MODEL:
        released = 0
        for mesh in handle.meshes():
            mesh.geometry.release()
            released += 1
            for material in mesh.material_list:
                material.release()
                released += 1
        return released

    raise UnknownResourceKindError(kind)
