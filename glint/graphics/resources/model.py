from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Sequence, Union

import moderngl

from glint.assets.types import ModelData
from glint.graphics.resources.buffer import GPUMesh
from glint.graphics.resources.material import GPUMaterial


@dataclass(slots=True)
class MeshPart:
    """A drawable: one geometry and either one material or a list of them."""

    geometry: GPUMesh
    materials: Union[GPUMaterial, List[GPUMaterial]]

    @property
    def material_list(self) -> Sequence[GPUMaterial]:
        if isinstance(self.materials, list):
            return self.materials
        return [self.materials]


@dataclass(slots=True)
class ModelNode:
    """Scene-graph node of a composite model."""

    name: str
    mesh: MeshPart | None = None
    children: List[ModelNode] = field(default_factory=list)

    def add(self, child: ModelNode) -> ModelNode:
        self.children.append(child)
        return child


class GPUModel:
    """
    A composite node tree. Owns every geometry and material it references.
    """

    def __init__(self, root: ModelNode) -> None:
        self.root = root

    @classmethod
    def from_data(cls, ctx: moderngl.Context, data: ModelData, name: str = "") -> GPUModel:
        """
        Upload every part of `data`; one child node per part.

        If any upload fails, everything created so far is released
        before the error propagates.
        """
        root = ModelNode(name=name or "model")
        created: List[Union[GPUMesh, GPUMaterial]] = []

        try:
            for part in data.parts:
                materials = []
                for material_name in part.material_names:
                    material = GPUMaterial(ctx, data.materials[material_name])
                    created.append(material)
                    materials.append(material)

                geometry = GPUMesh(ctx, part.mesh)
                created.append(geometry)

                mesh = MeshPart(
                    geometry=geometry,
                    materials=materials[0] if len(materials) == 1 else materials,
                )
                root.add(ModelNode(name=part.name, mesh=mesh))
        except Exception:
            for resource in reversed(created):
                resource.release()
            raise

        return cls(root)

    def walk(self) -> Iterator[ModelNode]:
        """Depth-first, parents before children."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def meshes(self) -> Iterator[MeshPart]:
        for node in self.walk():
            if node.mesh is not None:
                yield node.mesh
