import math
import struct
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from glint.assets.importers.base import AssetImporter, ProgressCallback
from glint.assets.types import (
    MaterialData,
    MeshData,
    MeshPartData,
    ModelData,
    VertexLayout,
)

VERTEX_FORMAT = "<3f 3f 2f"

LAYOUT = VertexLayout(
    attributes=["in_pos", "in_normal", "in_uv"],
    format="3f 3f 2f",
    stride_bytes=struct.calcsize("<3f3f2f"),
)


class _PartBuilder:
    """Accumulates flat-expanded vertices for one object/material run."""

    def __init__(self, name: str, material: str | None) -> None:
        self.name = name
        self.material = material
        self.vertices: List[bytes] = []
        self.lo = [float("inf")] * 3
        self.hi = [float("-inf")] * 3

    def add(
        self,
        pos: Tuple[float, float, float],
        normal: Tuple[float, float, float],
        uv: Tuple[float, float],
    ) -> None:
        for axis in range(3):
            self.lo[axis] = min(self.lo[axis], pos[axis])
            self.hi[axis] = max(self.hi[axis], pos[axis])
        self.vertices.append(struct.pack(VERTEX_FORMAT, *pos, *normal, *uv))

    def build(self) -> MeshPartData:
        mesh = MeshData(
            vertices=b"".join(self.vertices),
            vertex_layout=LAYOUT,
            aabb=(
                (self.lo[0], self.lo[1], self.lo[2]),
                (self.hi[0], self.hi[1], self.hi[2]),
            ),
        )
        names = [self.material] if self.material else []
        return MeshPartData(name=self.name, mesh=mesh, material_names=names)


class ObjModelImporter(AssetImporter):
    """
    Wavefront OBJ -> ModelData.

    Each `o`/`g` statement starts a new part, and so does a `usemtl`
    switch in the middle of one. Polygons are fan-triangulated.
    Materials come from the `mtllib` next to the file when it exists.
    """

    PROGRESS_STEP = 1000  # lines between progress reports

    def import_file(
        self, path: Path, progress: Optional[ProgressCallback] = None
    ) -> ModelData:
        lines = path.read_text(encoding="utf-8").splitlines()
        total = len(lines)

        positions: List[Tuple[float, float, float]] = []
        normals: List[Tuple[float, float, float]] = []
        uvs: List[Tuple[float, float]] = []

        materials: Dict[str, MaterialData] = {}
        parts: List[MeshPartData] = []
        part = _PartBuilder(path.stem, None)

        for line_no, raw in enumerate(lines, start=1):
            if progress is not None and line_no % self.PROGRESS_STEP == 0:
                progress(line_no, total)

            line = raw.strip()
            if not line or line.startswith("#"):
                continue

            tokens = line.split()
            tag = tokens[0]

            if tag == "v":
                px, py, pz = map(float, tokens[1:4])
                positions.append((px, py, pz))

            elif tag == "vn":
                nx, ny, nz = map(float, tokens[1:4])
                normals.append((nx, ny, nz))

            elif tag == "vt":
                u, v = map(float, tokens[1:3])
                uvs.append((u, v))

            elif tag in ("o", "g"):
                name = tokens[1] if len(tokens) > 1 else f"part{len(parts)}"
                self._flush(part, parts)
                part = _PartBuilder(name, part.material)

            elif tag == "usemtl":
                material = tokens[1] if len(tokens) > 1 else None
                if part.vertices:
                    self._flush(part, parts)
                    part = _PartBuilder(f"{part.name}.{material}", material)
                else:
                    part.material = material

            elif tag == "mtllib" and len(tokens) > 1:
                library = path.parent / tokens[1]
                if library.exists():
                    materials.update(parse_mtl(library))

            elif tag == "f":
                if len(tokens) < 4:
                    raise ValueError(
                        f"Face with fewer than 3 vertices at {path}:{line_no}"
                    )

                corners = [self._parse_face_vertex(t) for t in tokens[1:]]
                # Fan triangulation: (0, i, i + 1)
                for i in range(1, len(corners) - 1):
                    for v_idx, vt_idx, vn_idx in (
                        corners[0],
                        corners[i],
                        corners[i + 1],
                    ):
                        normal = (
                            normals[vn_idx]
                            if vn_idx is not None
                            else (0.0, 1.0, 0.0)
                        )
                        uv = uvs[vt_idx] if vt_idx is not None else (0.0, 0.0)
                        part.add(positions[v_idx], normal, uv)

        self._flush(part, parts)

        if not parts:
            raise ValueError(f"No geometry found in OBJ: {path}")

        for p in parts:
            for name in p.material_names:
                materials.setdefault(name, MaterialData(name=name))

        if progress is not None:
            progress(total, total)

        return ModelData(parts=parts, materials=materials)

    def _flush(self, part: _PartBuilder, out: List[MeshPartData]) -> None:
        if part.vertices:
            out.append(part.build())

    def _parse_index(self, val: str) -> int | None:
        if not val:
            return None
        idx = int(val)
        return idx - 1 if idx > 0 else idx

    def _parse_face_vertex(
        self, token: str
    ) -> Tuple[int, int | None, int | None]:
        parts = token.split("/")
        v = self._parse_index(parts[0])
        vt = (
            self._parse_index(parts[1]) if len(parts) > 1 and parts[1] else None
        )
        vn = (
            self._parse_index(parts[2]) if len(parts) > 2 and parts[2] else None
        )

        if v is None:
            raise ValueError(f"Invalid vertex index in token: {token}")

        return v, vt, vn


def parse_mtl(path: Path) -> Dict[str, MaterialData]:
    """
    Minimal .mtl reader: Kd, d, Ns and the PBR extensions Pr/Pm.
    Unknown statements are ignored.
    """
    found: Dict[str, dict] = {}
    current: dict | None = None

    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            parts = line.split()
            if not parts or parts[0].startswith("#"):
                continue

            tag = parts[0]
            if tag == "newmtl" and len(parts) > 1:
                current = {"name": parts[1], "rgb": (1.0, 1.0, 1.0), "alpha": 1.0}
                found[parts[1]] = current
            elif current is None:
                continue
            elif tag == "Kd":
                r, g, b = map(float, parts[1:4])
                current["rgb"] = (r, g, b)
            elif tag == "d":
                current["alpha"] = float(parts[1])
            elif tag == "Ns" and "roughness" not in current:
                # Blinn-Phong exponent (0..1000) to a roughness guess.
                shininess = max(0.0, min(float(parts[1]), 1000.0))
                current["ns_roughness"] = 1.0 - math.sqrt(shininess / 1000.0)
            elif tag == "Pr":
                current["roughness"] = float(parts[1])
            elif tag == "Pm":
                current["metallic"] = float(parts[1])

    materials: Dict[str, MaterialData] = {}
    for name, m in found.items():
        r, g, b = m["rgb"]
        materials[name] = MaterialData(
            name=name,
            base_color=(r, g, b, m["alpha"]),
            roughness=m.get("roughness", m.get("ns_roughness", 0.5)),
            metallic=m.get("metallic", 0.0),
        )

    return materials
