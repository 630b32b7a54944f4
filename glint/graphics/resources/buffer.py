from typing import Dict, Tuple

import moderngl

from glint.assets.types import MeshData, VertexLayout


class GPUMesh:
    """
    Holds the GPU resources for a mesh: VBO, IBO (optional), and VAOs.
    """

    def __init__(self, ctx: moderngl.Context, data: MeshData) -> None:
        self._ctx = ctx
        self.layout: VertexLayout = data.vertex_layout
        self.vertex_count = data.vertex_count
        self.index_count = data.index_count
        self.aabb = data.aabb

        self.vbo = ctx.buffer(data.vertices)
        try:
            self.ibo = ctx.buffer(data.indices) if data.indices else None
        except Exception:
            self.vbo.release()
            raise

        self._vaos: Dict[Tuple[int, int], moderngl.VertexArray] = {}

    def vao_for(self, program: moderngl.Program) -> moderngl.VertexArray:
        """Retrieves or creates a non-instanced VAO for this program."""
        key = (program.glo, 0)

        vao = self._vaos.get(key)
        if vao is not None:
            return vao

        content = [(self.vbo, self.layout.format, *self.layout.attributes)]
        vao = self._ctx.vertex_array(program, content, index_buffer=self.ibo)

        self._vaos[key] = vao
        return vao

    def release(self) -> None:
        self.vbo.release()
        if self.ibo:
            self.ibo.release()

        for vao in self._vaos.values():
            vao.release()
        self._vaos.clear()
