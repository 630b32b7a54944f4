from __future__ import annotations

import logging

import moderngl

logger = logging.getLogger(__name__)


class RendererInfo:
    """
    Per-frame draw counters fed by the render loop, plus access to the
    context's deferred-release queue.
    """

    def __init__(self, ctx: moderngl.Context) -> None:
        self._ctx = ctx
        self.draw_calls = 0
        self.triangles = 0

    def begin_frame(self) -> None:
        """Reset counters; call before submitting a frame."""
        self.draw_calls = 0
        self.triangles = 0

    def record_draw(
        self,
        vertices: int,
        *,
        instances: int = 1,
        mode: int = moderngl.TRIANGLES,
    ) -> None:
        self.draw_calls += 1
        if mode == moderngl.TRIANGLES:
            self.triangles += (vertices // 3) * instances
        elif mode in (moderngl.TRIANGLE_STRIP, moderngl.TRIANGLE_FAN):
            self.triangles += max(vertices - 2, 0) * instances

    def release_cached(self) -> int:
        """
        Release GL objects the context is still holding for collection.
        Returns how many were freed.
        """
        freed = self._ctx.gc()
        logger.debug("Renderer released %d cached GL objects", freed)
        return freed
