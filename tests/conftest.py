from typing import Any, List, Optional

import moderngl
import pytest
from PIL import Image

from glint.assets.loader import AssetLoader
from glint.cache import TTLCache
from glint.graphics.renderer_info import RendererInfo
from glint.graphics.resources.manager import GPUResourceManager


class FakeGLObject:
    """Stands in for a moderngl object; counts release() calls."""

    def __init__(self, ctx: "FakeContext", label: str) -> None:
        self.ctx = ctx
        self.label = label
        self.release_count = 0
        ctx.created.append(self)

    def release(self) -> None:
        self.release_count += 1
        self.ctx.released.append(self)


class FakeTexture(FakeGLObject):
    def __init__(self, ctx, size, components, data=None, dtype="f1") -> None:
        super().__init__(ctx, "texture")
        self.width, self.height = size
        self.components = components
        self.data = data
        self.filter = None
        self.mipmaps_built = False
        self.used_at: List[int] = []

    def build_mipmaps(self, base: int = 0, max_level: int = 1000) -> None:
        self.mipmaps_built = True

    def use(self, location: int = 0) -> None:
        self.used_at.append(location)


class FakeBuffer(FakeGLObject):
    def __init__(self, ctx, data, dynamic: bool = False) -> None:
        super().__init__(ctx, "buffer")
        self.data = data
        self.dynamic = dynamic
        self.bound_to: List[int] = []

    def write(self, data: bytes, offset: int = 0) -> None:
        self.data = data

    def bind_to_uniform_block(self, binding: int = 0) -> None:
        self.bound_to.append(binding)


class FakeContext:
    """Records what a moderngl.Context would have created and released."""

    def __init__(self) -> None:
        self.created: List[FakeGLObject] = []
        self.released: List[FakeGLObject] = []
        self.gc_calls = 0
        # 1-based index of the buffer() call that should fail, if any.
        self.fail_buffer_call: Optional[int] = None
        self._buffer_calls = 0

    def texture(self, size, components, data=None, dtype="f1") -> FakeTexture:
        return FakeTexture(self, size, components, data, dtype)

    def buffer(self, data=None, dynamic: bool = False) -> FakeBuffer:
        self._buffer_calls += 1
        if self._buffer_calls == self.fail_buffer_call:
            raise moderngl.Error("out of memory")
        return FakeBuffer(self, data, dynamic)

    def vertex_array(self, program, content, index_buffer=None) -> FakeGLObject:
        vao = FakeGLObject(self, "vao")
        vao.content = content  # type: ignore[attr-defined]
        return vao

    def gc(self) -> int:
        self.gc_calls += 1
        return 0

    @property
    def live(self) -> List[FakeGLObject]:
        return [o for o in self.created if o.release_count == 0]


class ManualClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHandle:
    """Single-release handle for texture/geometry/material entries."""

    def __init__(self, width: int = 0, height: int = 0, vertex_count: int = 0) -> None:
        self.width = width
        self.height = height
        self.vertex_count = vertex_count
        self.release_count = 0

    def release(self) -> None:
        self.release_count += 1


def write_png(path, size=(4, 4), color="red") -> None:
    Image.new("RGB", size, color=color).save(path)


def write_triangle_obj(path, name: str = "triangle") -> None:
    path.write_text(
        f"""
        o {name}
        v 0.0 0.0 0.0
        v 1.0 0.0 0.0
        v 0.0 1.0 0.0
        vn 0.0 0.0 1.0
        vt 0.0 0.0
        f 1/1/1 2/1/1 3/1/1
        """
    )


def finish_loads(manager: GPUResourceManager) -> None:
    """Wait for the loader threads, then let the manager collect results."""
    manager._loader.wait(timeout=10)
    manager.update()


@pytest.fixture
def ctx() -> FakeContext:
    return FakeContext()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def cache(clock) -> TTLCache:
    return TTLCache(clock)


@pytest.fixture
def renderer_info(ctx) -> RendererInfo:
    return RendererInfo(ctx)  # type: ignore[arg-type]


@pytest.fixture
def manager(ctx, clock, cache, renderer_info, tmp_path) -> Any:
    """A manager over a fake GL context, a manual clock and tmp_path assets."""
    loader = AssetLoader(asset_root=tmp_path)
    mgr = GPUResourceManager(
        ctx,  # type: ignore[arg-type]
        loader,
        cache=cache,
        renderer_info=renderer_info,
        clock=clock,
    )
    yield mgr
    mgr.close()
    loader.shutdown(wait=True)
