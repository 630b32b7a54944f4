from __future__ import annotations

import logging
import time
from concurrent.futures import Future
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import moderngl

from glint.assets.importers.base import ProgressCallback
from glint.assets.loader import AssetLoader, LoadResult
from glint.assets.types import ModelData, TextureData
from glint.cache import CachePrefix, CacheService, TTLCache
from glint.core.timing import IntervalTimer
from glint.errors import ResourceLoadError
from glint.graphics.renderer_info import RendererInfo
from glint.graphics.resources.lifecycle import estimate_size, release_handle
from glint.graphics.resources.model import GPUModel
from glint.graphics.resources.settings import ResourceManagerSettings
from glint.graphics.resources.texture import GPUTexture
from glint.graphics.resources.types import (
    ResourceEntry,
    ResourceKind,
    ResourceStats,
)

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


@dataclass(slots=True)
class _PendingLoad:
    kind: ResourceKind
    future: Future


def _completed(value: Any) -> Future:
    future: Future = Future()
    future.set_result(value)
    return future


class GPUResourceManager:
    """
    Owns every GPU resource the try-on renderer keeps between frames.

    Entries are released when unregistered, when idle longer than
    `settings.idle_threshold`, or on `clear_resources()` / `close()`.

    All methods must be called from the thread that owns the GL context.
    Background work is limited to file decoding inside the AssetLoader;
    uploads and registry changes happen in `update()`.
    """

    def __init__(
        self,
        ctx: moderngl.Context,
        loader: AssetLoader,
        *,
        cache: Optional[CacheService] = None,
        renderer_info: Optional[RendererInfo] = None,
        settings: Optional[ResourceManagerSettings] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ctx = ctx
        self.settings = settings or ResourceManagerSettings()

        self._loader = loader
        self._cache = cache if cache is not None else TTLCache(clock)
        self._renderer_info = renderer_info or RendererInfo(ctx)
        self._clock = clock

        self._resources: Dict[str, ResourceEntry] = {}
        self._in_flight: Dict[str, _PendingLoad] = {}

        self._stats = ResourceStats()
        self._is_rendering = True
        self._closed = False

        self._frame_count = 0
        now = clock()
        self._last_stats_at = now

        self._stats_timer = IntervalTimer(self.settings.stats_interval)
        self._sweep_timer = IntervalTimer(self.settings.sweep_interval)
        self._stats_timer.start(now)
        self._sweep_timer.start(now)

    @classmethod
    def create(
        cls,
        ctx: moderngl.Context,
        asset_root: Path,
        settings: Optional[ResourceManagerSettings] = None,
    ) -> GPUResourceManager:
        """Wire a manager with the default loader, cache and renderer info."""
        settings = settings or ResourceManagerSettings()
        loader = AssetLoader(asset_root, max_workers=settings.loader_workers)
        return cls(ctx, loader, settings=settings)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register(
        self,
        key: str,
        handle: Any,
        kind: ResourceKind | str,
        size_hint: int = 0,
    ) -> None:
        """
        Insert or refresh an entry. The registry takes ownership of `handle`.

        Registering a new handle under an existing key releases the old one.
        After `close()` the handle is released instead of stored.
        Raises ValueError when `kind` is a string that names no ResourceKind.
        """
        kind = ResourceKind(kind)

        if self._closed:
            logger.warning("Register after close: releasing %s '%s'", kind.value, key)
            release_handle(kind, handle)
            return

        size = size_hint if size_hint else estimate_size(kind, handle)

        previous = self._resources.get(key)
        self._resources[key] = ResourceEntry(
            key=key,
            kind=kind,
            handle=handle,
            last_accessed_at=self._clock(),
            approximate_size_bytes=size,
        )

        if previous is not None and previous.handle is not handle:
            self._dispose_entry(previous)

        logger.debug("Registered %s '%s' (%d bytes)", kind.value, key, size)

    def unregister(self, key: str) -> None:
        """Release and forget `key`. Unknown keys are ignored."""
        entry = self._resources.pop(key, None)
        if entry is None:
            return

        release_handle(entry.kind, entry.handle)
        logger.debug("Unregistered %s '%s'", entry.kind.value, key)

    def get(self, key: str) -> Any | None:
        """Look up a handle, counting the lookup as a use."""
        entry = self._resources.get(key)
        if entry is None:
            return None

        entry.last_accessed_at = self._clock()
        return entry.handle

    def entry(self, key: str) -> ResourceEntry | None:
        """Inspect an entry without touching its access time."""
        return self._resources.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._resources

    def __len__(self) -> int:
        return len(self._resources)

    def _dispose_entry(self, entry: ResourceEntry) -> bool:
        """
        Release an entry that has already left the registry.
        Failures are logged so a bulk pass can keep going.
        """
        try:
            release_handle(entry.kind, entry.handle)
        except Exception:
            logger.exception(
                "Failed to release %s '%s'", entry.kind.value, entry.key
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Preloading
    # ------------------------------------------------------------------

    def preload_texture(self, path: str) -> Future:
        """
        Load a texture unless it is already resident.

        Returns a future resolved with the GPUTexture during a later
        `update()`, or failed with ResourceLoadError. A key registered
        under another kind is reloaded and replaced.
        """
        if self._closed:
            return self._closed_failure(path)

        entry = self._resources.get(path)
        if entry is not None and entry.kind is ResourceKind.TEXTURE:
            entry.last_accessed_at = self._clock()
            return _completed(entry.handle)

        pending = self._in_flight.get(path)
        if pending is not None:
            return pending.future

        logger.debug("Preloading texture: %s", path)
        return self._submit(path, ResourceKind.TEXTURE)

    def preload_model(
        self, path: str, progress: Optional[ProgressCallback] = None
    ) -> Future:
        """
        Load a model unless it is resident or was requested before.

        A live cache marker means an earlier request already covered this
        path; the returned future then resolves to None.
        A key registered under another kind is reloaded and replaced.
        `progress` is called from a loader thread.
        """
        if self._closed:
            return self._closed_failure(path)

        entry = self._resources.get(path)
        if entry is not None and entry.kind is ResourceKind.MODEL:
            entry.last_accessed_at = self._clock()
            return _completed(entry.handle)

        pending = self._in_flight.get(path)
        if pending is not None:
            return pending.future

        marker = f"{CachePrefix.AR_MODEL}{path}"
        if self._cache.get(marker) is not None:
            logger.debug("Model load already requested: %s", path)
            return _completed(None)

        logger.debug("Preloading model: %s", path)
        future = self._submit(path, ResourceKind.MODEL, progress)
        if not future.done():
            self._cache.set(
                marker,
                {"path": path, "requested_at": self._clock()},
                self.settings.model_cache_ttl,
            )
        return future

    def _submit(
        self,
        path: str,
        kind: ResourceKind,
        progress: Optional[ProgressCallback] = None,
    ) -> Future:
        future: Future = Future()
        future.set_running_or_notify_cancel()

        try:
            self._loader.load(path, progress)
        except RuntimeError as e:
            # The executor refuses work once it has been shut down.
            self._fail_load(path, _PendingLoad(kind=kind, future=future), e)
            return future

        self._in_flight[path] = _PendingLoad(kind=kind, future=future)
        return future

    def _closed_failure(self, path: str) -> Future:
        future: Future = Future()
        future.set_exception(
            ResourceLoadError(path, RuntimeError("resource manager closed"))
        )
        return future

    def _finish_loads(self) -> None:
        for result in self._loader.poll():
            pending = self._in_flight.pop(result.path, None)
            if pending is None:
                continue
            self._finish_load(result, pending)

    def _finish_load(self, result: LoadResult, pending: _PendingLoad) -> None:
        if result.error is None:
            try:
                handle = self._upload(pending.kind, result.path, result.data)
            except (moderngl.Error, TypeError, ValueError) as e:
                self._fail_load(result.path, pending, e)
                return

            self.register(result.path, handle, pending.kind)
            pending.future.set_result(handle)
            return

        self._fail_load(result.path, pending, result.error)

    def _fail_load(
        self, path: str, pending: _PendingLoad, error: BaseException
    ) -> None:
        logger.error("Error loading %s: %s: %s", pending.kind.value, path, error)

        if pending.kind is ResourceKind.MODEL:
            # Let the caller retry instead of hitting a stale marker.
            self._cache.delete(f"{CachePrefix.AR_MODEL}{path}")

        failure = ResourceLoadError(path, error)
        failure.__cause__ = error
        pending.future.set_exception(failure)

    def _upload(self, kind: ResourceKind, path: str, data: Any) -> Any:
        if kind is ResourceKind.TEXTURE:
            if not isinstance(data, TextureData):
                raise TypeError(f"{path} is not an image")
            return GPUTexture(self.ctx, data)

        if kind is ResourceKind.MODEL:
            if not isinstance(data, ModelData):
                raise TypeError(f"{path} is not a model")
            return GPUModel.from_data(self.ctx, data, name=path)

        raise ValueError(f"Cannot preload resources of kind {kind.value}")

    @property
    def renderer_info(self) -> RendererInfo:
        return self._renderer_info

    @property
    def pending_loads(self) -> List[str]:
        return list(self._in_flight)

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def dispose_unused_resources(self) -> int:
        """Release every entry idle longer than the threshold."""
        now = self._clock()
        threshold = self.settings.idle_threshold

        stale = [
            key
            for key, entry in self._resources.items()
            if entry.idle_for(now) > threshold
        ]

        for key in stale:
            self._dispose_entry(self._resources.pop(key))

        if stale:
            logger.debug("Disposed %d unused GPU resources", len(stale))

        return len(stale)

    def clear_resources(self) -> None:
        """Release everything. Safe on an empty registry."""
        entries = list(self._resources.values())
        self._resources.clear()

        for entry in entries:
            self._dispose_entry(entry)

        logger.debug("Cleared all GPU resources (%d items)", len(entries))

    def optimize_memory_usage(self) -> None:
        self.dispose_unused_resources()
        self._renderer_info.release_cached()
        logger.debug("GPU resource memory optimized")

    # ------------------------------------------------------------------
    # Rendering state and stats
    # ------------------------------------------------------------------

    def pause_rendering(self) -> None:
        self._is_rendering = False
        logger.debug("Rendering paused")

    def resume_rendering(self) -> None:
        self._is_rendering = True
        logger.debug("Rendering resumed")

    @property
    def is_rendering(self) -> bool:
        return self._is_rendering

    def track_frame(self) -> None:
        """Count one presented frame toward the FPS figure."""
        self._frame_count += 1

    def get_stats(self) -> ResourceStats:
        """Last computed snapshot; refreshed every stats interval."""
        return self._stats

    def _update_stats(self, now: float) -> None:
        elapsed_ms = (now - self._last_stats_at) * 1000.0
        self._last_stats_at = now

        frames = self._frame_count
        self._frame_count = 0
        fps = round(frames * 1000.0 / elapsed_ms) if elapsed_ms > 0 else 0

        counts = {kind: 0 for kind in ResourceKind}
        texture_bytes = 0
        geometry_bytes = 0

        for entry in self._resources.values():
            counts[entry.kind] += 1
            if entry.kind is ResourceKind.TEXTURE:
                texture_bytes += entry.approximate_size_bytes
            elif entry.kind is ResourceKind.GEOMETRY:
                geometry_bytes += entry.approximate_size_bytes

        self._stats = ResourceStats(
            textures_loaded=counts[ResourceKind.TEXTURE],
            texture_memory_mb=round(texture_bytes / BYTES_PER_MB, 2),
            geometries_loaded=counts[ResourceKind.GEOMETRY],
            geometry_memory_mb=round(geometry_bytes / BYTES_PER_MB, 2),
            materials_loaded=counts[ResourceKind.MATERIAL],
            models_loaded=counts[ResourceKind.MODEL],
            draw_calls=self._renderer_info.draw_calls,
            triangles=self._renderer_info.triangles,
            fps=fps,
        )

    # ------------------------------------------------------------------
    # Main loop hook and teardown
    # ------------------------------------------------------------------

    def update(self) -> None:
        """
        Call once per frame from the render thread: uploads finished loads,
        then runs the stats tick and the idle sweep when they are due.
        """
        if self._closed:
            return

        self._finish_loads()

        now = self._clock()
        if self._stats_timer.poll(now):
            self._update_stats(now)
        if self._sweep_timer.poll(now):
            self.dispose_unused_resources()

    def close(self) -> None:
        """Stop the timers, abandon pending loads and release everything."""
        if self._closed:
            return
        self._closed = True

        self._stats_timer.cancel()
        self._sweep_timer.cancel()

        for path, pending in self._in_flight.items():
            pending.future.set_exception(
                ResourceLoadError(path, RuntimeError("resource manager closed"))
            )
        self._in_flight.clear()

        self._loader.shutdown(wait=False)
        self.clear_resources()

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> GPUResourceManager:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
