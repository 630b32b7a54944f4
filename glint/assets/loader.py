# glint/assets/loader.py
import logging
from concurrent import futures
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from queue import Empty, Queue
from typing import Any, Dict, List, Optional, Set

from glint.assets.importers.base import AssetImporter, ProgressCallback
from glint.assets.importers.model import ObjModelImporter
from glint.assets.importers.texture import TextureImporter

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LoadResult:
    """Outcome of one background load. Exactly one of data/error is set."""

    path: str
    data: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AssetLoader:
    """
    Decodes asset files on worker threads.

    Workers never touch GPU state: results wait in a queue until the
    render thread collects them with `poll()`.
    """

    def __init__(self, asset_root: Path, max_workers: int = 2) -> None:
        self.root = asset_root

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="AssetWorker"
        )
        self._loaded_queue: Queue[LoadResult] = Queue()
        self._submitted: Set[Future] = set()

        texture_importer = TextureImporter()
        self._importers: Dict[str, AssetImporter] = {
            ".obj": ObjModelImporter(),
            ".png": texture_importer,
            ".jpg": texture_importer,
            ".jpeg": texture_importer,
        }

    def register_importer(self, extension: str, importer: AssetImporter) -> None:
        self._importers[extension.lower()] = importer

    def load(self, path: str, progress: Optional[ProgressCallback] = None) -> None:
        """
        Non-blocking load request. The result shows up in a later `poll()`.
        """
        full_path = self.root / path
        job = self._executor.submit(self._worker_load, path, full_path, progress)
        self._submitted.add(job)
        logger.debug("Queued load of %s", full_path)

    def _worker_load(
        self, path: str, full_path: Path, progress: Optional[ProgressCallback]
    ) -> None:
        """
        Load asset on background thread.
        """
        try:
            ext = full_path.suffix.lower()
            importer = self._importers.get(ext)
            if not importer:
                raise ValueError(f"No importer for {ext!r} ({path})")

            data = importer.import_file(full_path, progress)
            self._loaded_queue.put(LoadResult(path=path, data=data))
        except Exception as e:
            self._loaded_queue.put(LoadResult(path=path, error=e))

    def poll(self) -> List[LoadResult]:
        """
        Called on the render thread every frame.
        Returns every load that finished since the previous call.
        """
        results: List[LoadResult] = []
        while True:
            try:
                results.append(self._loaded_queue.get_nowait())
            except Empty:
                break

        self._submitted = {job for job in self._submitted if not job.done()}
        return results

    def wait(self, timeout: float | None = None) -> None:
        """Block until every submitted load has finished."""
        futures.wait(list(self._submitted), timeout=timeout)

    @property
    def pending(self) -> int:
        return sum(1 for job in self._submitted if not job.done())

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=True)
