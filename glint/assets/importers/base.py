from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Optional

# (done, total) in importer-defined units. Called from a worker thread.
ProgressCallback = Callable[[int, int], None]


class AssetImporter(ABC):
    @abstractmethod
    def import_file(
        self, path: Path, progress: Optional[ProgressCallback] = None
    ) -> Any:
        """
        Read file from disk and returns CPU-friendly data object.
        Must be thread-safe.
        """
        pass
