from __future__ import annotations

from dataclasses import dataclass

from glint.cache import TTL


@dataclass(frozen=True, slots=True)
class ResourceManagerSettings:
    """Timing policy for the GPU resource manager. All values in seconds."""

    idle_threshold: float = 5 * 60
    sweep_interval: float = 60.0
    stats_interval: float = 5.0
    model_cache_ttl: float = float(TTL.LONG)

    loader_workers: int = 2

    def __post_init__(self) -> None:
        for name in ("idle_threshold", "sweep_interval", "stats_interval", "model_cache_ttl"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.loader_workers < 1:
            raise ValueError("loader_workers must be at least 1")
