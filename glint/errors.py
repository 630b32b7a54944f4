# glint/errors.py
from __future__ import annotations

from typing import Any


class GlintError(Exception):
    """Base class for errors raised by glint."""


class ResourceLoadError(GlintError):
    """A preload could not produce a GPU resource."""

    def __init__(self, key: str, cause: BaseException) -> None:
        super().__init__(f"Failed to load '{key}': {cause}")
        self.key = key
        self.cause = cause


class UnknownResourceKindError(GlintError):
    """A handle reached disposal with a kind that has no release rule."""

    def __init__(self, kind: Any) -> None:
        super().__init__(f"No release rule for resource kind: {kind!r}")
        self.kind = kind
