"""Warnings and errors raised while selecting a build generator."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .generators import GeneratorKind


class WarningKind(str, Enum):
    CACHE_MALFORMED = "CacheMalformed"
    GENERATOR_MISMATCH = "GeneratorMismatch"


@dataclass(frozen=True, slots=True)
class ResolutionWarning:
    kind: WarningKind
    message: str

    def __str__(self) -> str:
        return self.message


class GeneratorResolutionError(RuntimeError):
    """Base class for failures that prevent choosing a generator."""


class GeneratorUnavailable(GeneratorResolutionError):
    def __init__(self, kind: GeneratorKind, reason: str | None) -> None:
        detail = reason or "not found on the search path"
        super().__init__(f"Requested generator {kind.value} is not available: {detail}")
        self.kind = kind
        self.reason = detail


class CachedGeneratorUnavailable(GeneratorResolutionError):
    def __init__(self, kind: GeneratorKind, reason: str | None, *, build_dir: str) -> None:
        detail = reason or "not found on the search path"
        super().__init__(
            f"Build directory '{build_dir}' was configured with {kind.value}, which is no longer available: "
            f"{detail}. Install it again, or run 'fullclean' to reconfigure with another generator."
        )
        self.kind = kind
        self.reason = detail


class NoGeneratorAvailable(GeneratorResolutionError):
    def __init__(self, missing: Iterable[tuple[GeneratorKind, str | None]]) -> None:
        details = "; ".join(f"{kind.value}: {reason or 'not found'}" for kind, reason in missing)
        super().__init__(
            f"Either the 'ninja' or 'make' build tool must be available on the search path ({details})"
        )


__all__ = [
    "CachedGeneratorUnavailable",
    "GeneratorResolutionError",
    "GeneratorUnavailable",
    "NoGeneratorAvailable",
    "ResolutionWarning",
    "WarningKind",
]
