"""Generator selection: reconcile user overrides, cached state and installed tools."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Mapping, Tuple

from .cmake_cache import BuildCacheRecord, read_build_cache
from .diagnostics import (
    CachedGeneratorUnavailable,
    GeneratorUnavailable,
    NoGeneratorAvailable,
    ResolutionWarning,
    WarningKind,
)
from .generators import GENERATOR_PREFERENCE, GeneratorKind
from .probe import ExecutorProbe, ProbeResult


class ResolutionSource(str, Enum):
    OVERRIDE = "override"
    CACHE = "cache"
    PROBED_DEFAULT = "probed default"


@dataclass(frozen=True, slots=True)
class ResolutionRequest:
    build_dir: Path
    project_dir: Path
    explicit_override: GeneratorKind | None = None


@dataclass(frozen=True, slots=True)
class ResolutionOutcome:
    chosen: GeneratorKind
    source: ResolutionSource
    warnings: Tuple[ResolutionWarning, ...] = ()


def _probe_for(probes: Mapping[GeneratorKind, ProbeResult], kind: GeneratorKind) -> ProbeResult:
    result = probes.get(kind)
    if result is None:
        return ProbeResult(kind=kind, available=False, reason="was not probed")
    return result


def resolve_generator(
    request: ResolutionRequest,
    cache: BuildCacheRecord,
    probes: Mapping[GeneratorKind, ProbeResult],
) -> ResolutionOutcome:
    """Choose the generator for ``request``.

    Precedence is explicit override, then the generator recorded in the build
    directory's cache, then the first installed executor in preference order.
    An explicit or cached generator that is not installed is fatal; the
    function never falls back to a different executor behind the caller's back.
    The result depends only on the arguments.
    """

    warnings: List[ResolutionWarning] = list(cache.warnings)
    override = request.explicit_override
    cached = cache.generator

    if override is not None:
        probe = _probe_for(probes, override)
        if not probe.available:
            raise GeneratorUnavailable(override, probe.reason)
        if cached is not None and cached is not override:
            warnings.append(
                ResolutionWarning(
                    kind=WarningKind.GENERATOR_MISMATCH,
                    message=(
                        f"Build directory '{cache.build_dir}' was configured with {cached.value} "
                        f"but {override.value} was requested; run 'fullclean' if the build misbehaves"
                    ),
                )
            )
        return ResolutionOutcome(chosen=override, source=ResolutionSource.OVERRIDE, warnings=tuple(warnings))

    if cached is not None:
        probe = _probe_for(probes, cached)
        if not probe.available:
            raise CachedGeneratorUnavailable(cached, probe.reason, build_dir=str(cache.build_dir))
        return ResolutionOutcome(chosen=cached, source=ResolutionSource.CACHE, warnings=tuple(warnings))

    missing: List[tuple[GeneratorKind, str | None]] = []
    for kind in GENERATOR_PREFERENCE:
        probe = _probe_for(probes, kind)
        if probe.available:
            return ResolutionOutcome(chosen=kind, source=ResolutionSource.PROBED_DEFAULT, warnings=tuple(warnings))
        missing.append((kind, probe.reason))
    raise NoGeneratorAvailable(missing)


class GeneratorResolver:
    """Reads each build directory's cache and probes executors at most once.

    One instance lives for one driver invocation. Call :meth:`invalidate_cache`
    after something rewrites or removes the cache (configure, fullclean).
    """

    def __init__(self, probe: ExecutorProbe | None = None) -> None:
        self._probe = probe or ExecutorProbe()
        self._caches: Dict[Path, BuildCacheRecord] = {}
        self._probes: Dict[GeneratorKind, ProbeResult] | None = None

    def cache_for(self, build_dir: Path) -> BuildCacheRecord:
        record = self._caches.get(build_dir)
        if record is None:
            record = read_build_cache(build_dir)
            self._caches[build_dir] = record
        return record

    def probe_results(self) -> Dict[GeneratorKind, ProbeResult]:
        if self._probes is None:
            self._probes = self._probe.probe_all(GENERATOR_PREFERENCE)
        return self._probes

    def invalidate_cache(self, build_dir: Path) -> None:
        self._caches.pop(build_dir, None)

    def resolve(self, request: ResolutionRequest, *, use_cache: bool = True) -> ResolutionOutcome:
        if use_cache:
            cache = self.cache_for(request.build_dir)
        else:
            cache = BuildCacheRecord(build_dir=request.build_dir)
        return resolve_generator(request, cache, self.probe_results())


__all__ = [
    "GeneratorResolver",
    "ResolutionOutcome",
    "ResolutionRequest",
    "ResolutionSource",
    "resolve_generator",
]
