"""Executable search-path probing for the supported build executors."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping
import os
import shutil

from .generators import GENERATOR_PREFERENCE, ExecutorSpec, GeneratorKind, executor_specs


@dataclass(frozen=True, slots=True)
class ProbeResult:
    kind: GeneratorKind
    available: bool
    path: str | None = None
    reason: str | None = None


class ExecutorProbe:
    """Looks up executor binaries on a search path without spawning them."""

    def __init__(
        self,
        *,
        search_path: str | None = None,
        specs: Mapping[GeneratorKind, ExecutorSpec] | None = None,
    ) -> None:
        self._search_path = search_path
        self._specs = dict(specs) if specs is not None else dict(executor_specs())

    @property
    def search_path(self) -> str:
        if self._search_path is not None:
            return self._search_path
        return os.environ.get("PATH", os.defpath)

    def probe(self, kind: GeneratorKind) -> ProbeResult:
        spec = self._specs.get(kind)
        if spec is None:
            return ProbeResult(kind=kind, available=False, reason=f"no executor is defined for {kind.value}")
        search_path = self.search_path
        resolved = shutil.which(spec.binary, path=search_path)
        if resolved is None:
            return ProbeResult(
                kind=kind,
                available=False,
                reason=f"'{spec.binary}' was not found on the search path ({search_path or '<empty>'})",
            )
        return ProbeResult(kind=kind, available=True, path=resolved)

    def probe_all(self, kinds: Iterable[GeneratorKind] = GENERATOR_PREFERENCE) -> Dict[GeneratorKind, ProbeResult]:
        results: Dict[GeneratorKind, ProbeResult] = {}
        for kind in kinds:
            if kind not in results:
                results[kind] = self.probe(kind)
        return results


__all__ = ["ExecutorProbe", "ProbeResult"]
