"""Supported build executors and the CMake generator names that select them."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Tuple
import os
import platform


class GeneratorKind(str, Enum):
    NINJA = "Ninja"
    MAKE = "Make"


# Preference order used when nothing else decides.
GENERATOR_PREFERENCE: Tuple[GeneratorKind, ...] = (GeneratorKind.NINJA, GeneratorKind.MAKE)

_CMAKE_NAMES: Dict[str, GeneratorKind] = {
    "Ninja": GeneratorKind.NINJA,
    "Unix Makefiles": GeneratorKind.MAKE,
    "MinGW Makefiles": GeneratorKind.MAKE,
    "MSYS Makefiles": GeneratorKind.MAKE,
}


class UnknownGeneratorError(ValueError):
    """Raised when a generator name does not map to a supported executor."""

    def __init__(self, name: str, *, origin: str = "generator") -> None:
        supported = ", ".join(f"'{candidate}'" for candidate in _CMAKE_NAMES)
        super().__init__(f"Unsupported {origin} '{name}'. Supported generators: {supported}")
        self.name = name


def parse_generator_name(name: str, *, origin: str = "generator") -> GeneratorKind:
    """Map a CMake generator string onto a :class:`GeneratorKind`.

    Matching is exact: CMake records and accepts generator names verbatim,
    so ``"ninja"`` and ``" Ninja "`` are rejected just as CMake would.
    """

    kind = _CMAKE_NAMES.get(name) if isinstance(name, str) else None
    if kind is None:
        raise UnknownGeneratorError(str(name), origin=origin)
    return kind


def recognized_generator_names() -> Tuple[str, ...]:
    return tuple(_CMAKE_NAMES)


@dataclass(frozen=True, slots=True)
class ExecutorSpec:
    kind: GeneratorKind
    cmake_name: str
    binary: str
    verbose_arg: str
    # Make gets an explicit job count; Ninja parallelises on its own.
    default_jobs: int | None


def _make_binary(system: str) -> str:
    if system == "freebsd":
        return "gmake"
    if system == "windows":
        return "mingw32-make"
    return "make"


def executor_specs(
    *,
    system: str | None = None,
    cpu_count: int | None = None,
) -> Mapping[GeneratorKind, ExecutorSpec]:
    """Return the executor table for ``system`` keyed in preference order."""

    system_name = (system or platform.system()).lower()
    cpus = cpu_count if cpu_count is not None else (os.cpu_count() or 1)
    make_binary = _make_binary(system_name)
    make_cmake_name = "MinGW Makefiles" if system_name == "windows" else "Unix Makefiles"
    return {
        GeneratorKind.NINJA: ExecutorSpec(
            kind=GeneratorKind.NINJA,
            cmake_name="Ninja",
            binary="ninja",
            verbose_arg="-v",
            default_jobs=None,
        ),
        GeneratorKind.MAKE: ExecutorSpec(
            kind=GeneratorKind.MAKE,
            cmake_name=make_cmake_name,
            binary=make_binary,
            verbose_arg="VERBOSE=1",
            default_jobs=cpus + 2,
        ),
    }


__all__ = [
    "ExecutorSpec",
    "GENERATOR_PREFERENCE",
    "GeneratorKind",
    "UnknownGeneratorError",
    "executor_specs",
    "parse_generator_name",
    "recognized_generator_names",
]
