"""Read-only access to the CMake cache left behind by a previous configure run."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Tuple

from .diagnostics import ResolutionWarning, WarningKind
from .generators import GeneratorKind, UnknownGeneratorError, parse_generator_name

CACHE_FILE_NAME = "CMakeCache.txt"
GENERATOR_KEY = "CMAKE_GENERATOR"
HOME_DIRECTORY_KEY = "CMAKE_HOME_DIRECTORY"


@dataclass(frozen=True, slots=True)
class BuildCacheRecord:
    build_dir: Path
    generator: GeneratorKind | None = None
    generator_name: str | None = None
    home_directory: Path | None = None
    entries: Mapping[str, str] = field(default_factory=dict)
    warnings: Tuple[ResolutionWarning, ...] = ()


def cache_path(build_dir: Path) -> Path:
    return build_dir / CACHE_FILE_NAME


def parse_cache_entries(text: str) -> Dict[str, str]:
    """Parse ``KEY:TYPE=VALUE`` lines, skipping comments and untyped lines."""

    entries: Dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or stripped.startswith("//"):
            continue
        declaration, sep, value = stripped.partition("=")
        if not sep:
            continue
        key, colon, _type = declaration.rpartition(":")
        if not colon:
            continue
        key = key.strip().strip('"')
        if key:
            entries[key] = value.strip()
    return entries


def _malformed(cache_file: Path, detail: str) -> ResolutionWarning:
    return ResolutionWarning(
        kind=WarningKind.CACHE_MALFORMED,
        message=f"Ignoring CMake cache '{cache_file}': {detail}",
    )


def read_build_cache(build_dir: Path) -> BuildCacheRecord:
    """Return what ``build_dir``'s cache says about the previous configure run.

    A missing cache is the normal first-run state and yields an empty record.
    An unreadable cache, or one without a usable generator entry, yields a
    record without a generator and a ``CacheMalformed`` warning.
    """

    cache_file = cache_path(build_dir)
    if not cache_file.exists():
        return BuildCacheRecord(build_dir=build_dir)

    try:
        text = cache_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        return BuildCacheRecord(build_dir=build_dir, warnings=(_malformed(cache_file, f"could not be read ({exc})"),))

    entries = parse_cache_entries(text)
    home_value = entries.get(HOME_DIRECTORY_KEY)
    home_directory = Path(home_value) if home_value else None
    warnings: List[ResolutionWarning] = []
    generator: GeneratorKind | None = None

    generator_name = entries.get(GENERATOR_KEY)
    if generator_name is None:
        warnings.append(_malformed(cache_file, f"no {GENERATOR_KEY} entry"))
    elif not generator_name:
        warnings.append(_malformed(cache_file, f"empty {GENERATOR_KEY} entry"))
        generator_name = None
    else:
        try:
            generator = parse_generator_name(generator_name, origin="cached generator")
        except UnknownGeneratorError as exc:
            warnings.append(_malformed(cache_file, str(exc)))

    return BuildCacheRecord(
        build_dir=build_dir,
        generator=generator,
        generator_name=generator_name,
        home_directory=home_directory,
        entries=entries,
        warnings=tuple(warnings),
    )


__all__ = [
    "BuildCacheRecord",
    "CACHE_FILE_NAME",
    "cache_path",
    "parse_cache_entries",
    "read_build_cache",
]
