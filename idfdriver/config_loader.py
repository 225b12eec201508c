"""Loading of optional per-project driver configuration files."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping
import json
import os
import tomllib

import yaml

from .generators import GeneratorKind, parse_generator_name

ConfigLoader = Callable[[Any], Mapping[str, Any]]

FILE_LOADERS: Dict[str, ConfigLoader] = {
    ".toml": lambda stream: tomllib.load(stream),
    ".json": lambda stream: json.load(stream),
    ".yaml": lambda stream: yaml.safe_load(stream),
    ".yml": lambda stream: yaml.safe_load(stream),
}
"""Mapping of file suffixes to loader callables."""

CONFIG_STEM = "idfdriver"
CONFIG_ENV_VAR = "IDFDRIVER_CONFIG"

DEFAULT_FLASH_BAUD = 460800
DEFAULT_MONITOR_BAUD = 115200


def load_config_file(path: Path) -> Mapping[str, Any]:
    """Load and decode a configuration mapping from ``path``."""

    suffix = path.suffix.lower()
    loader = FILE_LOADERS.get(suffix)
    if loader is None:
        supported = ", ".join(sorted(FILE_LOADERS))
        raise ValueError(f"Unsupported configuration file extension: {suffix}. Supported: {supported}")

    mode = "rb" if suffix == ".toml" else "r"
    kwargs: Dict[str, Any] = {}
    if mode == "r":
        kwargs["encoding"] = "utf-8"

    try:
        with path.open(mode, **kwargs) as handle:
            data = loader(handle)
    except (OSError, yaml.YAMLError) as exc:
        raise ValueError(f"Could not load configuration file '{path}': {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"Configuration file '{path}' must contain a mapping at the root")
    return data


def find_config_file(project_dir: Path, env: Mapping[str, str] | None = None) -> Path | None:
    environ = os.environ if env is None else env
    explicit = environ.get(CONFIG_ENV_VAR)
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ValueError(f"{CONFIG_ENV_VAR} points to '{path}', which does not exist")
        return path

    found = [project_dir / f"{CONFIG_STEM}{suffix}" for suffix in FILE_LOADERS]
    found = [path for path in found if path.is_file()]
    if len(found) > 1:
        names = "', '".join(path.name for path in found)
        raise ValueError(
            f"Multiple configuration files found in '{project_dir}': '{names}'. "
            "Only one format per configuration entry is allowed."
        )
    return found[0] if found else None


def _optional_int(section: Mapping[str, Any], key: str) -> int | None:
    value = section.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise TypeError(f"driver.{key} must be an integer")
    try:
        number = int(value)
    except ValueError as exc:
        raise TypeError(f"driver.{key} must be an integer") from exc
    if number <= 0:
        raise ValueError(f"driver.{key} must be positive")
    return number


@dataclass(slots=True)
class DriverConfig:
    build_dir: str | None = None
    generator: GeneratorKind | None = None
    jobs: int | None = None
    ccache: bool | None = None
    port: str | None = None
    # None means the file left the rate to the command line or the default.
    flash_baud: int | None = None
    monitor_baud: int | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DriverConfig":
        section = data.get("driver", {}) if isinstance(data, Mapping) else {}
        if not isinstance(section, Mapping):
            raise TypeError("[driver] section must be a table")

        allowed_keys = {"build_dir", "generator", "jobs", "ccache", "port", "flash_baud", "monitor_baud"}
        unknown = {str(key) for key in section.keys() if str(key) not in allowed_keys}
        if unknown:
            joined = ", ".join(sorted(unknown))
            raise ValueError(f"[driver] section contains unknown keys: {joined}")

        generator_value = section.get("generator")
        generator = None
        if generator_value is not None:
            generator = parse_generator_name(str(generator_value), origin="configured generator")

        ccache_value = section.get("ccache")
        if ccache_value is not None and not isinstance(ccache_value, bool):
            raise TypeError("driver.ccache must be a boolean")

        build_dir = section.get("build_dir")
        port = section.get("port")
        return cls(
            build_dir=str(build_dir) if build_dir else None,
            generator=generator,
            jobs=_optional_int(section, "jobs"),
            ccache=ccache_value,
            port=str(port) if port else None,
            flash_baud=_optional_int(section, "flash_baud"),
            monitor_baud=_optional_int(section, "monitor_baud"),
        )


def load_driver_config(
    project_dir: Path,
    *,
    path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> DriverConfig:
    config_path = path or find_config_file(project_dir, env)
    if config_path is None:
        return DriverConfig()
    return DriverConfig.from_mapping(load_config_file(config_path))


__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_FLASH_BAUD",
    "DEFAULT_MONITOR_BAUD",
    "DriverConfig",
    "FILE_LOADERS",
    "find_config_file",
    "load_config_file",
    "load_driver_config",
]
