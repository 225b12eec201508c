"""ESP-IDF environment discovery and project/build directory defaults."""
from __future__ import annotations

from pathlib import Path
from typing import Mapping
import os

DEFAULT_BUILD_DIR_NAME = "build"


class IdfEnvironment:
    """Reads the variables an ESP-IDF shell exports."""

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env = dict(env) if env is not None else dict(os.environ)

    @property
    def idf_path(self) -> Path | None:
        value = self._env.get("IDF_PATH")
        return Path(value) if value else None

    def require_idf_path(self) -> Path:
        idf_path = self.idf_path
        if idf_path is None:
            raise ValueError("IDF_PATH environment variable is not set. Please set up the ESP-IDF environment first.")
        return idf_path

    def python_executable(self) -> str:
        env_path = self._env.get("IDF_PYTHON_ENV_PATH")
        if env_path:
            candidate = Path(env_path) / "bin" / "python"
            if candidate.exists():
                return str(candidate)
        return "python3"


def resolve_project_dir(value: str | Path | None, *, cwd: Path | None = None) -> Path:
    if value:
        return Path(value).expanduser().resolve()
    return (cwd or Path.cwd()).resolve()


def resolve_build_dir(value: str | Path | None, project_dir: Path, *, cwd: Path | None = None) -> Path:
    """Relative build directories are taken from the working directory, like ``-B`` in CMake."""

    if not value:
        return project_dir / DEFAULT_BUILD_DIR_NAME
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = (cwd or Path.cwd()) / path
    return path.resolve()


__all__ = ["DEFAULT_BUILD_DIR_NAME", "IdfEnvironment", "resolve_build_dir", "resolve_project_dir"]
