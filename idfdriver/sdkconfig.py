"""Reading and writing the project's flat ``sdkconfig`` settings file."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

SDKCONFIG_NAME = "sdkconfig"
TARGET_KEY = "CONFIG_IDF_TARGET"
HEADER = "# ESP-IDF Configuration"

SUPPORTED_TARGETS = (
    "esp32",
    "esp32s2",
    "esp32s3",
    "esp32c2",
    "esp32c3",
    "esp32c6",
    "esp32h2",
    "esp32p4",
)


@dataclass(slots=True)
class SdkConfig:
    settings: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, text: str) -> "SdkConfig":
        settings: Dict[str, str] = {}
        for line in text.splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            key, sep, value = stripped.partition("=")
            if not sep:
                continue
            settings[key.strip()] = value.strip()
        return cls(settings=settings)

    @classmethod
    def load(cls, path: Path) -> "SdkConfig":
        if not path.exists():
            return cls()
        return cls.parse(path.read_text(encoding="utf-8"))

    def render(self) -> str:
        lines: List[str] = [HEADER, ""]
        for key in sorted(self.settings):
            lines.append(f"{key}={self.settings[key]}")
        return "\n".join(lines) + "\n"

    def save(self, path: Path) -> None:
        path.write_text(self.render(), encoding="utf-8")

    @property
    def target(self) -> str | None:
        value = self.settings.get(TARGET_KEY)
        if value is None:
            return None
        return value.strip('"')

    def set_target(self, target: str) -> None:
        self.settings[TARGET_KEY] = f'"{target}"'


def sdkconfig_path(project_dir: Path) -> Path:
    return project_dir / SDKCONFIG_NAME


def validate_target(target: str) -> str:
    if target not in SUPPORTED_TARGETS:
        supported = ", ".join(SUPPORTED_TARGETS)
        raise ValueError(f"Unsupported target: {target}. Supported targets: {supported}")
    return target


__all__ = ["SUPPORTED_TARGETS", "SdkConfig", "sdkconfig_path", "validate_target"]
