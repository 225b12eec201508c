"""Invocation plans for the Python tools shipped with ESP-IDF (esptool, monitor, size)."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Sequence

from .environment import IdfEnvironment
from .planner import InvocationPlan

APP_FLASH_OFFSET = "0x10000"
BOOTLOADER_FLASH_OFFSET = "0x1000"

ESPTOOL_RELATIVE = Path("components") / "esptool_py" / "esptool" / "esptool.py"
MONITOR_RELATIVE = Path("tools") / "idf_monitor.py"
SIZE_RELATIVE = Path("tools") / "idf_size.py"


class SizeReport(str, Enum):
    SUMMARY = "size"
    COMPONENTS = "size-components"
    FILES = "size-files"


_SIZE_FLAGS = {
    SizeReport.SUMMARY: (),
    SizeReport.COMPONENTS: ("--archives",),
    SizeReport.FILES: ("--files",),
}


def app_binary_path(build_dir: Path, app_name: str) -> Path:
    return build_dir / f"{app_name}.bin"


def bootloader_binary_path(build_dir: Path) -> Path:
    return build_dir / "bootloader" / "bootloader.bin"


def find_elf(build_dir: Path) -> Path:
    """Return the first ELF image in ``build_dir`` by name."""

    if not build_dir.is_dir():
        raise ValueError(f"Build directory '{build_dir}' doesn't exist. Run 'build' command first.")
    candidates = sorted(path for path in build_dir.iterdir() if path.is_file() and path.suffix == ".elf")
    if not candidates:
        raise ValueError("No ELF files found in build directory. Build the project first.")
    return candidates[0]


def _esptool_args(
    idf: IdfEnvironment,
    *,
    baud: int,
    port: str | None,
    trace: bool = False,
) -> List[str]:
    args = [str(idf.require_idf_path() / ESPTOOL_RELATIVE), "--chip", "auto", "--baud", str(baud)]
    if port:
        args.extend(["--port", port])
    if trace:
        args.append("--trace")
    return args


def plan_app_flash(
    idf: IdfEnvironment,
    *,
    project_dir: Path,
    build_dir: Path,
    app_name: str,
    baud: int,
    port: str | None = None,
    force: bool = False,
    trace: bool = False,
    extra_args: Sequence[str] = (),
) -> InvocationPlan:
    args = _esptool_args(idf, baud=baud, port=port, trace=trace)
    args.append("write_flash")
    if force:
        args.append("--force")
    args.extend(extra_args)
    args.extend([APP_FLASH_OFFSET, str(app_binary_path(build_dir, app_name))])
    return InvocationPlan(idf.python_executable(), tuple(args), project_dir, {}, "Flash app")


def plan_bootloader_flash(
    idf: IdfEnvironment,
    *,
    project_dir: Path,
    build_dir: Path,
    baud: int,
    port: str | None = None,
) -> InvocationPlan:
    args = _esptool_args(idf, baud=baud, port=port)
    args.extend(["write_flash", BOOTLOADER_FLASH_OFFSET, str(bootloader_binary_path(build_dir))])
    return InvocationPlan(idf.python_executable(), tuple(args), project_dir, {}, "Flash bootloader")


def plan_erase_flash(
    idf: IdfEnvironment,
    *,
    project_dir: Path,
    baud: int,
    port: str | None = None,
) -> InvocationPlan:
    args = _esptool_args(idf, baud=baud, port=port)
    args.append("erase_flash")
    return InvocationPlan(idf.python_executable(), tuple(args), project_dir, {}, "Erase flash")


def plan_monitor(
    idf: IdfEnvironment,
    *,
    project_dir: Path,
    baud: int,
    port: str | None = None,
    elf_file: Path | None = None,
    extra_args: Sequence[str] = (),
) -> InvocationPlan:
    args = [str(idf.require_idf_path() / MONITOR_RELATIVE)]
    if port:
        args.extend(["--port", port])
    args.extend(["--baud", str(baud)])
    if elf_file is not None:
        args.append(str(elf_file))
    args.extend(extra_args)
    return InvocationPlan(idf.python_executable(), tuple(args), project_dir, {}, "Monitor serial output")


def plan_size(
    idf: IdfEnvironment,
    report: SizeReport,
    *,
    project_dir: Path,
    build_dir: Path,
) -> InvocationPlan:
    tool = str(idf.require_idf_path() / SIZE_RELATIVE)
    elf_file = find_elf(build_dir)
    args = (tool, *_SIZE_FLAGS[report], str(elf_file))
    return InvocationPlan(idf.python_executable(), args, project_dir, {}, f"Report {report.value.replace('-', ' ')}")


__all__ = [
    "APP_FLASH_OFFSET",
    "BOOTLOADER_FLASH_OFFSET",
    "SizeReport",
    "app_binary_path",
    "bootloader_binary_path",
    "find_elf",
    "plan_app_flash",
    "plan_bootloader_flash",
    "plan_erase_flash",
    "plan_monitor",
    "plan_size",
]
