"""Translate a resolved generator and a command intent into a process invocation."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Mapping, Sequence, Tuple

from .generators import ExecutorSpec, GeneratorKind, executor_specs

CMAKE_PROGRAM = "cmake"


class CommandIntent(str, Enum):
    CONFIGURE = "configure"
    BUILD_ALL = "build-all"
    BUILD_APP = "build-app-only"
    BUILD_BOOTLOADER = "build-bootloader-only"
    CLEAN = "clean"
    FULL_CLEAN = "full-clean"
    LIST_TARGETS = "list-targets"
    MENUCONFIG = "menuconfig"
    FLASH = "flash"


_TARGETS: Dict[CommandIntent, str] = {
    CommandIntent.BUILD_ALL: "all",
    CommandIntent.BUILD_APP: "app",
    CommandIntent.BUILD_BOOTLOADER: "bootloader",
    CommandIntent.CLEAN: "clean",
    CommandIntent.MENUCONFIG: "menuconfig",
    CommandIntent.FLASH: "flash",
}

_DESCRIPTIONS: Dict[CommandIntent, str] = {
    CommandIntent.CONFIGURE: "Configure project",
    CommandIntent.BUILD_ALL: "Build project",
    CommandIntent.BUILD_APP: "Build app",
    CommandIntent.BUILD_BOOTLOADER: "Build bootloader",
    CommandIntent.CLEAN: "Clean build outputs",
    CommandIntent.FULL_CLEAN: "Remove build directory",
    CommandIntent.LIST_TARGETS: "List build system targets",
    CommandIntent.MENUCONFIG: "Run menuconfig",
    CommandIntent.FLASH: "Flash project",
}

# Interactive targets must not be run with parallel jobs.
_SERIAL_INTENTS = frozenset({CommandIntent.MENUCONFIG})


@dataclass(frozen=True, slots=True)
class PlanOptions:
    verbose: bool = False
    jobs: int | None = None
    cache_entries: Tuple[str, ...] = ()
    ccache: bool | None = None
    extra_args: Tuple[str, ...] = ()
    port: str | None = None
    baud: int | None = None
    flash_extra_args: Tuple[str, ...] = ()
    flash_force: bool = False
    flash_trace: bool = False


@dataclass(frozen=True, slots=True)
class InvocationPlan:
    program: str
    args: Tuple[str, ...]
    cwd: Path
    env_overrides: Mapping[str, str] = field(default_factory=dict)
    description: str = ""

    @property
    def command(self) -> List[str]:
        return [self.program, *self.args]


def _configure_args(spec: ExecutorSpec, *, project_dir: Path, build_dir: Path, options: PlanOptions) -> List[str]:
    args = ["-G", spec.cmake_name, "-B", str(build_dir), "-S", str(project_dir)]
    for entry in options.cache_entries:
        args.extend(["-D", entry])
    if options.ccache is not None:
        args.extend(["-D", f"CCACHE_ENABLE={1 if options.ccache else 0}"])
    return args


def _target_args(
    spec: ExecutorSpec,
    *,
    target: str,
    build_dir: Path,
    options: PlanOptions,
    parallel: bool,
) -> List[str]:
    args = ["-C", str(build_dir)]
    if parallel:
        jobs = options.jobs if options.jobs is not None else spec.default_jobs
        if jobs is not None:
            args.extend(["-j", str(jobs)])
    if options.verbose:
        args.append(spec.verbose_arg)
    args.append(target)
    args.extend(options.extra_args)
    return args


def _list_targets_args(spec: ExecutorSpec, *, build_dir: Path) -> List[str]:
    if spec.kind is GeneratorKind.NINJA:
        return ["-C", str(build_dir), "-t", "targets", "all"]
    return ["-C", str(build_dir), "help"]


def _flash_environment(options: PlanOptions) -> Dict[str, str]:
    env: Dict[str, str] = {}
    if options.port:
        env["ESPPORT"] = options.port
    if options.baud is not None:
        env["ESPBAUD"] = str(options.baud)
    extra = list(options.flash_extra_args)
    if options.flash_force:
        extra.append("--force")
    if extra:
        env["SERIAL_TOOL_EXTRA_ARGS"] = " ".join(extra)
    if options.flash_trace:
        env["SERIAL_TOOL_EXTRA_PRE_CMD_ARGS"] = "--trace"
    return env


def plan_invocation(
    kind: GeneratorKind,
    intent: CommandIntent,
    *,
    project_dir: Path,
    build_dir: Path,
    options: PlanOptions | None = None,
    specs: Mapping[GeneratorKind, ExecutorSpec] | None = None,
) -> InvocationPlan:
    """Return the process to run for ``intent`` on a ``kind`` build directory.

    Nothing is executed. Every (kind, intent) pair yields a plan.
    """

    options = options or PlanOptions()
    spec = (specs or executor_specs())[kind]
    description = _DESCRIPTIONS[intent]

    if intent is CommandIntent.CONFIGURE:
        args = _configure_args(spec, project_dir=project_dir, build_dir=build_dir, options=options)
        return InvocationPlan(CMAKE_PROGRAM, tuple(args), project_dir, {}, description)

    if intent is CommandIntent.FULL_CLEAN:
        return InvocationPlan(CMAKE_PROGRAM, ("-E", "rm", "-rf", str(build_dir)), project_dir, {}, description)

    if intent is CommandIntent.LIST_TARGETS:
        return InvocationPlan(spec.binary, tuple(_list_targets_args(spec, build_dir=build_dir)), project_dir, {}, description)

    args = _target_args(
        spec,
        target=_TARGETS[intent],
        build_dir=build_dir,
        options=options,
        parallel=intent not in _SERIAL_INTENTS,
    )
    env = _flash_environment(options) if intent is CommandIntent.FLASH else {}
    return InvocationPlan(spec.binary, tuple(args), project_dir, env, description)


def plan_sequence(
    kind: GeneratorKind,
    intents: Sequence[CommandIntent],
    *,
    project_dir: Path,
    build_dir: Path,
    options: PlanOptions | None = None,
    specs: Mapping[GeneratorKind, ExecutorSpec] | None = None,
) -> List[InvocationPlan]:
    return [
        plan_invocation(kind, intent, project_dir=project_dir, build_dir=build_dir, options=options, specs=specs)
        for intent in intents
    ]


__all__ = [
    "CMAKE_PROGRAM",
    "CommandIntent",
    "InvocationPlan",
    "PlanOptions",
    "plan_invocation",
    "plan_sequence",
]
