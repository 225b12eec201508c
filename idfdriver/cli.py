"""Command line interface for the idfdriver tool."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Callable, Dict, Iterable, List
import sys

from .command_runner import CommandError, RecordingCommandRunner, SubprocessCommandRunner
from .commands import BuildDriver, DriverOptions
from .config_loader import load_driver_config
from .diagnostics import GeneratorResolutionError
from .environment import resolve_build_dir, resolve_project_dir
from .generators import UnknownGeneratorError, parse_generator_name, recognized_generator_names
from .sdkconfig import SUPPORTED_TARGETS
from .tools import SizeReport

PROG = "idfdriver"


@dataclass(slots=True)
class ParsedCommand:
    name: str
    args: Namespace


def _simple_parser(name: str, help_text: str) -> ArgumentParser:
    return ArgumentParser(prog=f"{PROG} {name}", description=help_text, allow_abbrev=False)


def _flash_parser(name: str, help_text: str) -> ArgumentParser:
    parser = _simple_parser(name, help_text)
    parser.add_argument("--extra-args", dest="extra_args", help="Extra arguments to pass to esptool")
    parser.add_argument("--force", action="store_true", help="Force write, skip security and compatibility checks")
    parser.add_argument("--trace", action="store_true", help="Enable trace-level output of flasher tool interactions")
    return parser


def _set_target_parser() -> ArgumentParser:
    parser = _simple_parser("set-target", "Set the chip target to build")
    parser.add_argument("target", help=f"Target chip ({', '.join(SUPPORTED_TARGETS)})")
    return parser


def _create_project_parser() -> ArgumentParser:
    parser = _simple_parser("create-project", "Create a new project")
    parser.add_argument("name", help="Project name")
    parser.add_argument("-p", "--path", help="Directory in which to create the project")
    return parser


COMMAND_PARSERS: Dict[str, Callable[[], ArgumentParser]] = {
    "build": lambda: _simple_parser("build", "Build the project; unknown arguments go to the build tool"),
    "all": lambda: _simple_parser("all", "Build the project; unknown arguments go to the build tool"),
    "app": lambda: _simple_parser("app", "Build only the app"),
    "bootloader": lambda: _simple_parser("bootloader", "Build only the bootloader"),
    "clean": lambda: _simple_parser("clean", "Delete build output files from the build directory"),
    "fullclean": lambda: _simple_parser("fullclean", "Delete the entire build directory contents"),
    "reconfigure": lambda: _simple_parser("reconfigure", "Re-run CMake"),
    "build-system-targets": lambda: _simple_parser("build-system-targets", "Print list of build system targets"),
    "menuconfig": lambda: _simple_parser("menuconfig", 'Run "menuconfig" project configuration tool'),
    "flash": lambda: _flash_parser("flash", "Flash the project"),
    "app-flash": lambda: _flash_parser("app-flash", "Flash the app only"),
    "bootloader-flash": lambda: _simple_parser("bootloader-flash", "Flash the bootloader only"),
    "erase-flash": lambda: _simple_parser("erase-flash", "Erase entire flash chip"),
    "monitor": lambda: _simple_parser("monitor", "Display serial output; unknown arguments go to the monitor"),
    "size": lambda: _simple_parser("size", "Print basic size information about the app"),
    "size-components": lambda: _simple_parser("size-components", "Print per-component size information"),
    "size-files": lambda: _simple_parser("size-files", "Print per-source-file size information"),
    "set-target": _set_target_parser,
    "create-project": _create_project_parser,
}

# Unrecognised tokens after these commands go to the underlying tool unchanged.
PASSTHROUGH_COMMANDS = frozenset({"build", "all", "monitor"})


def _package_version() -> str:
    try:
        return version("idfdriver")
    except PackageNotFoundError:
        return "unknown"


def _global_parser() -> ArgumentParser:
    commands = ", ".join(COMMAND_PARSERS)
    parser = ArgumentParser(
        prog=PROG,
        usage=f"{PROG} [options] COMMAND [COMMAND ...]",
        description="ESP-IDF build management tool",
        epilog=f"Commands (may be chained, e.g. 'build flash monitor'): {commands}",
    )
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    parser.add_argument("--list-targets", action="store_true", help="Print list of supported targets and exit")
    parser.add_argument("-C", "--project-dir", dest="project_dir", help="Project directory")
    parser.add_argument("-B", "--build-dir", dest="build_dir", help="Build directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose build output")
    parser.add_argument("-n", "--dry-run", action="store_true", help="Print commands without executing them")
    parser.add_argument(
        "-G",
        "--generator",
        help=f"CMake generator ({', '.join(recognized_generator_names())})",
    )
    parser.add_argument(
        "-D",
        "--define-cache-entry",
        dest="cache_entries",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Create a cmake cache entry (repeatable)",
    )
    parser.add_argument("-j", "--jobs", type=int, help="Number of parallel build jobs")
    parser.add_argument("--ccache", dest="ccache", action="store_true", default=None, help="Use ccache in build")
    parser.add_argument("--no-ccache", dest="ccache", action="store_false", help="Disable ccache in build")
    parser.add_argument("-p", "--port", help="Serial port")
    parser.add_argument("-b", "--baud", type=int, help="Global baud rate")
    parser.add_argument("--config", dest="config_file", metavar="FILE", help="Driver configuration file")
    return parser


def split_command_line(argv: Iterable[str]) -> tuple[List[str], List[tuple[str, List[str]]]]:
    """Split ``argv`` into global options and a sequence of commands.

    A known command name starts a new command; everything after ``--``
    belongs to the current command verbatim.
    """

    global_args: List[str] = []
    commands: List[tuple[str, List[str]]] = []
    passthrough = False
    for token in argv:
        if commands and passthrough:
            commands[-1][1].append(token)
            continue
        if token in COMMAND_PARSERS:
            commands.append((token, []))
            continue
        if not commands:
            global_args.append(token)
            continue
        if token == "--":
            passthrough = True
        commands[-1][1].append(token)
    return global_args, commands


def _parse_commands(raw: List[tuple[str, List[str]]]) -> List[ParsedCommand]:
    parsed: List[ParsedCommand] = []
    for name, tokens in raw:
        parser = COMMAND_PARSERS[name]()
        if name in PASSTHROUGH_COMMANDS:
            args, extras = parser.parse_known_args(tokens)
            args.args = extras
        else:
            args = parser.parse_args(tokens)
        parsed.append(ParsedCommand(name=name, args=args))
    return parsed


def _passthrough_args(args: Namespace) -> List[str]:
    values = list(getattr(args, "args", []))
    if values and values[0] == "--":
        values = values[1:]
    return values


def _dispatch(driver: BuildDriver, command: ParsedCommand) -> None:
    name = command.name
    args = command.args
    if name in {"build", "all"}:
        driver.build(_passthrough_args(args))
    elif name == "app":
        driver.build_app()
    elif name == "bootloader":
        driver.build_bootloader()
    elif name == "clean":
        driver.clean()
    elif name == "fullclean":
        driver.fullclean()
    elif name == "reconfigure":
        driver.reconfigure()
    elif name == "build-system-targets":
        driver.list_build_targets()
    elif name == "menuconfig":
        driver.menuconfig()
    elif name == "flash":
        driver.flash(extra_args=args.extra_args, force=args.force, trace=args.trace)
    elif name == "app-flash":
        driver.app_flash(extra_args=args.extra_args, force=args.force, trace=args.trace)
    elif name == "bootloader-flash":
        driver.bootloader_flash()
    elif name == "erase-flash":
        driver.erase_flash()
    elif name == "monitor":
        driver.monitor(_passthrough_args(args))
    elif name in {"size", "size-components", "size-files"}:
        driver.size(SizeReport(name))
    elif name == "set-target":
        driver.set_target(args.target)
    elif name == "create-project":
        driver.create_project(args.name, Path(args.path) if args.path else None)
    else:
        raise ValueError(f"Unknown command: {name}")


def _build_options(args: Namespace) -> DriverOptions:
    project_dir = resolve_project_dir(args.project_dir)
    config = load_driver_config(project_dir, path=Path(args.config_file) if args.config_file else None)
    if args.build_dir:
        build_dir = resolve_build_dir(args.build_dir, project_dir)
    else:
        build_dir = resolve_build_dir(config.build_dir, project_dir, cwd=project_dir)
    generator = parse_generator_name(args.generator) if args.generator else None
    if args.jobs is not None and args.jobs <= 0:
        raise ValueError("--jobs must be a positive number")
    return DriverOptions(
        project_dir=project_dir,
        build_dir=build_dir,
        generator=generator,
        verbose=args.verbose,
        dry_run=args.dry_run,
        jobs=args.jobs,
        cache_entries=list(args.cache_entries),
        ccache=args.ccache,
        port=args.port,
        baud=args.baud,
        config=config,
    )


def _emit_dry_run_output(runner: RecordingCommandRunner) -> None:
    for line in runner.iter_formatted():
        print(line)


def main(argv: Iterable[str] | None = None) -> int:
    global_tokens, raw_commands = split_command_line(sys.argv[1:] if argv is None else argv)
    args = _global_parser().parse_args(global_tokens)

    if args.version:
        print(f"{PROG} {_package_version()}")
        return 0
    if args.list_targets:
        print("Supported targets:")
        for target in SUPPORTED_TARGETS:
            print(f"  {target}")
        return 0
    if not raw_commands:
        print("No command specified. Use --help for available commands.")
        return 0

    commands = _parse_commands(raw_commands)

    try:
        options = _build_options(args)
    except (UnknownGeneratorError, ValueError, TypeError) as exc:
        print(f"Error: {exc}")
        return 2

    runner = RecordingCommandRunner() if options.dry_run else SubprocessCommandRunner(echo=options.verbose)
    driver = BuildDriver(options=options, command_runner=runner)

    total = len(commands)
    status = 0
    for index, command in enumerate(commands, start=1):
        if total > 1:
            print(f"[{index}/{total}] Executing command: {command.name}")
        try:
            _dispatch(driver, command)
        except CommandError as exc:
            print(f"Error: {exc}")
            status = 1
        except (GeneratorResolutionError, ValueError) as exc:
            print(f"Error: {exc}")
            status = 2
        if status:
            if total > 1:
                print(f"[{index}/{total}] Command '{command.name}' failed")
            break
        if total > 1:
            print(f"[{index}/{total}] Command '{command.name}' completed successfully")

    if isinstance(runner, RecordingCommandRunner):
        _emit_dry_run_output(runner)
    if status == 0 and total > 1:
        print("All commands completed successfully!")
    return status


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
