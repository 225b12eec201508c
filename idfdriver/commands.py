"""Command handlers: resolve a generator, plan the invocation, hand it to the runner."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Sequence
import shlex

from .cmake_cache import cache_path
from .command_runner import CommandResult, CommandRunner
from .config_loader import DEFAULT_FLASH_BAUD, DEFAULT_MONITOR_BAUD, DriverConfig
from .environment import IdfEnvironment
from .generators import GENERATOR_PREFERENCE, GeneratorKind
from .planner import CommandIntent, InvocationPlan, PlanOptions, plan_invocation
from .resolver import GeneratorResolver, ResolutionOutcome, ResolutionRequest
from .scaffold import create_project
from .sdkconfig import SdkConfig, sdkconfig_path, validate_target
from .tools import (
    SizeReport,
    app_binary_path,
    bootloader_binary_path,
    plan_app_flash,
    plan_bootloader_flash,
    plan_erase_flash,
    plan_monitor,
    plan_size,
)

PROJECT_NAME_KEY = "CMAKE_PROJECT_NAME"


@dataclass(slots=True)
class DriverOptions:
    project_dir: Path
    build_dir: Path
    generator: GeneratorKind | None = None
    verbose: bool = False
    dry_run: bool = False
    jobs: int | None = None
    cache_entries: List[str] = field(default_factory=list)
    ccache: bool | None = None
    port: str | None = None
    baud: int | None = None
    config: DriverConfig = field(default_factory=DriverConfig)

    @property
    def effective_port(self) -> str | None:
        return self.port or self.config.port

    @property
    def configured_flash_baud(self) -> int | None:
        return self.baud if self.baud is not None else self.config.flash_baud

    @property
    def flash_baud(self) -> int:
        baud = self.configured_flash_baud
        return baud if baud is not None else DEFAULT_FLASH_BAUD

    @property
    def monitor_baud(self) -> int:
        if self.baud is not None:
            return self.baud
        if self.config.monitor_baud is not None:
            return self.config.monitor_baud
        return DEFAULT_MONITOR_BAUD


class BuildDriver:
    def __init__(
        self,
        *,
        options: DriverOptions,
        command_runner: CommandRunner,
        resolver: GeneratorResolver | None = None,
        idf: IdfEnvironment | None = None,
    ) -> None:
        self._options = options
        self._runner = command_runner
        self._resolver = resolver or GeneratorResolver()
        self._idf = idf or IdfEnvironment()
        self._outcome: ResolutionOutcome | None = None

    @property
    def options(self) -> DriverOptions:
        return self._options

    @property
    def project_dir(self) -> Path:
        return self._options.project_dir

    @property
    def build_dir(self) -> Path:
        return self._options.build_dir

    # -- resolution -------------------------------------------------------

    def _request(self) -> ResolutionRequest:
        override = self._options.generator or self._options.config.generator
        return ResolutionRequest(build_dir=self.build_dir, project_dir=self.project_dir, explicit_override=override)

    def _announce(self, outcome: ResolutionOutcome) -> None:
        for warning in outcome.warnings:
            print(f"Warning: {warning}")
        print(f"Using generator: {outcome.chosen.value} ({outcome.source.value})")

    def resolve(self, *, use_cache: bool = True) -> ResolutionOutcome:
        if self._outcome is None or not use_cache:
            self._outcome = self._resolver.resolve(self._request(), use_cache=use_cache)
            self._announce(self._outcome)
        return self._outcome

    def _forget_build_state(self) -> None:
        self._outcome = None
        self._resolver.invalidate_cache(self.build_dir)

    # -- planning helpers -------------------------------------------------

    def plan_options(self, *, extra_args: Sequence[str] = ()) -> PlanOptions:
        options = self._options
        ccache = options.ccache if options.ccache is not None else options.config.ccache
        return PlanOptions(
            verbose=options.verbose,
            jobs=options.jobs if options.jobs is not None else options.config.jobs,
            cache_entries=tuple(options.cache_entries),
            ccache=ccache,
            extra_args=tuple(extra_args),
            port=options.effective_port,
            baud=options.configured_flash_baud,
        )

    def _plan(self, intent: CommandIntent, *, plan_options: PlanOptions | None = None) -> InvocationPlan:
        outcome = self.resolve()
        return plan_invocation(
            outcome.chosen,
            intent,
            project_dir=self.project_dir,
            build_dir=self.build_dir,
            options=plan_options or self.plan_options(),
        )

    def _run(self, plan: InvocationPlan, *, capture: bool = False) -> CommandResult:
        return self._runner.run_plan(plan, capture=capture)

    def _is_configured(self) -> bool:
        return cache_path(self.build_dir).is_file()

    def _configure(self) -> None:
        self._run(self._plan(CommandIntent.CONFIGURE))
        if not self._options.dry_run:
            # configure rewrote the cache; re-read it on next use
            self._resolver.invalidate_cache(self.build_dir)

    def _ensure_configured(self) -> None:
        if not self._is_configured():
            print("Build directory is not configured. Configuring project first...")
            self._configure()

    def _app_name(self) -> str:
        record = self._resolver.cache_for(self.build_dir)
        return record.entries.get(PROJECT_NAME_KEY) or self.project_dir.name or "app"

    # -- build commands ---------------------------------------------------

    def build(self, args: Sequence[str] = ()) -> None:
        self._idf.require_idf_path()
        print(f"Building project in: {self.project_dir}")
        print(f"Build directory: {self.build_dir}")
        self._configure()
        self._run(self._plan(CommandIntent.BUILD_ALL, plan_options=self.plan_options(extra_args=args)))
        print("Build completed successfully!")

    def build_app(self) -> None:
        self._idf.require_idf_path()
        print("Building app only...")
        self._ensure_configured()
        self._run(self._plan(CommandIntent.BUILD_APP))
        print("App build completed successfully!")

    def build_bootloader(self) -> None:
        self._idf.require_idf_path()
        print("Building bootloader only...")
        self._ensure_configured()
        self._run(self._plan(CommandIntent.BUILD_BOOTLOADER))
        print("Bootloader build completed successfully!")

    def clean(self) -> None:
        print(f"Cleaning build directory: {self.build_dir}")
        if not self.build_dir.exists():
            print("Build directory doesn't exist, nothing to clean.")
            return
        self._run(self._plan(CommandIntent.CLEAN))
        print("Clean completed successfully!")

    def fullclean(self) -> None:
        print(f"Removing entire build directory: {self.build_dir}")
        if not self.build_dir.exists():
            print("Build directory doesn't exist, nothing to remove.")
            return
        # Removal is generator independent and must work even when the cached
        # generator is gone, so no resolution happens here.
        plan = plan_invocation(
            GENERATOR_PREFERENCE[0],
            CommandIntent.FULL_CLEAN,
            project_dir=self.project_dir,
            build_dir=self.build_dir,
        )
        self._run(plan)
        if not self._options.dry_run:
            self._forget_build_state()
        print("Build directory removed successfully!")

    def reconfigure(self) -> None:
        self._idf.require_idf_path()
        print("Reconfiguring project...")
        cache_file = cache_path(self.build_dir)
        if cache_file.exists() and not self._options.dry_run:
            cache_file.unlink()
        self._forget_build_state()
        # The old cache no longer decides the generator.
        self.resolve(use_cache=False)
        self._configure()
        print("Reconfigure completed successfully!")

    def list_build_targets(self) -> None:
        self._idf.require_idf_path()
        if not self.build_dir.exists():
            print("Build directory doesn't exist. Run 'build' command first.")
            return
        print("Available build system targets:")
        result = self._run(self._plan(CommandIntent.LIST_TARGETS), capture=True)
        if result.stdout:
            print(result.stdout.rstrip())

    def menuconfig(self) -> None:
        self._idf.require_idf_path()
        print("Starting menuconfig...")
        self._ensure_configured()
        self._run(self._plan(CommandIntent.MENUCONFIG))
        print("Menuconfig completed!")

    # -- flashing and monitoring -----------------------------------------

    def flash(self, *, extra_args: str | None = None, force: bool = False, trace: bool = False) -> None:
        self._idf.require_idf_path()
        print("Flashing project...")
        if not self.build_dir.exists():
            print("Build directory doesn't exist. Building project first...")
            self.build()
        else:
            self._ensure_configured()
        plan_options = replace(
            self.plan_options(),
            flash_extra_args=tuple(shlex.split(extra_args)) if extra_args else (),
            flash_force=force,
            flash_trace=trace,
        )
        self._run(self._plan(CommandIntent.FLASH, plan_options=plan_options))
        print("Flash completed successfully!")

    def app_flash(self, *, extra_args: str | None = None, force: bool = False, trace: bool = False) -> None:
        self._idf.require_idf_path()
        print("Flashing app only...")
        if not app_binary_path(self.build_dir, self._app_name()).exists():
            print("App binary doesn't exist. Building app first...")
            self.build_app()
        plan = plan_app_flash(
            self._idf,
            project_dir=self.project_dir,
            build_dir=self.build_dir,
            app_name=self._app_name(),
            baud=self._options.flash_baud,
            port=self._options.effective_port,
            force=force,
            trace=trace,
            extra_args=shlex.split(extra_args) if extra_args else (),
        )
        self._run(plan)
        print("App flash completed successfully!")

    def bootloader_flash(self) -> None:
        self._idf.require_idf_path()
        print("Flashing bootloader only...")
        if not bootloader_binary_path(self.build_dir).exists():
            print("Bootloader binary doesn't exist. Building bootloader first...")
            self.build_bootloader()
        plan = plan_bootloader_flash(
            self._idf,
            project_dir=self.project_dir,
            build_dir=self.build_dir,
            baud=self._options.flash_baud,
            port=self._options.effective_port,
        )
        self._run(plan)
        print("Bootloader flash completed successfully!")

    def erase_flash(self) -> None:
        self._idf.require_idf_path()
        print("Erasing flash...")
        plan = plan_erase_flash(
            self._idf,
            project_dir=self.project_dir,
            baud=self._options.flash_baud,
            port=self._options.effective_port,
        )
        self._run(plan)
        print("Flash erase completed successfully!")

    def monitor(self, args: Sequence[str] = ()) -> None:
        self._idf.require_idf_path()
        print("Starting monitor...")
        elf_file = self.build_dir / f"{self._app_name()}.elf"
        plan = plan_monitor(
            self._idf,
            project_dir=self.project_dir,
            baud=self._options.monitor_baud,
            port=self._options.effective_port,
            elf_file=elf_file if elf_file.exists() else None,
            extra_args=args,
        )
        self._run(plan)

    def size(self, report: SizeReport = SizeReport.SUMMARY) -> None:
        self._idf.require_idf_path()
        messages = {
            SizeReport.SUMMARY: "Getting project size information...",
            SizeReport.COMPONENTS: "Getting per-component size information...",
            SizeReport.FILES: "Getting per-source-file size information...",
        }
        plan = plan_size(self._idf, report, project_dir=self.project_dir, build_dir=self.build_dir)
        print(messages[report])
        self._run(plan)

    # -- project state ----------------------------------------------------

    def set_target(self, target: str) -> None:
        print(f"Setting target to: {target}")
        validate_target(target)
        path = sdkconfig_path(self.project_dir)
        config = SdkConfig.load(path)
        previous = config.target
        config.set_target(target)
        if self._options.dry_run:
            print(f"[dry-run] would write {path}")
        else:
            config.save(path)
        print(f"Target set to {target} successfully!")
        if previous and previous != target:
            print(f"Target changed from {previous}; run 'fullclean' before building.")
        else:
            print("You may need to run 'reconfigure' or 'fullclean' if you are changing from a different target.")

    def create_project(self, name: str, path: Path | None = None) -> Path:
        self._idf.require_idf_path()
        project_path = (path / name) if path is not None else Path(name)
        print(f"Creating project '{name}' at: {project_path}")
        if self._options.dry_run:
            print(f"[dry-run] would create {project_path}")
            return project_path
        created = create_project(name, path)
        print(f"Project '{name}' created successfully!")
        print("To get started:")
        print(f"  cd {created}")
        print("  idfdriver set-target esp32")
        print("  idfdriver build")
        return created


__all__ = ["BuildDriver", "DriverOptions"]
