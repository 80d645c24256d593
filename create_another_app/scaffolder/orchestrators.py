"""Target setup orchestrators.

Each orchestrator owns one concern (a target, Tailwind styling, additional
features, one dependency install, the README) and moves through ``pending -> running -> succeeded | failed``
exactly once.  Whatever goes wrong inside an orchestrator is reported on the
console and re-raised as a ``StageError`` carrying the cause; nothing written
before the failure is rolled back.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from create_another_app.config import Settings
from create_another_app.errors import FilesystemError, ScaffoldError, StageError
from create_another_app.utils import (
    console,
    load_json,
    make_dir,
    print_error,
    print_step,
    print_success,
    read_text,
    save_json,
    write_text,
)

from .manifest import build_manifest, merge_manifest
from .models import ExternalCommand, Feature, FrameworkFamily, ProjectConfig, Target
from .planner import (
    Runner,
    env_file_location,
    execute_plan,
    plan_backend,
    plan_env_file,
    plan_frontend,
    run_external,
    target_root,
)
from .registry import render_readme
from .styling import (
    STYLESHEET_ENTRY,
    VITE_CONFIG_CANDIDATES,
    add_tailwind_import,
    add_tailwind_plugin,
)


class StageState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Orchestrator:
    """Base class: runs ``_execute`` once and reports the outcome."""

    stage = "stage"
    label = "stage"
    title = "Stage"

    def __init__(
        self,
        config: ProjectConfig,
        project_root: str | Path,
        *,
        settings: Settings | None = None,
        runner: Runner = run_external,
    ) -> None:
        self.config = config
        self.project_root = Path(project_root)
        self.settings = settings or Settings()
        self.runner = runner
        self.state = StageState.PENDING
        self.error: Exception | None = None

    async def run(self) -> None:
        """Execute the stage.

        Raises:
            StageError: Wrapping whatever aborted the stage.  ``OSError`` is
                reported as a ``FilesystemError``; any other non-scaffold
                exception is carried as the cause unchanged.
            RuntimeError: If this orchestrator has already been run.
        """
        if self.state is not StageState.PENDING:
            raise RuntimeError(f"{self.stage} orchestrator already {self.state.value}")

        self.state = StageState.RUNNING
        print_step(f"Setting up {self.label}...")
        try:
            await self._execute()
        except Exception as exc:
            cause = _as_cause(exc, self.project_root)
            self.state = StageState.FAILED
            self.error = cause
            print_error(f"{self.title} setup failed: {cause}")
            raise StageError(self.stage, cause) from exc

        self.state = StageState.SUCCEEDED
        print_success(f"{self.title} setup complete")

    async def _execute(self) -> None:
        raise NotImplementedError


def _as_cause(exc: Exception, fallback_path: Path) -> Exception:
    if isinstance(exc, ScaffoldError):
        return exc
    if isinstance(exc, OSError):
        return FilesystemError(exc.filename or fallback_path, exc)
    return exc


class FrontendOrchestrator(Orchestrator):
    """Delegates the frontend to its framework's external scaffolding tool.

    Only the Vite family gets in-process follow-up work (Tailwind); Next.js
    receives its styling choice as a flag and owns its whole layout.
    """

    stage = Target.FRONTEND.value
    label = "frontend"
    title = "Frontend"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.root = target_root(Target.FRONTEND, self.config, self.project_root)
        self.styling: StylingOrchestrator | None = None

    async def _execute(self) -> None:
        plan = plan_frontend(self.config, self.root, self.settings)
        await execute_plan(plan, self.runner)

        framework = self.config.frontend_framework
        if framework is not None and framework.family is FrameworkFamily.VITE and self.config.include_tailwind:
            self.styling = StylingOrchestrator(
                self.config,
                self.project_root,
                settings=self.settings,
                runner=self.runner,
            )
            await self.styling.run()


class BackendOrchestrator(Orchestrator):
    """Creates the backend folders, manifest, tsconfig and source files."""

    stage = Target.BACKEND.value
    label = "backend"
    title = "Backend"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.root = target_root(Target.BACKEND, self.config, self.project_root)
        self.written: list[Path] = []

    async def _execute(self) -> None:
        plan = plan_backend(self.config, self.root)
        self.written = await execute_plan(plan, self.runner)


class StylingOrchestrator(Orchestrator):
    """Adds Tailwind CSS v4 to a project generated by ``create-vite``.

    Registers the Tailwind packages in ``package.json``, wires the Vite
    plugin into the build config and puts the Tailwind import at the top of
    the stylesheet entry.  Safe to apply to an already-styled project.
    """

    stage = "styling"
    label = "Tailwind CSS"
    title = "Tailwind CSS"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        framework = self.config.frontend_framework
        if framework is None or framework.family is not FrameworkFamily.VITE:
            raise ValueError("Tailwind setup applies to Vite-based frontends only")
        self.root = target_root(Target.FRONTEND, self.config, self.project_root)

    async def _execute(self) -> None:
        await self._update_package_json()
        await self._update_vite_config()
        await self._update_stylesheet()

    async def _update_package_json(self) -> None:
        path = self.root / "package.json"
        existing = await load_json(path)
        merged = merge_manifest(existing, build_manifest(Target.FRONTEND, self.config))
        if merged != existing:
            await save_json(merged, path)

    async def _update_vite_config(self) -> None:
        for name in VITE_CONFIG_CANDIDATES:
            path = self.root / name
            if path.is_file():
                break
        else:
            console.print("  [dim]No Vite config found; skipping plugin registration[/dim]")
            return

        original = await read_text(path)
        updated = add_tailwind_plugin(original)
        if updated != original:
            await write_text(path, updated)

    async def _update_stylesheet(self) -> None:
        path = self.root / STYLESHEET_ENTRY
        if path.is_file():
            original = await read_text(path)
        else:
            await make_dir(path.parent)
            original = None
        updated = add_tailwind_import(original or "")
        if updated != original:
            await write_text(path, updated)


class FeaturesOrchestrator(Orchestrator):
    """Applies the requested additional features.

    Only the environment template has generated output today; it is written
    whenever the ``env`` feature is requested or the backend has a database.
    """

    stage = "features"
    label = "additional features"
    title = "Additional features"

    _NO_OUTPUT = (Feature.ESLINT, Feature.PRETTIER, Feature.MONGODB)

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.env_file: Path | None = None

    async def _execute(self) -> None:
        plan = plan_env_file(self.config, self.project_root)
        if plan is not None:
            written = await execute_plan(plan, self.runner)
            self.env_file = written[0]

        for feature in self.config.sorted_features:
            if feature in self._NO_OUTPUT:
                console.print(f"  [dim]'{feature.value}' has no generated files; skipped[/dim]")


class InstallOrchestrator(Orchestrator):
    """Runs the package manager's install in one target root."""

    stage = "dependencies"
    label = "dependencies"
    title = "Dependency installation"

    def __init__(self, *args, command: ExternalCommand, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.command = command
        if command.cwd != self.project_root:
            where = command.cwd.relative_to(self.project_root).as_posix()
            self.label = f"dependencies in {where}/"
            self.title = f"Dependency installation in {where}/"

    async def _execute(self) -> None:
        await self.runner(self.command)


class ReadmeOrchestrator(Orchestrator):
    """Writes the top-level ``README.md`` summarising the generated project."""

    stage = "readme"
    label = "README"
    title = "README"

    async def _execute(self) -> None:
        content = render_readme(self.config, env_file_location(self.config))
        await write_text(self.project_root / "README.md", content)
