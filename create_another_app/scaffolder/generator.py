"""Main scaffolding coordinator.

Takes a ``ProjectConfig`` and sequences the target orchestrators into a
complete project: frontend and backend setup (concurrently), additional
features, dependency installation, and the README.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from pathlib import Path
from typing import Sequence

from create_another_app.config import Settings
from create_another_app.errors import FilesystemError, ScaffoldFailed, StageError
from create_another_app.utils import is_empty_dir, make_dir

from .models import ProjectConfig
from .orchestrators import (
    BackendOrchestrator,
    FeaturesOrchestrator,
    FrontendOrchestrator,
    InstallOrchestrator,
    Orchestrator,
    ReadmeOrchestrator,
)
from .planner import Runner, install_commands, run_external


class CoordinatorStage(str, Enum):
    CREATED = "created"
    SETUP = "setup"
    FEATURES = "features"
    DEPENDENCIES = "dependencies"
    README = "readme"
    DONE = "done"


class ScaffoldCoordinator:
    """Drives one scaffolding run from a validated configuration record.

    Stages run in order ``created -> setup -> features -> dependencies ->
    readme -> done``; stages that do not apply to the project are skipped.
    Within the setup stage the frontend and backend orchestrators run
    concurrently since they write to disjoint subtrees; the same holds for
    per-target dependency installs.  The first failing stage ends the run.
    """

    def __init__(
        self,
        config: ProjectConfig,
        settings: Settings | None = None,
        runner: Runner = run_external,
    ) -> None:
        self.config = config
        self.settings = settings or Settings()
        self.runner = runner
        self.stage: CoordinatorStage | None = None
        self.completed_stages: list[CoordinatorStage] = []
        self.skipped_stages: list[CoordinatorStage] = []
        self.orchestrators: list[Orchestrator] = []
        self.project_root: Path | None = None

    # -- Public API --------------------------------------------------------

    async def generate(self, output_dir: str | Path | None = None) -> Path:
        """Generate the project.

        Args:
            output_dir: Parent directory of the project folder.  Defaults to
                ``settings.output_dir``.

        Returns:
            Path to the generated project root.

        Raises:
            ConfigValidationError: If the record violates its invariants.
            FilesystemError: If the project directory exists and is not empty,
                or cannot be created.
            ScaffoldFailed: If any stage fails; later stages are skipped.
        """
        config = ProjectConfig.parse(self.config.model_dump())
        parent = Path(output_dir) if output_dir is not None else self.settings.output_dir
        project_root = parent / config.project_name

        if not is_empty_dir(project_root):
            raise FilesystemError(project_root, "target directory already exists and is not empty")
        await make_dir(project_root)
        self.project_root = project_root
        self._enter(CoordinatorStage.CREATED)

        setup: list[Orchestrator] = []
        if config.has_frontend:
            setup.append(self._make(FrontendOrchestrator, project_root))
        if config.has_backend:
            setup.append(self._make(BackendOrchestrator, project_root))
        await self._run_stage(CoordinatorStage.SETUP, setup)

        if config.additional_features or config.wants_env_file:
            await self._run_stage(CoordinatorStage.FEATURES, [self._make(FeaturesOrchestrator, project_root)])
        else:
            self.skipped_stages.append(CoordinatorStage.FEATURES)

        if config.install_dependencies:
            installs = [
                self._make(InstallOrchestrator, project_root, command=command)
                for command in install_commands(config, project_root, self.settings)
            ]
            await self._run_stage(CoordinatorStage.DEPENDENCIES, installs)
        else:
            self.skipped_stages.append(CoordinatorStage.DEPENDENCIES)

        await self._run_stage(CoordinatorStage.README, [self._make(ReadmeOrchestrator, project_root)])

        self.stage = CoordinatorStage.DONE
        return project_root

    # -- Internals ---------------------------------------------------------

    def _make(self, cls: type[Orchestrator], project_root: Path, **kwargs) -> Orchestrator:
        orchestrator = cls(
            self.config,
            project_root,
            settings=self.settings,
            runner=self.runner,
            **kwargs,
        )
        self.orchestrators.append(orchestrator)
        return orchestrator

    def _enter(self, stage: CoordinatorStage) -> None:
        self.stage = stage
        self.completed_stages.append(stage)

    async def _run_stage(self, stage: CoordinatorStage, orchestrators: Sequence[Orchestrator]) -> None:
        """Run *orchestrators* concurrently and fail the stage if any failed.

        Every orchestrator is allowed to settle before failures are raised,
        so no task is left running behind the caller's back.
        """
        self.stage = stage
        results = await asyncio.gather(
            *(orchestrator.run() for orchestrator in orchestrators),
            return_exceptions=True,
        )

        failures: list[StageError] = []
        for result in results:
            if isinstance(result, StageError):
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result
        if failures:
            raise ScaffoldFailed(stage.value, failures)

        self.completed_stages.append(stage)
