"""Directory planning and plan execution.

Builds a ``TargetPlan`` per target (directories, files, external commands)
from the configuration record and executes it in fixed stages:

1. create the target root (unless an external tool owns it),
2. create planned directories, parents before children,
3. write the first file (the manifest), then the rest concurrently,
4. run external commands one after another.

The ordering is enforced by ``TargetPlan.check()`` before anything touches
the disk, so a file can never land in a directory nobody planned.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Awaitable, Callable

from create_another_app.config import Settings
from create_another_app.utils import dump_json, make_dir, run, write_text

from . import registry
from .manifest import build_manifest
from .models import (
    Database,
    ExternalCommand,
    FrameworkFamily,
    Language,
    ProjectConfig,
    Target,
    TargetPlan,
)

Runner = Callable[[ExternalCommand], Awaitable[str]]

BASE_DIRECTORIES = ("routes", "controllers", "middleware", "utils")

_DATABASE_DIRECTORIES: dict[Database, tuple[str, ...]] = {
    Database.NONE: (),
    Database.MONGODB: ("models", "db"),
    Database.POSTGRESQL: ("queries", "db"),
}

TSCONFIG: dict = {
    "compilerOptions": {
        "target": "ES2020",
        "module": "NodeNext",
        "moduleResolution": "NodeNext",
        "outDir": "./dist",
        "rootDir": "./src",
        "strict": True,
        "esModuleInterop": True,
        "skipLibCheck": True,
        "forceConsistentCasingInFileNames": True,
    },
    "include": ["src/**/*"],
    "exclude": ["node_modules"],
}

ENV_FILE_NAME = ".env.example"


async def run_external(command: ExternalCommand) -> str:
    """Default runner: execute *command* through the subprocess chokepoint."""
    return await run(command.command, command.args, command.cwd)


# ---------------------------------------------------------------------------
# Roots
# ---------------------------------------------------------------------------

def target_root(target: Target, config: ProjectConfig, project_root: Path) -> Path:
    """Fullstack projects nest each target in its own folder."""
    if config.is_fullstack:
        return project_root / target.value
    return project_root


def env_file_location(config: ProjectConfig) -> str | None:
    """Project-relative path of the env template, or ``None`` if none is written."""
    if not config.wants_env_file:
        return None
    return f"backend/{ENV_FILE_NAME}" if config.is_fullstack else ENV_FILE_NAME


# ---------------------------------------------------------------------------
# Directory planner
# ---------------------------------------------------------------------------

def plan_directories(target: Target, config: ProjectConfig) -> list[str]:
    """Directories to create for *target*, parents first.

    The frontend gets none: its layout belongs to the external tool.
    """
    if target is Target.FRONTEND:
        return []

    folders = [*BASE_DIRECTORIES, *_DATABASE_DIRECTORIES[config.effective_database]]
    source_root = config.backend_language.source_root
    if not source_root:
        return folders
    return [source_root, *(f"{source_root}/{folder}" for folder in folders)]


# ---------------------------------------------------------------------------
# Plan builders
# ---------------------------------------------------------------------------

def plan_backend(config: ProjectConfig, root: Path) -> TargetPlan:
    """Everything the backend needs: folders, manifest, tsconfig and sources."""
    files: dict[str, str] = {
        "package.json": build_manifest(Target.BACKEND, config).to_json(),
    }
    if config.backend_language is Language.TYPESCRIPT:
        files["tsconfig.json"] = dump_json(TSCONFIG)
    for role in registry.backend_roles(config):
        files[registry.output_path(role, config)] = registry.render(role, config)

    return TargetPlan(
        target=Target.BACKEND,
        root=root,
        directories=plan_directories(Target.BACKEND, config),
        files=files,
    )


def frontend_command(config: ProjectConfig, root: Path, settings: Settings) -> ExternalCommand:
    """The external scaffolding tool invocation for the configured framework."""
    framework = config.frontend_framework
    if framework is None:
        raise ValueError(f"{config.project_type.value} project has no frontend")

    name = root.name
    if framework.family is FrameworkFamily.NEXT:
        args = (
            f"create-next-app@{settings.next_version}",
            name,
            "--ts" if framework.language is Language.TYPESCRIPT else "--js",
            "--tailwind" if config.include_tailwind else "--no-tailwind",
            "--eslint",
            "--app",
            "--no-src-dir",
            "--import-alias",
            "@/*",
        )
        return ExternalCommand(settings.npx_command, args, root.parent)

    args = (
        "create",
        f"vite@{settings.vite_version}",
        name,
        "--",
        "--template",
        framework.value,
    )
    return ExternalCommand(settings.npm_command, args, root.parent)


def plan_frontend(config: ProjectConfig, root: Path, settings: Settings) -> TargetPlan:
    """The frontend is produced entirely by an external tool run from the parent dir."""
    return TargetPlan(
        target=Target.FRONTEND,
        root=root,
        create_root=False,
        directories=plan_directories(Target.FRONTEND, config),
        commands=[frontend_command(config, root, settings)],
    )


def plan_env_file(config: ProjectConfig, project_root: Path) -> TargetPlan | None:
    """Plan the ``.env.example`` write, or ``None`` when no env file applies."""
    if not config.wants_env_file:
        return None
    target = Target.BACKEND if config.has_backend else Target.FRONTEND
    return TargetPlan(
        target=target,
        root=target_root(target, config, project_root),
        create_root=False,
        files={ENV_FILE_NAME: registry.render_env(config)},
    )


def install_commands(config: ProjectConfig, project_root: Path, settings: Settings) -> list[ExternalCommand]:
    """One package-manager install per generated target root."""
    roots: list[Path] = []
    if config.has_frontend:
        roots.append(target_root(Target.FRONTEND, config, project_root))
    if config.has_backend:
        roots.append(target_root(Target.BACKEND, config, project_root))
    return [
        ExternalCommand(settings.npm_command, tuple(settings.install_args), root)
        for root in dict.fromkeys(roots)
    ]


# ---------------------------------------------------------------------------
# Plan execution
# ---------------------------------------------------------------------------

async def execute_plan(plan: TargetPlan, runner: Runner = run_external) -> list[Path]:
    """Apply *plan* to the filesystem and run its commands.

    Returns:
        Absolute paths of the files written, in plan order.

    Raises:
        PlanError: If the plan is inconsistent (checked before any write).
        FilesystemError: If a directory or file cannot be created.
        SubprocessError: If an external command fails.
    """
    plan.check()

    if plan.create_root:
        await make_dir(plan.root)
    for directory in plan.directories:
        await make_dir(plan.root / directory)

    written: list[Path] = []
    items = list(plan.files.items())
    if items:
        first_path, first_content = items[0]
        written.append(await write_text(plan.root / first_path, first_content))
        rest = await asyncio.gather(
            *(write_text(plan.root / path, content) for path, content in items[1:])
        )
        written.extend(rest)

    for command in plan.commands:
        await runner(command)

    return written
