"""Command-line entry point.

Collects the project choices from flags, validates them into a
``ProjectConfig`` and hands it to the ``ScaffoldCoordinator``.

Usage::

    create-another-app my-app
    create-another-app my-api --type backend --backend express-ts --database postgresql --feature env --feature auth
    python -m create_another_app my-site --type frontend --frontend nextjs-ts --no-tailwind
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from pathlib import Path
from typing import Any, Sequence

from rich.panel import Panel

from create_another_app import __version__
from create_another_app.config import Settings
from create_another_app.errors import ConfigValidationError, ScaffoldError
from create_another_app.scaffolder import (
    BackendTemplate,
    Database,
    Feature,
    FrontendFramework,
    ProjectConfig,
    ProjectType,
    ScaffoldCoordinator,
)
from create_another_app.utils import console, format_duration, print_error, print_summary_table

EXIT_FAILED = 1
EXIT_INVALID_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-another-app",
        description="Scaffold full-stack web applications with Next.js, React, and Express.js",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  create-another-app my-app\n"
            "  create-another-app my-api --type backend --backend express-ts --database mongodb\n"
            "  create-another-app my-site --type frontend --frontend react-ts --tailwind\n"
        ),
    )
    parser.add_argument("project_name", help="Name of the project directory to create")
    parser.add_argument(
        "--type",
        dest="project_type",
        choices=[t.value for t in ProjectType],
        default=ProjectType.FULLSTACK.value,
        help="What to create (default: fullstack)",
    )
    parser.add_argument(
        "--frontend",
        dest="frontend_framework",
        choices=[f.value for f in FrontendFramework],
        default=None,
        help="Frontend framework (default: react when a frontend is generated)",
    )
    parser.add_argument(
        "--tailwind",
        dest="include_tailwind",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Include Tailwind CSS (default: yes)",
    )
    parser.add_argument(
        "--backend",
        dest="backend_template",
        choices=[b.value for b in BackendTemplate],
        default=None,
        help="Backend setup (default: express-js when a backend is generated)",
    )
    parser.add_argument(
        "--database",
        choices=[d.value for d in Database],
        default=Database.NONE.value,
        help="Database for the backend (default: none)",
    )
    parser.add_argument(
        "--feature",
        dest="additional_features",
        action="append",
        choices=[f.value for f in Feature],
        default=[],
        help="Additional feature; repeat for several",
    )
    parser.add_argument(
        "--install",
        dest="install_dependencies",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Install dependencies after scaffolding (default: yes)",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Parent directory for the project (default: $CAA_OUTPUT_DIR or the current directory)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> ProjectConfig:
    """Turn parsed flags into a validated ``ProjectConfig``.

    Frameworks default only for the targets the project type generates, so a
    frontend-only project never carries a backend template and vice versa.

    Raises:
        ConfigValidationError: If the flags contradict each other.
    """
    project_type = ProjectType(args.project_type)
    data: dict[str, Any] = {
        "project_name": args.project_name,
        "project_type": project_type,
        "include_tailwind": args.include_tailwind,
        "database": args.database,
        "additional_features": args.additional_features,
        "install_dependencies": args.install_dependencies,
        "frontend_framework": args.frontend_framework,
        "backend_template": args.backend_template,
    }
    if project_type.has_frontend and data["frontend_framework"] is None:
        data["frontend_framework"] = FrontendFramework.REACT
    if project_type.has_backend and data["backend_template"] is None:
        data["backend_template"] = BackendTemplate.EXPRESS_JS
    return ProjectConfig.parse(data)


def _next_steps(config: ProjectConfig) -> list[str]:
    steps = [f"cd {config.project_name}"]
    if config.is_fullstack:
        steps += [
            "# Start frontend:",
            "cd frontend && npm run dev",
            "# Start backend (in another terminal):",
            "cd backend && npm run dev",
        ]
    else:
        steps.append("npm run dev")
    if not config.install_dependencies:
        steps.insert(1, "npm install  # in each generated folder")
    return steps


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point for ``create-another-app`` / ``python -m create_another_app``."""
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
    except ConfigValidationError as exc:
        print_error(f"Error: {exc}")
        sys.exit(EXIT_INVALID_CONFIG)

    settings = Settings.from_env()
    output_dir = Path(args.output) if args.output else settings.output_dir

    console.print(
        Panel(
            f"[bold bright_cyan]Create Another App[/bold bright_cyan]\n"
            f"Project : {config.project_name}\n"
            f"Type    : {config.project_type.value}\n"
            f"Output  : {output_dir.resolve()}",
            title="[bold]Scaffold[/bold]",
            border_style="bright_cyan",
        )
    )

    coordinator = ScaffoldCoordinator(config, settings)
    started = time.monotonic()
    try:
        project_root = asyncio.run(coordinator.generate(output_dir))
    except ScaffoldError as exc:
        print_error(f"Failed to create project: {exc}")
        sys.exit(EXIT_FAILED)

    print_summary_table(
        {
            "Location": str(project_root),
            "Stages": ", ".join(stage.value for stage in coordinator.completed_stages),
            "Duration": format_duration(time.monotonic() - started),
        },
        title="Project created successfully",
    )
    console.print("[cyan]Next steps:[/cyan]")
    for step in _next_steps(config):
        console.print(f"  {step}")


if __name__ == "__main__":
    main()
