"""Configuration-driven project generation.

Takes a ``ProjectConfig`` and renders a project tree: frontend via the
framework's own scaffolding tool, backend from Jinja2 templates, plus
environment template, dependency installation and README.

Quick usage::

    from create_another_app.scaffolder import ProjectConfig, ScaffoldCoordinator

    config = ProjectConfig(
        project_name="my-app",
        project_type="backend",
        backend_template="express-ts",
        database="postgresql",
        additional_features=["env", "auth"],
    )
    project_path = await ScaffoldCoordinator(config).generate("/tmp/output")
"""

from create_another_app.scaffolder.generator import CoordinatorStage, ScaffoldCoordinator
from create_another_app.scaffolder.manifest import build_manifest
from create_another_app.scaffolder.models import (
    BackendTemplate,
    Database,
    Feature,
    FrontendFramework,
    Manifest,
    ProjectConfig,
    ProjectType,
    Target,
)
from create_another_app.scaffolder.planner import plan_directories
from create_another_app.scaffolder.registry import TemplateRole, render
from create_another_app.scaffolder.templates import TemplateRenderer

__all__ = [
    "BackendTemplate",
    "CoordinatorStage",
    "Database",
    "Feature",
    "FrontendFramework",
    "Manifest",
    "ProjectConfig",
    "ProjectType",
    "ScaffoldCoordinator",
    "Target",
    "TemplateRenderer",
    "TemplateRole",
    "build_manifest",
    "plan_directories",
    "render",
]
