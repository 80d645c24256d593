"""Template registry: maps a file role and database choice to its content.

Every generated source file has a *role* (entry point, database connection,
controller, ...).  The registry owns the routing from ``(role, database)`` to
a Jinja2 template, and from ``(role, database, language)`` to the file's
location inside the backend root, so callers never branch on the database or
the language themselves.

Database-agnostic roles are registered under the ``None`` key.  Asking for a
combination that is not registered is a programming error and raises
``TemplateLookupError`` instead of producing degraded content.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from create_another_app.errors import TemplateLookupError

from .models import Database, Feature, Language, ProjectConfig
from .templates import TemplateRenderer


class TemplateRole(str, Enum):
    ENTRY = "entry"
    DB_CONNECTION = "db_connection"
    DATA_ACCESS = "data_access"
    CONTROLLER = "controller"
    ROUTES = "routes"
    ENV_BASE = "env_base"
    ENV_DATABASE = "env_database"
    ENV_AUTH = "env_auth"
    README = "readme"


# (role, database) -> template path relative to the template directory.
_TEMPLATES: dict[tuple[TemplateRole, Database | None], str] = {
    (TemplateRole.ENTRY, Database.NONE): "backend/entry/none.j2",
    (TemplateRole.ENTRY, Database.MONGODB): "backend/entry/mongodb.j2",
    (TemplateRole.ENTRY, Database.POSTGRESQL): "backend/entry/postgresql.j2",
    (TemplateRole.DB_CONNECTION, Database.MONGODB): "backend/db_connection/mongodb.j2",
    (TemplateRole.DB_CONNECTION, Database.POSTGRESQL): "backend/db_connection/postgresql.j2",
    (TemplateRole.DATA_ACCESS, Database.MONGODB): "backend/data_access/mongodb.j2",
    (TemplateRole.DATA_ACCESS, Database.POSTGRESQL): "backend/data_access/postgresql.j2",
    (TemplateRole.CONTROLLER, Database.MONGODB): "backend/controller/mongodb.j2",
    (TemplateRole.CONTROLLER, Database.POSTGRESQL): "backend/controller/postgresql.j2",
    (TemplateRole.ROUTES, Database.MONGODB): "backend/routes/mongodb.j2",
    (TemplateRole.ROUTES, Database.POSTGRESQL): "backend/routes/postgresql.j2",
    (TemplateRole.ENV_BASE, None): "env/base.j2",
    (TemplateRole.ENV_DATABASE, Database.MONGODB): "env/mongodb.j2",
    (TemplateRole.ENV_DATABASE, Database.POSTGRESQL): "env/postgresql.j2",
    (TemplateRole.ENV_AUTH, None): "env/auth.j2",
    (TemplateRole.README, None): "README.md.j2",
}

# (role, database) -> (directory, file stem) inside the backend source root.
_BACKEND_FILES: dict[tuple[TemplateRole, Database | None], tuple[str, str]] = {
    (TemplateRole.ENTRY, None): ("", "index"),
    (TemplateRole.DB_CONNECTION, Database.MONGODB): ("db", "database"),
    (TemplateRole.DB_CONNECTION, Database.POSTGRESQL): ("db", "db"),
    (TemplateRole.DATA_ACCESS, Database.MONGODB): ("models", "user.model"),
    (TemplateRole.DATA_ACCESS, Database.POSTGRESQL): ("queries", "user.queries"),
    (TemplateRole.CONTROLLER, None): ("controllers", "user.controller"),
    (TemplateRole.ROUTES, None): ("routes", "user.routes"),
}

_DATA_LAYER_ROLES = (
    TemplateRole.DB_CONNECTION,
    TemplateRole.DATA_ACCESS,
    TemplateRole.CONTROLLER,
    TemplateRole.ROUTES,
)

_renderer: TemplateRenderer | None = None


def _get_renderer() -> TemplateRenderer:
    global _renderer
    if _renderer is None:
        _renderer = TemplateRenderer()
    return _renderer


def _lookup(table: dict, role: TemplateRole, database: Database) -> Any:
    if (role, database) in table:
        return table[(role, database)]
    if (role, None) in table:
        return table[(role, None)]
    raise TemplateLookupError(role.value, database.value)


def template_for(role: TemplateRole, database: Database) -> str:
    """Return the template path registered for *role* and *database*."""
    return _lookup(_TEMPLATES, role, database)


def backend_roles(config: ProjectConfig) -> list[TemplateRole]:
    """Source-file roles the backend needs, in write order."""
    roles = [TemplateRole.ENTRY]
    if config.effective_database is not Database.NONE:
        roles.extend(_DATA_LAYER_ROLES)
    return roles


def output_path(role: TemplateRole, config: ProjectConfig) -> str:
    """Path of *role*'s file relative to the backend root (POSIX style)."""
    directory, stem = _lookup(_BACKEND_FILES, role, config.effective_database)
    language = config.backend_language
    parts = [p for p in (language.source_root, directory) if p]
    parts.append(f"{stem}{language.module_extension}")
    return "/".join(parts)


def database_name(project_name: str) -> str:
    """Default database name derived from the project name."""
    return re.sub(r"[^a-z0-9_]", "_", project_name.lower())


def build_context(config: ProjectConfig) -> dict[str, Any]:
    """Template context for *config*.  Pure; shared by every role."""
    typescript = config.is_typescript_backend
    return {
        "project_name": config.project_name,
        "typescript": typescript,
        "loads_env": config.loads_env,
        "database": config.effective_database.value,
        "db_name": database_name(config.project_name),
        "handler_args": "req: Request, res: Response" if typescript else "req, res",
        "error_message": "(error as Error).message" if typescript else "error.message",
    }


def render(role: TemplateRole, config: ProjectConfig, **extra: Any) -> str:
    """Render the content for *role* under *config*.

    Args:
        role: Which file to produce.
        config: The run's configuration record.
        **extra: Additional context (used by roles such as the README whose
            context is assembled by the caller).

    Raises:
        TemplateLookupError: If *role* has no template for the configured database.
    """
    template = template_for(role, config.effective_database)
    context = {**build_context(config), **extra}
    return _get_renderer().render(template, context)


# ---------------------------------------------------------------------------
# Environment template
# ---------------------------------------------------------------------------

def render_env(config: ProjectConfig) -> str:
    """Render ``.env.example`` as the union of its independent sections.

    Base variables are always present; database variables follow the chosen
    database; auth variables follow the ``auth`` feature.  A variable already
    emitted by an earlier section is not repeated.
    """
    sections = [render(TemplateRole.ENV_BASE, config)]
    if config.effective_database is not Database.NONE:
        sections.append(render(TemplateRole.ENV_DATABASE, config))
    if Feature.AUTH in config.additional_features:
        sections.append(render(TemplateRole.ENV_AUTH, config))
    return merge_env_sections(sections)


def merge_env_sections(sections: list[str]) -> str:
    """Join env sections with blank lines, dropping repeated variable names."""
    seen: set[str] = set()
    blocks: list[str] = []
    for section in sections:
        lines: list[str] = []
        for line in section.strip().splitlines():
            stripped = line.strip()
            if stripped and not stripped.startswith("#") and "=" in stripped:
                key = stripped.split("=", 1)[0].strip()
                if key in seen:
                    continue
                seen.add(key)
            lines.append(line)
        if any(not ln.lstrip().startswith("#") for ln in lines):
            blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n"


# ---------------------------------------------------------------------------
# README
# ---------------------------------------------------------------------------

_SUMMARIES = {
    "fullstack": "A full stack",
    "frontend": "A frontend",
    "backend": "A backend",
}


def readme_feature_lines(config: ProjectConfig) -> list[str]:
    """Bullet points describing the generated feature set."""
    lines: list[str] = []
    if config.has_frontend and config.frontend_framework is not None:
        lines.append(config.frontend_framework.display_name)
    if config.wants_tailwind:
        lines.append("Tailwind CSS v4 for styling")
    if config.has_backend:
        suffix = " with TypeScript" if config.backend_language is Language.TYPESCRIPT else ""
        lines.append(f"Express.js backend{suffix}")
    database = config.effective_database
    if database is Database.MONGODB:
        lines.append("MongoDB integration with Mongoose")
    elif database is Database.POSTGRESQL:
        lines.append("PostgreSQL integration with pg")
    if config.wants_env_file:
        lines.append("Environment variables setup")
    return lines


def render_readme(config: ProjectConfig, env_file: str | None = None) -> str:
    """Render the top-level ``README.md``.

    Args:
        config: The run's configuration record.
        env_file: Project-relative path of the generated env template, if any.
    """
    return render(
        TemplateRole.README,
        config,
        summary=_SUMMARIES[config.project_type.value],
        fullstack=config.is_fullstack,
        env_file=env_file,
        feature_lines=readme_feature_lines(config),
    )
