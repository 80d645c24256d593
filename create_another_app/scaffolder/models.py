"""Data model for the scaffolding engine.

Defines the closed sets of choices a project can be generated from (as
``str``-valued enums), the immutable ``ProjectConfig`` record that drives a
run, the ``Manifest`` written as ``package.json``, and the ``TargetPlan`` that
describes everything one target needs on disk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    model_validator,
)

from create_another_app.errors import ConfigValidationError, PlanError
from create_another_app.utils import dump_json, format_command


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ProjectType(str, Enum):
    """Which targets a project consists of."""
    FULLSTACK = "fullstack"
    FRONTEND = "frontend"
    BACKEND = "backend"

    @property
    def has_frontend(self) -> bool:
        return self in (ProjectType.FULLSTACK, ProjectType.FRONTEND)

    @property
    def has_backend(self) -> bool:
        return self in (ProjectType.FULLSTACK, ProjectType.BACKEND)


class Language(str, Enum):
    """Source language of a generated target."""
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"

    @property
    def module_extension(self) -> str:
        return ".mts" if self is Language.TYPESCRIPT else ".mjs"

    @property
    def source_root(self) -> str:
        """Directory all sources live under, relative to the target root."""
        return "src" if self is Language.TYPESCRIPT else ""


class FrameworkFamily(str, Enum):
    """Frontend families, each owned by a different external scaffolding tool."""
    VITE = "vite"
    NEXT = "next"


class FrontendFramework(str, Enum):
    REACT = "react"
    REACT_TS = "react-ts"
    NEXTJS = "nextjs"
    NEXTJS_TS = "nextjs-ts"

    @property
    def family(self) -> FrameworkFamily:
        if self in (FrontendFramework.NEXTJS, FrontendFramework.NEXTJS_TS):
            return FrameworkFamily.NEXT
        return FrameworkFamily.VITE

    @property
    def language(self) -> Language:
        if self in (FrontendFramework.REACT_TS, FrontendFramework.NEXTJS_TS):
            return Language.TYPESCRIPT
        return Language.JAVASCRIPT

    @property
    def display_name(self) -> str:
        return {
            FrontendFramework.REACT: "React (Vite)",
            FrontendFramework.REACT_TS: "React with TypeScript (Vite)",
            FrontendFramework.NEXTJS: "Next.js",
            FrontendFramework.NEXTJS_TS: "Next.js with TypeScript",
        }[self]


class BackendTemplate(str, Enum):
    EXPRESS_JS = "express-js"
    EXPRESS_TS = "express-ts"

    @property
    def language(self) -> Language:
        if self is BackendTemplate.EXPRESS_TS:
            return Language.TYPESCRIPT
        return Language.JAVASCRIPT


class Database(str, Enum):
    NONE = "none"
    MONGODB = "mongodb"
    POSTGRESQL = "postgresql"


class Feature(str, Enum):
    """Optional features a user can request."""
    ENV = "env"
    ESLINT = "eslint"
    PRETTIER = "prettier"
    MONGODB = "mongodb"
    AUTH = "auth"


class Target(str, Enum):
    """One generated sub-project."""
    FRONTEND = "frontend"
    BACKEND = "backend"


# ---------------------------------------------------------------------------
# Configuration record
# ---------------------------------------------------------------------------

class ProjectConfig(BaseModel):
    """The validated, immutable set of user choices driving one run."""

    model_config = ConfigDict(frozen=True)

    project_name: str = Field(..., min_length=1, pattern=r"^[A-Za-z0-9_-]+$")
    project_type: ProjectType
    frontend_framework: Optional[FrontendFramework] = None
    include_tailwind: bool = False
    backend_template: Optional[BackendTemplate] = None
    database: Database = Database.NONE
    additional_features: frozenset[Feature] = Field(default_factory=frozenset)
    install_dependencies: bool = False

    @model_validator(mode="after")
    def _check_targets(self) -> "ProjectConfig":
        kind = self.project_type.value
        if self.project_type.has_frontend and self.frontend_framework is None:
            raise ValueError(f"a {kind} project requires a frontend framework")
        if not self.project_type.has_frontend and self.frontend_framework is not None:
            raise ValueError(f"a {kind} project must not specify a frontend framework")
        if self.project_type.has_backend and self.backend_template is None:
            raise ValueError(f"a {kind} project requires a backend template")
        if not self.project_type.has_backend and self.backend_template is not None:
            raise ValueError(f"a {kind} project must not specify a backend template")
        return self

    @classmethod
    def parse(cls, data: dict[str, Any]) -> "ProjectConfig":
        """Validate a raw mapping into a ``ProjectConfig``.

        Raises:
            ConfigValidationError: With one message per offending field.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            messages = []
            for err in exc.errors():
                loc = ".".join(str(part) for part in err.get("loc", ())) or "config"
                messages.append(f"{loc}: {err.get('msg', 'invalid value')}")
            raise ConfigValidationError(
                "Invalid project configuration: " + "; ".join(messages), messages
            ) from exc

    # -- Derived views -----------------------------------------------------

    @property
    def has_frontend(self) -> bool:
        return self.project_type.has_frontend

    @property
    def has_backend(self) -> bool:
        return self.project_type.has_backend

    @property
    def is_fullstack(self) -> bool:
        return self.project_type is ProjectType.FULLSTACK

    @property
    def backend_language(self) -> Language:
        if self.backend_template is None:
            raise ValueError(f"{self.project_type.value} project has no backend")
        return self.backend_template.language

    @property
    def is_typescript_backend(self) -> bool:
        return self.has_backend and self.backend_language is Language.TYPESCRIPT

    @property
    def effective_database(self) -> Database:
        """The database, or ``none`` when no backend is generated."""
        return self.database if self.has_backend else Database.NONE

    @property
    def wants_tailwind(self) -> bool:
        return self.has_frontend and self.include_tailwind

    @property
    def loads_env(self) -> bool:
        """Whether environment variables are part of the generated project.

        Requesting the ``env`` feature and choosing a database both imply it;
        the two causes are unioned, never counted twice.
        """
        return Feature.ENV in self.additional_features or self.effective_database is not Database.NONE

    @property
    def wants_env_file(self) -> bool:
        return self.loads_env

    @property
    def sorted_features(self) -> list[Feature]:
        """Requested features in declaration order."""
        return [f for f in Feature if f in self.additional_features]


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------

class Manifest(BaseModel):
    """A ``package.json`` document."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    version: str = "1.0.0"
    description: str = ""
    type: Optional[str] = None
    main: Optional[str] = None
    scripts: dict[str, str] = Field(default_factory=dict)
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict, alias="devDependencies")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return dump_json(self.to_dict())


# ---------------------------------------------------------------------------
# Generation plan
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExternalCommand:
    """An out-of-process invocation: executable, arguments, working directory."""

    command: str
    args: tuple[str, ...]
    cwd: Path

    def display(self) -> str:
        return format_command(self.command, self.args)


@dataclass
class TargetPlan:
    """Everything one target needs: where it lives and what to put there.

    ``directories`` and the keys of ``files`` are POSIX-style paths relative
    to ``root``.  ``files`` preserves insertion order; the first entry is
    written before any other.
    """

    target: Target
    root: Path
    create_root: bool = True
    directories: list[str] = field(default_factory=list)
    files: dict[str, str] = field(default_factory=dict)
    commands: list[ExternalCommand] = field(default_factory=list)

    def check(self) -> None:
        """Verify that directories are parent-first and no file is orphaned.

        Raises:
            PlanError: Naming the first offending path.
        """
        known: set[PurePosixPath] = {PurePosixPath(".")}
        for directory in self.directories:
            path = PurePosixPath(directory)
            if path.is_absolute() or ".." in path.parts:
                raise PlanError(f"Directory {directory!r} escapes the {self.target.value} root")
            if path.parent not in known:
                raise PlanError(
                    f"Directory {directory!r} is planned before its parent {str(path.parent)!r}"
                )
            known.add(path)
        for relative in self.files:
            path = PurePosixPath(relative)
            if path.is_absolute() or ".." in path.parts:
                raise PlanError(f"File {relative!r} escapes the {self.target.value} root")
            if path.parent not in known:
                raise PlanError(
                    f"File {relative!r} would be written into unplanned directory "
                    f"{str(path.parent)!r}"
                )
