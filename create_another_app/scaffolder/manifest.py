"""Package manifest builder.

Derives the ``package.json`` contents for a target from the configuration
record.  Every package name has exactly one version, taken from
``PACKAGE_VERSIONS``; the builders only decide *which* names appear and in
which section, so two rules asking for the same package can never disagree.
"""

from __future__ import annotations

from typing import Any, Iterable

from create_another_app.utils import print_warning

from .models import (
    Database,
    FrameworkFamily,
    Language,
    Manifest,
    ProjectConfig,
    Target,
)


PACKAGE_VERSIONS: dict[str, str] = {
    # backend runtime
    "express": "^4.18.2",
    "cors": "^2.8.5",
    "dotenv": "^16.3.1",
    "mongoose": "^8.0.3",
    "pg": "^8.11.3",
    "bcryptjs": "^2.4.3",
    "jsonwebtoken": "^9.0.2",
    # backend tooling
    "nodemon": "^3.0.1",
    "typescript": "^5.3.3",
    "tsx": "^4.7.0",
    "@types/node": "^20.10.6",
    "@types/express": "^4.17.17",
    "@types/cors": "^2.8.13",
    "@types/pg": "^8.10.9",
    "@types/bcryptjs": "^2.4.6",
    "@types/jsonwebtoken": "^9.0.5",
    # frontend styling
    "tailwindcss": "^4.1.0",
    "@tailwindcss/vite": "^4.1.0",
}

# Runtime packages that ship without bundled type declarations.
TYPE_PACKAGES: dict[str, str] = {
    "express": "@types/express",
    "cors": "@types/cors",
    "pg": "@types/pg",
    "bcryptjs": "@types/bcryptjs",
    "jsonwebtoken": "@types/jsonwebtoken",
}

_DATABASE_PACKAGES: dict[Database, tuple[str, ...]] = {
    Database.NONE: (),
    Database.MONGODB: ("mongoose",),
    # bcryptjs and jsonwebtoken are required by the sample auth controller.
    Database.POSTGRESQL: ("pg", "bcryptjs", "jsonwebtoken"),
}


def _pin(names: Iterable[str]) -> dict[str, str]:
    """Map each name to its single registered version, keeping first-seen order."""
    pinned: dict[str, str] = {}
    for name in names:
        pinned.setdefault(name, PACKAGE_VERSIONS[name])
    return pinned


def target_package_name(target: Target, config: ProjectConfig) -> str:
    if config.is_fullstack:
        return f"{config.project_name}-{target.value}"
    return config.project_name


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def build_manifest(target: Target, config: ProjectConfig) -> Manifest:
    """Build the manifest for *target*.

    Raises:
        ValueError: If *config* does not generate *target*.
    """
    if target is Target.BACKEND:
        if not config.has_backend:
            raise ValueError(f"{config.project_type.value} project has no backend")
        return _backend_manifest(config)
    if not config.has_frontend:
        raise ValueError(f"{config.project_type.value} project has no frontend")
    return _frontend_manifest(config)


def _backend_manifest(config: ProjectConfig) -> Manifest:
    runtime = ["express", "cors"]
    if config.loads_env:
        runtime.append("dotenv")
    runtime.extend(_DATABASE_PACKAGES[config.effective_database])

    if config.backend_language is Language.TYPESCRIPT:
        tooling = ["typescript", "tsx", "@types/node"]
        tooling.extend(TYPE_PACKAGES[name] for name in runtime if name in TYPE_PACKAGES)
        scripts = {
            "start": "node dist/index.mjs",
            "dev": "tsx watch src/index.mts",
            "build": "tsc",
        }
        main = "dist/index.mjs"
    else:
        tooling = ["nodemon"]
        scripts = {
            "start": "node index.mjs",
            "dev": "nodemon index.mjs",
        }
        main = "index.mjs"

    return Manifest(
        name=target_package_name(Target.BACKEND, config),
        type="module",
        main=main,
        scripts=scripts,
        dependencies=_pin(runtime),
        dev_dependencies=_pin(tooling),
    )


def _frontend_manifest(config: ProjectConfig) -> Manifest:
    """What the core contributes to the externally generated frontend manifest."""
    tooling: list[str] = []
    framework = config.frontend_framework
    if config.wants_tailwind and framework is not None and framework.family is FrameworkFamily.VITE:
        tooling.extend(["tailwindcss", "@tailwindcss/vite"])
    return Manifest(
        name=target_package_name(Target.FRONTEND, config),
        dev_dependencies=_pin(tooling),
    )


# ---------------------------------------------------------------------------
# Merging into an existing package.json
# ---------------------------------------------------------------------------

_SECTIONS = ("dependencies", "devDependencies")


def merge_manifest(existing: dict[str, Any], overlay: Manifest) -> dict[str, Any]:
    """Merge *overlay*'s dependency sections and scripts into *existing*.

    Returns a new mapping; *existing* is not modified.  Names already present
    keep their version (or command).  A package already listed in the other
    dependency section is left where it is.
    """
    merged = {key: (dict(value) if isinstance(value, dict) else value) for key, value in existing.items()}
    overlay_data = overlay.to_dict()

    for section in _SECTIONS:
        additions: dict[str, str] = overlay_data.get(section, {})
        if not additions:
            continue
        other = merged.get(_other_section(section), {})
        current: dict[str, str] = merged.get(section, {})
        for name, version in additions.items():
            if name in other:
                continue
            if name in current:
                if current[name] != version:
                    print_warning(
                        f"  Keeping {name}@{current[name]} already in package.json "
                        f"(wanted {version})"
                    )
                continue
            current[name] = version
        if current:
            merged[section] = current

    scripts: dict[str, str] = overlay_data.get("scripts", {})
    if scripts:
        current_scripts = merged.setdefault("scripts", {})
        for name, command in scripts.items():
            current_scripts.setdefault(name, command)

    return merged


def _other_section(section: str) -> str:
    return "devDependencies" if section == "dependencies" else "dependencies"
