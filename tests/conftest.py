"""Shared pytest fixtures for the create-another-app test suite.

Provides reusable fixtures for:
- Configuration records for each project shape
- Tool settings pointing at a temporary output directory
- A recording runner that stands in for npm / npx and simulates what the
  external scaffolding tools leave on disk
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from create_another_app.config import Settings
from create_another_app.errors import SubprocessError
from create_another_app.scaffolder.models import ExternalCommand, ProjectConfig


# ---------------------------------------------------------------------------
# Simulated external tool output
# ---------------------------------------------------------------------------

VITE_CONFIG = """import { defineConfig } from 'vite'
import react from '@vitejs/plugin-react'

// https://vite.dev/config/
export default defineConfig({
  plugins: [react()],
})
"""

VITE_INDEX_CSS = """:root {
  font-family: system-ui, Avenir, Helvetica, Arial, sans-serif;
}

body {
  margin: 0;
}
"""


def _vite_package_json(name: str) -> dict[str, Any]:
    return {
        "name": name,
        "private": True,
        "version": "0.0.0",
        "type": "module",
        "scripts": {"dev": "vite", "build": "vite build", "preview": "vite preview"},
        "dependencies": {"react": "^19.1.0", "react-dom": "^19.1.0"},
        "devDependencies": {"@vitejs/plugin-react": "^4.6.0", "vite": "^7.0.0"},
    }


class RecordingRunner:
    """Async callable that records every external command instead of running it.

    ``create-vite`` and ``create-next-app`` invocations create the directory
    layout the real tools would produce, so later stages have files to edit.
    ``fail_when`` makes matching commands raise ``SubprocessError``;
    ``vite_css`` replaces the stylesheet ``create-vite`` leaves behind.
    """

    def __init__(
        self,
        fail_when: Callable[[ExternalCommand], bool] | None = None,
        vite_css: str = VITE_INDEX_CSS,
    ) -> None:
        self.commands: list[ExternalCommand] = []
        self.fail_when = fail_when
        self.vite_css = vite_css

    async def __call__(self, command: ExternalCommand) -> str:
        self.commands.append(command)
        if self.fail_when is not None and self.fail_when(command):
            raise SubprocessError(command.display(), 1, "simulated failure")

        if len(command.args) > 2 and command.args[0] == "create" and command.args[1].startswith("vite@"):
            self._fake_vite(command.cwd / command.args[2], command.args[-1])
        elif command.args and command.args[0].startswith("create-next-app@"):
            self._fake_next(command.cwd / command.args[1])
        return ""

    def _fake_vite(self, root: Path, template: str) -> None:
        (root / "src").mkdir(parents=True)
        (root / "package.json").write_text(json.dumps(_vite_package_json(root.name), indent=2))
        config_name = "vite.config.ts" if template.endswith("-ts") else "vite.config.js"
        (root / config_name).write_text(VITE_CONFIG)
        (root / "src" / "index.css").write_text(self.vite_css)

    @staticmethod
    def _fake_next(root: Path) -> None:
        (root / "app").mkdir(parents=True)
        (root / "package.json").write_text(json.dumps({"name": root.name, "private": True}))

    def invocations(self, program: str) -> list[ExternalCommand]:
        return [c for c in self.commands if c.command == program]


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def failing_runner() -> Callable[[Callable[[ExternalCommand], bool]], RecordingRunner]:
    """Factory for a runner whose matching commands fail."""
    return lambda predicate: RecordingRunner(fail_when=predicate)


@pytest.fixture
def styled_vite_runner() -> RecordingRunner:
    """Runner whose ``create-vite`` output already imports Tailwind."""
    return RecordingRunner(vite_css=f'@import "tailwindcss";\n\n{VITE_INDEX_CSS}')


# ---------------------------------------------------------------------------
# Settings & configuration records
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings whose output directory is a fresh temporary folder."""
    return Settings(output_dir=tmp_path)


@pytest.fixture
def make_config() -> Callable[..., ProjectConfig]:
    """Factory for ``ProjectConfig`` with a backend-only JavaScript default."""

    def _make(**overrides: Any) -> ProjectConfig:
        data: dict[str, Any] = {
            "project_name": "my-app",
            "project_type": "backend",
            "backend_template": "express-js",
        }
        data.update(overrides)
        return ProjectConfig.parse(data)

    return _make


@pytest.fixture
def fullstack_config() -> ProjectConfig:
    """Fullstack: Vite React + Tailwind with an Express JS backend, no database."""
    return ProjectConfig(
        project_name="my-app",
        project_type="fullstack",
        frontend_framework="react",
        include_tailwind=True,
        backend_template="express-js",
        database="none",
        additional_features=[],
        install_dependencies=True,
    )


@pytest.fixture
def ts_postgres_config() -> ProjectConfig:
    """Backend-only TypeScript with PostgreSQL and the env and auth features."""
    return ProjectConfig(
        project_name="api",
        project_type="backend",
        backend_template="express-ts",
        database="postgresql",
        additional_features=["env", "auth"],
        install_dependencies=False,
    )


@pytest.fixture
def next_frontend_config() -> ProjectConfig:
    """Frontend-only Next.js with TypeScript, no Tailwind."""
    return ProjectConfig(
        project_name="site",
        project_type="frontend",
        frontend_framework="nextjs-ts",
        include_tailwind=False,
        install_dependencies=False,
    )
