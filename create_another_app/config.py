"""create-another-app tool settings.

Typed settings for the scaffolder itself: where projects are created and which
executables are used for the external scaffolding tools and the package
manager.  These are distinct from the per-run ``ProjectConfig`` record; they
describe the machine, not the project.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Global scaffolder settings.

    Instances are typically created once by the CLI entry point (usually via
    :meth:`from_env`) and handed to the ``ScaffoldCoordinator``.
    """

    output_dir: Path = Field(default_factory=Path.cwd, description="Parent of generated projects")
    npm_command: str = Field(default="npm", min_length=1)
    npx_command: str = Field(default="npx", min_length=1)
    next_version: str = Field(default="latest", min_length=1, description="create-next-app tag")
    vite_version: str = Field(default="latest", min_length=1, description="create-vite tag")
    install_args: list[str] = Field(default_factory=lambda: ["install"], min_length=1)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the settings to a JSON file and return the path written."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "Settings":
        """Load previously-saved settings from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            CAA_OUTPUT_DIR, CAA_NPM, CAA_NPX, CAA_NEXT_VERSION, CAA_VITE_VERSION.
        """
        kwargs: dict[str, object] = {}
        if os.environ.get("CAA_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["CAA_OUTPUT_DIR"])
        if os.environ.get("CAA_NPM"):
            kwargs["npm_command"] = os.environ["CAA_NPM"]
        if os.environ.get("CAA_NPX"):
            kwargs["npx_command"] = os.environ["CAA_NPX"]
        if os.environ.get("CAA_NEXT_VERSION"):
            kwargs["next_version"] = os.environ["CAA_NEXT_VERSION"]
        if os.environ.get("CAA_VITE_VERSION"):
            kwargs["vite_version"] = os.environ["CAA_VITE_VERSION"]
        return cls(**kwargs)
