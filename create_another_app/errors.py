"""Error taxonomy for create-another-app.

Every failure the scaffolder can surface derives from ``ScaffoldError`` so the
CLI can report it uniformly.  Orchestrators wrap whatever went wrong inside
them in a ``StageError``; the coordinator aggregates those into
``ScaffoldFailed``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class ScaffoldError(Exception):
    """Base class for all scaffolding failures."""


class ConfigValidationError(ScaffoldError):
    """Raised when a configuration record is malformed or self-contradictory."""

    def __init__(self, message: str, errors: Sequence[str] | None = None) -> None:
        self.errors = list(errors or [])
        super().__init__(message)


class SubprocessError(ScaffoldError):
    """Raised when an external command exits non-zero or cannot be spawned.

    ``exit_code`` is ``None`` when the process never started (e.g. the
    executable is missing from ``PATH``).
    """

    def __init__(self, command: str, exit_code: int | None, stderr: str = "") -> None:
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        if exit_code is None:
            message = f"Could not start `{command}`"
        else:
            message = f"`{command}` exited with status {exit_code}"
        if stderr:
            message = f"{message}: {stderr.strip()[:500]}"
        super().__init__(message)


class FilesystemError(ScaffoldError):
    """Raised when a directory or file cannot be created or written."""

    def __init__(self, path: str | Path, cause: BaseException | str) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"{self.path}: {cause}")


class TemplateLookupError(ScaffoldError, LookupError):
    """Raised for a template role / database combination that has no template.

    This is a programming error, never a user input error.
    """

    def __init__(self, role: str, database: str | None) -> None:
        self.role = role
        self.database = database
        super().__init__(f"No template registered for role {role!r} with database {database!r}")


class PlanError(ScaffoldError):
    """Raised when a generation plan would write outside its planned directories."""


class StageError(ScaffoldError):
    """A single orchestrator stage failed; ``cause`` is the underlying error."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage} setup failed: {cause}")


class ScaffoldFailed(ScaffoldError):
    """The coordinator aborted the run at ``stage``."""

    def __init__(self, stage: str, failures: Sequence[StageError]) -> None:
        self.stage = stage
        self.failures = list(failures)
        detail = "; ".join(str(f) for f in self.failures) or "unknown error"
        super().__init__(f"Scaffolding aborted during {stage} stage: {detail}")
