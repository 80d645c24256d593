"""Jinja2 template rendering for generated files.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``create_another_app/scaffolder/templates/`` directory and renders them with
a context built from the project configuration.  Rendering is pure: the
renderer never touches the output tree, writing is the plan executor's job.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for project scaffolding.

    Undefined context variables raise instead of rendering as empty strings,
    so a template that drifts from its context fails loudly.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["module"] = _module_filter

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"backend/entry/mongodb.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    def has_template(self, template_path: str) -> bool:
        return (self.template_dir / template_path).is_file()


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _module_filter(stem: str) -> str:
    """Turn a module stem into the specifier used in ESM imports.

    Generated sources import each other by their compiled ``.mjs`` name; under
    ``NodeNext`` resolution TypeScript maps ``.mjs`` specifiers back to the
    ``.mts`` source, so both languages use the same specifier.
    """
    return f"{stem}.mjs"
