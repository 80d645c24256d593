"""Tailwind CSS v4 rewrites for Vite projects.

Pure string transformations applied to files produced by ``create-vite``.
Each function is idempotent: applying it to its own output changes nothing.
"""

from __future__ import annotations

import re

TAILWIND_CSS_IMPORT = '@import "tailwindcss";'
TAILWIND_VITE_PACKAGE = "@tailwindcss/vite"
TAILWIND_VITE_IMPORT = "import tailwindcss from '@tailwindcss/vite'"

VITE_CONFIG_CANDIDATES = ("vite.config.ts", "vite.config.js", "vite.config.mts", "vite.config.mjs")
STYLESHEET_ENTRY = "src/index.css"

_CSS_IMPORT_RE = re.compile(
    r"""^[ \t]*@import[ \t]+(?:url\()?["']tailwindcss["']\)?[ \t]*;?[ \t]*(?:\r?\n|$)""",
    re.MULTILINE,
)
_VITE_IMPORT_RE = re.compile(r"""import\s+\{[^}]+\}\s+from\s+['"]vite['"];?""")
_PLUGINS_RE = re.compile(r"plugins:\s*\[(\s*)(\])?")


def add_tailwind_import(css: str) -> str:
    """Ensure the stylesheet starts with exactly one Tailwind import.

    Any existing ``@import "tailwindcss"`` lines are removed before the
    canonical one is placed at the top, so a template that already carried
    the import (possibly more than once) ends up with a single copy.
    """
    body = _CSS_IMPORT_RE.sub("", css)
    body = body.lstrip("\n")
    if not body.strip():
        return f"{TAILWIND_CSS_IMPORT}\n"
    return f"{TAILWIND_CSS_IMPORT}\n\n{body}"


def count_tailwind_imports(css: str) -> int:
    return len(_CSS_IMPORT_RE.findall(css))


def add_tailwind_plugin(vite_config: str) -> str:
    """Import ``@tailwindcss/vite`` and register ``tailwindcss()`` as a plugin.

    Configs that already reference the plugin package are returned unchanged.
    """
    if TAILWIND_VITE_PACKAGE in vite_config:
        return vite_config

    updated = vite_config
    match = _VITE_IMPORT_RE.search(updated)
    if match:
        updated = updated[: match.end()] + "\n" + TAILWIND_VITE_IMPORT + updated[match.end():]
    else:
        updated = TAILWIND_VITE_IMPORT + "\n" + updated

    return _PLUGINS_RE.sub(_register_plugin, updated, count=1)


def _register_plugin(match: re.Match[str]) -> str:
    spacing, closing = match.group(1), match.group(2)
    if closing:
        return "plugins: [tailwindcss()]"
    if "\n" in spacing:
        return f"plugins: [{spacing}tailwindcss(),{spacing}"
    return "plugins: [tailwindcss(), "
