"""Jinja2 template rendering for Go workspace scaffolding.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``create_go_app/scaffolder/templates/`` directory and renders them with
project/service context data.  Inline strings go through a plain one-pass
substitution instead: a placeholder with no value in the context is emitted
verbatim, and substituted values are never rendered a second time.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from jinja2 import DebugUndefined, Environment, FileSystemLoader

from .writer import FileWriter


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

# Only bare identifiers are placeholders; ``{{ .Name }}`` and ``{{ a.b }}`` are text.
_PLACEHOLDER_RE = re.compile(r"\{\{\s*(\w+)\s*\}\}")


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for the generated Go workspace.

    Templates are ``.j2`` files under a configurable template directory,
    grouped into ``project/`` (workspace root and shared module) and
    ``service/`` (one service module).  Output is never HTML-escaped since
    every target is source code or config.
    """

    def __init__(
        self,
        writer: FileWriter | None = None,
        template_dir: str | Path | None = None,
    ) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.writer = writer or FileWriter()
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            undefined=DebugUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    # -- Rendering ---------------------------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"service/cmd_api_main.go.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Substitute ``{{ name }}`` placeholders in an inline string.

        This is a single literal pass, not a Jinja render.  A placeholder with
        no value in *context* is kept exactly as written, and anything that is
        not a bare identifier (Go template actions, dotted names) is plain text::

            render_string("{{ a }}-{{b}}", {"a": "x"}) -> "x-{{b}}"
        """

        def _substitute(match: re.Match[str]) -> str:
            name = match.group(1)
            if name not in context:
                return match.group(0)
            return str(context[name])

        return _PLACEHOLDER_RE.sub(_substitute, template_string)

    # -- File-based rendering (async) --------------------------------------

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a template and write the result to *output_path*.

        Parent directories are created automatically and existing content is
        replaced.  Returns the output path.
        """
        content = self.render(template_path, context)
        return await self.writer.write_file(output_path, content)

    # -- Utility -----------------------------------------------------------

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return a sorted list of all ``.j2`` template paths under *prefix*.

        Paths are relative to the template root directory.
        """
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in search_dir.rglob("*.j2")
        )
