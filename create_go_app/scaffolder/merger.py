"""Merging per-service contributions into shared workspace files.

Two kinds of shared files grow as services are added:

* **Aggregate files** (``Makefile``, ``README.md``) receive exactly one block
  per service.  Each block carries a marker line keyed by the service name;
  a block is appended only if no line of the file equals that marker.
* **The workspace file** (``go.work``) lists every service module exactly once
  in its ``use`` directive.

Marker comparison is whole-line equality, never substring search, so a
service called ``bill`` does not mistake ``billing``'s block for its own.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .writer import FileWriter


MARKER_TAG = "create-go-app:service="


class AggregateKind(str, Enum):
    """Comment syntax of an aggregate file."""

    MAKEFILE = "makefile"
    MARKDOWN = "markdown"


def service_marker(kind: AggregateKind, service: str) -> str:
    """Return the marker line identifying *service*'s block in a file of *kind*.

    Examples::

        service_marker(AggregateKind.MAKEFILE, "billing")
            -> "# create-go-app:service=billing"
        service_marker(AggregateKind.MARKDOWN, "billing")
            -> "<!-- create-go-app:service=billing -->"
    """
    if kind is AggregateKind.MAKEFILE:
        return f"# {MARKER_TAG}{service}"
    return f"<!-- {MARKER_TAG}{service} -->"


def has_line(content: str, line: str) -> bool:
    """Return ``True`` if *line* is one of *content*'s lines (trailing blanks ignored)."""
    wanted = line.rstrip()
    return any(existing.rstrip() == wanted for existing in content.splitlines())


def marked_services(content: str) -> list[str]:
    """Return the service names whose markers appear in *content*, in file order."""
    pattern = re.compile(
        r"^(?:# |<!-- )" + re.escape(MARKER_TAG) + r"(?P<name>[^\s]+?)(?: -->)?\s*$"
    )
    names: list[str] = []
    for line in content.splitlines():
        match = pattern.match(line)
        if match and match.group("name") not in names:
            names.append(match.group("name"))
    return names


# ---------------------------------------------------------------------------
# Aggregate files
# ---------------------------------------------------------------------------


class AggregateMerger:
    """Appends marked blocks to aggregate files, at most once per marker."""

    def __init__(self, writer: FileWriter) -> None:
        self.writer = writer

    async def append_if_absent(
        self,
        path: str | Path,
        marker: str,
        block: str,
        legacy_markers: tuple[str, ...] = (),
    ) -> bool:
        """Append *block* to *path* unless a block for *marker* is already there.

        Args:
            path: Aggregate file.  Created empty first if it does not exist.
            marker: Line identifying the block.  Must appear as a line of
                *block* so the next call recognises it.
            block: Text to append.
            legacy_markers: Additional whole lines that also count as "already
                present", for blocks written before markers existed.

        Returns:
            ``True`` if the block was appended, ``False`` if it was already there.
        """
        if not has_line(block, marker):
            raise ValueError(f"block does not contain its marker line {marker!r}")

        file_path = Path(path)
        if not file_path.exists():
            await self.writer.write_file(file_path, "")

        existing = await self.writer.read_file(file_path)
        for candidate in (marker, *legacy_markers):
            if has_line(existing, candidate):
                return False

        separator = "" if not existing or existing.endswith("\n") else "\n"
        await self.writer.write_file(file_path, existing + separator + block)
        return True


# ---------------------------------------------------------------------------
# go.work
# ---------------------------------------------------------------------------

_USE_INLINE_BLOCK_RE = re.compile(r"^use\s*\((?P<paths>[^)]*)\)$")
_USE_LINE_RE = re.compile(r"^use\s+(?P<path>\S+)")
_GO_LINE_RE = re.compile(r"^go\s+(?P<version>\S+)")


def normalize_module_path(path: str) -> str:
    """Normalise a ``use`` path to ``./relative`` form.

    ``services/billing/`` and ``./services//billing`` both become
    ``./services/billing``.
    """
    cleaned = posixpath.normpath(path.strip().replace("\\", "/"))
    if cleaned.startswith(("/", "../")) or cleaned == "..":
        return cleaned
    if cleaned == ".":
        return "."
    return "./" + cleaned


@dataclass
class WorkspaceFile:
    """In-memory model of a ``go.work`` file.

    Only the ``go`` and ``use`` directives are interpreted; every other line
    (``toolchain``, ``replace``, comments) is kept and written back as-is.
    """

    go_version: str = ""
    uses: list[str] = field(default_factory=list)
    extra_lines: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> "WorkspaceFile":
        workspace = cls()
        in_use_block = False
        for raw in text.splitlines():
            line = raw.split("//", 1)[0].strip()
            if in_use_block:
                if line == ")":
                    in_use_block = False
                elif line:
                    workspace.add_use(line)
                continue
            if not line:
                if raw.strip():
                    workspace.extra_lines.append(raw.rstrip())
                continue
            if line in ("use (", "use("):
                in_use_block = True
                continue
            inline_match = _USE_INLINE_BLOCK_RE.match(line)
            if inline_match:
                for path in inline_match.group("paths").split():
                    workspace.add_use(path)
                continue
            use_match = _USE_LINE_RE.match(line)
            if use_match:
                workspace.add_use(use_match.group("path"))
                continue
            go_match = _GO_LINE_RE.match(line)
            if go_match and not workspace.go_version:
                workspace.go_version = go_match.group("version")
                continue
            workspace.extra_lines.append(raw.rstrip())
        return workspace

    def add_use(self, path: str) -> bool:
        """Add a module path; return ``False`` if it was already listed."""
        normalized = normalize_module_path(path)
        if normalized in self.uses:
            return False
        self.uses.append(normalized)
        return True

    def render(self) -> str:
        lines: list[str] = []
        if self.go_version:
            lines.append(f"go {self.go_version}")
        if self.extra_lines:
            lines.append("")
            lines.extend(self.extra_lines)
        if self.uses:
            lines.append("")
            lines.append("use (")
            lines.extend(f"\t{path}" for path in self.uses)
            lines.append(")")
        return "\n".join(lines) + "\n"
