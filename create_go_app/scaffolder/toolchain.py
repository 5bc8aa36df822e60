"""Calls into the external Go toolchain and git.

``resolve_version`` is the only call whose failure is fatal: without a
version there is nothing to stamp into ``go.work`` and ``go.mod``.  The
housekeeping helpers (``git_init``, ``mod_tidy``, ``format_tree``) report
failure through their return value and the caller records a warning.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from create_go_app.errors import ScaffoldError
from create_go_app.utils import run_command


_VERSION_TOKEN_RE = re.compile(r"^[A-Za-z]*(?P<major>\d+)\.(?P<minor>\d+)")


def parse_go_version(output: str) -> str:
    """Extract ``MAJOR.MINOR`` from ``go version`` output.

    The output must have at least three whitespace-separated fields, the
    third being the version token.  Patch level and pre-release suffixes are
    dropped::

        parse_go_version("go version go1.22.3 linux/amd64") -> "1.22"
        parse_go_version("go version go1.23rc1 darwin/arm64") -> "1.23"

    Raises:
        ScaffoldError: If the output does not have that shape.
    """
    fields = output.split()
    if len(fields) < 3:
        raise ScaffoldError("go version", f"unexpected output: {output.strip()!r}")
    match = _VERSION_TOKEN_RE.match(fields[2])
    if match is None:
        raise ScaffoldError("go version", f"no version number in {fields[2]!r}")
    return f"{match.group('major')}.{match.group('minor')}"


@dataclass
class CommandOutcome:
    """Result of one auxiliary command."""

    ok: bool
    detail: str = ""


class GoToolchain:
    """Thin async wrapper around ``go``, ``gofmt`` and ``git``."""

    def __init__(
        self,
        go_binary: str = "go",
        gofmt_binary: str = "gofmt",
        git_binary: str = "git",
    ) -> None:
        self.go_binary = go_binary
        self.gofmt_binary = gofmt_binary
        self.git_binary = git_binary

    async def resolve_version(self) -> str:
        """Return the installed Go version as ``MAJOR.MINOR``.

        Raises:
            ScaffoldError: If ``go version`` cannot run or its output cannot
                be parsed.
        """
        returncode, stdout, stderr = await run_command([self.go_binary, "version"])
        if returncode != 0:
            raise ScaffoldError(
                "go version", f"failed to get Go version: {stderr or f'exit code {returncode}'}"
            )
        return parse_go_version(stdout)

    async def git_init(self, project_root: Path) -> CommandOutcome:
        return await self._run([self.git_binary, "init"], project_root)

    async def mod_tidy(self, module_dir: Path) -> CommandOutcome:
        return await self._run([self.go_binary, "mod", "tidy"], module_dir)

    async def format_tree(self, project_root: Path) -> CommandOutcome:
        """Format every Go file under *project_root* in place."""
        return await self._run([self.gofmt_binary, "-w", "."], project_root)

    async def _run(self, cmd: list[str], cwd: Path) -> CommandOutcome:
        returncode, stdout, stderr = await run_command(cmd, cwd=cwd)
        if returncode != 0:
            return CommandOutcome(ok=False, detail=stderr or stdout or f"exit code {returncode}")
        return CommandOutcome(ok=True, detail=stdout)
