"""Fatal errors and recorded warnings for a scaffolding run.

Two severities exist and they travel through different channels:

* **Fatal** problems (file I/O, unreadable toolchain version, bad names) raise
  ``ScaffoldError`` and abort the run.  Nothing already written is removed.
* **Warnings** (git init, ``go mod tidy``, workspace registration, the final
  format pass) are appended to the run's ``ScaffoldReport`` and printed; the
  run carries on.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from create_go_app.utils import print_warning


class ScaffoldError(Exception):
    """Raised when a scaffolding step fails irrecoverably."""

    def __init__(self, step: str, message: str) -> None:
        self.step = step
        self.message = message
        super().__init__(f"{step}: {message}")


class ToolWarning(BaseModel):
    """A non-fatal failure of an auxiliary tooling step."""

    step: str
    message: str


class ScaffoldReport(BaseModel):
    """Outcome of one invocation, accumulated as the generators run."""

    project_root: Path
    go_version: str = ""
    project_created: bool = False
    services_added: list[str] = Field(default_factory=list)
    files_written: list[Path] = Field(default_factory=list)
    warnings: list[ToolWarning] = Field(default_factory=list)

    def warn(self, step: str, message: str) -> None:
        """Record and print a warning."""
        self.warnings.append(ToolWarning(step=step, message=message))
        print_warning(f"  {step}: {message}")

    def warning_steps(self) -> list[str]:
        return [w.step for w in self.warnings]
