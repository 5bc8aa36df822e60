"""create-go-app configuration.

Typed settings for a scaffolding run.  The CLI builds a ``ScaffoldConfig``
from environment variables first and then applies command-line overrides, so
every generator receives one validated object instead of loose arguments.
"""

from __future__ import annotations

import os
import random
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


DEFAULT_PROJECT_NAME = "microservice"
DEFAULT_SERVICE_NAME = "example"


class ExistingServicePolicy(str, Enum):
    """What to do when ``services/<name>/`` is already on disk."""

    OVERWRITE = "overwrite"
    SKIP = "skip"
    ERROR = "error"


class PortRange(BaseModel):
    """Range the default ``server.port`` of a new service is drawn from.

    Sibling services generated without explicit config get different ports
    most of the time, which keeps ``make run-*`` targets from colliding.
    """

    base: int = Field(default=8080, ge=1, le=65535)
    span: int = Field(default=10, ge=1, le=1000)

    def pick(self, rng: random.Random | None = None) -> int:
        """Return a pseudo-random port in ``[base, base + span)``."""
        rng = rng or random.Random()
        return self.base + rng.randrange(self.span)


class ScaffoldConfig(BaseModel):
    """Settings for one ``create-go-app`` invocation."""

    project_name: str = Field(default="")
    service_name: str = Field(default="")
    output_dir: Path = Field(default=Path("."))
    on_existing: ExistingServicePolicy = Field(default=ExistingServicePolicy.OVERWRITE)

    # External tooling
    go_binary: str = Field(default="go")
    gofmt_binary: str = Field(default="gofmt")
    git_binary: str = Field(default="git")
    init_git: bool = Field(default=True, description="Run git init for new projects")
    run_tidy: bool = Field(default=True, description="Run go mod tidy after writing modules")
    run_format: bool = Field(default=True, description="Run gofmt over the tree at the end")

    # Generated service defaults
    ports: PortRange = Field(default_factory=PortRange)
    fallback_port: int = Field(
        default=8081, ge=1, le=65535,
        description="Port the generated API uses when its config cannot be loaded",
    )

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def project_root(self) -> Path:
        """Directory the project lives in (``<output_dir>/<project_name>``)."""
        return self.output_dir / self.project_name

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls, **overrides: Any) -> "ScaffoldConfig":
        """Build a ``ScaffoldConfig`` from environment variables.

        Recognised variables (all optional):
            CGA_OUTPUT_DIR, CGA_GO_BINARY, CGA_ON_EXISTING, CGA_NO_GIT,
            CGA_NO_TIDY, CGA_NO_FORMAT, CGA_PORT_BASE, CGA_PORT_SPAN.

        Keyword arguments that are not ``None`` win over the environment.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("CGA_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["CGA_OUTPUT_DIR"])
        if os.environ.get("CGA_GO_BINARY"):
            kwargs["go_binary"] = os.environ["CGA_GO_BINARY"]
        if os.environ.get("CGA_ON_EXISTING"):
            kwargs["on_existing"] = ExistingServicePolicy(os.environ["CGA_ON_EXISTING"])
        if _env_flag("CGA_NO_GIT"):
            kwargs["init_git"] = False
        if _env_flag("CGA_NO_TIDY"):
            kwargs["run_tidy"] = False
        if _env_flag("CGA_NO_FORMAT"):
            kwargs["run_format"] = False

        port_kwargs: dict[str, Any] = {}
        if os.environ.get("CGA_PORT_BASE"):
            port_kwargs["base"] = int(os.environ["CGA_PORT_BASE"])
        if os.environ.get("CGA_PORT_SPAN"):
            port_kwargs["span"] = int(os.environ["CGA_PORT_SPAN"])
        if port_kwargs:
            kwargs["ports"] = PortRange(**port_kwargs)

        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")
