"""Shared pytest fixtures for the create-go-app test suite.

Provides reusable fixtures for:
- A fake Go toolchain (no ``go``, ``gofmt`` or ``git`` needed)
- Renderer / writer / report objects rooted in ``tmp_path``
- A pipeline factory for end-to-end runs
- A project laid out by an earlier, marker-less version of the tool
"""

from __future__ import annotations

import random
import textwrap
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from create_go_app.config import ScaffoldConfig
from create_go_app.errors import ScaffoldReport
from create_go_app.pipeline import ScaffoldPipeline
from create_go_app.scaffolder.templates import TemplateRenderer
from create_go_app.scaffolder.toolchain import CommandOutcome, GoToolchain
from create_go_app.scaffolder.writer import FileWriter


GO_VERSION = "1.22"


# ---------------------------------------------------------------------------
# Toolchain
# ---------------------------------------------------------------------------

def _make_toolchain(ok: bool, version: str = GO_VERSION) -> MagicMock:
    toolchain = MagicMock(spec=GoToolchain)
    outcome = CommandOutcome(ok=ok, detail="" if ok else "command failed")
    toolchain.resolve_version = AsyncMock(return_value=version)
    toolchain.git_init = AsyncMock(return_value=outcome)
    toolchain.mod_tidy = AsyncMock(return_value=outcome)
    toolchain.format_tree = AsyncMock(return_value=outcome)
    return toolchain


@pytest.fixture
def fake_toolchain() -> MagicMock:
    """A GoToolchain whose commands all succeed and report Go 1.22.

    Usage::

        async def test_something(fake_toolchain):
            fake_toolchain.mod_tidy.assert_awaited_once()
    """
    return _make_toolchain(ok=True)


@pytest.fixture
def failing_toolchain() -> MagicMock:
    """A GoToolchain whose auxiliary commands (git, tidy, gofmt) all fail."""
    return _make_toolchain(ok=False)


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------

@pytest.fixture
def writer() -> FileWriter:
    return FileWriter()


@pytest.fixture
def renderer(writer: FileWriter) -> TemplateRenderer:
    """Renderer over the packaged templates."""
    return TemplateRenderer(writer)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Path of a project that does not exist yet."""
    return tmp_path / "demo"


@pytest.fixture
def report(project_root: Path) -> ScaffoldReport:
    return ScaffoldReport(project_root=project_root)


# ---------------------------------------------------------------------------
# Pipeline factory
# ---------------------------------------------------------------------------

@pytest.fixture
def make_pipeline(tmp_path: Path, fake_toolchain: MagicMock) -> Callable[..., ScaffoldPipeline]:
    """Factory building a ScaffoldPipeline rooted in ``tmp_path``.

    Usage::

        async def test_run(make_pipeline):
            report = await make_pipeline("demo", "billing").run()
    """

    def factory(
        project: str,
        service: str,
        toolchain: MagicMock | None = None,
        seed: int = 7,
        **overrides: Any,
    ) -> ScaffoldPipeline:
        config = ScaffoldConfig(
            project_name=project,
            service_name=service,
            output_dir=tmp_path,
            **overrides,
        )
        return ScaffoldPipeline(
            config,
            toolchain=toolchain or fake_toolchain,
            rng=random.Random(seed),
        )

    return factory


# ---------------------------------------------------------------------------
# Legacy project
# ---------------------------------------------------------------------------

@pytest.fixture
def legacy_project(tmp_path: Path) -> Path:
    """A project generated by an earlier version that wrote no marker lines."""
    root = tmp_path / "legacy"
    (root / "shared" / "config").mkdir(parents=True)
    (root / "services" / "billing" / "cmd" / "api").mkdir(parents=True)
    (root / "go.work").write_text(
        "go 1.21\n\nuse ./services/billing\n", encoding="utf-8"
    )
    (root / "Makefile").write_text(
        textwrap.dedent(
            """\
            build:
            \tgo build -o bin/billing-cli ./services/billing/cmd/cli/main.go
            \tgo build -o bin/billing-api ./services/billing/cmd/api/main.go

            run-billing-api:
            \tgo run services/billing/cmd/api/main.go

            run-billing-cli:
            \tgo run services/billing/cmd/cli/main.go

            """
        ),
        encoding="utf-8",
    )
    (root / "README.md").write_text(
        textwrap.dedent(
            """\
            # legacy

            Generated with create-go-app.

            Includes:
            - shared/config
            - services/billing (API, CLI)
            """
        ),
        encoding="utf-8",
    )
    return root
