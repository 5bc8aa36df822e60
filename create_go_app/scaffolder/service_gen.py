"""Service module generation.

Renders one ``services/<name>/`` module (API and CLI entry points, config,
schema stub, internal logic stub and ``go.mod``), registers it in
``go.work`` and contributes its block to the ``Makefile`` and ``README.md``.
"""

from __future__ import annotations

import random
from pathlib import Path
from typing import Any

from create_go_app.config import ExistingServicePolicy, PortRange
from create_go_app.errors import ScaffoldError, ScaffoldReport
from create_go_app.utils import print_step

from .merger import AggregateKind, AggregateMerger, WorkspaceFile, service_marker
from .templates import TemplateRenderer
from .toolchain import GoToolchain


SERVICE_DIRS: tuple[str, ...] = (
    "api",
    "cli",
    "cmd/api",
    "cmd/cli",
    "config",
    "db",
    "internal",
)

# Template name -> path inside services/<name>/
SERVICE_FILES: dict[str, str] = {
    "service/go.mod.j2": "go.mod",
    "service/cmd_api_main.go.j2": "cmd/api/main.go",
    "service/cmd_cli_main.go.j2": "cmd/cli/main.go",
    "service/api_handlers.go.j2": "api/handlers.go",
    "service/cli_root.go.j2": "cli/root.go",
    "service/config.yaml.j2": "config/config.yaml",
    "service/schema.sql.j2": "db/schema.sql",
    "service/internal_service.go.j2": "internal/service.go",
}

# Rendered into the root Makefile and README rather than the service tree.
MAKEFILE_BLOCK_TEMPLATE = "service/makefile_block.j2"
README_ENTRY_TEMPLATE = "service/readme_entry.j2"


def service_dir(project_root: Path, service: str) -> Path:
    return project_root / "services" / service


def workspace_use_path(service: str) -> str:
    """Path of a service module as listed in ``go.work``."""
    return f"./services/{service}"


def list_services(project_root: Path) -> list[str]:
    """Return the services already present under ``services/``, sorted."""
    services_root = project_root / "services"
    if not services_root.is_dir():
        return []
    return sorted(p.name for p in services_root.iterdir() if p.is_dir())


class ServiceGenerator:
    """Generates a service module and wires it into the workspace."""

    def __init__(
        self,
        renderer: TemplateRenderer,
        toolchain: GoToolchain,
        *,
        ports: PortRange | None = None,
        fallback_port: int = 8081,
        on_existing: ExistingServicePolicy = ExistingServicePolicy.OVERWRITE,
        run_tidy: bool = True,
        rng: random.Random | None = None,
    ) -> None:
        self.renderer = renderer
        self.writer = renderer.writer
        self.merger = AggregateMerger(self.writer)
        self.toolchain = toolchain
        self.ports = ports or PortRange()
        self.fallback_port = fallback_port
        self.on_existing = on_existing
        self.run_tidy = run_tidy
        self.rng = rng or random.Random()

    # -- Public API --------------------------------------------------------

    async def generate(
        self,
        project_root: Path,
        service: str,
        go_version: str,
        report: ScaffoldReport,
    ) -> Path:
        """Generate ``services/<service>/`` under *project_root*.

        Args:
            project_root: Workspace root.  Its final path component is the Go
                module prefix.
            service: Service name.
            go_version: ``MAJOR.MINOR`` stamped into the service ``go.mod``.
            report: Run report that collects warnings.

        Returns:
            Path to the service directory.

        Raises:
            ScaffoldError: On any filesystem failure, or when the service
                already exists and the policy is ``error``.
        """
        root = service_dir(project_root, service)
        context = self._build_context(project_root, service, go_version)

        exists = root.exists()
        if exists and self.on_existing is ExistingServicePolicy.ERROR:
            raise ScaffoldError("service", f"service '{service}' already exists at {root}")

        if exists and self.on_existing is ExistingServicePolicy.SKIP:
            print_step(f"Service '{service}' exists, keeping its files")
        else:
            # 1. Directory tree
            for d in SERVICE_DIRS:
                await self.writer.ensure_dir(root / d)

            # 2. Module manifest and sources
            for template_name, rel_path in SERVICE_FILES.items():
                await self.renderer.render_to_file(template_name, root / rel_path, context)
            print_step(f"Wrote service '{service}'")

            # 3. Dependency housekeeping
            if self.run_tidy:
                outcome = await self.toolchain.mod_tidy(root)
                if outcome.ok:
                    print_step(f"go mod tidy run inside {service}")
                else:
                    report.warn("go mod tidy", f"{service}: {outcome.detail}")

        # 4. Workspace membership
        await self._register_workspace(project_root, service, go_version, report)

        # 5. Aggregate files
        await self._merge_makefile(project_root, service, context)
        await self._merge_readme(project_root, service)

        if service not in report.services_added:
            report.services_added.append(service)
        return root

    # -- Context building --------------------------------------------------

    def _build_context(
        self, project_root: Path, service: str, go_version: str
    ) -> dict[str, Any]:
        return {
            "project": project_root.name,
            "service": service,
            "go_version": go_version,
            "port": self.ports.pick(self.rng),
            "fallback_port": self.fallback_port,
        }

    # -- Workspace ---------------------------------------------------------

    async def _register_workspace(
        self,
        project_root: Path,
        service: str,
        go_version: str,
        report: ScaffoldReport,
    ) -> None:
        """Add the service to ``go.work``; failure is only a warning."""
        work_path = project_root / "go.work"
        try:
            text = await self.writer.read_file(work_path) if work_path.exists() else ""
            workspace = WorkspaceFile.parse(text)
            if not workspace.go_version:
                workspace.go_version = go_version
            if workspace.add_use(workspace_use_path(service)) or not text:
                await self.writer.write_file(work_path, workspace.render())
        except ScaffoldError as exc:
            report.warn("go work use", f"{service}: {exc.message}")

    # -- Aggregates --------------------------------------------------------

    async def _merge_makefile(
        self, project_root: Path, service: str, context: dict[str, Any]
    ) -> bool:
        marker = service_marker(AggregateKind.MAKEFILE, service)
        block = self.renderer.render(MAKEFILE_BLOCK_TEMPLATE, {**context, "marker": marker})
        return await self.merger.append_if_absent(
            project_root / "Makefile",
            marker,
            block,
            legacy_markers=(f"run-{service}-api:",),
        )

    async def _merge_readme(self, project_root: Path, service: str) -> bool:
        marker = service_marker(AggregateKind.MARKDOWN, service)
        return await self.merger.append_if_absent(
            project_root / "README.md",
            marker,
            readme_entry(self.renderer, service),
            legacy_markers=(f"- services/{service} (API, CLI)",),
        )


def readme_entry(renderer: TemplateRenderer, service: str) -> str:
    """Render the marked README block for *service*."""
    marker = service_marker(AggregateKind.MARKDOWN, service)
    return renderer.render(README_ENTRY_TEMPLATE, {"service": service, "marker": marker})
