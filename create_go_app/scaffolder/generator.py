"""New-project generation.

Lays down the workspace root (``go.work``, ``Makefile``, ``README.md``,
``.gitignore``), the shared module with its YAML config loader and the
``deploy/`` directory, initialises git, and hands over to the
``ServiceGenerator`` for the first service.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from create_go_app.errors import ScaffoldReport
from create_go_app.utils import print_step

from .service_gen import ServiceGenerator, readme_entry
from .templates import TemplateRenderer
from .toolchain import GoToolchain


PROJECT_DIRS: tuple[str, ...] = (
    "shared/config",
    "deploy",
)

# Template name -> path inside the project root
PROJECT_FILES: dict[str, str] = {
    "project/go.work.j2": "go.work",
    "project/Makefile.j2": "Makefile",
    "project/README.md.j2": "README.md",
    "project/gitignore.j2": ".gitignore",
    "project/shared_go.mod.j2": "shared/go.mod",
    "project/shared_config.go.j2": "shared/config/config.go",
}


class ProjectGenerator:
    """Creates a new workspace and its first service.

    Given a project root that does not exist yet, generates:
    - ``go.work`` stamped with the Go version
    - ``Makefile`` with a ``build`` target covering every service
    - ``README.md`` naming the project and its first service
    - ``.gitignore``
    - ``shared/`` module with ``config.LoadConfig``
    - an empty ``deploy/`` directory
    - the first service, via ``ServiceGenerator``
    """

    def __init__(
        self,
        renderer: TemplateRenderer,
        toolchain: GoToolchain,
        service_gen: ServiceGenerator,
        *,
        init_git: bool = True,
        run_tidy: bool = True,
    ) -> None:
        self.renderer = renderer
        self.writer = renderer.writer
        self.toolchain = toolchain
        self.service_gen = service_gen
        self.init_git = init_git
        self.run_tidy = run_tidy

    # -- Public API --------------------------------------------------------

    async def generate(
        self,
        project_root: Path,
        first_service: str,
        go_version: str,
        report: ScaffoldReport,
    ) -> Path:
        """Generate the complete workspace.

        Args:
            project_root: Directory to create.  Its final component is the
                project name and Go module prefix.
            first_service: Name of the service generated alongside the project.
            go_version: ``MAJOR.MINOR`` stamped into ``go.work`` and every
                ``go.mod``.
            report: Run report that collects warnings.

        Returns:
            Path to the project root.
        """
        context = self._build_context(project_root, first_service, go_version)

        # 1. Skeleton directories
        for d in PROJECT_DIRS:
            await self.writer.ensure_dir(project_root / d)

        # 2. Root files and shared module; these must exist before the first
        #    service's go.mod points its replace directive at shared/.
        for template_name, rel_path in PROJECT_FILES.items():
            await self.renderer.render_to_file(template_name, project_root / rel_path, context)
        print_step(f"Wrote workspace files for '{project_root.name}'")

        # 3. Version control
        if self.init_git:
            outcome = await self.toolchain.git_init(project_root)
            if outcome.ok:
                print_step("Git repository initialized")
            else:
                report.warn("git init", outcome.detail)

        # 4. Shared module dependencies
        if self.run_tidy:
            outcome = await self.toolchain.mod_tidy(project_root / "shared")
            if outcome.ok:
                print_step("go mod tidy run inside shared")
            else:
                report.warn("go mod tidy", f"shared: {outcome.detail}")

        report.project_created = True

        # 5. First service
        await self.service_gen.generate(project_root, first_service, go_version, report)
        return project_root

    # -- Context building --------------------------------------------------

    def _build_context(
        self, project_root: Path, first_service: str, go_version: str
    ) -> dict[str, Any]:
        return {
            "project": project_root.name,
            "go_version": go_version,
            "first_service": first_service,
            "first_service_entry": readme_entry(self.renderer, first_service).rstrip("\n"),
        }
