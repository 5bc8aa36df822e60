"""create-go-app orchestrator and command-line entry point.

One decision drives the run:

* the project directory does not exist -> **CreateProject**: workspace root,
  shared module, git init, then the first service;
* the project directory exists -> **AddService**: only the service module,
  its ``go.work`` entry and its Makefile/README blocks.

Both paths end with a ``gofmt`` pass over the tree.

Usage::

    create-go-app demo --service billing
    create-go-app demo --service accounts        # adds to the existing project
    create-go-app --yes                          # microservice / example
    python -m create_go_app.pipeline demo --service billing --no-git
"""

from __future__ import annotations

import asyncio
import random
import sys
from collections.abc import Callable
from pathlib import Path

from rich.prompt import Prompt

from create_go_app.config import (
    DEFAULT_PROJECT_NAME,
    DEFAULT_SERVICE_NAME,
    ExistingServicePolicy,
    ScaffoldConfig,
)
from create_go_app.errors import ScaffoldError, ScaffoldReport
from create_go_app.scaffolder import (
    FileWriter,
    GoToolchain,
    ProjectGenerator,
    ServiceGenerator,
    TemplateRenderer,
    WorkspaceFile,
)
from create_go_app.scaffolder.generator import PROJECT_FILES
from create_go_app.scaffolder.merger import marked_services
from create_go_app.scaffolder.service_gen import (
    MAKEFILE_BLOCK_TEMPLATE,
    README_ENTRY_TEMPLATE,
    SERVICE_FILES,
    list_services,
)
from create_go_app.utils import (
    console,
    is_valid_name,
    print_error,
    print_header,
    print_step,
    print_success,
    print_summary_table,
)


# ---------------------------------------------------------------------------
# Name resolution
# ---------------------------------------------------------------------------


def resolve_names(
    project: str | None,
    service: str | None,
    skip_prompts: bool,
    ask: Callable[[str], str] | None = None,
) -> tuple[str, str]:
    """Fill in missing project/service names from defaults or prompts.

    With *skip_prompts* the defaults ``microservice``/``example`` are used;
    otherwise *ask* (``rich.prompt.Prompt.ask`` by default) is called for each
    missing name.

    Raises:
        ScaffoldError: If a name is still empty, or is not a valid name.
    """
    project = (project or "").strip()
    service = (service or "").strip()

    if skip_prompts:
        project = project or DEFAULT_PROJECT_NAME
        service = service or DEFAULT_SERVICE_NAME
        print_step(f"Using defaults: project = {project}, service = {service}")
    else:
        ask = ask or (lambda label: Prompt.ask(label, default="", show_default=False))
        if not project:
            project = ask("Enter project name").strip()
        if not service:
            service = ask("Enter service name (e.g. user, billing)").strip()

    if not project or not service:
        raise ScaffoldError("names", "Project and service names are required.")
    for kind, value in (("project", project), ("service", service)):
        if not is_valid_name(value):
            raise ScaffoldError(
                "names",
                f"invalid {kind} name {value!r}: use letters, digits, '.', '_' or '-'",
            )
    return project, service


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class ScaffoldPipeline:
    """Decides between CreateProject and AddService and runs it.

    Attributes:
        config: Settings for this run; names must already be resolved.
        toolchain: Wrapper for ``go``, ``gofmt`` and ``git``.
        report: Outcome of the run, filled in by :meth:`run`.
    """

    def __init__(
        self,
        config: ScaffoldConfig,
        toolchain: GoToolchain | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.toolchain = toolchain or GoToolchain(
            go_binary=config.go_binary,
            gofmt_binary=config.gofmt_binary,
            git_binary=config.git_binary,
        )
        self.writer = FileWriter()
        self.renderer = TemplateRenderer(self.writer)
        self.service_gen = ServiceGenerator(
            self.renderer,
            self.toolchain,
            ports=config.ports,
            fallback_port=config.fallback_port,
            on_existing=config.on_existing,
            run_tidy=config.run_tidy,
            rng=rng,
        )
        self.project_gen = ProjectGenerator(
            self.renderer,
            self.toolchain,
            self.service_gen,
            init_git=config.init_git,
            run_tidy=config.run_tidy,
        )
        self.report = ScaffoldReport(project_root=config.project_root)

    async def run(self) -> ScaffoldReport:
        """Generate the project or add the service, then format the tree.

        Raises:
            ScaffoldError: On any fatal failure.  Files written before the
                failure are left in place.
        """
        root = self.config.project_root
        service = self.config.service_name

        self.check_templates()

        if root.exists():
            if not root.is_dir():
                raise ScaffoldError("project", f"{root} exists and is not a directory")
            print_step(f"Project {root.name} already exists, skipping project creation")
            await self.add_service(root, service)
        else:
            await self.create_project(root, service)

        if self.config.run_format:
            outcome = await self.toolchain.format_tree(root)
            if not outcome.ok:
                self.report.warn("gofmt", outcome.detail)

        self.report.files_written = list(self.writer.written)
        return self.report

    def check_templates(self) -> None:
        """Fail before touching the disk if a packaged template is missing."""
        required = set(PROJECT_FILES) | set(SERVICE_FILES)
        required |= {MAKEFILE_BLOCK_TEMPLATE, README_ENTRY_TEMPLATE}
        missing = sorted(required - set(self.renderer.list_templates()))
        if missing:
            raise ScaffoldError(
                "templates",
                f"missing from {self.renderer.template_dir}: {', '.join(missing)}",
            )

    async def create_project(self, root: Path, service: str) -> None:
        go_version = await self.toolchain.resolve_version()
        print_success(f"Go version: {go_version}")
        self.report.go_version = go_version
        await self.project_gen.generate(root, service, go_version, self.report)

    async def add_service(self, root: Path, service: str) -> None:
        go_version = await self.project_go_version(root)
        self.report.go_version = go_version
        await self.service_gen.generate(root, service, go_version, self.report)

    async def project_go_version(self, root: Path) -> str:
        """Return the version stamped in ``go.work`` when the project was created.

        Falls back to asking the toolchain when ``go.work`` is missing or has
        no ``go`` directive.
        """
        work_path = root / "go.work"
        if work_path.is_file():
            workspace = WorkspaceFile.parse(await self.writer.read_file(work_path))
            if workspace.go_version:
                return workspace.go_version
        return await self.toolchain.resolve_version()


def makefile_services(root: Path) -> list[str]:
    """Service names that have run targets in the project Makefile."""
    makefile = root / "Makefile"
    if not makefile.is_file():
        return []
    return marked_services(makefile.read_text(encoding="utf-8", errors="replace"))


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser():
    import argparse

    parser = argparse.ArgumentParser(
        prog="create-go-app",
        description="Scaffold a multi-module Go workspace, or add a service to one",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  create-go-app demo --service billing\n"
            "  create-go-app demo --service accounts\n"
            "  create-go-app --yes\n"
        ),
    )
    parser.add_argument("project", nargs="?", default=None, help="Project name")
    parser.add_argument("--service", default=None, help="Service to scaffold")
    parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help=f"Skip prompts and use defaults ({DEFAULT_PROJECT_NAME}/{DEFAULT_SERVICE_NAME})",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Directory the project is created in (default: current directory)",
    )
    parser.add_argument(
        "--on-existing",
        choices=[p.value for p in ExistingServicePolicy],
        default=None,
        help="What to do if the service already exists (default: overwrite)",
    )
    parser.add_argument("--no-git", action="store_true", help="Do not run git init")
    parser.add_argument("--no-tidy", action="store_true", help="Do not run go mod tidy")
    parser.add_argument("--no-format", action="store_true", help="Do not run gofmt")
    parser.add_argument("--go", dest="go_binary", default=None, help="Go binary to use")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``create-go-app``."""
    args = build_parser().parse_args(argv)

    try:
        project, service = resolve_names(args.project, args.service, args.yes)
        config = ScaffoldConfig.from_env(
            project_name=project,
            service_name=service,
            output_dir=Path(args.output) if args.output else None,
            on_existing=args.on_existing,
            go_binary=args.go_binary,
            init_git=False if args.no_git else None,
            run_tidy=False if args.no_tidy else None,
            run_format=False if args.no_format else None,
        )
        print_header(f"create-go-app: {project}")
        pipeline = ScaffoldPipeline(config)
        report = asyncio.run(pipeline.run())
    except ScaffoldError as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)

    print_summary_table(
        {
            "Project": str(report.project_root),
            "Go version": report.go_version,
            "Created project": "yes" if report.project_created else "no",
            "Service": service,
            "Services in project": ", ".join(list_services(report.project_root)),
            "Make targets for": ", ".join(makefile_services(report.project_root)),
            "Files written": str(len(report.files_written)),
            "Warnings": ", ".join(report.warning_steps()) or "none",
        },
        title="Scaffold Results",
    )
    if report.project_created:
        print_success(f"Project '{project}' created with service '{service}'")
    else:
        print_success(f"Service '{service}' added to project '{project}'")
    console.print(f"  cd {report.project_root}")


if __name__ == "__main__":
    main()
