"""create-go-app scaffolder -- generates Go workspace and service modules.

Quick usage::

    from create_go_app.scaffolder import (
        GoToolchain, ProjectGenerator, ServiceGenerator, TemplateRenderer,
    )

    renderer = TemplateRenderer()
    toolchain = GoToolchain()
    services = ServiceGenerator(renderer, toolchain)
    project = ProjectGenerator(renderer, toolchain, services)
    await project.generate(Path("demo"), "billing", "1.22", report)
"""

from create_go_app.scaffolder.generator import ProjectGenerator
from create_go_app.scaffolder.merger import AggregateMerger, WorkspaceFile
from create_go_app.scaffolder.service_gen import ServiceGenerator
from create_go_app.scaffolder.templates import TemplateRenderer
from create_go_app.scaffolder.toolchain import GoToolchain, parse_go_version
from create_go_app.scaffolder.writer import FileWriter

__all__ = [
    "AggregateMerger",
    "FileWriter",
    "GoToolchain",
    "ProjectGenerator",
    "ServiceGenerator",
    "TemplateRenderer",
    "WorkspaceFile",
    "parse_go_version",
]
