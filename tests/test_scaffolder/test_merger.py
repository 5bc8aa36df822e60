"""Tests for aggregate-file merging and go.work membership.

Covers:
- service_marker syntax per file kind
- append_if_absent: create, append, idempotence, call order, prefix names,
  legacy markers, missing trailing newline
- marked_services
- WorkspaceFile parse/add_use/render
"""

from __future__ import annotations

import pytest

from create_go_app.errors import ScaffoldError
from create_go_app.scaffolder.merger import (
    AggregateKind,
    AggregateMerger,
    WorkspaceFile,
    has_line,
    marked_services,
    normalize_module_path,
    service_marker,
)


pytestmark = pytest.mark.unit


def _block(name: str) -> str:
    marker = service_marker(AggregateKind.MAKEFILE, name)
    return f"{marker}\nrun-{name}-api:\n\tgo run ./services/{name}/cmd/api\n\n"


@pytest.fixture
def merger(writer) -> AggregateMerger:
    return AggregateMerger(writer)


class TestServiceMarker:
    def test_makefile_marker(self):
        assert service_marker(AggregateKind.MAKEFILE, "billing") == (
            "# create-go-app:service=billing"
        )

    def test_markdown_marker(self):
        assert service_marker(AggregateKind.MARKDOWN, "billing") == (
            "<!-- create-go-app:service=billing -->"
        )


class TestHasLine:
    def test_whole_line_match(self):
        assert has_line("a\nrun-x-api:\nb\n", "run-x-api:")

    def test_substring_is_not_a_match(self):
        assert not has_line("# create-go-app:service=billing\n", "# create-go-app:service=bill")

    def test_trailing_whitespace_ignored(self):
        assert has_line("target:   \n", "target:")


class TestAppendIfAbsent:
    async def test_creates_missing_file(self, merger, tmp_path):
        path = tmp_path / "Makefile"
        appended = await merger.append_if_absent(
            path, service_marker(AggregateKind.MAKEFILE, "billing"), _block("billing")
        )
        assert appended is True
        assert path.read_text(encoding="utf-8") == _block("billing")

    async def test_second_call_is_noop(self, merger, tmp_path):
        path = tmp_path / "Makefile"
        path.write_text("build:\n\n", encoding="utf-8")
        marker = service_marker(AggregateKind.MAKEFILE, "billing")
        assert await merger.append_if_absent(path, marker, _block("billing")) is True
        before = path.read_text(encoding="utf-8")
        assert await merger.append_if_absent(path, marker, _block("billing")) is False
        assert path.read_text(encoding="utf-8") == before
        assert before.count(marker) == 1

    async def test_distinct_markers_kept_in_call_order(self, merger, tmp_path):
        path = tmp_path / "Makefile"
        path.write_text("build:\n\n", encoding="utf-8")
        names = ["billing", "accounts", "users"]
        for name in names:
            await merger.append_if_absent(
                path, service_marker(AggregateKind.MAKEFILE, name), _block(name)
            )
        content = path.read_text(encoding="utf-8")
        assert content == "build:\n\n" + "".join(_block(n) for n in names)
        assert marked_services(content) == names

    async def test_prefix_service_names_do_not_collide(self, merger, tmp_path):
        path = tmp_path / "Makefile"
        await merger.append_if_absent(
            path, service_marker(AggregateKind.MAKEFILE, "billing"), _block("billing")
        )
        appended = await merger.append_if_absent(
            path, service_marker(AggregateKind.MAKEFILE, "bill"), _block("bill")
        )
        assert appended is True
        assert marked_services(path.read_text(encoding="utf-8")) == ["billing", "bill"]

    async def test_legacy_marker_counts_as_present(self, merger, tmp_path):
        path = tmp_path / "Makefile"
        path.write_text("run-billing-api:\n\tgo run services/billing/cmd/api/main.go\n", encoding="utf-8")
        appended = await merger.append_if_absent(
            path,
            service_marker(AggregateKind.MAKEFILE, "billing"),
            _block("billing"),
            legacy_markers=("run-billing-api:",),
        )
        assert appended is False

    async def test_adds_newline_when_file_lacks_one(self, merger, tmp_path):
        path = tmp_path / "README.md"
        path.write_text("# demo", encoding="utf-8")
        marker = service_marker(AggregateKind.MARKDOWN, "billing")
        await merger.append_if_absent(path, marker, f"{marker}\n- services/billing (API, CLI)\n")
        assert path.read_text(encoding="utf-8") == (
            f"# demo\n{marker}\n- services/billing (API, CLI)\n"
        )

    async def test_block_without_its_marker_rejected(self, merger, tmp_path):
        with pytest.raises(ValueError):
            await merger.append_if_absent(tmp_path / "Makefile", "# marker", "no marker here\n")

    async def test_undecodable_file_is_fatal(self, merger, tmp_path):
        path = tmp_path / "README.md"
        path.write_bytes(b"# caf\xe9\n")
        marker = service_marker(AggregateKind.MARKDOWN, "billing")
        with pytest.raises(ScaffoldError) as exc_info:
            await merger.append_if_absent(path, marker, f"{marker}\n- services/billing (API, CLI)\n")
        assert exc_info.value.step == "read"
        assert path.read_bytes() == b"# caf\xe9\n"


class TestMarkedServices:
    def test_reads_both_syntaxes(self):
        content = (
            "<!-- create-go-app:service=billing -->\n"
            "- services/billing (API, CLI)\n"
            "# create-go-app:service=accounts\n"
        )
        assert marked_services(content) == ["billing", "accounts"]

    def test_ignores_unmarked_content(self):
        assert marked_services("build:\n\tgo build ./...\n") == []


class TestNormalizeModulePath:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("./services/billing", "./services/billing"),
            ("services/billing", "./services/billing"),
            ("services/billing/", "./services/billing"),
            ("./services//billing", "./services/billing"),
            ("../other", "../other"),
            (".", "."),
        ],
    )
    def test_forms(self, raw, expected):
        assert normalize_module_path(raw) == expected


class TestWorkspaceFile:
    def test_parse_version_only(self):
        ws = WorkspaceFile.parse("go 1.22\n")
        assert ws.go_version == "1.22"
        assert ws.uses == []

    def test_parse_single_and_block_uses(self):
        ws = WorkspaceFile.parse(
            "go 1.21\n\nuse ./services/a\n\nuse (\n\t./services/b\n\t./services/c // note\n)\n"
        )
        assert ws.uses == ["./services/a", "./services/b", "./services/c"]

    def test_parse_one_line_use_block(self):
        ws = WorkspaceFile.parse("go 1.22\nuse (./services/a)\nuse ( ./services/b ./services/c )\n")
        assert ws.uses == ["./services/a", "./services/b", "./services/c"]
        assert ws.extra_lines == []

    def test_parse_empty_one_line_use_block(self):
        ws = WorkspaceFile.parse("go 1.22\nuse ()\n")
        assert ws.uses == []
        assert ws.render() == "go 1.22\n"

    def test_parse_keeps_other_directives(self):
        ws = WorkspaceFile.parse("go 1.22\n\ntoolchain go1.22.3\n\nuse ./services/a\n")
        assert ws.extra_lines == ["toolchain go1.22.3"]
        assert "toolchain go1.22.3" in ws.render()

    def test_duplicate_uses_collapsed_on_parse(self):
        ws = WorkspaceFile.parse("go 1.22\nuse ./services/a\nuse services/a/\n")
        assert ws.uses == ["./services/a"]

    def test_add_use_is_idempotent(self):
        ws = WorkspaceFile(go_version="1.22")
        assert ws.add_use("./services/billing") is True
        assert ws.add_use("services/billing") is False
        assert ws.uses == ["./services/billing"]

    def test_render_canonical(self):
        ws = WorkspaceFile(go_version="1.22")
        ws.add_use("./services/billing")
        ws.add_use("./services/accounts")
        assert ws.render() == (
            "go 1.22\n\nuse (\n\t./services/billing\n\t./services/accounts\n)\n"
        )

    def test_render_parse_roundtrip_keeps_members(self):
        ws = WorkspaceFile(go_version="1.22")
        for name in ("a", "b", "c"):
            ws.add_use(f"./services/{name}")
        again = WorkspaceFile.parse(ws.render())
        assert again.uses == ws.uses
        assert again.go_version == "1.22"
