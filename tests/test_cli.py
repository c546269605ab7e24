"""CLI tests: transform, extract, requests, and the --json envelope."""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))
from conftest import assert_json_envelope, invoke_cli, parse_json_output, sfc

APP = sfc("\nimport type { Props } from './types'\nconst props = defineProps<Props>()\ndefineEmits<Emits>()\n")
TYPES = "type Foo = 'a' | 'b'\nexport interface Props { foo: Foo }\n"


class TestTransform:
    def test_prints_transformed_component(self, cli_runner, project_factory):
        proj = project_factory({"App.vue": APP, "types.ts": TYPES})
        result = invoke_cli(cli_runner, ["transform", "App.vue"], cwd=proj)
        assert result.exit_code == 0
        assert "interface Props { foo: _INLINE_Foo }" in result.stdout
        assert (proj / "App.vue").read_text(encoding="utf-8") == APP

    def test_unresolved_warning_on_stderr(self, cli_runner, project_factory):
        proj = project_factory({"App.vue": APP, "types.ts": TYPES})
        result = invoke_cli(cli_runner, ["transform", "App.vue"], cwd=proj)
        assert "warning: Emits could not be resolved" in result.stderr

    def test_check_unresolved_exits_6(self, cli_runner, project_factory):
        proj = project_factory({"App.vue": APP, "types.ts": TYPES})
        result = invoke_cli(cli_runner, ["transform", "--check-unresolved", "App.vue"], cwd=proj)
        assert result.exit_code == 6

    def test_write(self, cli_runner, project_factory):
        proj = project_factory({"App.vue": APP, "types.ts": TYPES})
        result = invoke_cli(cli_runner, ["transform", "--write", "App.vue"], cwd=proj)
        assert result.exit_code == 0
        assert "updated: App.vue" in result.stdout
        written = (proj / "App.vue").read_text(encoding="utf-8")
        assert "type _INLINE_Foo = 'a' | 'b';" in written

        again = invoke_cli(cli_runner, ["transform", "--write", "App.vue"], cwd=proj)
        assert "unchanged: App.vue" in again.stdout
        assert (proj / "App.vue").read_text(encoding="utf-8") == written

    def test_clean_newline_flag_overrides_config(self, cli_runner, project_factory):
        proj = project_factory(
            {
                "App.vue": APP,
                "types.ts": TYPES,
                "typeinline.json": '{"clean": {"newline": false}}',
            }
        )
        result = invoke_cli(cli_runner, ["transform", "--clean-newline", "App.vue"], cwd=proj)
        assert "_INLINE_Foo }\n\nconst props" in result.stdout

    def test_json_envelope(self, cli_runner, project_factory):
        proj = project_factory({"App.vue": APP, "types.ts": TYPES})
        result = invoke_cli(cli_runner, ["transform", "App.vue"], cwd=proj, json_mode=True)
        data = parse_json_output(result, "transform")
        assert_json_envelope(data, "transform")
        assert data["summary"] == {"changed": True, "emitted": 2, "unresolved": 1}
        assert data["requested"] == ["Props", "Emits"]
        assert data["emitted"] == ["_INLINE_Foo", "Props"]
        assert data["unresolved"] == ["Emits"]
        assert data["cycles"] == []
        assert "code" in data


class TestExtract:
    def test_prints_block(self, cli_runner, project_factory):
        proj = project_factory({"types.ts": TYPES})
        result = invoke_cli(cli_runner, ["extract", "types.ts", "Props"], cwd=proj)
        assert result.exit_code == 0
        assert result.stdout == "type _INLINE_Foo = 'a' | 'b';\ninterface Props { foo: _INLINE_Foo }\n"

    def test_unresolved_exits_6(self, cli_runner, project_factory):
        proj = project_factory({"types.ts": TYPES})
        result = invoke_cli(cli_runner, ["extract", "types.ts", "Props", "Missing"], cwd=proj)
        assert result.exit_code == 6
        assert "warning: Missing could not be resolved" in result.stderr

    def test_json(self, cli_runner, project_factory):
        proj = project_factory({"types.ts": TYPES})
        result = invoke_cli(cli_runner, ["extract", "types.ts", "Props"], cwd=proj, json_mode=True)
        data = parse_json_output(result, "extract")
        assert_json_envelope(data, "extract")
        assert data["summary"] == {"emitted": 2, "unresolved": 0}
        assert data["loaded"] == [str(proj / "types.ts")]

    def test_json_reports_broken_cycles(self, cli_runner, project_factory):
        cyclic = "export interface A extends B { a: string }\ninterface B extends A { b: string }\n"
        proj = project_factory({"types.ts": cyclic})
        result = invoke_cli(cli_runner, ["extract", "types.ts", "A"], cwd=proj, json_mode=True)
        data = parse_json_output(result, "extract")
        assert data["cycles"] == [["A", "_INLINE_B"]]
        assert data["block"] == "interface A { a: string }"

    def test_names_required(self, cli_runner, project_factory):
        proj = project_factory({"types.ts": TYPES})
        result = invoke_cli(cli_runner, ["extract", "types.ts"], cwd=proj)
        assert result.exit_code == 2


class TestRequests:
    def test_table(self, cli_runner, project_factory):
        proj = project_factory({"App.vue": APP})
        result = invoke_cli(cli_runner, ["requests", "App.vue"], cwd=proj)
        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0].split() == ["name", "macro", "location"]
        assert lines[2].split() == ["Props", "defineProps", "App.vue:5"]
        assert lines[3].split() == ["Emits", "defineEmits", "App.vue:6"]

    def test_json(self, cli_runner, project_factory):
        proj = project_factory({"App.vue": APP})
        result = invoke_cli(cli_runner, ["requests", "App.vue"], cwd=proj, json_mode=True)
        data = parse_json_output(result, "requests")
        assert_json_envelope(data, "requests")
        assert data["summary"] == {"requests": 2, "script_setup": True}
        assert data["requests"][0] == {"name": "Props", "macro": "defineProps", "line": 5}

    def test_no_script_setup(self, cli_runner, project_factory):
        proj = project_factory({"App.vue": "<template><div /></template>\n"})
        result = invoke_cli(cli_runner, ["requests", "App.vue"], cwd=proj)
        assert "no <script setup" in result.stdout


class TestGroup:
    def test_help_lists_commands(self, cli_runner):
        result = invoke_cli(cli_runner, ["--help"])
        assert result.exit_code == 0
        for name in ("transform", "extract", "requests"):
            assert name in result.stdout

    def test_version(self, cli_runner):
        result = invoke_cli(cli_runner, ["--version"])
        assert result.exit_code == 0
        assert "version" in result.stdout
