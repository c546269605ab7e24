"""Tests for typeinline.json / tsconfig.json loading."""

from __future__ import annotations

import json
import re

import pytest

from typeinline.config import (
    InlineConfig,
    find_project_root,
    load_config,
    parse_alias,
    strip_jsonc,
    tsconfig_aliases,
)
from typeinline.exit_codes import ConfigError
from typeinline.index.macros import DEFAULT_MACROS


class TestStripJsonc:
    def test_comments_and_trailing_commas(self):
        text = '{\n  // line\n  "a": 1, /* block */\n  "b": [1, 2,],\n}'
        assert json.loads(strip_jsonc(text)) == {"a": 1, "b": [1, 2]}

    def test_comment_markers_inside_strings_kept(self):
        text = '{"url": "http://x/*y*/", "s": "a,}"}'
        assert json.loads(strip_jsonc(text)) == {"url": "http://x/*y*/", "s": "a,}"}


class TestProjectRoot:
    def test_walks_up_to_marker(self, project_factory):
        proj = project_factory({"package.json": "{}", "src/components/App.vue": ""})
        assert find_project_root(proj / "src" / "components" / "App.vue") == proj

    def test_nearest_marker_wins(self, project_factory):
        proj = project_factory({"package.json": "{}", "pkg/tsconfig.json": "{}", "pkg/App.vue": ""})
        assert find_project_root(proj / "pkg" / "App.vue") == proj / "pkg"


class TestLoadConfig:
    def test_defaults_without_config(self, project_factory):
        proj = project_factory({"package.json": "{}", "App.vue": ""})
        config = load_config(proj / "App.vue")
        assert config.root == proj
        assert config.aliases == ()
        assert config.macros == DEFAULT_MACROS
        assert not config.clean_newline and not config.clean_interface

    def test_full_config(self, project_factory):
        proj = project_factory(
            {
                "typeinline.json": json.dumps(
                    {
                        "aliases": {"@": "./src", "/^#(.*)$/": "./lib/$1"},
                        "macros": ["defineProps"],
                        "clean": {"newline": True, "interface": True},
                    }
                ),
                "App.vue": "",
            }
        )
        config = load_config(proj / "App.vue")
        assert config.macros == ("defineProps",)
        assert config.clean_newline and config.clean_interface
        prefix, pattern = config.aliases
        assert prefix.find == "@" and prefix.replacement == str(proj / "src")
        assert isinstance(pattern.find, re.Pattern)
        assert pattern.apply("#ui") == "./lib/ui"

    def test_tsconfig_paths_appended(self, project_factory):
        proj = project_factory(
            {
                "typeinline.json": json.dumps({"aliases": {"~": "./app"}}),
                "tsconfig.json": '{\n  // comment\n  "compilerOptions": {"baseUrl": ".", "paths": {"@/*": ["src/*"],},},\n}',
            }
        )
        config = load_config(proj)
        assert [a.find for a in config.aliases] == ["~", "@"]
        assert config.aliases[1].replacement == str(proj / "src")

    def test_custom_tsconfig_path(self, project_factory):
        proj = project_factory(
            {
                "typeinline.json": json.dumps({"tsconfig": "tsconfig.app.json"}),
                "tsconfig.app.json": json.dumps({"compilerOptions": {"paths": {"types": ["src/types.ts"]}}}),
            }
        )
        (entry,) = load_config(proj).aliases
        assert entry.find == "types"
        assert entry.replacement == str(proj / "src" / "types.ts")

    @pytest.mark.parametrize(
        "cfg",
        [
            {"aliases": ["@"]},
            {"aliases": {"@": 1}},
            {"macros": "defineProps"},
            {"clean": {"newline": "yes"}},
            {"clean": {"whitespace": True}},
            {"tsconfig": 3},
        ],
    )
    def test_invalid_config_raises(self, project_factory, cfg):
        proj = project_factory({"typeinline.json": json.dumps(cfg)})
        with pytest.raises(ConfigError, match="typeinline.json"):
            load_config(proj)

    def test_malformed_json_raises(self, project_factory):
        proj = project_factory({"typeinline.json": "{not json"})
        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_config(proj)


class TestAliases:
    def test_parse_alias_keeps_absolute(self, tmp_path):
        entry = parse_alias("@", "/abs/src", tmp_path)
        assert entry.replacement == "/abs/src"

    def test_unsupported_paths_skipped(self, tmp_path):
        path = tmp_path / "tsconfig.json"
        path.write_text(json.dumps({"compilerOptions": {"paths": {"a*b": ["x*y"], "c": []}}}))
        assert tsconfig_aliases(path) == []


class TestOverrides:
    def test_none_keeps_file_value(self):
        base = InlineConfig(clean_newline=True)
        assert base.with_overrides(clean_newline=None, clean_interface=True) == InlineConfig(
            clean_newline=True, clean_interface=True
        )
