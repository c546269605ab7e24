"""Tests for module specifier resolution."""

from __future__ import annotations

import json
import re

import pytest

from typeinline.index.modules import AliasEntry, probe, resolve_module


@pytest.fixture
def tree(project_factory):
    return project_factory(
        {
            "src/App.vue": "",
            "src/types.ts": "",
            "src/shapes.d.ts": "",
            "src/lib/index.ts": "",
            "src/legacy.ts": "",
            "src/nested/deep.tsx": "",
            "node_modules/typed-pkg/package.json": json.dumps({"types": "dist/main.d.ts"}),
            "node_modules/typed-pkg/dist/main.d.ts": "",
            "node_modules/plain-pkg/index.d.ts": "",
            "node_modules/@types/untyped/index.d.ts": "",
            "node_modules/@scope/pkg/index.d.ts": "",
        }
    )


class TestAliasEntry:
    def test_prefix_match(self):
        entry = AliasEntry("@", "/src")
        assert entry.apply("@") == "/src"
        assert entry.apply("@/types") == "/src/types"
        assert entry.apply("@scope/pkg") is None

    def test_trailing_slash_in_find(self):
        assert AliasEntry("~/", "/root/src/").apply("~/a/b") == "/root/src/a/b"

    def test_pattern_with_groups(self):
        entry = AliasEntry(re.compile(r"^#(\w+)$"), r"/src/\g<1>/index")
        assert entry.apply("#ui") == "/src/ui/index"
        assert entry.apply("x#ui") is None


class TestProbe:
    def test_suffixes(self, tree):
        src = tree / "src"
        assert probe(src / "types") == src / "types.ts"
        assert probe(src / "shapes") == src / "shapes.d.ts"
        assert probe(src / "nested" / "deep") == src / "nested" / "deep.tsx"

    def test_js_suffix_swapped(self, tree):
        assert probe(tree / "src" / "legacy.js") == tree / "src" / "legacy.ts"

    def test_index_file(self, tree):
        assert probe(tree / "src" / "lib") == tree / "src" / "lib" / "index.ts"

    def test_missing(self, tree):
        assert probe(tree / "src" / "nope") is None


class TestResolveModule:
    def test_relative(self, tree):
        origin = tree / "src" / "App.vue"
        assert resolve_module("./types", origin) == tree / "src" / "types.ts"
        assert resolve_module("../src/lib", origin) == tree / "src" / "lib" / "index.ts"

    def test_alias_applied_first(self, tree):
        aliases = (AliasEntry("@", str(tree / "src")), AliasEntry("@/types", "/never"))
        assert resolve_module("@/types", tree / "src" / "App.vue", aliases) == tree / "src" / "types.ts"

    def test_package_types_field(self, tree):
        origin = tree / "src" / "nested" / "deep.tsx"
        assert resolve_module("typed-pkg", origin) == tree / "node_modules" / "typed-pkg" / "dist" / "main.d.ts"

    def test_package_index(self, tree):
        origin = tree / "src" / "App.vue"
        assert resolve_module("plain-pkg", origin) == tree / "node_modules" / "plain-pkg" / "index.d.ts"
        assert resolve_module("@scope/pkg", origin) == tree / "node_modules" / "@scope" / "pkg" / "index.d.ts"

    def test_definitely_typed_fallback(self, tree):
        origin = tree / "src" / "App.vue"
        assert resolve_module("untyped", origin) == tree / "node_modules" / "@types" / "untyped" / "index.d.ts"

    def test_unresolved_returns_none(self, tree):
        assert resolve_module("./missing", tree / "src" / "App.vue") is None
        assert resolve_module("no-such-pkg", tree / "src" / "App.vue") is None
