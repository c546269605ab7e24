"""Shared test fixtures and helpers for typeinline tests.

Provides:
- CliRunner fixtures: cli_runner, invoke_cli()
- Factory fixture: project_factory for custom file layouts
- Parsing helpers: parse_ts(), scan_ts()
- CountingReader: a file reader that records how often each path is read
- JSON validation helpers: parse_json_output(), assert_json_envelope()
"""

from __future__ import annotations

import json
import os
from collections import Counter

import pytest
from click.testing import CliRunner

# ===========================================================================
# Parsing helpers
# ===========================================================================


def parse_ts(source_text: str):
    """Parse TypeScript text; returns (tree, source bytes)."""
    from typeinline.index.parser import parse_source

    source = source_text.encode("utf-8")
    return parse_source(source, "<test>"), source


def scan_ts(source_text: str, path: str = "/virtual/test.ts", strict: bool = False):
    """Parse and scan TypeScript text into a ScannedFile."""
    from typeinline.languages.typescript_lang import TypeScriptScanner

    tree, source = parse_ts(source_text)
    return TypeScriptScanner(strict=strict).scan(tree, source, path)


class CountingReader:
    """Drop-in for ``read_source`` that counts reads per path."""

    def __init__(self):
        self.reads = Counter()

    def __call__(self, path):
        from typeinline.index.parser import read_source

        self.reads[str(path)] += 1
        return read_source(path)


# ===========================================================================
# CliRunner helpers
# ===========================================================================


@pytest.fixture
def cli_runner():
    """Provide a Click CliRunner compatible with Click 8.2+."""
    try:
        return CliRunner(mix_stderr=False)
    except TypeError:
        return CliRunner()


def invoke_cli(runner, args, cwd=None, json_mode=False):
    """Invoke the typeinline CLI via CliRunner.

    Args:
        runner: CliRunner instance
        args: list of CLI arguments (e.g. ["transform", "App.vue"])
        cwd: directory to run in
        json_mode: if True, prepend --json flag
    Returns:
        click.testing.Result
    """
    from typeinline.cli import cli

    full_args = []
    if json_mode:
        full_args.append("--json")
    full_args.extend(args)

    old_cwd = os.getcwd()
    try:
        if cwd:
            os.chdir(str(cwd))
        result = runner.invoke(cli, full_args, catch_exceptions=False)
    finally:
        os.chdir(old_cwd)

    return result


# ===========================================================================
# JSON validation helpers
# ===========================================================================


def parse_json_output(result, command=None):
    """Parse JSON from a CliRunner result's stdout."""
    assert result.exit_code == 0, f"Command {command or '?'} failed (exit {result.exit_code}):\n{result.output}"
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        pytest.fail(f"Invalid JSON from {command or '?'}: {e}\nOutput was:\n{result.output[:500]}")


def assert_json_envelope(data, command=None):
    """Validate that a parsed JSON dict follows the envelope contract."""
    assert isinstance(data, dict), f"Expected dict, got {type(data)}"
    assert data.get("schema") == "typeinline-envelope-v1"
    assert "command" in data, "Missing 'command' key in envelope"
    assert "version" in data, "Missing 'version' key in envelope"
    assert "summary" in data, "Missing 'summary' key in envelope"
    assert "timestamp" in data.get("_meta", {}), "Missing 'timestamp' in _meta"
    if command:
        assert data["command"] == command, f"Expected command={command}, got {data['command']}"
    assert isinstance(data["summary"], dict), f"summary should be dict, got {type(data['summary'])}"


# ===========================================================================
# Project fixtures
# ===========================================================================


def sfc(script: str, template: str = "<div />") -> str:
    """Wrap *script* in a minimal Vue single-file component."""
    return f'<template>{template}</template>\n\n<script setup lang="ts">{script}</script>\n'


@pytest.fixture
def project_factory(tmp_path_factory):
    """Factory fixture for creating custom project layouts.

    Usage:
        def test_something(project_factory):
            proj = project_factory({
                "App.vue": sfc("..."),
                "types.ts": "export interface Props {}",
            })

    Returns a callable that accepts a dict of {relative_path: content}
    and returns the (resolved) project path.
    """

    def _create(files):
        proj = tmp_path_factory.mktemp("project").resolve()
        for rel_path, content in files.items():
            fp = proj / rel_path
            fp.parent.mkdir(parents=True, exist_ok=True)
            fp.write_text(content, encoding="utf-8")
        return proj

    return _create


@pytest.fixture
def run_transform(project_factory):
    """Create a project and transform its ``App.vue``; returns (result, project)."""
    from typeinline.api import transform

    def _run(files, entry="App.vue", config=None, **kwargs):
        proj = project_factory(files)
        path = proj / entry
        return transform(path.read_text(encoding="utf-8"), path, config, **kwargs), proj

    return _run
