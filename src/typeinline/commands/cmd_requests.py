"""List the types a Vue component requests through compiler macros."""

from __future__ import annotations

import click

from typeinline.config import load_config
from typeinline.index.macros import find_macro_requests
from typeinline.index.parser import parse_source, read_source
from typeinline.index.sfc import find_script_setup
from typeinline.output.formatter import format_table, json_envelope, loc, to_json


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def requests(ctx, path):
    """List defineProps / defineEmits type arguments in PATH."""
    json_mode = ctx.obj.get("json") if ctx.obj else False
    config = load_config(path)
    code = read_source(path).decode("utf-8")

    found = []
    block = find_script_setup(code)
    if block is not None:
        script = block.content.encode("utf-8")
        tree = parse_source(script, path)
        offset = block.line_offset(code)
        found = [
            {"name": r.name, "macro": r.macro, "line": r.line + offset}
            for r in find_macro_requests(tree, script, config.macros)
        ]

    if json_mode:
        click.echo(
            to_json(
                json_envelope(
                    "requests",
                    summary={"requests": len(found), "script_setup": block is not None},
                    path=path,
                    requests=found,
                )
            )
        )
        return

    if block is None:
        click.echo(f'{path}: no <script setup lang="ts"> block')
        return
    rows = [[r["name"], r["macro"], loc(path, r["line"])] for r in found]
    click.echo(format_table(["name", "macro", "location"], rows))
