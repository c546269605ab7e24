"""Print the inlined block for types declared in a TypeScript file."""

from __future__ import annotations

import click

from typeinline.api import extract_types
from typeinline.config import load_config
from typeinline.exit_codes import EXIT_PARTIAL
from typeinline.output.formatter import json_envelope, to_json


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.argument("names", nargs=-1, required=True)
@click.option("--strict", is_flag=True, help="Fail on duplicate declarations")
@click.pass_context
def extract(ctx, path, names, strict):
    """Inline NAMES from the TypeScript file PATH and print the block."""
    json_mode = ctx.obj.get("json") if ctx.obj else False
    config = load_config(path)
    result = extract_types(path, names, config, strict=strict)

    if json_mode:
        click.echo(
            to_json(
                json_envelope(
                    "extract",
                    summary={"emitted": len(result.emitted), "unresolved": len(result.unresolved)},
                    path=path,
                    requested=list(names),
                    emitted=result.emitted,
                    unresolved=result.unresolved,
                    loaded=result.loaded,
                    cycles=result.cycles,
                    block=result.block,
                )
            )
        )
    elif result.block:
        click.echo(result.block)

    if result.unresolved:
        for name in result.unresolved:
            click.echo(f"warning: {name} could not be resolved", err=True)
        ctx.exit(EXIT_PARTIAL)
