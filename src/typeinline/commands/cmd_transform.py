"""Inline the macro-requested types of a Vue component."""

from __future__ import annotations

from pathlib import Path

import click

from typeinline.api import transform as run_transform
from typeinline.config import load_config
from typeinline.exit_codes import EXIT_PARTIAL
from typeinline.index.parser import read_source
from typeinline.output.formatter import json_envelope, to_json


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--write", is_flag=True, help="Write the result back instead of printing it")
@click.option("--clean-newline/--no-clean-newline", default=None, help="Removals also consume the following line break")
@click.option("--clean-interface/--no-clean-interface", default=None, help="Remove local interfaces only used as merged bases")
@click.option("--strict", is_flag=True, help="Fail on read/syntax errors and duplicate declarations")
@click.option("--check-unresolved", is_flag=True, help="Exit 6 when a requested type stays unresolved")
@click.pass_context
def transform(ctx, path, write, clean_newline, clean_interface, strict, check_unresolved):
    """Inline the types requested by defineProps / defineEmits in PATH."""
    json_mode = ctx.obj.get("json") if ctx.obj else False
    config = load_config(path).with_overrides(clean_newline=clean_newline, clean_interface=clean_interface)
    code = read_source(path).decode("utf-8")

    result = run_transform(code, path, config, strict=strict)
    if write and result.changed:
        Path(path).write_text(result.code, encoding="utf-8")

    if json_mode:
        payload = dict(
            path=path,
            changed=result.changed,
            requested=result.requested,
            emitted=result.emitted,
            unresolved=result.unresolved,
            loaded=result.loaded,
            cycles=result.cycles,
            error=result.error,
        )
        if not write:
            payload["code"] = result.code
        click.echo(
            to_json(
                json_envelope(
                    "transform",
                    summary={
                        "changed": result.changed,
                        "emitted": len(result.emitted),
                        "unresolved": len(result.unresolved),
                    },
                    **payload,
                )
            )
        )
    elif write:
        click.echo(f"{'updated' if result.changed else 'unchanged'}: {path}")
    else:
        click.echo(result.code, nl=False)

    for name in result.unresolved:
        click.echo(f"warning: {name} could not be resolved", err=True)
    if check_unresolved and result.unresolved:
        ctx.exit(EXIT_PARTIAL)
