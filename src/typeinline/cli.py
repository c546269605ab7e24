"""Click CLI entry point with lazy-loaded subcommands."""

import importlib
import logging
import os
import sys

# Windows consoles default to a legacy code page
if sys.platform == "win32" and not os.environ.get("PYTHONIOENCODING"):
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

import click

# command name -> (module, attribute); modules load on first use, so
# `--help` never imports tree-sitter or networkx
_COMMANDS = {
    "transform": ("typeinline.commands.cmd_transform", "transform"),
    "extract": ("typeinline.commands.cmd_extract", "extract"),
    "requests": ("typeinline.commands.cmd_requests", "requests"),
}


class LazyGroup(click.Group):
    """Resolves subcommands from ``_COMMANDS`` on demand."""

    def list_commands(self, ctx):
        return sorted(_COMMANDS)

    def get_command(self, ctx, cmd_name):
        target = _COMMANDS.get(cmd_name)
        if target is None:
            return None
        module_path, attr_name = target
        return getattr(importlib.import_module(module_path), attr_name)


def _configure_logging(verbosity: int) -> None:
    # Without -v, warnings reach stderr through logging's last-resort handler
    if verbosity <= 0:
        return
    level = logging.INFO if verbosity == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr, force=True)
    logging.getLogger("typeinline").setLevel(level)


@click.group(cls=LazyGroup)
@click.version_option(package_name="typeinline")
@click.option("--json", "json_mode", is_flag=True, help="Output in JSON format")
@click.option("-v", "--verbose", count=True, help="Log progress (-v) or debug detail (-vv) to stderr")
@click.pass_context
def cli(ctx, json_mode, verbose):
    """typeinline: inline imported TypeScript types into Vue components."""
    ctx.ensure_object(dict)
    ctx.obj["json"] = json_mode
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose)
