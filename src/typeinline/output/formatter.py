"""Plain-text and JSON output helpers for the CLI."""

from __future__ import annotations

import json
from datetime import datetime, timezone

from typeinline import __version__

ENVELOPE_SCHEMA_NAME = "typeinline-envelope-v1"
# Bump the minor version when payload keys are added, the major when removed
ENVELOPE_SCHEMA_VERSION = "1.0.0"


def loc(path: str, line: int | None = None) -> str:
    """``path:line``, or just the path when the line is unknown."""
    return path if line is None else f"{path}:{line}"


def format_table(headers: list[str], rows: list[list[str]]) -> str:
    """Left-aligned columns separated by two spaces, with a dashed rule."""
    if not rows:
        return "(none)"
    cells = [list(headers)] + [[str(cell) for cell in row] for row in rows]
    widths = [max(len(row[i]) for row in cells) for i in range(len(headers))]

    def render(row):
        return "  ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip()

    lines = [render(cells[0]), "  ".join("-" * w for w in widths)]
    lines.extend(render(row) for row in cells[1:])
    return "\n".join(lines)


def to_json(data) -> str:
    """Serialize *data* with sorted keys so repeated runs diff cleanly."""
    return json.dumps(data, indent=2, default=str, sort_keys=True)


def json_envelope(command: str, summary: dict | None = None, **payload) -> dict:
    """Wrap one command's result for ``typeinline --json``.

    The top-level keys are the same for every command: ``schema``,
    ``schema_version``, ``command``, ``version`` and ``summary``, followed
    by the command's own payload keys.  The generation time is kept apart
    under ``_meta`` so two runs over the same input differ only there.
    """
    envelope: dict = {
        "schema": ENVELOPE_SCHEMA_NAME,
        "schema_version": ENVELOPE_SCHEMA_VERSION,
        "command": command,
        "version": __version__,
        "summary": dict(summary or {}),
    }
    envelope.update(payload)
    stamp = datetime.now(timezone.utc).replace(microsecond=0)
    envelope["_meta"] = {"timestamp": stamp.isoformat().replace("+00:00", "Z")}
    return envelope
