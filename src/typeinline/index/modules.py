"""Map a module specifier seen in an import to a TypeScript file on disk.

Resolution order:

1. the alias table (first matching :class:`AliasEntry` wins),
2. bare specifiers through ``node_modules`` (``types`` / ``typings`` /
   ``index.d.ts``),
3. a relative join against the importing file's directory,

and every candidate is probed with TypeScript suffixes and index files.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)

TS_SUFFIXES: tuple[str, ...] = (".ts", ".d.ts", ".tsx")
JS_SWAPS: dict[str, tuple[str, ...]] = {
    ".js": (".ts", ".d.ts"),
    ".mjs": (".mts", ".ts", ".d.ts"),
    ".cjs": (".cts", ".ts", ".d.ts"),
}
INDEX_FILES: tuple[str, ...] = ("index.ts", "index.d.ts")


@dataclass(frozen=True)
class AliasEntry:
    """One alias rule.

    A string ``find`` matches the whole specifier or the specifier followed
    by ``/``; a compiled pattern matches anywhere it would with
    ``re.match`` and supports group references in ``replacement``.
    """

    find: str | re.Pattern
    replacement: str

    def apply(self, specifier: str) -> str | None:
        if isinstance(self.find, re.Pattern):
            if not self.find.match(specifier):
                return None
            return self.find.sub(self.replacement, specifier, count=1)
        if specifier == self.find:
            return self.replacement
        if specifier.startswith(self.find.rstrip("/") + "/"):
            return self.replacement.rstrip("/") + specifier[len(self.find.rstrip("/")) :]
        return None


def is_bare(specifier: str) -> bool:
    return not specifier.startswith((".", "/"))


def _is_ts_file(path: Path) -> bool:
    name = path.name
    return path.is_file() and (name.endswith(TS_SUFFIXES) or name.endswith((".mts", ".cts")))


def probe(base: Path) -> Path | None:
    """Return the first existing TypeScript file for the candidate *base*."""
    if _is_ts_file(base):
        return base
    for suffix in TS_SUFFIXES:
        candidate = base.with_name(base.name + suffix)
        if candidate.is_file():
            return candidate
    swaps = JS_SWAPS.get(base.suffix)
    if swaps:
        stem = base.name[: -len(base.suffix)]
        for suffix in swaps:
            candidate = base.with_name(stem + suffix)
            if candidate.is_file():
                return candidate
    if base.is_dir():
        for index in INDEX_FILES:
            candidate = base / index
            if candidate.is_file():
                return candidate
    return None


def _package_types(package_dir: Path) -> Path | None:
    manifest = package_dir / "package.json"
    if manifest.is_file():
        try:
            data = json.loads(manifest.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            log.debug("ignoring unreadable %s: %s", manifest, exc)
            data = {}
        for key in ("types", "typings"):
            entry = data.get(key) if isinstance(data, dict) else None
            if isinstance(entry, str):
                found = probe(package_dir / entry)
                if found is not None:
                    return found
    return probe(package_dir)


def _resolve_bare(specifier: str, origin_dir: Path) -> Path | None:
    for directory in (origin_dir, *origin_dir.parents):
        candidate = directory / "node_modules" / specifier
        if candidate.is_dir():
            found = _package_types(candidate)
            if found is not None:
                return found
        found = probe(candidate)
        if found is not None:
            return found
        typed = directory / "node_modules" / "@types" / specifier
        if typed.is_dir():
            found = _package_types(typed)
            if found is not None:
                return found
    return None


def resolve_module(specifier: str, origin: str | Path, aliases=()) -> Path | None:
    """Resolve *specifier* imported from the file *origin*, or None."""
    origin_dir = Path(origin).parent
    target = specifier
    for entry in aliases:
        replaced = entry.apply(specifier)
        if replaced is not None:
            target = replaced
            break

    found: Path | None = None
    if Path(target).is_absolute():
        found = probe(Path(target))
    elif is_bare(target):
        found = _resolve_bare(target, origin_dir)
    else:
        found = probe(origin_dir / target)

    if found is None:
        log.debug("cannot resolve module %r from %s", specifier, origin)
        return None
    return found.resolve()
