"""Programmatic Python API: one call per extraction session.

``transform()`` rewrites a Vue single-file component: the types requested by
``defineProps<T>()`` / ``defineEmits<T>()`` are inlined at the top of its
``<script setup lang="ts">`` block and the imports they came from are
trimmed.  ``extract_types()`` runs the same engine against a plain
TypeScript file and returns the inlined block only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from typeinline.config import InlineConfig
from typeinline.engine.model import Span, apply_replacements
from typeinline.engine.resolver import ReferenceResolver
from typeinline.engine.session import Session
from typeinline.engine.splicer import Splicer
from typeinline.exit_codes import TypeInlineError
from typeinline.graph.builder import build_orders
from typeinline.index.macros import find_macro_requests
from typeinline.index.modules import resolve_module
from typeinline.index.parser import parse_source, read_source
from typeinline.index.sfc import find_script_setup

log = logging.getLogger(__name__)


@dataclass
class TransformResult:
    code: str
    changed: bool = False
    requested: list[str] = field(default_factory=list)
    emitted: list[str] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)
    loaded: list[str] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)
    error: str | None = None


@dataclass
class ExtractResult:
    block: str
    emitted: list[str] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)
    loaded: list[str] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)


def _new_session(entry: str | None, config: InlineConfig, reader, strict: bool) -> Session:
    return Session(entry, reader=reader, resolver=resolve_module, aliases=config.aliases, strict=strict)


def _unresolved_roots(session: Session) -> list[str]:
    return list(dict.fromkeys(ref.name for ref in session.roots if not ref.resolved))


def _loaded(session: Session) -> list[str]:
    return [path for path in session.files if not session.is_entry(path)]


def _cycles(session: Session, orders) -> list[list[str]]:
    """Broken inheritance cycles, by canonical name."""
    return [[session.canonical[key] for key in cycle] for cycle in orders.cycles]


def transform(
    code: str,
    path: str | Path,
    config: InlineConfig | None = None,
    *,
    reader=read_source,
    strict: bool = False,
) -> TransformResult:
    """Inline the macro-requested types of the component *code* located at *path*.

    Read failures and syntax errors abort the session.  Unless *strict* is
    set they are logged and the original code comes back unchanged, with
    the message in ``error``.
    """
    config = config or InlineConfig()
    path = str(Path(path).resolve())
    block = find_script_setup(code)
    if block is None:
        return TransformResult(code=code)

    script = block.content.encode("utf-8")
    try:
        tree = parse_source(script, path)
        requests = find_macro_requests(tree, script, config.macros)
        if not requests:
            return TransformResult(code=code)
        session = _new_session(path, config, reader, strict)
        entry = session.scan_entry(path, script, tree)
        ReferenceResolver(session).request(entry, [(r.name, r.span, r.line) for r in requests])
        orders = build_orders(session)
        spliced = Splicer(
            session,
            orders,
            clean_newline=config.clean_newline,
            clean_interface=config.clean_interface,
        ).finalize()
    except TypeInlineError as exc:
        if strict:
            raise
        log.warning("%s; leaving %s untransformed", exc.format_message(), path)
        return TransformResult(code=code, error=exc.format_message())

    for ref in session.dangling():
        log.debug("%s:%d: %r left unresolved", ref.file, ref.line, ref.name)
    result = TransformResult(
        code=code,
        requested=[r.name for r in requests],
        emitted=spliced.emitted,
        unresolved=_unresolved_roots(session),
        loaded=_loaded(session),
        cycles=_cycles(session, orders),
    )
    if not spliced.block and not spliced.edits:
        return result

    edited = apply_replacements(script, Span(0, len(script)), spliced.edits).decode("utf-8")
    if spliced.block:
        edited = "\n" + spliced.block + "\n" + edited
    result.code = code[: block.start] + edited + code[block.end :]
    result.changed = result.code != code
    return result


def transform_code(code: str, path: str | Path, config: InlineConfig | None = None, **kwargs) -> str:
    """Shorthand for ``transform(...).code``."""
    return transform(code, path, config, **kwargs).code


def extract_types(
    path: str | Path,
    names,
    config: InlineConfig | None = None,
    *,
    reader=read_source,
    strict: bool = False,
) -> ExtractResult:
    """Inline *names* as requested from the TypeScript file *path*.

    The file is treated like any imported module, so every declaration the
    names need is emitted, including the requested ones.  Errors propagate.
    """
    config = config or InlineConfig()
    session = _new_session(None, config, reader, strict)
    scanned = session.scan_file(str(Path(path).resolve()))
    ReferenceResolver(session).request(scanned, [(name, None, 1) for name in names], external=True)
    orders = build_orders(session)
    spliced = Splicer(session, orders).finalize()
    return ExtractResult(
        block=spliced.block,
        emitted=spliced.emitted,
        unresolved=_unresolved_roots(session),
        loaded=list(session.files),
        cycles=_cycles(session, orders),
    )
