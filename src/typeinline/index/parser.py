"""Tree-sitter parsing and source loading for TypeScript inputs."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from typeinline.exit_codes import SourceReadError, SourceSyntaxError

log = logging.getLogger(__name__)

# Extensions the engine will load as TypeScript
EXTENSION_MAP: dict[str, str] = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".d.ts": "typescript",
    ".tsx": "tsx",
}

# Grammar names in tree_sitter_language_pack
GRAMMAR_ALIASES: dict[str, str] = {
    "ts": "typescript",
    "typescript": "typescript",
    "tsx": "tsx",
}


def detect_language(path: str | os.PathLike) -> str | None:
    """Return the grammar language for *path*, or None when it is not TypeScript."""
    name = os.path.basename(str(path)).lower()
    if name.endswith(".d.ts"):
        return "typescript"
    _, ext = os.path.splitext(name)
    return EXTENSION_MAP.get(ext)


@lru_cache(maxsize=None)
def _get_parser(grammar: str):
    from tree_sitter_language_pack import get_parser

    return get_parser(grammar)


def read_source(path: str | os.PathLike) -> bytes:
    """Read raw file bytes.

    Any ``OSError`` becomes a :class:`SourceReadError`, which aborts the
    extraction session that asked for the file.
    """
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise SourceReadError(str(path), exc.strerror or str(exc)) from exc


def _first_error(node):
    """Return the first ERROR / MISSING node in document order, or None."""
    if node.type == "ERROR" or node.is_missing:
        return node
    if not node.has_error:
        return None
    for child in node.children:
        found = _first_error(child)
        if found is not None:
            return found
    return None


def parse_source(source: bytes, path: str = "<script>", language: str = "typescript"):
    """Parse *source* and return the tree-sitter tree.

    Raises :class:`SourceSyntaxError` when the tree contains ERROR or
    MISSING nodes; malformed input is never scanned partially.
    """
    grammar = GRAMMAR_ALIASES.get(language, language)
    tree = _get_parser(grammar).parse(source)
    root = tree.root_node
    if root.has_error:
        bad = _first_error(root) or root
        snippet = source[bad.start_byte : bad.end_byte][:40].decode("utf-8", errors="replace")
        raise SourceSyntaxError(path, bad.start_point[0] + 1, bad.start_point[1] + 1, snippet)
    return tree
