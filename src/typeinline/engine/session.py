"""Session state shared by every step of one extraction run."""

from __future__ import annotations

import logging
import threading
from collections import Counter

import networkx as nx

from typeinline.engine.aliases import AliasUnifier
from typeinline.engine.model import (
    DeclKey,
    Declaration,
    EnumDecl,
    InterfaceDecl,
    RefKind,
    Replacement,
    TypeRef,
)
from typeinline.index.parser import detect_language, parse_source, read_source
from typeinline.index.modules import resolve_module
from typeinline.languages.base import ScannedFile
from typeinline.languages.typescript_lang import TypeScriptScanner

log = logging.getLogger(__name__)

INLINE_PREFIX = "_INLINE_"


class Session:
    """Context object threaded through one top-level extraction.

    Holds the per-file scan cache, the canonical-name table and counters,
    the alias records, and the dependency / extends graphs.  Nothing here
    is module-global, so independent sessions can run side by side.
    """

    def __init__(
        self,
        entry: str | None = None,
        *,
        reader=read_source,
        resolver=resolve_module,
        aliases=(),
        strict: bool = False,
    ):
        self.entry = entry
        self.reader = reader
        self.resolve_module = resolver
        self.aliases = tuple(aliases)
        self.strict = strict
        self.scanner = TypeScriptScanner(strict=strict)

        self.files: dict[str, ScannedFile] = {}
        self.extracted: dict[DeclKey, Declaration] = {}
        self.canonical: dict[DeclKey, str] = {}
        self.used_names: set[str] = set()
        self.counters: Counter = Counter()
        self.unifier = AliasUnifier()

        self.dependencies = nx.DiGraph()
        self.extends = nx.DiGraph()

        self.roots: list[TypeRef] = []
        self.call_site_edits: list[Replacement] = []
        self.base_refs: dict[DeclKey, list[TypeRef]] = {}
        self._lock = threading.Lock()

    # ---- files ----

    def scan_entry(self, path: str, source: bytes, tree=None) -> ScannedFile:
        """Register the entry script, already in memory."""
        if tree is None:
            tree = parse_source(source, path)
        scanned = self.scanner.scan(tree, source, path)
        self.files[path] = scanned
        self.entry = path
        self.used_names.update(
            name for name, decl in scanned.declarations.items() if not isinstance(decl, EnumDecl)
        )
        return scanned

    def scan_file(self, path: str) -> ScannedFile:
        """Read, parse and scan *path* once per session."""
        scanned = self.files.get(path)
        if scanned is not None:
            return scanned
        source = self.reader(path)
        tree = parse_source(source, path, detect_language(path) or "typescript")
        scanned = self.scanner.scan(tree, source, path)
        self.files[path] = scanned
        log.info("loaded %s (%d declarations)", path, len(scanned.declarations))
        return scanned

    def is_entry(self, file: str) -> bool:
        return self.entry is not None and file == self.entry

    def merges_bases(self, decl: Declaration) -> bool:
        """Entry interface whose emitted form absorbs the members of its bases."""
        return (
            self.is_entry(decl.file)
            and isinstance(decl, InterfaceDecl)
            and self.extends.has_node(decl.key)
            and self.extends.out_degree(decl.key) > 0
        )

    # ---- naming / registration ----

    def assign_name(self, decl: Declaration, root: TypeRef | None = None) -> str:
        """Give *decl* its session-unique canonical name and register it."""
        with self._lock:
            name = self._pick_name(decl, root)
            self.used_names.add(name)
            self.canonical[decl.key] = name
            self.extracted[decl.key] = decl
            self.dependencies.add_node(decl.key)
        return name

    def _pick_name(self, decl: Declaration, root: TypeRef | None) -> str:
        is_enum = isinstance(decl, EnumDecl)
        if self.is_entry(decl.file) and not is_enum:
            return decl.name
        if root is not None and not is_enum and root.name not in self.used_names:
            return root.name
        stem = decl.name if decl.name.startswith(INLINE_PREFIX) else INLINE_PREFIX + decl.name
        if not is_enum and stem not in self.used_names:
            return stem
        n = max(self.counters[stem], 0 if is_enum else 1)
        while f"{stem}_{n}" in self.used_names:
            n += 1
        self.counters[stem] = n + 1
        return f"{stem}_{n}"

    # ---- binding ----

    def bind(self, ref: TypeRef, key: DeclKey) -> None:
        """Fill *ref*'s slot with the canonical name of *key* and record the edge."""
        if ref.resolved:
            return
        ref.resolved_to = key
        target = self.extracted[key]
        canonical = self.canonical[key]

        if ref.kind is RefKind.ROOT:
            if ref.span is not None and canonical != ref.name:
                self.call_site_edits.append(Replacement(ref.span, canonical))
            return

        owner = self.extracted[ref.owner]
        if ref.kind is RefKind.EXTENDS and target.object_shaped:
            order = next(i for i, r in enumerate(self.base_refs[owner.key]) if r is ref)
            self.extends.add_edge(owner.key, key, order=order)
            return

        self.dependencies.add_edge(owner.key, key)
        owner.dependencies.append(canonical)
        if ref.span is not None and canonical != self.files[owner.file].text(ref.span):
            owner.replacements.append(Replacement(ref.span, canonical))

    def collapse(self, ref: TypeRef, key: DeclKey) -> None:
        """Nested shape: the slot becomes an empty object type, nothing is extracted."""
        if ref.resolved:
            return
        ref.resolved_to = key
        owner = self.extracted[ref.owner]
        owner.replacements.append(Replacement(ref.span, "{}"))

    def dangling(self) -> list[TypeRef]:
        return self.unifier.unresolved()

    def root_keys(self) -> list[DeclKey]:
        return list(dict.fromkeys(ref.resolved_to for ref in self.roots if ref.resolved))
