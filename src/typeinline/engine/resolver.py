"""Resolve requested type names to declarations, recursively.

``extract()`` works one file at a time.  It first exhausts the local
closure: every name is looked up in the file's export surface (for names
that arrived from another file) or its scope, declarations found are named
and walked for further references, and anything not declared locally is
set aside.  The set-aside names are then grouped by the module they are
imported from and handed to :class:`CrossModuleLoader`, which recurses into
those modules with the same session.  Names still unresolved are finally
retried against the file's ``export *`` targets.
"""

from __future__ import annotations

import logging
from collections import deque

from typeinline.engine.aliases import AliasRecord
from typeinline.engine.loader import CrossModuleLoader
from typeinline.engine.model import (
    DeclKey,
    Declaration,
    InterfaceDecl,
    Lookup,
    RefKind,
    Span,
    TypeRef,
)
from typeinline.languages.base import ImportBinding, ScannedFile

log = logging.getLogger(__name__)


class _Walk:
    """Collects the references one declaration body reports."""

    def __init__(self, session, scanned: ScannedFile, queue: deque):
        self.session = session
        self.scanned = scanned
        self.queue = queue

    def reference(self, owner: Declaration, name: str, span: Span, kind: RefKind, *, nested: bool = False) -> None:
        # a type parameter shadows any file-level type of the same name
        if kind is not RefKind.EXTENDS and name in owner.type_param_names:
            return
        ref = TypeRef(
            name=name,
            kind=kind,
            file=self.scanned.path,
            line=self.scanned.line_of(span.start),
            owner=owner.key,
            span=span,
            nested=nested,
        )
        if kind is RefKind.EXTENDS:
            self.session.base_refs[owner.key].append(ref)
        self.queue.append(Lookup(ref, name))


class ReferenceResolver:
    def __init__(self, session, loader: CrossModuleLoader | None = None):
        self.session = session
        self.loader = loader or CrossModuleLoader(session)

    def request(self, scanned: ScannedFile, names, *, external: bool = False) -> list[TypeRef]:
        """Start a session from root requests ``(name, span, line)`` made in *scanned*."""
        refs = []
        for name, span, line in names:
            ref = TypeRef(name=name, kind=RefKind.ROOT, file=scanned.path, line=line, span=span)
            self.session.roots.append(ref)
            refs.append(ref)
        self.extract(scanned, [Lookup(ref, ref.name, external=external) for ref in refs])
        return refs

    def extract(self, scanned: ScannedFile, lookups: list[Lookup]) -> None:
        queue = deque(lookups)
        walk = _Walk(self.session, scanned, queue)
        missing: list[tuple[Lookup, ImportBinding]] = []
        starred: list[Lookup] = []

        while queue:
            self._resolve(scanned, queue.popleft(), walk, missing, starred)

        groups: dict[str, list[Lookup]] = {}
        for lookup, binding in missing:
            if lookup.ref.resolved:
                continue
            groups.setdefault(binding.specifier, []).append(Lookup(lookup.ref, binding.imported, external=True))
        for specifier, group in groups.items():
            self.loader.load(specifier, group, scanned.path, self.extract)

        pending = [lookup for lookup in starred if not lookup.ref.resolved]
        for specifier in scanned.export_all:
            if not pending:
                break
            self.loader.load(specifier, pending, scanned.path, self.extract)
            pending = [lookup for lookup in pending if not lookup.ref.resolved]

    def _resolve(self, scanned, lookup: Lookup, walk: _Walk, missing, starred) -> None:
        session = self.session
        ref, name = lookup.ref, lookup.name
        if ref.resolved:
            return
        hop = (scanned.path, name, lookup.external)
        if hop in ref.hops:
            return
        ref.hops.add(hop)
        record = session.unifier.track(ref, scanned.path, name, self._visible_line(scanned, name, ref), lookup.external)

        if lookup.external:
            if name in scanned.named_exports:
                name = scanned.named_exports[name]
            elif name in scanned.reexports and name not in scanned.declarations:
                missing.append((lookup, scanned.reexports[name]))
                return

        key = DeclKey(scanned.path, name)
        decl = session.extracted.get(key) or scanned.declarations.get(name)
        if decl is None:
            if name in scanned.imports:
                missing.append((lookup, scanned.imports[name]))
            elif lookup.external and scanned.export_all:
                starred.append(lookup)
            else:
                log.debug("%s:%d: type %r not found", ref.file, ref.line, ref.name)
            return

        if self._collapses(ref, decl):
            session.collapse(ref, key)
            for hop in ref.records:
                if hop.target is None:
                    hop.target = key
            return
        if key in session.extracted:
            self._release(record, key)
            return

        root = ref if ref.kind is RefKind.ROOT else None
        session.assign_name(decl, root)
        if isinstance(decl, InterfaceDecl):
            session.base_refs[key] = []
        self._release(record, key)
        decl.extract(walk, scanned.source)

    def _collapses(self, ref: TypeRef, decl: Declaration) -> bool:
        return ref.nested and decl.object_shaped and not self.session.is_entry(decl.file)

    def _release(self, record: AliasRecord, key: DeclKey) -> None:
        """Bind every reference waiting on *record*, and on the records those
        references passed through on their way here."""
        session = self.session
        decl = session.extracted[key]
        work = [record]
        while work:
            for ref in session.unifier.unify(work.pop(), key):
                if self._collapses(ref, decl):
                    session.collapse(ref, key)
                else:
                    session.bind(ref, key)
                work.extend(hop for hop in ref.records if hop.target is None and hop not in work)

    @staticmethod
    def _visible_line(scanned: ScannedFile, name: str, ref: TypeRef) -> int:
        if ref.file == scanned.path:
            return ref.line
        binding = scanned.imports.get(name) or scanned.reexports.get(name)
        if binding is not None:
            return binding.line
        decl = scanned.declarations.get(name)
        return decl.line if decl is not None else 1
