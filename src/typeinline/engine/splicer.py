"""Turn a resolved session into the inlined block and the entry-script edits."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from typeinline.engine.model import (
    DeclKey,
    Declaration,
    EnumDecl,
    InterfaceDecl,
    Replacement,
    Span,
    apply_replacements,
)
from typeinline.languages.base import ImportStatement, ScannedFile

log = logging.getLogger(__name__)


@dataclass
class SpliceResult:
    block: str = ""
    edits: list[Replacement] = field(default_factory=list)
    emitted: list[str] = field(default_factory=list)


def strip_braces(body: bytes) -> bytes:
    """Member text of a ``{ ... }`` block, terminated so more members can follow."""
    text = body.strip()
    if text.startswith(b"{") and text.endswith(b"}"):
        text = body[body.index(b"{") + 1 : body.rindex(b"}")]
    if text.strip() and not text.rstrip(b" \t").endswith((b";", b",", b"\n")):
        text = text.rstrip(b" \t") + b";"
    return text


class Splicer:
    """Applies replacements, merges bases, renders the block and computes edits."""

    def __init__(self, session, orders, *, clean_newline: bool = False, clean_interface: bool = False):
        self.session = session
        self.orders = orders
        self.clean_newline = clean_newline
        self.clean_interface = clean_interface
        self._ordered = set(orders.dependency_order)
        self._emitted: set[DeclKey] = set()

    def finalize(self) -> SpliceResult:
        session = self.session
        own = {
            key: apply_replacements(decl.raw_body, decl.body, decl.body_replacements())
            for key, decl in session.extracted.items()
        }
        bodies = self._merge_bases(own)

        emitted = [key for key in self.orders.dependency_order if not self.in_place(session.extracted[key])]
        self._emitted = set(emitted)
        block = "\n".join(self._render(key, bodies[key]) for key in emitted)
        if emitted:
            log.info("inlined %d declaration(s)", len(emitted))
        return SpliceResult(
            block=block,
            edits=self._source_edits(),
            emitted=[session.canonical[key] for key in emitted],
        )

    def hoisted(self, decl: Declaration) -> bool:
        """Entry interface emitted merged with its bases; its original statement goes away."""
        return decl.key in self._ordered and self.session.merges_bases(decl)

    def in_place(self, decl: Declaration) -> bool:
        """Entry declaration that stays where it is, rewritten through its replacements."""
        if not self.session.is_entry(decl.file) or isinstance(decl, EnumDecl):
            return False
        return not self.hoisted(decl)

    # ---- bodies ----

    def _bases(self, key: DeclKey) -> list[DeclKey]:
        extends = self.session.extends
        if key not in extends:
            return []
        return sorted(extends.successors(key), key=lambda base: extends.edges[key, base]["order"])

    def _lineage(self, key: DeclKey) -> list[DeclKey]:
        """Transitive bases of *key*, each once, a base's own bases before it."""
        seen: set[DeclKey] = {key}
        lineage: list[DeclKey] = []

        def visit(node):
            for base in self._bases(node):
                if base in seen:
                    continue
                seen.add(base)
                visit(base)
                lineage.append(base)

        visit(key)
        return lineage

    def _merge_bases(self, own: dict[DeclKey, bytes]) -> dict[DeclKey, bytes]:
        session = self.session
        bodies = dict(own)
        for key in self.orders.merge_order:
            lineage = self._lineage(key)
            if not lineage:
                continue
            inherited = b"".join(strip_braces(own[base]) for base in lineage)
            body = own[key]
            brace = body.find(b"{") + 1
            bodies[key] = body[:brace] + inherited + body[brace:]
            derived = session.extracted[key]
            for base in lineage:
                for dep in session.extracted[base].dependencies:
                    if dep not in derived.dependencies:
                        derived.dependencies.append(dep)
        return bodies

    def _clauses(self, decl: Declaration):
        if not isinstance(decl, InterfaceDecl):
            return []
        return list(zip(decl.bases, self.session.base_refs.get(decl.key, [])))

    def _header_bases(self, decl: Declaration) -> list[str]:
        """Extends clauses that survive merging: unresolved ones, and non-object bases."""
        session = self.session
        kept = []
        for clause, ref in self._clauses(decl):
            if ref.resolved and session.extracted[ref.resolved_to].object_shaped:
                continue
            inside = [r for r in decl.replacements if clause.span.contains(r.span)]
            kept.append(apply_replacements(clause.text.encode("utf-8"), clause.span, inside).decode("utf-8"))
        return kept

    def _render(self, key: DeclKey, body: bytes) -> str:
        decl = self.session.extracted[key]
        return decl.render(self.session.canonical[key], body, self._header_bases(decl))

    # ---- entry script edits ----

    def _removal(self, span: Span, source: bytes) -> Replacement:
        end = span.end
        if self.clean_newline:
            if source[end : end + 2] == b"\r\n":
                end += 2
            elif source[end : end + 1] == b"\n":
                end += 1
        return Replacement(Span(span.start, end), "")

    def _source_edits(self) -> list[Replacement]:
        session = self.session
        if session.entry is None:
            return []
        entry: ScannedFile = session.files[session.entry]
        edits = list(session.call_site_edits)
        removed = self._cleaned_interfaces()
        keep: set[str] = set()

        for key, decl in session.extracted.items():
            if not session.is_entry(decl.file):
                continue
            if key in removed or self.hoisted(decl):
                edits.append(self._removal(decl.statement, entry.source))
            elif self.in_place(decl):
                edits.extend(decl.replacements)
                edits.extend(self._merged_base_names(decl, keep))

        resolved = session.unifier.resolved_names(entry.path)
        for stmt in entry.import_statements:
            edit = self._import_edit(stmt, resolved, keep, entry.source)
            if edit is not None:
                edits.append(edit)
        return sorted(edits, key=lambda r: r.span)

    def _merged_base_names(self, decl: Declaration, keep: set[str]) -> list[Replacement]:
        """An interface left in place still names its imported object bases.

        A base that was emitted is renamed to its canonical name; any other
        keeps its import, whose local name goes into *keep*.
        """
        session = self.session
        edits = []
        for clause, ref in self._clauses(decl):
            if not ref.resolved or session.is_entry(ref.resolved_to.file):
                continue
            if not session.extracted[ref.resolved_to].object_shaped:
                continue
            if ref.resolved_to not in self._emitted:
                keep.add(clause.name)
                continue
            canonical = session.canonical[ref.resolved_to]
            if canonical != clause.name:
                edits.append(Replacement(clause.name_span, canonical))
        return edits

    def _cleaned_interfaces(self) -> set[DeclKey]:
        """Entry interfaces only kept around to be merged into a hoisted one."""
        session = self.session
        if not self.clean_interface:
            return set()
        needed = set(self.orders.dependency_order) | set(session.root_keys())
        removed = set()
        for key, decl in session.extracted.items():
            if not (self.in_place(decl) and isinstance(decl, InterfaceDecl)):
                continue
            if key in needed or key not in session.extends or session.extends.in_degree(key) == 0:
                continue
            if session.dependencies.in_degree(key) > 0:
                continue
            removed.add(key)
        return removed

    def _import_edit(self, stmt: ImportStatement, resolved: dict, keep: set[str], source: bytes) -> Replacement | None:
        def dropped(binding) -> bool:
            key = resolved.get(binding.local)
            if key is None or binding.local in keep:
                return False
            return not isinstance(self.session.extracted.get(key), EnumDecl)

        default = stmt.default if stmt.default is not None and not dropped(stmt.default) else None
        named = [text for binding, text in stmt.named if not dropped(binding)]
        if default is stmt.default and len(named) == len(stmt.named):
            return None
        if default is None and not named and stmt.namespace is None:
            return self._removal(stmt.span, source)

        parts = []
        if default is not None:
            parts.append(default.local)
        if stmt.namespace is not None:
            parts.append(stmt.namespace)
        if named:
            parts.append("{ " + ", ".join(named) + " }")
        text = "import " + ("type " if stmt.type_only else "") + ", ".join(parts) + " from " + stmt.source_text
        if stmt.has_semicolon:
            text += ";"
        return Replacement(stmt.span, text)
