"""Byte spans, replacement entries and type references shared by the engine.

Offsets are UTF-8 byte offsets.  A :class:`Span` is always absolute (into
the full source of one file); a :class:`LocalSpan` is relative to the start
of some slice of that source, usually a declaration body.  The two are
separate types so that a rebasing step can never be skipped silently.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, NamedTuple, Protocol

from typeinline.languages.ts_types import iter_property_types, iter_type_references


class Span(NamedTuple):
    """Absolute ``[start, end)`` byte range in one file's source."""

    start: int
    end: int

    @classmethod
    def of(cls, node) -> "Span":
        return cls(node.start_byte, node.end_byte)

    def contains(self, other: "Span") -> bool:
        return self.start <= other.start and other.end <= self.end

    def overlaps(self, other: "Span") -> bool:
        return self.start < other.end and other.start < self.end

    def relative_to(self, base: "Span") -> "LocalSpan":
        """Rebase onto the slice described by *base*."""
        if not base.contains(self):
            raise ValueError(f"span {tuple(self)} lies outside slice {tuple(base)}")
        return LocalSpan(self.start - base.start, self.end - base.start)

    def slice(self, source: bytes) -> bytes:
        return source[self.start : self.end]


class LocalSpan(NamedTuple):
    """``[start, end)`` byte range relative to the start of a slice."""

    start: int
    end: int


class DeclKey(NamedTuple):
    """Identity of a declaration: the file defining it plus its local name."""

    file: str
    name: str


@dataclass(frozen=True)
class Replacement:
    """Replace the bytes at ``span`` with ``text``."""

    span: Span
    text: str


def apply_replacements(raw: bytes, base: Span, replacements: list[Replacement]) -> bytes:
    """Apply *replacements* (absolute spans) to *raw*, the bytes at *base*.

    Entries are rebased to *base* and applied highest-offset-first, so the
    earlier offsets stay valid while later ones are rewritten.  Overlapping
    entries are a programming error and raise ``ValueError``.
    """
    if not replacements:
        return raw
    ordered = sorted(replacements, key=lambda r: (r.span.start, r.span.end))
    for prev, cur in zip(ordered, ordered[1:]):
        if prev.span.overlaps(cur.span):
            raise ValueError(f"overlapping replacements at {tuple(prev.span)} and {tuple(cur.span)}")
    out = raw
    for entry in reversed(ordered):
        local = entry.span.relative_to(base)
        out = out[: local.start] + entry.text.encode("utf-8") + out[local.end :]
    return out


class RefKind(str, Enum):
    """Where a type reference was found."""

    ROOT = "root"            # sole type argument of a macro call
    MEMBER = "member"        # inside a type alias value
    PROPERTY = "property"    # property annotation of an interface / object literal
    EXTENDS = "extends"      # interface extends clause


@dataclass(eq=False)
class TypeRef:
    """One occurrence of a type name that needs a canonical name.

    ``span`` is the slot the canonical name is written into; it belongs to
    ``owner``'s file (or to the entry script when ``owner`` is None).  A
    reference keeps its identity while it is forwarded across files, so the
    slot is filled wherever the name finally resolves.
    """

    name: str
    kind: RefKind
    file: str
    line: int
    owner: DeclKey | None = None
    span: Span | None = None
    nested: bool = False
    resolved_to: DeclKey | None = None
    hops: set = field(default_factory=set, repr=False)
    records: list = field(default_factory=list, repr=False)

    @property
    def resolved(self) -> bool:
        return self.resolved_to is not None


@dataclass(frozen=True)
class Lookup:
    """A request to find ``name`` in one file on behalf of ``ref``.

    ``external`` lookups arrived through an import or re-export and are
    resolved against the file's export surface; the others are ordinary
    scope lookups made from inside the file.
    """

    ref: TypeRef
    name: str
    external: bool = False


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


class ExtractContext(Protocol):
    """Callbacks a declaration uses to report the references in its body."""

    def reference(self, owner: "Declaration", name: str, span: Span, kind: RefKind, *, nested: bool = False) -> None: ...


@dataclass(eq=False)
class Declaration:
    """A named type declaration found by the scanner.

    ``span`` covers the declaration node, ``statement`` the enclosing
    statement (``export`` / ``declare`` wrapper included) and ``body`` the
    bytes that get copied into the inlined block.  The body never changes;
    rewrites are collected in ``replacements`` and applied at render time.
    """

    name: str
    file: str
    span: Span
    statement: Span
    body: Span
    raw_body: bytes
    type_params: str
    line: int
    node: Any = field(default=None, repr=False)
    type_param_names: frozenset = frozenset()
    dependencies: list[str] = field(default_factory=list)
    replacements: list[Replacement] = field(default_factory=list)

    kind: ClassVar[str] = ""

    @property
    def key(self) -> DeclKey:
        return DeclKey(self.file, self.name)

    @property
    def object_shaped(self) -> bool:
        return False

    def extract(self, ctx: ExtractContext, source: bytes) -> None:
        raise NotImplementedError

    def render(self, canonical: str, body: bytes, bases: list[str] | tuple = ()) -> str:
        raise NotImplementedError

    def body_replacements(self) -> list[Replacement]:
        """Replacements inside the copied body; extends clauses are rendered separately."""
        return [r for r in self.replacements if self.body.contains(r.span)]


def _extract_members(decl: Declaration, ctx: ExtractContext, body_node, source: bytes) -> None:
    for ty in iter_property_types(body_node):
        if ty.type == "type_identifier":
            name = source[ty.start_byte : ty.end_byte].decode("utf-8")
            ctx.reference(decl, name, Span.of(ty), RefKind.PROPERTY, nested=True)
            continue
        for name, node in iter_type_references(ty, source):
            ctx.reference(decl, name, Span.of(node), RefKind.PROPERTY)


@dataclass(eq=False)
class AliasDecl(Declaration):
    """``type Name<T> = value``; the body is the value text."""

    kind: ClassVar[str] = "type"

    @property
    def object_shaped(self) -> bool:
        return self.node is not None and self._value().type == "object_type"

    def _value(self):
        return self.node.child_by_field_name("value")

    def extract(self, ctx: ExtractContext, source: bytes) -> None:
        value = self._value()
        if value is None:
            return
        if value.type == "object_type":
            _extract_members(self, ctx, value, source)
            return
        for name, node in iter_type_references(value, source):
            ctx.reference(self, name, Span.of(node), RefKind.MEMBER)

    def render(self, canonical: str, body: bytes, bases=()) -> str:
        return f"type {canonical}{self.type_params} = {body.decode('utf-8')};"


@dataclass(frozen=True)
class BaseClause:
    """One entry of an ``extends`` list: ``Base`` or ``Base<Arg>``.

    ``args`` is the ``type_arguments`` node of a generic clause.
    """

    name: str
    name_span: Span
    span: Span
    text: str
    args: Any = field(default=None, compare=False, repr=False)


@dataclass(eq=False)
class InterfaceDecl(Declaration):
    """``interface Name<T> extends A, B { ... }``; the body is the braces block."""

    bases: list[BaseClause] = field(default_factory=list)

    kind: ClassVar[str] = "interface"

    @property
    def object_shaped(self) -> bool:
        return True

    def extract(self, ctx: ExtractContext, source: bytes) -> None:
        for clause in self.bases:
            ctx.reference(self, clause.name, clause.name_span, RefKind.EXTENDS)
            for name, node in iter_type_references(clause.args, source):
                ctx.reference(self, name, Span.of(node), RefKind.MEMBER)
        body = self.node.child_by_field_name("body")
        if body is not None:
            _extract_members(self, ctx, body, source)

    def render(self, canonical: str, body: bytes, bases=()) -> str:
        extends = f" extends {', '.join(bases)}" if bases else ""
        return f"interface {canonical}{self.type_params}{extends} {body.decode('utf-8')}"


@dataclass(eq=False)
class EnumDecl(Declaration):
    """``enum Name { ... }``; the body is synthesized from member value kinds."""

    kind: ClassVar[str] = "enum"

    def extract(self, ctx: ExtractContext, source: bytes) -> None:
        return None

    def render(self, canonical: str, body: bytes, bases=()) -> str:
        return f"type {canonical} = {body.decode('utf-8')};"


ENUM_KIND_ORDER: tuple[str, ...] = ("number", "string")


def enum_body(kinds) -> bytes:
    """Union of the member value kinds, ``number | string`` when none are known."""
    found = [k for k in ENUM_KIND_ORDER if k in kinds]
    return " | ".join(found or ENUM_KIND_ORDER).encode("utf-8")
