from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from typeinline.engine.model import Span


@dataclass(frozen=True)
class ImportBinding:
    """One name brought into scope by an import (or forwarded by a re-export)."""

    local: str
    imported: str
    specifier: str
    span: Span
    line: int


@dataclass
class ImportStatement:
    """An import statement of the entry script, kept for rewriting."""

    span: Span
    source_text: str
    type_only: bool
    has_semicolon: bool
    default: ImportBinding | None = None
    namespace: str | None = None
    named: list[tuple[ImportBinding, str]] = field(default_factory=list)


@dataclass
class ScannedFile:
    """Everything the resolver needs from one parsed file."""

    path: str
    source: bytes
    declarations: dict = field(default_factory=dict)
    imports: dict[str, ImportBinding] = field(default_factory=dict)
    import_statements: list[ImportStatement] = field(default_factory=list)
    named_exports: dict[str, str] = field(default_factory=dict)
    reexports: dict[str, ImportBinding] = field(default_factory=dict)
    export_all: list[str] = field(default_factory=list)

    def line_of(self, offset: int) -> int:
        return self.source.count(b"\n", 0, offset) + 1

    def text(self, span: Span) -> str:
        return span.slice(self.source).decode("utf-8", errors="replace")


class SourceScanner(ABC):
    """Base class for language-specific declaration scanning."""

    @property
    @abstractmethod
    def language_name(self) -> str: ...

    @property
    @abstractmethod
    def file_extensions(self) -> list[str]: ...

    @abstractmethod
    def scan(self, tree, source: bytes, file_path: str) -> ScannedFile:
        """Scan a parsed tree into declarations, imports and exports.

        Pure function of the tree: the result holds no references to
        session state.
        """
        ...

    def node_text(self, node, source: bytes) -> str:
        if node is None:
            return ""
        return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def _string_value(self, node, source: bytes) -> str:
        """Content of a string literal node, quotes stripped."""
        text = self.node_text(node, source)
        if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
            return text[1:-1]
        return text
