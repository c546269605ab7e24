from __future__ import annotations

import logging

from typeinline.engine.model import (
    AliasDecl,
    BaseClause,
    Declaration,
    EnumDecl,
    InterfaceDecl,
    Span,
    enum_body,
)
from typeinline.exit_codes import DuplicateDeclarationError

from .base import ImportBinding, ImportStatement, ScannedFile, SourceScanner

log = logging.getLogger(__name__)

DECLARATION_TYPES = frozenset({"type_alias_declaration", "interface_declaration", "enum_declaration"})


class TypeScriptScanner(SourceScanner):
    """Scanner for TypeScript sources: type aliases, interfaces, enums, imports, exports."""

    def __init__(self, strict: bool = False):
        self.strict = strict

    @property
    def language_name(self) -> str:
        return "typescript"

    @property
    def file_extensions(self) -> list[str]:
        return [".ts", ".d.ts", ".tsx", ".mts", ".cts"]

    def scan(self, tree, source: bytes, file_path: str) -> ScannedFile:
        scanned = ScannedFile(path=file_path, source=source)
        for child in tree.root_node.named_children:
            self._visit(child, source, scanned, statement=child)
        return scanned

    def _visit(self, node, source, scanned, statement) -> str | None:
        """Scan one statement; returns the declared name when it declares a type."""
        if node.type == "import_statement":
            self._scan_import(node, source, scanned)
        elif node.type == "export_statement":
            self._scan_export(node, source, scanned)
        elif node.type == "ambient_declaration":
            for child in node.named_children:
                name = self._visit(child, source, scanned, statement)
                if name is not None:
                    return name
        elif node.type in DECLARATION_TYPES:
            decl = self._declaration(node, source, scanned.path, statement)
            if decl is not None:
                self._register(decl, scanned)
                return decl.name
        return None

    # ---- declarations ----

    def _declaration(self, node, source, file_path, statement) -> Declaration | None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        params = node.child_by_field_name("type_parameters")
        common = dict(
            name=self.node_text(name_node, source),
            file=file_path,
            span=Span.of(node),
            statement=Span.of(statement),
            type_params=self.node_text(params, source),
            type_param_names=self._param_names(params, source),
            line=node.start_point[0] + 1,
            node=node,
        )

        if node.type == "type_alias_declaration":
            value = node.child_by_field_name("value")
            if value is None:
                return None
            body = Span.of(value)
            return AliasDecl(body=body, raw_body=body.slice(source), **common)

        if node.type == "interface_declaration":
            block = node.child_by_field_name("body")
            if block is None:
                return None
            body = Span.of(block)
            return InterfaceDecl(
                body=body,
                raw_body=body.slice(source),
                bases=self._bases(node, source),
                **common,
            )

        block = node.child_by_field_name("body")
        kinds = self._enum_kinds(block, source) if block is not None else set()
        common["type_params"] = ""
        return EnumDecl(body=Span.of(node), raw_body=enum_body(kinds), **common)

    def _bases(self, node, source) -> list[BaseClause]:
        bases: list[BaseClause] = []
        for child in node.children:
            if child.type != "extends_type_clause":
                continue
            for ty in child.named_children:
                name_node, args = ty, None
                if ty.type == "generic_type":
                    name_node = ty.child_by_field_name("name") or ty
                    args = next((c for c in ty.named_children if c.type == "type_arguments"), None)
                if ty.type not in ("type_identifier", "generic_type", "nested_type_identifier"):
                    continue
                bases.append(
                    BaseClause(
                        name=self.node_text(name_node, source),
                        name_span=Span.of(name_node),
                        span=Span.of(ty),
                        text=self.node_text(ty, source),
                        args=args,
                    )
                )
        return bases

    def _param_names(self, params, source) -> frozenset:
        if params is None:
            return frozenset()
        names = (p.child_by_field_name("name") for p in params.named_children if p.type == "type_parameter")
        return frozenset(self.node_text(n, source) for n in names if n is not None)

    def _enum_kinds(self, body, source) -> set[str]:
        kinds: set[str] = set()
        for member in body.named_children:
            if member.type == "comment":
                continue
            if member.type != "enum_assignment":
                # no initializer: auto-numbered
                kinds.add("number")
                continue
            kind = _literal_kind(member.child_by_field_name("value"))
            if kind is not None:
                kinds.add(kind)
        return kinds

    def _register(self, decl: Declaration, scanned: ScannedFile) -> None:
        prior = scanned.declarations.get(decl.name)
        if prior is not None:
            if self.strict:
                raise DuplicateDeclarationError(scanned.path, decl.name, prior.line, decl.line)
            log.warning(
                "%s:%d: type %r redeclared (first at line %d); keeping the last declaration",
                scanned.path,
                decl.line,
                decl.name,
                prior.line,
            )
        scanned.declarations[decl.name] = decl

    # ---- imports / exports ----

    def _scan_import(self, node, source, scanned: ScannedFile) -> None:
        src = node.child_by_field_name("source")
        if src is None:
            return
        specifier = self._string_value(src, source)
        stmt = ImportStatement(
            span=Span.of(node),
            source_text=self.node_text(src, source),
            type_only=any(c.type == "type" for c in node.children),
            has_semicolon=node.children[-1].type == ";",
        )
        clause = next((c for c in node.named_children if c.type == "import_clause"), None)
        for part in clause.named_children if clause is not None else ():
            if part.type == "identifier":
                stmt.default = ImportBinding(
                    local=self.node_text(part, source),
                    imported="default",
                    specifier=specifier,
                    span=Span.of(part),
                    line=part.start_point[0] + 1,
                )
                scanned.imports[stmt.default.local] = stmt.default
            elif part.type == "namespace_import":
                stmt.namespace = self.node_text(part, source)
            elif part.type == "named_imports":
                for spec in part.named_children:
                    if spec.type != "import_specifier":
                        continue
                    imported = self._string_value(spec.child_by_field_name("name"), source)
                    alias = spec.child_by_field_name("alias")
                    binding = ImportBinding(
                        local=self.node_text(alias, source) if alias is not None else imported,
                        imported=imported,
                        specifier=specifier,
                        span=Span.of(spec),
                        line=spec.start_point[0] + 1,
                    )
                    stmt.named.append((binding, self.node_text(spec, source)))
                    scanned.imports[binding.local] = binding
        scanned.import_statements.append(stmt)

    def _scan_export(self, node, source, scanned: ScannedFile) -> None:
        is_default = any(c.type == "default" for c in node.children)
        decl = node.child_by_field_name("declaration")
        if decl is not None:
            name = self._visit(decl, source, scanned, statement=node)
            if is_default and name is not None:
                scanned.named_exports["default"] = name
            return
        if is_default:
            value = node.child_by_field_name("value")
            if value is not None and value.type == "identifier":
                scanned.named_exports["default"] = self.node_text(value, source)
            return

        src = node.child_by_field_name("source")
        specifier = self._string_value(src, source) if src is not None else None
        clause = next((c for c in node.named_children if c.type == "export_clause"), None)
        if clause is None:
            namespaced = any(c.type == "namespace_export" for c in node.named_children)
            if specifier is not None and not namespaced and any(c.type == "*" for c in node.children):
                scanned.export_all.append(specifier)
            return

        for spec in clause.named_children:
            if spec.type != "export_specifier":
                continue
            local = self._string_value(spec.child_by_field_name("name"), source)
            alias = spec.child_by_field_name("alias")
            exported = self._string_value(alias, source) if alias is not None else local
            if specifier is None:
                scanned.named_exports[exported] = local
            else:
                scanned.reexports[exported] = ImportBinding(
                    local=exported,
                    imported=local,
                    specifier=specifier,
                    span=Span.of(spec),
                    line=spec.start_point[0] + 1,
                )


def _literal_kind(node) -> str | None:
    if node is None:
        return None
    if node.type == "number":
        return "number"
    if node.type == "unary_expression" and node.named_children and node.named_children[-1].type == "number":
        return "number"
    if node.type == "string":
        return "string"
    if node.type == "template_string" and not any(c.type == "template_substitution" for c in node.named_children):
        return "string"
    if node.type == "parenthesized_expression" and node.named_children:
        return _literal_kind(node.named_children[0])
    return None
