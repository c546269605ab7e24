"""Find the type names requested by compiler-macro calls in a script."""

from __future__ import annotations

from dataclasses import dataclass

from typeinline.engine.model import Span

DEFAULT_MACROS: tuple[str, ...] = ("defineProps", "defineEmits")
WRAPPERS: frozenset[str] = frozenset({"withDefaults"})


@dataclass(frozen=True)
class MacroRequest:
    """``name`` used as the sole type argument of ``macro`` at ``span``."""

    name: str
    span: Span
    macro: str
    line: int


def _callee(node, source: bytes) -> str | None:
    fn = node.child_by_field_name("function")
    if fn is None or fn.type != "identifier":
        return None
    return source[fn.start_byte : fn.end_byte].decode("utf-8")


def _expressions(stmt):
    """Yield the top-level expressions of one program statement."""
    if stmt.type == "expression_statement":
        for child in stmt.named_children:
            yield child
    elif stmt.type in ("lexical_declaration", "variable_declaration"):
        for decl in stmt.named_children:
            if decl.type == "variable_declarator":
                value = decl.child_by_field_name("value")
                if value is not None:
                    yield value
    elif stmt.type == "export_statement":
        decl = stmt.child_by_field_name("declaration")
        if decl is not None:
            yield from _expressions(decl)
        value = stmt.child_by_field_name("value")
        if value is not None:
            yield value


def _unwrap(node, source: bytes):
    while node is not None and node.type in ("await_expression", "parenthesized_expression"):
        node = node.named_children[0] if node.named_children else None
    if node is not None and node.type == "call_expression" and _callee(node, source) in WRAPPERS:
        args = node.child_by_field_name("arguments")
        inner = args.named_children if args is not None else []
        return inner[0] if inner else None
    return node


def find_macro_requests(tree, source: bytes, macros=DEFAULT_MACROS) -> list[MacroRequest]:
    """Collect requests in source order.

    Only calls whose first type argument is a plain type identifier count;
    ``defineProps<{ a: string }>()`` and ``defineProps<ns.Props>()`` are
    left alone.
    """
    wanted = set(macros)
    requests: list[MacroRequest] = []
    for stmt in tree.root_node.named_children:
        for expr in _expressions(stmt):
            call = _unwrap(expr, source)
            if call is None or call.type != "call_expression":
                continue
            macro = _callee(call, source)
            if macro not in wanted:
                continue
            type_args = call.child_by_field_name("type_arguments")
            if type_args is None or not type_args.named_children:
                continue
            arg = type_args.named_children[0]
            if arg.type != "type_identifier":
                continue
            requests.append(
                MacroRequest(
                    name=source[arg.start_byte : arg.end_byte].decode("utf-8"),
                    span=Span.of(arg),
                    macro=macro,
                    line=arg.start_point[0] + 1,
                )
            )
    return requests
