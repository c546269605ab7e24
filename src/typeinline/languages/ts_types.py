"""Walk TypeScript type expressions for the names they reference."""

from __future__ import annotations

# Type forms whose named children are themselves types worth walking
_COMPOSITE_TYPES = frozenset(
    {
        "union_type",
        "intersection_type",
        "array_type",
        "parenthesized_type",
        "readonly_type",
        "tuple_type",
        "optional_type",
        "rest_type",
        "type_arguments",
    }
)


def iter_type_references(node, source: bytes):
    """Yield ``(name, node)`` for every tracked reference under *node*.

    Tracked forms are plain type identifiers and the name of a generic
    reference (whose type arguments are walked too).  Qualified names,
    object literals, function types and the like are left alone.
    """
    if node is None:
        return
    if node.type == "type_identifier":
        yield _text(node, source), node
    elif node.type == "generic_type":
        name = node.child_by_field_name("name")
        if name is not None and name.type == "type_identifier":
            yield _text(name, source), name
        args = node.child_by_field_name("type_arguments")
        if args is None:
            args = next((c for c in node.named_children if c.type == "type_arguments"), None)
        yield from iter_type_references(args, source)
    elif node.type in _COMPOSITE_TYPES:
        for child in node.named_children:
            yield from iter_type_references(child, source)


def annotation_type(node):
    """Return the type node inside a ``type_annotation``."""
    if node is None:
        return None
    if node.type == "type_annotation":
        return node.named_children[0] if node.named_children else None
    return node


def iter_property_types(body):
    """Yield the annotation type node of every property signature in *body*."""
    for member in body.named_children:
        if member.type != "property_signature":
            continue
        ty = annotation_type(member.child_by_field_name("type"))
        if ty is not None:
            yield ty


def _text(node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8")
