"""Indented rendering of a value tree."""

from __future__ import annotations

from typejson.output import OutputType
from typejson.value import JsonValue


def pretty_print(
    node: JsonValue,
    output_type: OutputType = OutputType.JSON,
    *,
    fields_on_same_line: bool = False,
) -> str:
    """Render a tree with one member per line and tab indentation.

    Args:
        node: Root of the tree
        output_type: Dialect used to quote names and string values
        fields_on_same_line: Keep objects and arrays that contain only
            scalars on a single line

    Returns:
        The indented text. Members are written as `name: value`.

    """
    parts: list[str] = []
    _render(node, parts, 0, output_type, fields_on_same_line)
    return "".join(parts)


def _render(
    node: JsonValue,
    parts: list[str],
    depth: int,
    output_type: OutputType,
    same_line: bool,
) -> None:
    if node.is_value():
        if node.is_string():
            parts.append(output_type.quote_value(node.as_str()))
        else:
            parts.append(node.to_json(output_type))
        return
    if len(node) == 0:
        parts.append("{}" if node.is_object() else "[]")
        return

    new_lines = not same_line or not _is_flat(node)
    opening, closing = ("{", "}") if node.is_object() else ("[", "]")
    parts.append(opening + ("\n" if new_lines else " "))
    children = list(node)
    for i, child in enumerate(children):
        if new_lines:
            parts.append("\t" * (depth + 1))
        if node.is_object():
            name, child = child
            parts.append(output_type.quote_name(name))
            parts.append(": ")
        _render(child, parts, depth + 1, output_type, same_line)
        if i < len(children) - 1:
            parts.append(",")
        parts.append("\n" if new_lines else " ")
    if new_lines:
        parts.append("\t" * depth)
    parts.append(closing)


def _is_flat(node: JsonValue) -> bool:
    children = (child for _, child in node) if node.is_object() else iter(node)
    return all(child.is_value() for child in children)
