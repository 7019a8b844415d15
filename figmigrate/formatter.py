"""Readable summaries of Figma nodes for the agent implementing a task.

``format_definition`` renders a node and its descendants into indented text:
a header per node followed by the layout, box, paint, typography and effect
properties that matter when translating the design into code. Children are
expanded down to ``MAX_DEPTH``; deeper subtrees are reduced to a count.

Cached definitions come straight from the Figma API, so any property may be
``null`` or of an unexpected shape. Such values are treated as absent.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, List, Optional

from .tree import walk_nodes

MAX_DEPTH = 4
DEPTH_STEP = 2
TEXT_PREVIEW_LENGTH = 50


def _number(value: Any) -> Optional[float]:
    """``value`` as a float, or ``None`` when it is not a number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _round(value: float) -> int:
    """Round half up, so 127.5 becomes 128 and 2.5 becomes 3."""
    return int(math.floor(value + 0.5))


def _num(value: Any) -> Any:
    """Render whole floats without a trailing ``.0``."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _hex_color(color: Mapping[str, Any]) -> str:
    channels = (_number(color.get(key)) or 0.0 for key in ("r", "g", "b"))
    return "#" + "".join(f"{_round(c * 255):02x}" for c in channels)


def _entries(node: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    """Visible mapping entries of the paint or effect list under ``key``."""
    value = node.get(key)
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, Mapping) and entry.get("visible") is not False]


def _node_lines(node: Mapping[str, Any], depth: int) -> List[str]:
    indent = "  " * depth
    lines = [f'{indent}[{node.get("type")}] "{node.get("name")}" (id: {node.get("id")})']

    def add(text: str) -> None:
        lines.append(f"{indent}  {text}")

    if node.get("layoutMode"):
        props = [f"layout: {node['layoutMode']}"]
        if node.get("primaryAxisAlignItems"):
            props.append(f"justify: {node['primaryAxisAlignItems']}")
        if node.get("counterAxisAlignItems"):
            props.append(f"align: {node['counterAxisAlignItems']}")
        if node.get("itemSpacing"):
            props.append(f"gap: {_num(node['itemSpacing'])}px")
        if node.get("layoutWrap"):
            props.append(f"wrap: {node['layoutWrap']}")
        add(", ".join(props))

    padding = [node.get(key) or 0 for key in ("paddingTop", "paddingRight", "paddingBottom", "paddingLeft")]
    if any(padding):
        add("padding: " + "/".join(str(_num(p)) for p in padding))

    box = node.get("absoluteBoundingBox")
    if isinstance(box, Mapping):
        width, height = _number(box.get("width", 0)), _number(box.get("height", 0))
        if width is not None and height is not None:
            add(f"size: {_round(width)}x{_round(height)}")

    radii = node.get("rectangleCornerRadii")
    if node.get("cornerRadius"):
        add(f"borderRadius: {_num(node['cornerRadius'])}px")
    elif isinstance(radii, list) and radii:
        add("borderRadius: " + "/".join(str(_num(r)) for r in radii))

    for fill in _entries(node, "fills"):
        fill_type = str(fill.get("type", ""))
        color = fill.get("color")
        if fill_type == "SOLID" and isinstance(color, Mapping):
            alpha = _number(color.get("a", 1))
            if alpha is None:
                alpha = 1.0
            suffix = f" ({_round(alpha * 100)}%)" if alpha < 1 else ""
            add(f"fill: {_hex_color(color)}{suffix}")
        elif fill_type.startswith("GRADIENT_"):
            add(f"fill: {fill_type}")

    strokes = _entries(node, "strokes")
    if strokes and node.get("strokeWeight"):
        color = strokes[0].get("color")
        if isinstance(color, Mapping):
            add(f"border: {_num(node['strokeWeight'])}px {_hex_color(color)}")

    for effect in _entries(node, "effects"):
        if effect.get("type") in ("DROP_SHADOW", "INNER_SHADOW"):
            text = f"shadow: {effect['type']} radius={_num(effect.get('radius'))}"
            offset = effect.get("offset")
            if isinstance(offset, Mapping) and offset:
                text += f" offset={_num(offset.get('x'))}/{_num(offset.get('y'))}"
            add(text)

    if node.get("type") == "TEXT":
        characters = node.get("characters")
        if characters:
            preview = str(characters)
            if len(preview) > TEXT_PREVIEW_LENGTH:
                preview = preview[:TEXT_PREVIEW_LENGTH] + "..."
            add(f'text: "{preview}"')
        style = node.get("style")
        if not isinstance(style, Mapping):
            style = {}
        text_props = []
        if style.get("fontSize"):
            text_props.append(f"size: {_num(style['fontSize'])}px")
        if style.get("fontWeight"):
            text_props.append(f"weight: {_num(style['fontWeight'])}")
        if style.get("fontFamily"):
            text_props.append(f"font: {style['fontFamily']}")
        if style.get("textAlignHorizontal"):
            text_props.append(f"align: {style['textAlignHorizontal']}")
        if style.get("lineHeightPx"):
            text_props.append(f"lineHeight: {_num(style['lineHeightPx'])}px")
        if text_props:
            add(", ".join(text_props))

    if node.get("type") == "INSTANCE" and node.get("componentId"):
        add(f"→ componentId: {node['componentId']}")

    opacity = _number(node.get("opacity"))
    if opacity is not None and opacity < 1:
        add(f"opacity: {_round(opacity * 100)}%")

    children = node.get("children")
    if isinstance(children, list) and children:
        if depth < MAX_DEPTH:
            add(f"children ({len(children)}):")
        else:
            add(f"children: {len(children)} nodes (truncated)")

    return lines


def format_definition(node: Optional[Mapping[str, Any]], depth: int = 0) -> str:
    """Format a node subtree as indented text.

    ``None``, at the top or as a child, renders as an unindented ``null`` line.
    """
    if node is None:
        return "null"

    lines: List[str] = []

    def visit(current: Optional[Mapping[str, Any]], current_depth: int) -> None:
        if current is None:
            lines.append("null")
        else:
            lines.extend(_node_lines(current, current_depth))

    walk_nodes(node, visit, max_depth=MAX_DEPTH, depth=depth, step=DEPTH_STEP, visit_missing=True)
    return "\n".join(lines)
