"""Node traversal and component dependency extraction.

A Figma node is a plain ``dict`` with at least ``type``, ``name`` and ``id``
and optionally ``children``. Instance nodes (``type == "INSTANCE"``) carry the
``componentId`` of the component they instantiate; those references are the
edges of the component dependency graph.

The graph is expected to be acyclic. ``find_dependency_cycle`` reports a
cycle so initialization can refuse it instead of leaving every component on
the cycle permanently blocked.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any, Dict, List, Optional

from .models import SourceComponent

Node = Mapping[str, Any]


def walk_nodes(
    node: Optional[Node],
    visit: Callable[[Optional[Node], int], None],
    *,
    max_depth: Optional[int] = None,
    depth: int = 0,
    step: int = 1,
    visit_missing: bool = False,
) -> None:
    """Visit ``node`` and its descendants in pre-order.

    ``visit(node, depth)`` is called for every node reached. Children of a node
    are visited at ``depth + step`` only while ``depth < max_depth``; with no
    ``max_depth`` the walk is unbounded. Entries that are not nodes (``None``
    children, for example) are skipped, or passed to ``visit`` as ``None`` when
    ``visit_missing`` is set.
    """
    if not isinstance(node, Mapping):
        if visit_missing:
            visit(None, depth)
        return
    visit(node, depth)
    if max_depth is not None and depth >= max_depth:
        return
    children = node.get("children")
    if not isinstance(children, list):
        return
    for child in children:
        walk_nodes(
            child, visit, max_depth=max_depth, depth=depth + step, step=step, visit_missing=visit_missing,
        )


def find_instance_dependencies(definition: Optional[Node], self_id: str) -> List[str]:
    """Distinct component ids instantiated anywhere under ``definition``.

    Order follows first appearance in a pre-order walk; ``self_id`` is never
    included.
    """
    found: Dict[str, None] = {}

    def visit(node: Node, _depth: int) -> None:
        component_id = node.get("componentId")
        if node.get("type") == "INSTANCE" and component_id and component_id != self_id:
            found.setdefault(str(component_id), None)

    walk_nodes(definition, visit)
    return list(found)


def build_component_dependencies(components: Mapping[str, SourceComponent]) -> Dict[str, List[str]]:
    """Map every component id to the other component ids its definition instantiates."""
    return {
        comp_id: find_instance_dependencies(component.definition, comp_id)
        for comp_id, component in components.items()
    }


def find_dependency_cycle(graph: Mapping[str, Iterable[str]]) -> Optional[List[str]]:
    """Return one dependency cycle as a path ``[a, b, ..., a]``, or ``None``.

    Nodes are explored in mapping order, so the reported cycle is deterministic.
    Edges to ids that are not keys of ``graph`` are ignored.
    """
    done: set[str] = set()

    for start in graph:
        if start in done:
            continue
        path: List[str] = [start]
        on_path: set[str] = {start}
        stack = [iter(graph.get(start) or ())]
        while stack:
            advanced = False
            for dep in stack[-1]:
                if dep not in graph or dep in done:
                    continue
                if dep in on_path:
                    return path[path.index(dep):] + [dep]
                path.append(dep)
                on_path.add(dep)
                stack.append(iter(graph.get(dep) or ()))
                advanced = True
                break
            if not advanced:
                stack.pop()
                finished = path.pop()
                on_path.discard(finished)
                done.add(finished)
    return None
