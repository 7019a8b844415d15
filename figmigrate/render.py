"""Plain-text views of migration responses, for resources and logs."""

from __future__ import annotations

from typing import Any, Callable, Dict, List


def render_init(response: Dict[str, Any]) -> str:
    summary = response["summary"]
    top = "\n".join(f"  - {name}" for name in summary["topReadyComponents"])
    return (
        "Migration initialized!\n\n"
        f"Components: {summary['totalComponents']}\n"
        f"Pages: {summary['totalPages']}\n"
        f"Ready to start: {summary['readyComponents']} components\n\n"
        f"Top components ready:\n{top}\n\n"
        "Use migration_next to get the next items to work on."
    )


def render_ready(response: Dict[str, Any]) -> str:
    items = response["items"]
    if not items:
        if response.get("phase") == "done":
            return "Migration complete! All items have been processed."
        return "No items ready. Some items may be blocked by dependencies."

    lines = []
    for item in items:
        if item["type"] == "component":
            deps = item.get("dependencies") or []
            suffix = f" (deps: {len(deps)})" if deps else ""
            lines.append(f"- [component] {item['name']} ({item['instanceCount']}x){suffix} [{item['id']}]")
        else:
            used = item.get("componentsUsed") or []
            lines.append(f"- [page] {item['name']} ({len(used)} components) [{item['id']}]")
    lines.append("")
    lines.append(f"{response['remaining']} more items remaining")
    return "\n".join(lines)


def render_start(response: Dict[str, Any]) -> str:
    lines = [
        f"Started working on {response['type']}: {response['name']}",
        "",
        f"Suggested path: {response['suggestedPath']}",
    ]
    if response.get("dependencies"):
        lines.append(f"Dependencies: {', '.join(response['dependencies'])}")
    lines.extend([
        "",
        "## Figma Definition",
        "",
        response["definition"],
        "",
        f"Use this definition to implement the {response['type']}. When done, call migration_complete.",
    ])
    return "\n".join(lines)


def render_complete(response: Dict[str, Any]) -> str:
    progress = response["progress"]
    lines = [
        f"Completed: {response['completed']}",
        f"Progress: {progress['done']}/{progress['total']}",
    ]
    if response["newReady"]:
        lines.append(f"Newly ready: {', '.join(response['newReady'])}")
    return "\n".join(lines)


def render_skip(response: Dict[str, Any]) -> str:
    lines = [f"Skipped: {response['skipped']}", f"Reason: {response['reason']}"]
    if response["newReady"]:
        lines.append(f"Newly ready: {', '.join(response['newReady'])}")
    return "\n".join(lines)


def render_progress(response: Dict[str, Any]) -> str:
    progress = response["progress"]
    components = progress["components"]
    pages = progress["pages"]
    lines: List[str] = [
        f"Phase: {progress['phase']}",
        "",
        "Components:",
        f"  Done: {components['done']}/{components['total']}",
        f"  In Progress: {components['inProgress']}",
        f"  Pending: {components['pending']}",
        f"  Skipped: {components['skipped']}",
        "",
        "Pages:",
        f"  Done: {pages['done']}/{pages['total']}",
        f"  Ready: {pages['ready']}",
        f"  Blocked: {pages['blocked']}",
    ]
    if progress["currentTask"]:
        lines.extend(["", f"Current: {progress['currentTask']}"])
    if progress["nextUp"]:
        lines.extend(["", f"Next up: {', '.join(progress['nextUp'])}"])
    return "\n".join(lines)


_RENDERERS: Dict[str, Callable[[Dict[str, Any]], str]] = {
    "migration_init": render_init,
    "migration_next": render_ready,
    "migration_start": render_start,
    "migration_complete": render_complete,
    "migration_skip": render_skip,
    "migration_progress": render_progress,
}


def render_response(operation: str, response: Dict[str, Any]) -> str:
    """Render any tagged response of ``operation`` as text.

    Errors render as their ``error`` message and pending responses as their
    ``message``.
    """
    status = response.get("status")
    if status == "error":
        return f"Error: {response['error']}"
    if status == "pending":
        return response["message"]
    renderer = _RENDERERS.get(operation)
    if renderer is None:
        raise KeyError(f"No renderer for operation: {operation}")
    return renderer(response)
