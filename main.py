"""MCP server exposing Figma-to-code migration tracking tools."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from figmigrate import MigrationManager, MigrationSettings, SourceContext
from figmigrate.errors import NoSourceData
from figmigrate.migration_logging import setup_logging
from figmigrate.render import render_response

mcp = FastMCP("figma-migration")


# One source context per cache file; each re-reads its file when it changes on disk.
_SOURCE_CONTEXTS: Dict[Path, SourceContext] = {}


def _source_context(settings: MigrationSettings) -> SourceContext:
    context = _SOURCE_CONTEXTS.get(settings.cache_path)
    if context is None:
        context = SourceContext(settings.cache_path)
        _SOURCE_CONTEXTS[settings.cache_path] = context
    return context


def _manager(root: Optional[str]) -> MigrationManager:
    settings = MigrationSettings.from_env(root)
    return MigrationManager(settings, source=_source_context(settings))


def _manager_optional(root: Optional[str]) -> Optional[MigrationManager]:
    try:
        return _manager(root)
    except ValueError:
        return None


@mcp.tool()
def migration_init(file_url: Optional[str] = None, top_n: int = 5, root: Optional[str] = None) -> Dict[str, Any]:
    """STEP 2: Initialize migration tracking from the cached Figma data.
    Analyzes which components instantiate which and records every component and page task.
    Requires the Figma file to have been fetched into .figma-cache.json first."""

    return _manager(root).initialize(file_url=file_url, top_n=top_n)


@mcp.tool()
def migration_next(limit: int = 5, type: str = "any", root: Optional[str] = None) -> Dict[str, Any]:
    """Get the next items ready to work on.
    Components without unfinished dependencies come first, most used first.
    Pages are listed once every component has been completed or skipped.
    Use type='component' or type='page' to filter."""

    return _manager(root).list_ready(limit=limit, item_type=type)


@mcp.tool()
def migration_start(id: str, root: Optional[str] = None) -> Dict[str, Any]:
    """Start working on a component or page.
    Marks it in progress and returns its Figma definition and a suggested output path."""

    return _manager(root).start(id)


@mcp.tool()
def migration_complete(id: str, output_path: str, root: Optional[str] = None) -> Dict[str, Any]:
    """Mark a component or page as done and record the file it was written to.
    Returns the components that became ready as a result."""

    return _manager(root).complete(id, output_path)


@mcp.tool()
def migration_skip(id: str, reason: str, root: Optional[str] = None) -> Dict[str, Any]:
    """Skip a component that does not need migrating, e.g. an external library component.
    Skipped components count as finished for everything that depends on them. Pages cannot be skipped."""

    return _manager(root).skip(id, reason)


@mcp.tool()
def migration_progress(root: Optional[str] = None) -> Dict[str, Any]:
    """Get migration progress: phase, counts per status, current task and what comes next."""

    return _manager(root).progress()


@mcp.tool()
def migration_source_summary(root: Optional[str] = None) -> Dict[str, Any]:
    """Summarize the cached Figma data: pages, sections, frames and the most used components."""

    manager = _manager(root)
    data = manager.source.get()
    if data is None:
        return NoSourceData(f"No Figma data cached at {manager.settings.cache_path}.").to_dict()
    return {"status": "success", "message": "Figma data summary", "summary": data.summary()}


@mcp.tool()
def migration_guide() -> Dict[str, Any]:
    """Get the complete migration workflow guide.
    Returns the steps in order, the tools for each step, and usage tips."""

    return MigrationManager.workflow_guide()


@mcp.resource("figma-migration://progress")
def resource_progress() -> str:
    """Resource view of the current migration progress."""

    manager = _manager_optional(None)
    if not manager:
        return "No working directory detected. Set FIGMA_MIGRATION_ROOT to an existing directory."

    return render_response("migration_progress", manager.progress())


@mcp.resource("figma-migration://next")
def resource_next() -> str:
    """Resource view of the items that are ready to work on."""

    manager = _manager_optional(None)
    if not manager:
        return "No working directory detected. Set FIGMA_MIGRATION_ROOT to an existing directory."

    return render_response("migration_next", manager.list_ready())


def main() -> None:
    settings = MigrationSettings.from_env()
    setup_logging(settings.log_level, settings.log_file)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
