"""Readiness propagation and aggregate statistics.

``update_dependency_readiness`` is the only place that derives readiness
flags and the only place a page leaves ``blocked``. It must run after every
transition of a component to ``done`` or ``skipped``; running it again
without further status changes changes nothing.
"""

from __future__ import annotations

from .models import MigrationState, MigrationStats


def update_dependency_readiness(state: MigrationState) -> None:
    """Recompute readiness flags and unblock pages whose components are resolved."""
    resolved = state.resolved_component_ids()

    for component in state.components.values():
        component.dependencies_ready = all(dep in resolved for dep in component.dependencies)

    for page in state.pages.values():
        page.components_ready = all(comp_id in resolved for comp_id in page.components_used)
        if page.status == "blocked" and page.components_ready:
            page.status = "pending"


def compute_stats(state: MigrationState) -> MigrationStats:
    """Count tasks by status and derive the workflow phase."""
    components = list(state.components.values())
    pages = list(state.pages.values())

    completed_components = sum(1 for c in components if c.status == "done")
    skipped_components = sum(1 for c in components if c.status == "skipped")
    completed_pages = sum(1 for p in pages if p.status == "done")
    blocked_pages = sum(1 for p in pages if p.status == "blocked")

    all_components_resolved = completed_components + skipped_components == len(components)
    all_pages_done = completed_pages == len(pages)

    phase = "components"
    if all_components_resolved:
        phase = "done" if all_pages_done else "pages"

    return MigrationStats(
        total_components=len(components),
        completed_components=completed_components,
        skipped_components=skipped_components,
        total_pages=len(pages),
        completed_pages=completed_pages,
        blocked_pages=blocked_pages,
        phase=phase,
    )


def refresh(state: MigrationState) -> None:
    """Propagate readiness and store fresh stats on ``state``."""
    update_dependency_readiness(state)
    state.stats = compute_stats(state)
