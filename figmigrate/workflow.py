"""Lifecycle control for a Figma migration.

``MigrationManager`` moves component and page tasks through their state
machines and keeps readiness consistent:

- components: ``pending -> in_progress -> done`` and ``pending -> skipped``
- pages: ``blocked -> pending -> in_progress -> done`` (never skipped)

Nothing leaves ``done`` or ``skipped``. Every operation loads the whole state
from the store, works on it, and (when it mutates) saves it back once; a
failing operation raises before anything is written.

Public operations return tagged response dicts (``status`` is ``success`` or
``error``) for the tool layer. A ``pending`` response announcing the operation
is published through the observability hooks before it runs.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from .config import MigrationSettings
from .errors import (
    AlreadyInitialized,
    AlreadyProcessed,
    ComponentsNotReady,
    DependenciesNotReady,
    DependencyCycle,
    InvalidOperation,
    ItemNotFound,
    MigrationError,
    NoSourceData,
    NotInitialized,
)
from .formatter import format_definition
from .migration_logging import (
    log_error_with_context,
    log_operation,
    log_performance,
    log_task_transition,
    log_tasks_unlocked,
    observability_hooks,
)
from .models import (
    WORKFLOW_STEPS,
    ComponentTask,
    MigrationState,
    PageTask,
    SourceData,
    utc_now,
)
from .readiness import refresh
from .source import SourceContext, parse_file_key
from .store import JsonFileStore, MigrationStore
from .tree import build_component_dependencies, find_dependency_cycle

logger = logging.getLogger("figmigrate.workflow")

ITEM_TYPES = ("component", "page", "any")
NO_DEFINITION = "No definition available (external component?)"


def pending_response(message: str) -> Dict[str, Any]:
    return {"status": "pending", "message": message}


def component_file_name(name: str) -> str:
    """Alphanumeric characters of the component name, e.g. ``Button/Primary`` -> ``ButtonPrimary``."""
    return re.sub(r"[^a-zA-Z0-9]", "", name) or "Component"


def page_slug(frame_name: str) -> str:
    """Lowercase, dash-separated slug of a frame name."""
    return re.sub(r"[^a-z0-9]+", "-", frame_name.lower()).strip("-") or "page"


def file_key_from_url(file_url: Optional[str]) -> str:
    if not file_url:
        return "unknown"
    key = parse_file_key(file_url)
    if "/" in key:
        return "unknown"
    return key


def create_initial_state(data: SourceData, file_key: str, file_url: str) -> MigrationState:
    """Build the initial state from a source snapshot.

    Components start ``pending`` and pages ``blocked``; readiness is then
    propagated once. References to components missing from the snapshot's
    index are dropped, since nothing could ever resolve them.
    """
    graph = build_component_dependencies(data.components)
    cycle = find_dependency_cycle(graph)
    if cycle:
        names = [data.components[cid].name for cid in cycle]
        raise DependencyCycle(cycle, names)

    state = MigrationState(figma_file_key=file_key, figma_file_url=file_url)

    for comp_id, component in data.components.items():
        dependencies = [dep for dep in graph.get(comp_id, []) if dep in data.components]
        dropped = [dep for dep in graph.get(comp_id, []) if dep not in data.components]
        if dropped:
            logger.warning(f"Component {component.name} references unknown components: {dropped}")
        state.components[comp_id] = ComponentTask(
            figma_id=comp_id,
            name=component.name,
            instance_count=component.instance_count,
            dependencies=dependencies,
        )

    for frame_id, frame in data.frames.items():
        used = list(dict.fromkeys(c for c in frame.components_used if c in data.components))
        if len(used) != len(set(frame.components_used)):
            logger.warning(f"Page {frame.name} references unknown components; they are ignored")
        state.pages[frame_id] = PageTask(
            figma_id=frame_id,
            frame_name=frame.name,
            components_used=used,
        )

    refresh(state)
    return state


class MigrationManager:
    """Owns the migration state for one working directory."""

    def __init__(
        self,
        settings: MigrationSettings,
        source: Optional[SourceContext] = None,
        store: Optional[MigrationStore] = None,
    ):
        self.settings = settings
        self.source = source or SourceContext(settings.cache_path)
        self.store = store or JsonFileStore(settings.state_path)

    @classmethod
    def for_root(cls, root: Path | str) -> "MigrationManager":
        return cls(MigrationSettings.from_env(str(root)))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _run(self, operation: str, pending_message: str, func: Callable[[], Dict[str, Any]], **context: Any) -> Dict[str, Any]:
        observability_hooks.log_workflow_event(
            "migration_pending", operation=operation, **pending_response(pending_message)
        )
        try:
            with log_operation(operation, **context):
                return func()
        except MigrationError as e:
            return e.to_dict()
        except Exception as e:
            log_error_with_context(e, {"operation": operation, **context})
            raise

    def _load(self) -> Tuple[MigrationState, str]:
        state = self.store.load()
        if state is None:
            raise NotInitialized()
        return state, state.updated_at

    def _save(self, state: MigrationState, loaded_at: Optional[str]) -> None:
        self.store.save(state, expected_updated_at=loaded_at)

    def _source(self) -> SourceData:
        data = self.source.get()
        if data is None:
            raise NoSourceData()
        return data

    def _check_single_active(self, tasks: Dict[str, Any], item_id: str, kind: str) -> None:
        if not self.settings.single_active:
            return
        active = [t for tid, t in tasks.items() if t.status == "in_progress" and tid != item_id]
        if active:
            raise InvalidOperation(
                f"Another {kind} is already in progress: {active[0].figma_id}. Complete it first.",
                in_progress=active[0].figma_id,
            )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @log_performance("migration_init")
    def initialize(self, file_url: Optional[str] = None, top_n: int = 5) -> Dict[str, Any]:
        """Create the migration state from the cached Figma data."""
        return self._run(
            "migration_init", "Initializing migration...",
            lambda: self._initialize(file_url, top_n),
            file_url=file_url or "",
        )

    def _initialize(self, file_url: Optional[str], top_n: int) -> Dict[str, Any]:
        data = self._source()

        if self.store.exists():
            try:
                existing = self.store.load()
                file_key = existing.figma_file_key if existing else "unknown"
            except ValueError:
                file_key = "unknown"
            raise AlreadyInitialized(file_key, self.settings.state_filename)

        state = create_initial_state(data, file_key_from_url(file_url), file_url or "")
        self._save(state, None)

        ready = state.ready_components()
        observability_hooks.log_workflow_event(
            "migration_initialized",
            components=state.stats.total_components,
            pages=state.stats.total_pages,
            ready=len(ready),
        )
        return {
            "status": "success",
            "message": "Migration initialized",
            "summary": {
                "totalComponents": state.stats.total_components,
                "totalPages": state.stats.total_pages,
                "readyComponents": len(ready),
                "topReadyComponents": [c.name for c in ready[:top_n]],
            },
        }

    def list_ready(self, limit: int = 5, item_type: str = "any") -> Dict[str, Any]:
        """Items whose prerequisites are resolved, components by usage first."""
        return self._run(
            "migration_next", "Finding next items...",
            lambda: self._list_ready(limit, item_type),
            limit=limit, item_type=item_type,
        )

    def _list_ready(self, limit: int, item_type: str) -> Dict[str, Any]:
        if item_type not in ITEM_TYPES:
            raise InvalidOperation(f"Unknown item type '{item_type}'. Use one of: {', '.join(ITEM_TYPES)}.")
        if limit < 0:
            raise InvalidOperation("limit must not be negative.")

        state, _ = self._load()
        items: List[Dict[str, Any]] = []

        if item_type in ("any", "component"):
            for comp in state.ready_components():
                items.append({
                    "type": "component",
                    "id": comp.figma_id,
                    "name": comp.name,
                    "instanceCount": comp.instance_count,
                    "dependencies": list(comp.dependencies),
                })

        if item_type == "page" or (item_type == "any" and state.stats.phase == "pages"):
            for page in state.ready_pages():
                items.append({
                    "type": "page",
                    "id": page.figma_id,
                    "name": page.frame_name,
                    "componentsUsed": list(page.components_used),
                })

        return {
            "status": "success",
            "message": f"Found {len(items)} ready items",
            "phase": state.stats.phase,
            "items": items[:limit],
            "remaining": max(0, len(items) - limit),
        }

    @log_performance("migration_start")
    def start(self, item_id: str) -> Dict[str, Any]:
        """Mark an item in progress and return what is needed to implement it."""
        return self._run(
            "migration_start", f"Starting work on {item_id}...",
            lambda: self._start(item_id),
            item_id=item_id,
        )

    def _start(self, item_id: str) -> Dict[str, Any]:
        state, loaded_at = self._load()
        data = self._source()

        component = state.components.get(item_id)
        if component:
            if component.is_resolved:
                raise AlreadyProcessed("component", component.name, component.status)
            if not component.dependencies_ready:
                raise DependenciesNotReady(component.name, state.unresolved_dependencies(component))
            self._check_single_active(state.components, item_id, "component")

            old_status = component.status
            component.status = "in_progress"
            self._save(state, loaded_at)
            if old_status != component.status:
                log_task_transition("component", item_id, component.name, old_status, component.status)

            source_component = data.get_component(item_id)
            definition = source_component.definition if source_component else None
            return {
                "status": "success",
                "message": f"Started component: {component.name}",
                "type": "component",
                "id": item_id,
                "name": component.name,
                "definition": format_definition(definition) if definition else NO_DEFINITION,
                "suggestedPath": f"{self.settings.component_dir}/{component_file_name(component.name)}.tsx",
                "dependencies": list(component.dependencies),
            }

        page = state.pages.get(item_id)
        if page:
            if page.status == "done":
                raise AlreadyProcessed("page", page.frame_name, page.status)
            if not page.components_ready:
                raise ComponentsNotReady(page.frame_name, state.unresolved_components(page))
            self._check_single_active(state.pages, item_id, "page")

            old_status = page.status
            page.status = "in_progress"
            self._save(state, loaded_at)
            if old_status != page.status:
                log_task_transition("page", item_id, page.frame_name, old_status, page.status)

            frame = data.frames.get(item_id)
            node = frame.node if frame else None
            return {
                "status": "success",
                "message": f"Started page: {page.frame_name}",
                "type": "page",
                "id": item_id,
                "name": page.frame_name,
                "definition": format_definition(node) if node else NO_DEFINITION,
                "suggestedPath": f"{self.settings.page_dir}/{page_slug(page.frame_name)}/page.tsx",
                "componentsUsed": list(page.components_used),
            }

        raise ItemNotFound(item_id)

    @log_performance("migration_complete")
    def complete(self, item_id: str, output_path: str) -> Dict[str, Any]:
        """Mark an item done, record its output and report newly unlocked components.

        Starting the item first is optional, but a component's dependencies must
        already be done or skipped (else ``DependenciesNotReady``) and a page's
        components must be resolved (else ``ComponentsNotReady``).
        """
        return self._run(
            "migration_complete", f"Marking {item_id} as complete...",
            lambda: self._complete(item_id, output_path),
            item_id=item_id, output_path=output_path,
        )

    def _complete(self, item_id: str, output_path: str) -> Dict[str, Any]:
        state, loaded_at = self._load()

        component = state.components.get(item_id)
        if component:
            if component.is_resolved:
                raise AlreadyProcessed("component", component.name, component.status)
            if not component.dependencies_ready:
                raise DependenciesNotReady(component.name, state.unresolved_dependencies(component))

            old_status = component.status
            component.status = "done"
            component.output_path = output_path
            component.completed_at = utc_now()
            new_ready = self._resolve_and_collect(state, loaded_at, component)
            log_task_transition("component", item_id, component.name, old_status, "done", output_path=output_path)

            return {
                "status": "success",
                "message": f"Completed component: {component.name}",
                "completed": component.name,
                "newReady": new_ready,
                "phase": state.stats.phase,
                "progress": {
                    "done": state.stats.completed_components,
                    "total": state.stats.total_components,
                },
            }

        page = state.pages.get(item_id)
        if page:
            if page.status == "done":
                raise AlreadyProcessed("page", page.frame_name, page.status)
            if not page.components_ready:
                raise ComponentsNotReady(page.frame_name, state.unresolved_components(page))

            old_status = page.status
            page.status = "done"
            page.output_path = output_path
            page.completed_at = utc_now()
            refresh(state)
            self._save(state, loaded_at)
            log_task_transition("page", item_id, page.frame_name, old_status, "done", output_path=output_path)

            return {
                "status": "success",
                "message": f"Completed page: {page.frame_name}",
                "completed": page.frame_name,
                "newReady": [],
                "phase": state.stats.phase,
                "progress": {
                    "done": state.stats.completed_pages,
                    "total": state.stats.total_pages,
                },
            }

        raise ItemNotFound(item_id)

    @log_performance("migration_skip")
    def skip(self, item_id: str, reason: str) -> Dict[str, Any]:
        """Skip a pending component; it satisfies dependents exactly like a done one."""
        return self._run(
            "migration_skip", f"Skipping {item_id}...",
            lambda: self._skip(item_id, reason),
            item_id=item_id, reason=reason,
        )

    def _skip(self, item_id: str, reason: str) -> Dict[str, Any]:
        state, loaded_at = self._load()

        if item_id in state.pages:
            raise InvalidOperation("Pages cannot be skipped, only components.")
        component = state.components.get(item_id)
        if component is None:
            raise ItemNotFound(item_id, "component")
        if component.is_resolved:
            raise AlreadyProcessed("component", component.name, component.status)
        if component.status != "pending":
            raise InvalidOperation(
                f"Component {component.name} is {component.status}; only pending components can be skipped."
            )

        component.status = "skipped"
        component.skip_reason = reason
        component.completed_at = utc_now()
        new_ready = self._resolve_and_collect(state, loaded_at, component)
        log_task_transition("component", item_id, component.name, "pending", "skipped", reason=reason)

        return {
            "status": "success",
            "message": f"Skipped component: {component.name}",
            "skipped": component.name,
            "reason": reason,
            "newReady": new_ready,
            "phase": state.stats.phase,
        }

    def _resolve_and_collect(self, state: MigrationState, loaded_at: str, component: ComponentTask) -> List[str]:
        """Propagate a component's resolution, save, and name the components it unlocked.

        ``component`` must already carry its new status; the not-ready snapshot
        is taken from pending components, which never include it.
        """
        was_not_ready = {
            c.figma_id for c in state.components.values()
            if c.status == "pending" and not c.dependencies_ready
        }
        refresh(state)
        self._save(state, loaded_at)

        unlocked = [
            c for c in state.components.values()
            if c.figma_id in was_not_ready and c.is_ready
        ]
        log_tasks_unlocked(component.figma_id, [c.figma_id for c in unlocked])
        return [c.name for c in unlocked]

    def progress(self) -> Dict[str, Any]:
        """Read-only snapshot of the migration."""
        return self._run("migration_progress", "Reading migration progress...", self._progress)

    def _progress(self) -> Dict[str, Any]:
        state, _ = self._load()
        components = list(state.components.values())
        pages = list(state.pages.values())

        ready_components = state.ready_components()
        ready_pages = state.ready_pages()

        next_up: List[str] = []
        if state.stats.phase == "components":
            next_up = [c.name for c in ready_components[:3]]
        elif state.stats.phase == "pages":
            next_up = [p.frame_name for p in ready_pages[:3]]

        current_component = next((c for c in components if c.status == "in_progress"), None)
        current_page = next((p for p in pages if p.status == "in_progress"), None)
        current_task = None
        if current_component:
            current_task = current_component.name
        elif current_page:
            current_task = current_page.frame_name

        def count(items: List[Any], status: str) -> int:
            return sum(1 for item in items if item.status == status)

        return {
            "status": "success",
            "message": "Progress retrieved",
            "progress": {
                "phase": state.stats.phase,
                "components": {
                    "total": len(components),
                    "done": count(components, "done"),
                    "inProgress": count(components, "in_progress"),
                    "pending": count(components, "pending"),
                    "skipped": count(components, "skipped"),
                },
                "pages": {
                    "total": len(pages),
                    "done": count(pages, "done"),
                    "inProgress": count(pages, "in_progress"),
                    "ready": len(ready_pages),
                    "blocked": count(pages, "blocked"),
                },
                "currentTask": current_task,
                "nextUp": next_up,
            },
        }

    @staticmethod
    def workflow_guide() -> Dict[str, Any]:
        """Get the migration workflow in recommended order."""
        return {
            "status": "success",
            "message": "Migration workflow",
            "steps": [step.to_dict() for step in WORKFLOW_STEPS],
            "tips": [
                "Start with components that have no dependencies; migration_next orders them by usage",
                "Keep one item in progress at a time and complete it before starting the next",
                "Skip components that come from an external library or already exist",
                "Pages become available only after every component they use is done or skipped",
            ],
        }
