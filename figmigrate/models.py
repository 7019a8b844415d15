"""Data models for the Figma migration workflow.

This module contains the read-only source tree model (the cached Figma
extraction) and the persisted migration state: component tasks, page
tasks, aggregate statistics and the state root that owns them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional


COMPONENT_STATUSES = ("pending", "in_progress", "done", "skipped")
PAGE_STATUSES = ("blocked", "pending", "in_progress", "done")
RESOLVED_STATUSES = ("done", "skipped")
PHASES = ("components", "pages", "done")


def utc_now() -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def advance_timestamp(previous: Optional[str]) -> str:
    """A ``utc_now`` timestamp strictly later than ``previous``.

    Two writes within the same millisecond (or after a clock step back) get
    ``previous`` plus one millisecond, so every write yields a new token.
    """
    now = utc_now()
    if not previous or now > previous:
        return now
    try:
        parsed = datetime.fromisoformat(previous.replace("Z", "+00:00"))
    except ValueError:
        return now
    later = (parsed + timedelta(milliseconds=1)).astimezone(timezone.utc)
    return later.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ----------------------------------------------------------------------
# Source tree (produced by the Figma fetch collaborator, consumed read-only)
# ----------------------------------------------------------------------


@dataclass(slots=True)
class SourceComponent:
    """A component definition and how often it is instantiated."""

    figma_id: str
    name: str
    instance_count: int = 0
    definition: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, figma_id: str, data: Dict[str, Any]) -> "SourceComponent":
        definition = data.get("definition")
        return cls(
            figma_id=figma_id,
            name=str(data.get("name") or figma_id),
            instance_count=int(data.get("instanceCount") or 0),
            definition=definition if isinstance(definition, dict) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "instanceCount": self.instance_count,
            "definition": self.definition,
        }


@dataclass(slots=True)
class SourceFrame:
    """A top-level frame and the components it references."""

    figma_id: str
    name: str
    components_used: List[str] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, figma_id: str, data: Dict[str, Any]) -> "SourceFrame":
        return cls(
            figma_id=figma_id,
            name=str(data.get("name") or figma_id),
            components_used=[str(c) for c in (data.get("componentsUsed") or [])],
            raw=dict(data),
        )

    @property
    def node(self) -> Optional[Dict[str, Any]]:
        """The frame's node tree, or the frame entry itself when no node was extracted."""
        node = self.raw.get("node")
        if isinstance(node, dict):
            return node
        return self.raw or None

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.raw)
        data["name"] = self.name
        data["componentsUsed"] = list(self.components_used)
        return data


@dataclass(slots=True)
class SourceData:
    """Snapshot of an extracted Figma file."""

    pages: List[Dict[str, Any]] = field(default_factory=list)
    sections: Dict[str, Any] = field(default_factory=dict)
    components: Dict[str, SourceComponent] = field(default_factory=dict)
    frames: Dict[str, SourceFrame] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceData":
        """Create from the cache file representation."""
        if not isinstance(data, dict):
            raise ValueError(f"Figma data must be a JSON object, got {type(data).__name__}")
        components = data.get("components") or {}
        frames = data.get("frames") or {}
        return cls(
            pages=list(data.get("pages") or []),
            sections=dict(data.get("sections") or {}),
            components={
                str(cid): SourceComponent.from_dict(str(cid), cdata if isinstance(cdata, dict) else {})
                for cid, cdata in components.items()
            },
            frames={
                str(fid): SourceFrame.from_dict(str(fid), fdata if isinstance(fdata, dict) else {})
                for fid, fdata in frames.items()
            },
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pages": list(self.pages),
            "sections": dict(self.sections),
            "components": {cid: c.to_dict() for cid, c in self.components.items()},
            "frames": {fid: f.to_dict() for fid, f in self.frames.items()},
        }

    def get_component(self, figma_id: str) -> Optional[SourceComponent]:
        return self.components.get(figma_id)

    def summary(self, top: int = 10) -> Dict[str, Any]:
        """Counts of what the snapshot contains, plus the most used components."""
        ranked = sorted(self.components.values(), key=lambda c: c.instance_count, reverse=True)
        return {
            "totalPages": len(self.pages),
            "totalSections": len(self.sections),
            "totalFrames": len(self.frames),
            "totalComponents": len(self.components),
            "componentsWithDefinition": sum(1 for c in self.components.values() if c.definition is not None),
            "topComponents": [
                {"name": c.name, "instanceCount": c.instance_count} for c in ranked[:top]
            ],
        }


# ----------------------------------------------------------------------
# Migration state (persisted)
# ----------------------------------------------------------------------


@dataclass(slots=True)
class ComponentTask:
    """One reusable component to be produced."""

    figma_id: str
    name: str
    instance_count: int = 0
    dependencies: List[str] = field(default_factory=list)
    dependencies_ready: bool = False
    status: str = "pending"
    output_path: Optional[str] = None
    skip_reason: Optional[str] = None
    completed_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted representation."""
        data: Dict[str, Any] = {
            "figmaId": self.figma_id,
            "name": self.name,
            "status": self.status,
            "dependencies": list(self.dependencies),
            "dependenciesReady": self.dependencies_ready,
            "instanceCount": self.instance_count,
        }
        if self.output_path is not None:
            data["outputPath"] = self.output_path
        if self.skip_reason is not None:
            data["skipReason"] = self.skip_reason
        if self.completed_at is not None:
            data["completedAt"] = self.completed_at
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComponentTask":
        """Create from the persisted representation."""
        return cls(
            figma_id=data["figmaId"],
            name=data["name"],
            instance_count=data.get("instanceCount", 0),
            dependencies=list(data.get("dependencies", [])),
            dependencies_ready=bool(data.get("dependenciesReady", False)),
            status=data.get("status", "pending"),
            output_path=data.get("outputPath"),
            skip_reason=data.get("skipReason"),
            completed_at=data.get("completedAt"),
        )

    @property
    def is_resolved(self) -> bool:
        return self.status in RESOLVED_STATUSES

    @property
    def is_ready(self) -> bool:
        """Pending and every dependency resolved."""
        return self.status == "pending" and self.dependencies_ready

    def validate(self) -> List[str]:
        """Validate task data and return any issues."""
        issues = []
        if not self.figma_id:
            issues.append("Component ID is required")
        if self.status not in COMPONENT_STATUSES:
            issues.append(f"Invalid component status: {self.status}")
        if self.figma_id in self.dependencies:
            issues.append(f"Component {self.figma_id} depends on itself")
        if self.instance_count < 0:
            issues.append("Instance count must not be negative")
        return issues


@dataclass(slots=True)
class PageTask:
    """One top-level frame to be assembled from components."""

    figma_id: str
    frame_name: str
    components_used: List[str] = field(default_factory=list)
    components_ready: bool = False
    status: str = "blocked"
    output_path: Optional[str] = None
    completed_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted representation."""
        data: Dict[str, Any] = {
            "figmaId": self.figma_id,
            "frameName": self.frame_name,
            "status": self.status,
            "componentsUsed": list(self.components_used),
            "componentsReady": self.components_ready,
        }
        if self.output_path is not None:
            data["outputPath"] = self.output_path
        if self.completed_at is not None:
            data["completedAt"] = self.completed_at
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PageTask":
        """Create from the persisted representation."""
        return cls(
            figma_id=data["figmaId"],
            frame_name=data["frameName"],
            components_used=list(data.get("componentsUsed", [])),
            components_ready=bool(data.get("componentsReady", False)),
            status=data.get("status", "blocked"),
            output_path=data.get("outputPath"),
            completed_at=data.get("completedAt"),
        )

    @property
    def is_ready(self) -> bool:
        return self.status == "pending" and self.components_ready

    def validate(self) -> List[str]:
        issues = []
        if not self.figma_id:
            issues.append("Page ID is required")
        if self.status not in PAGE_STATUSES:
            issues.append(f"Invalid page status: {self.status}")
        return issues


@dataclass(slots=True)
class MigrationStats:
    """Aggregate counts and the derived workflow phase."""

    total_components: int = 0
    completed_components: int = 0
    skipped_components: int = 0
    total_pages: int = 0
    completed_pages: int = 0
    blocked_pages: int = 0
    phase: str = "components"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalComponents": self.total_components,
            "completedComponents": self.completed_components,
            "skippedComponents": self.skipped_components,
            "totalPages": self.total_pages,
            "completedPages": self.completed_pages,
            "blockedPages": self.blocked_pages,
            "phase": self.phase,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationStats":
        return cls(
            total_components=data.get("totalComponents", 0),
            completed_components=data.get("completedComponents", 0),
            skipped_components=data.get("skippedComponents", 0),
            total_pages=data.get("totalPages", 0),
            completed_pages=data.get("completedPages", 0),
            blocked_pages=data.get("blockedPages", 0),
            phase=data.get("phase", "components"),
        )


@dataclass(slots=True)
class MigrationState:
    """Aggregate root of the persisted migration workflow."""

    figma_file_key: str
    figma_file_url: str = ""
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)
    components: Dict[str, ComponentTask] = field(default_factory=dict)
    pages: Dict[str, PageTask] = field(default_factory=dict)
    stats: MigrationStats = field(default_factory=MigrationStats)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted representation."""
        return {
            "figmaFileKey": self.figma_file_key,
            "figmaFileUrl": self.figma_file_url,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "stats": self.stats.to_dict(),
            "components": {cid: c.to_dict() for cid, c in self.components.items()},
            "pages": {pid: p.to_dict() for pid, p in self.pages.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationState":
        """Create from the persisted representation."""
        if not isinstance(data, dict):
            raise ValueError(f"Migration state must be a JSON object, got {type(data).__name__}")
        try:
            components = {
                str(cid): ComponentTask.from_dict(cdata)
                for cid, cdata in (data.get("components") or {}).items()
            }
            pages = {
                str(pid): PageTask.from_dict(pdata)
                for pid, pdata in (data.get("pages") or {}).items()
            }
        except KeyError as e:
            raise ValueError(f"Migration state is missing required field: {e}") from e

        return cls(
            figma_file_key=str(data.get("figmaFileKey") or "unknown"),
            figma_file_url=str(data.get("figmaFileUrl") or ""),
            created_at=data.get("createdAt") or utc_now(),
            updated_at=data.get("updatedAt") or utc_now(),
            components=components,
            pages=pages,
            stats=MigrationStats.from_dict(data.get("stats") or {}),
        )

    def resolved_component_ids(self) -> set[str]:
        """IDs of components that are done or skipped."""
        return {cid for cid, c in self.components.items() if c.is_resolved}

    def unresolved_dependencies(self, component: ComponentTask) -> List[str]:
        resolved = self.resolved_component_ids()
        return [dep for dep in component.dependencies if dep not in resolved]

    def unresolved_components(self, page: PageTask) -> List[str]:
        resolved = self.resolved_component_ids()
        return [cid for cid in page.components_used if cid not in resolved]

    def ready_components(self) -> List[ComponentTask]:
        """Pending components with resolved dependencies, most used first.

        ``sorted`` is stable, so ties keep insertion order.
        """
        ready = [c for c in self.components.values() if c.is_ready]
        return sorted(ready, key=lambda c: c.instance_count, reverse=True)

    def ready_pages(self) -> List[PageTask]:
        return [p for p in self.pages.values() if p.is_ready]

    def validate(self) -> List[str]:
        issues = []
        for component in self.components.values():
            issues.extend(component.validate())
        for page in self.pages.values():
            issues.extend(page.validate())
        if self.stats.phase not in PHASES:
            issues.append(f"Invalid phase: {self.stats.phase}")
        return issues


@dataclass(slots=True)
class WorkflowStep:
    """Represents a single step in the migration workflow."""

    step_number: int
    name: str
    tool_name: str
    description: str
    purpose: str
    prerequisites: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_number": self.step_number,
            "name": self.name,
            "tool_name": self.tool_name,
            "description": self.description,
            "purpose": self.purpose,
            "prerequisites": list(self.prerequisites),
        }


WORKFLOW_STEPS = [
    WorkflowStep(
        step_number=1,
        name="Fetch",
        tool_name="figma_fetch",
        description="Load the Figma file and write the extraction cache",
        purpose="Provide the component and frame index the migration is built from",
    ),
    WorkflowStep(
        step_number=2,
        name="Initialize",
        tool_name="migration_init",
        description="Create the migration state and analyze component dependencies",
        purpose="Record every component and page task in .figma-migration.json",
        prerequisites=["Fetch"],
    ),
    WorkflowStep(
        step_number=3,
        name="Components",
        tool_name="migration_next, migration_start, migration_complete, migration_skip",
        description="Implement components bottom-up, starting with those without dependencies",
        purpose="Each completed component unlocks the components that instantiate it",
        prerequisites=["Initialize"],
    ),
    WorkflowStep(
        step_number=4,
        name="Pages",
        tool_name="migration_next, migration_start, migration_complete",
        description="Assemble pages from the migrated components",
        purpose="Pages become ready once every component they use is done or skipped",
        prerequisites=["Components"],
    ),
]
