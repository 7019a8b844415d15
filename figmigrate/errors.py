"""Error taxonomy for migration operations.

Every error carries a machine-readable ``code`` and optional ``details``
so tool responses can be rendered for a model or inspected by a caller.
None of them are fatal: the caller decides whether to retry with other
arguments.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class MigrationError(Exception):
    """Base class for expected, reportable migration failures."""

    code = "MigrationError"
    title = "Migration error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the error response shape."""
        return {
            "status": "error",
            "message": self.title,
            "error": self.message,
            "code": self.code,
            **self.details,
        }


class NotInitialized(MigrationError):
    code = "NotInitialized"
    title = "No migration found"

    def __init__(self, message: str = "No migration state found. Call migration_init first."):
        super().__init__(message)


class AlreadyInitialized(MigrationError):
    code = "AlreadyInitialized"
    title = "Migration already exists"

    def __init__(self, file_key: str, state_file: str):
        super().__init__(
            f"A migration already exists for file {file_key}. Delete {state_file} to start fresh.",
            file_key=file_key,
        )


class NoSourceData(MigrationError):
    code = "NoSourceData"
    title = "No Figma data available"

    def __init__(self, message: str = "No Figma data cached. Fetch the Figma file first to populate the cache."):
        super().__init__(message)


class ItemNotFound(MigrationError):
    code = "ItemNotFound"
    title = "Item not found"

    def __init__(self, item_id: str, kind: str = "component or page"):
        super().__init__(f"No {kind} found with ID: {item_id}", item_id=item_id)


class AlreadyProcessed(MigrationError):
    code = "AlreadyProcessed"
    title = "Already processed"

    def __init__(self, item_type: str, name: str, status: str):
        super().__init__(
            f"{item_type.capitalize()} {name} is already {status}.",
            item_type=item_type,
            item_status=status,
        )


class DependenciesNotReady(MigrationError):
    code = "DependenciesNotReady"
    title = "Dependencies not ready"

    def __init__(self, name: str, unresolved: List[str]):
        super().__init__(
            f"Component {name} has unfinished dependencies: {', '.join(unresolved)}",
            unresolved=list(unresolved),
        )


class ComponentsNotReady(MigrationError):
    code = "ComponentsNotReady"
    title = "Components not ready"

    def __init__(self, frame_name: str, unresolved: List[str]):
        super().__init__(
            f"Page {frame_name} has unfinished components: {', '.join(unresolved)}",
            unresolved=list(unresolved),
        )


class InvalidOperation(MigrationError):
    code = "InvalidOperation"
    title = "Invalid operation"


class DependencyCycle(MigrationError):
    code = "DependencyCycle"
    title = "Dependency cycle detected"

    def __init__(self, cycle: List[str], names: Optional[List[str]] = None):
        shown = names or cycle
        super().__init__(
            f"Components instantiate each other in a cycle: {' -> '.join(shown)}",
            cycle=list(cycle),
        )


class ConcurrentModification(MigrationError):
    code = "ConcurrentModification"
    title = "Migration state changed"

    def __init__(self, expected: Optional[str], actual: Optional[str]):
        super().__init__(
            "The migration state was modified by another process since it was loaded. Retry the operation.",
            expected_updated_at=expected,
            actual_updated_at=actual,
        )
