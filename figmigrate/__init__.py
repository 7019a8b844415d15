"""Figma migration engine - dependency-ordered component and page tracking."""

from .config import MigrationSettings
from .errors import MigrationError
from .models import ComponentTask, MigrationState, PageTask, SourceData
from .source import SourceContext
from .store import InMemoryStore, JsonFileStore
from .workflow import MigrationManager

__version__ = "0.1.0"

__all__ = [
    "ComponentTask",
    "InMemoryStore",
    "JsonFileStore",
    "MigrationError",
    "MigrationManager",
    "MigrationSettings",
    "MigrationState",
    "PageTask",
    "SourceContext",
    "SourceData",
]
