"""Settings for a migration working directory.

Values come from explicit arguments first, then ``FIGMA_MIGRATION_*``
environment variables, then defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

ROOT_ENV = "FIGMA_MIGRATION_ROOT"
STATE_FILE_ENV = "FIGMA_MIGRATION_STATE_FILE"
CACHE_FILE_ENV = "FIGMA_MIGRATION_CACHE_FILE"
COMPONENT_DIR_ENV = "FIGMA_MIGRATION_COMPONENT_DIR"
PAGE_DIR_ENV = "FIGMA_MIGRATION_PAGE_DIR"
SINGLE_ACTIVE_ENV = "FIGMA_MIGRATION_SINGLE_ACTIVE"
LOG_LEVEL_ENV = "FIGMA_MIGRATION_LOG_LEVEL"
LOG_FILE_ENV = "FIGMA_MIGRATION_LOG_FILE"

DEFAULT_STATE_FILE = ".figma-migration.json"
DEFAULT_CACHE_FILE = ".figma-cache.json"


def _truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def resolve_root(root: Optional[str] = None) -> Path:
    """Resolve the working directory that holds the state and cache files."""
    if root:
        resolved = Path(root).expanduser().resolve()
        if not resolved.exists():
            raise ValueError(f"Provided root '{root}' does not exist.")
        return resolved

    env_root = os.getenv(ROOT_ENV)
    if env_root:
        env_path = Path(env_root).expanduser().resolve()
        if not env_path.exists():
            raise ValueError(
                f"Environment variable {ROOT_ENV} points to '{env_root}', which does not exist."
            )
        return env_path

    return Path.cwd().resolve()


@dataclass(slots=True)
class MigrationSettings:
    root: Path
    state_filename: str = DEFAULT_STATE_FILE
    cache_filename: str = DEFAULT_CACHE_FILE
    component_dir: str = "src/components"
    page_dir: str = "src/app"
    single_active: bool = False
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @property
    def state_path(self) -> Path:
        return self.root / self.state_filename

    @property
    def cache_path(self) -> Path:
        return self.root / self.cache_filename

    @classmethod
    def from_env(cls, root: Optional[str] = None) -> "MigrationSettings":
        log_file = os.getenv(LOG_FILE_ENV)
        return cls(
            root=resolve_root(root),
            state_filename=os.getenv(STATE_FILE_ENV) or DEFAULT_STATE_FILE,
            cache_filename=os.getenv(CACHE_FILE_ENV) or DEFAULT_CACHE_FILE,
            component_dir=(os.getenv(COMPONENT_DIR_ENV) or "src/components").rstrip("/"),
            page_dir=(os.getenv(PAGE_DIR_ENV) or "src/app").rstrip("/"),
            single_active=_truthy(os.getenv(SINGLE_ACTIVE_ENV)),
            log_level=(os.getenv(LOG_LEVEL_ENV) or "INFO").upper(),
            log_file=Path(log_file).expanduser() if log_file else None,
        )
