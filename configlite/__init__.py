"""configlite: application configuration values shared through one SQLite file."""
from .config import Settings, default_database_path
from .errors import (
    ConfigliteError,
    ConfigNotFoundError,
    ConstraintViolationError,
    MigrationError,
    NoRowsAffectedError,
    OpenError,
    QueryError,
    RepositoryClosedError,
)
from .repository import Repository

__all__ = [
    "ConfigliteError",
    "ConfigNotFoundError",
    "ConstraintViolationError",
    "MigrationError",
    "NoRowsAffectedError",
    "OpenError",
    "QueryError",
    "Repository",
    "RepositoryClosedError",
    "Settings",
    "default_database_path",
]
