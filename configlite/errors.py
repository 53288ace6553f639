from __future__ import annotations
from pathlib import Path
from typing import Union


class ConfigliteError(Exception):
    """Base class for every error raised by the configuration store."""


class OpenError(ConfigliteError):
    def __init__(self, database: Union[str, Path], reason: str):
        self.database = str(database)
        self.reason = reason
        super().__init__(f"cannot open database configuration: {self.database} - {reason}")


class MigrationError(ConfigliteError):
    def __init__(self, database: Union[str, Path], reason: str):
        self.database = str(database)
        self.reason = reason
        super().__init__(f"cannot run database schema migrations: {self.database} - {reason}")


class QueryError(ConfigliteError):
    pass


class ConstraintViolationError(QueryError):
    pass


class ConfigNotFoundError(ConfigliteError):
    """No configuration row matched the (application, configuration) pair."""

    def __init__(self, application: str, configuration: str, message: str = "configuration value not found"):
        self.application = application
        self.configuration = configuration
        super().__init__(f"{message}: ({application}, {configuration})")


class NoRowsAffectedError(ConfigNotFoundError):
    def __init__(self, application: str, configuration: str):
        super().__init__(application, configuration, "no configuration deleted")


class RepositoryClosedError(ConfigliteError):
    def __init__(self) -> None:
        super().__init__("repository is closed")
