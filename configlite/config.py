from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .constants import DB_FILENAME


def default_database_path() -> Path:
    try:
        home = Path.home()
    except RuntimeError:
        return Path("/") / DB_FILENAME
    return home / DB_FILENAME


@dataclass(frozen=True)
class Settings:
    database: Path
    verbose: bool = False

    @classmethod
    def resolve(cls, database: Optional[Path] = None, verbose: bool = False) -> "Settings":
        """Build settings from CLI options; the env var is already folded into `database` by Typer."""
        return cls(database=database if database is not None else default_database_path(), verbose=verbose)
