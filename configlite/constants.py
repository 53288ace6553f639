from enum import Enum


class OutputFormat(str, Enum):
    JSON = "json"
    TEXT = "text"


DB_FILENAME = ".config.db"
DB_ENVVAR = "CONFIGLITE_DB"
MIGRATIONS_TABLE = "schema_migrations"
