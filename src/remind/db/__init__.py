"""Database engine and schema helpers."""

from remind.db.engine import create_engine_from_settings, create_engine_from_url, check_connection
from remind.db.schema import ensure_core_schema

__all__ = [
    "create_engine_from_settings",
    "create_engine_from_url",
    "ensure_core_schema",
    "check_connection",
]
