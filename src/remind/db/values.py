"""Conversions between Python values and their stored column form.

Timestamps are stored as fixed-width UTC ISO-8601 text so that string
comparison in SQL matches chronological order on both SQLite and PostgreSQL.
Lists are stored as JSON text.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Any

_TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def to_db_ts(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        # Naive datetimes are taken to be UTC.
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(_TS_FORMAT)


def from_db_ts(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    parsed = datetime.fromisoformat(str(value))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def to_db_json(value: Any) -> str:
    return json.dumps(value)


def from_db_json(value: Any, default: Any) -> Any:
    if value is None or value == "":
        return default
    return json.loads(value)
