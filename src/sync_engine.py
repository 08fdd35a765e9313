"""
Offline sync engine
===================
Applies a batch of client-recorded changes to user-scoped tables.

  - Changes run strictly in array order, one autocommit statement each.
    There is no atomicity across the batch and no dedup of retried batches.
  - Every statement is pinned to the caller: inserts force user_id, and
    updates/deletes filter on id AND user_id.
  - A failing change lands in `errors`; the rest of the batch still runs.
  - An insert into workout_sessions triggers one streak recomputation,
    whose failure is logged and never reaches the response.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from psycopg2 import sql
from psycopg2.extras import Json
from pydantic import ValidationError

from analytics.streaks import StreakOutcome, update_streak
from constants import WORKOUT_SESSIONS_TABLE
from models import SyncChange
from routes.helpers import _execute, _fetch_all, _fetch_one
from settings import Settings

log = logging.getLogger("sync_engine")


class SyncItemError(Exception):
    """A single change could not be applied."""


@dataclass
class SyncOutcome:
    results: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    streak: Optional[StreakOutcome] = None

    def to_response(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": True, "results": self.results}
        if self.errors:
            body["errors"] = self.errors
        body["syncedCount"] = len(self.results)
        body["errorCount"] = len(self.errors)
        return body


def _adapt(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return Json(value)
    return value


def _require_id(change: SyncChange) -> Any:
    row_id = change.data.get("id")
    if row_id is None:
        raise SyncItemError(f"Missing id for {change.operation} on {change.table}")
    return row_id


def _insert(change: SyncChange, user_id: str) -> Optional[Dict[str, Any]]:
    data = {**change.data, "user_id": user_id}
    cols = list(data)
    query = sql.SQL("INSERT INTO {table} ({cols}) VALUES ({vals}) RETURNING *").format(
        table=sql.Identifier(change.table),
        cols=sql.SQL(", ").join(sql.Identifier(c) for c in cols),
        vals=sql.SQL(", ").join([sql.Placeholder()] * len(cols)),
    )
    rows = _execute(query, tuple(_adapt(data[c]) for c in cols))
    return rows[0] if rows else None


def _update(change: SyncChange, user_id: str) -> Optional[Dict[str, Any]]:
    row_id = _require_id(change)
    data = {k: v for k, v in change.data.items() if k not in ("id", "user_id")}
    data["updated_at"] = datetime.now(timezone.utc).isoformat()
    cols = list(data)
    query = sql.SQL("UPDATE {table} SET {assignments} WHERE id = %s AND user_id = %s RETURNING *").format(
        table=sql.Identifier(change.table),
        assignments=sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(c)) for c in cols
        ),
    )
    rows = _execute(query, tuple(_adapt(data[c]) for c in cols) + (row_id, user_id))
    # No matching row (unknown id or another user's row) is a nominal success.
    return rows[0] if rows else None


def _delete(change: SyncChange, user_id: str) -> None:
    row_id = _require_id(change)
    query = sql.SQL("DELETE FROM {table} WHERE id = %s AND user_id = %s").format(
        table=sql.Identifier(change.table),
    )
    _execute(query, (row_id, user_id))


_OPERATIONS = {
    "insert": _insert,
    "update": _update,
    "delete": _delete,
}


def apply_change(change: SyncChange, user_id: str, settings: Settings) -> Optional[Dict[str, Any]]:
    if change.table not in settings.sync_tables:
        raise SyncItemError(f"Table not syncable: {change.table}")
    return _OPERATIONS[change.operation](change, user_id)


def _raw_field(raw: Any, key: str) -> Any:
    return raw.get(key) if isinstance(raw, dict) else None


def _first_error(e: ValidationError) -> str:
    errs = e.errors()
    if not errs:
        return str(e)
    loc = ".".join(str(p) for p in errs[0].get("loc", ()))
    return f"Invalid change: {loc} {errs[0].get('msg', '')}".strip()


def _inserts_session(raw_changes: List[Any]) -> bool:
    return any(
        _raw_field(c, "table") == WORKOUT_SESSIONS_TABLE and _raw_field(c, "operation") == "insert"
        for c in raw_changes
    )


def apply_changes(user_id: str, raw_changes: List[Any], settings: Settings) -> SyncOutcome:
    outcome = SyncOutcome()

    for raw in raw_changes:
        local_id = _raw_field(raw, "localId")
        table = _raw_field(raw, "table")
        try:
            change = SyncChange.model_validate(raw)
            server_data = apply_change(change, user_id, settings)
            outcome.results.append({
                "localId": local_id,
                "table": table,
                "serverData": server_data,
                "success": True,
            })
        except ValidationError as e:
            outcome.errors.append({"localId": local_id, "table": table, "error": _first_error(e)})
        except Exception as e:
            log.error("Sync change failed (%s/%s): %s", table, _raw_field(raw, "operation"), e)
            outcome.errors.append({"localId": local_id, "table": table, "error": str(e)})

    if _inserts_session(raw_changes):
        outcome.streak = update_streak(
            user_id,
            fetch_all=_fetch_all,
            fetch_one=_fetch_one,
            execute=_execute,
        )

    log.info(
        "Synced %d change(s) for user %s: %d ok, %d failed, streak=%s",
        len(raw_changes),
        user_id,
        len(outcome.results),
        len(outcome.errors),
        outcome.streak.status if outcome.streak else "untouched",
    )
    return outcome
