"""Daily workout streak recomputation after a sync batch."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from constants import USERS_TABLE, WORKOUT_SESSIONS_TABLE

log = logging.getLogger("streaks")

_DAY_SECONDS = 24 * 60 * 60


@dataclass
class StreakOutcome:
    """Auxiliary result of a streak update; never fails the sync response."""

    status: str  # no_sessions | same_day | incremented | reset | failed
    update: Optional[Dict[str, int]] = None
    error: Optional[str] = None


def _parse_ts(value: Any) -> datetime:
    if isinstance(value, datetime):
        ts = value
    else:
        ts = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def days_since(last_start: Any, now: datetime) -> int:
    """Whole 24h periods between `last_start` and `now`, rounded down."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    delta = now - _parse_ts(last_start)
    return int(delta.total_seconds() // _DAY_SECONDS)


def compute_streak_update(days_diff: int, user: Optional[Dict[str, Any]]) -> Optional[Dict[str, int]]:
    """Return the users-row update for a gap of `days_diff` days, or None for no change.

    0 days: same-day session, nothing to do.
    1 day: consecutive, increment and lift the longest streak if needed.
    Anything else (including negative gaps from clock skew): reset to 1.
    """
    if days_diff == 0:
        return None
    if days_diff == 1:
        user = user or {}
        new_streak = int(user.get("current_streak") or 0) + 1
        return {
            "current_streak": new_streak,
            "longest_streak": max(new_streak, int(user.get("longest_streak") or 0)),
        }
    return {"current_streak": 1}


def update_streak(
    user_id: str,
    *,
    fetch_all: Callable[..., List[Dict[str, Any]]],
    fetch_one: Callable[..., Optional[Dict[str, Any]]],
    execute: Callable[..., List[Dict[str, Any]]],
    now: Optional[datetime] = None,
) -> StreakOutcome:
    """Recompute the user's streak from their two most recent sessions.

    Errors are logged and reported in the outcome, never raised.
    """
    try:
        sessions = fetch_all(
            f"""
            SELECT start_time
            FROM {WORKOUT_SESSIONS_TABLE}
            WHERE user_id = %s
            ORDER BY start_time DESC
            LIMIT 2
            """,
            (user_id,),
        )
        if not sessions:
            return StreakOutcome(status="no_sessions")

        diff = days_since(sessions[0].get("start_time"), now or datetime.now(timezone.utc))
        if diff == 0:
            return StreakOutcome(status="same_day")

        user = None
        if diff == 1:
            user = fetch_one(
                f"SELECT current_streak, longest_streak FROM {USERS_TABLE} WHERE id = %s",
                (user_id,),
            )
        update = compute_streak_update(diff, user)

        assignments = ", ".join(f"{col} = %s" for col in update)
        execute(
            f"UPDATE {USERS_TABLE} SET {assignments} WHERE id = %s",
            tuple(update.values()) + (user_id,),
        )
        status = "incremented" if diff == 1 else "reset"
        log.info("Streak %s for user %s: %s", status, user_id, update)
        return StreakOutcome(status=status, update=update)
    except Exception as e:
        log.error("Error updating streak: %s", e)
        return StreakOutcome(status="failed", error=str(e))
