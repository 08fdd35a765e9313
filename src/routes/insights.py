"""POST /generate-insight: motivational text from recent training and sleep."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException

from completion_client import CompletionClient
from constants import (
    EXERCISES_TABLE,
    RECENT_LIMIT,
    SLEEP_ENTRIES_TABLE,
    USERS_TABLE,
    WORKOUT_SESSIONS_TABLE,
    WORKOUT_SETS_TABLE,
)
from insight_builder import FALLBACK_INSIGHT, build_context, get_system_prompt
from models import InsightRequest
from routes.helpers import _fetch_all, _fetch_one, _json_response, _preflight
from settings import load_settings

log = logging.getLogger("api")

router = APIRouter()


def _recent_workouts(user_id: str) -> List[Dict[str, Any]]:
    return _fetch_all(
        f"""
        SELECT ws.*,
               COALESCE((
                   SELECT json_agg(json_build_object(
                       'weight', s.weight,
                       'reps', s.reps,
                       'exercises', json_build_object('name', e.name)
                   ))
                   FROM {WORKOUT_SETS_TABLE} s
                   LEFT JOIN {EXERCISES_TABLE} e ON e.id = s.exercise_id
                   WHERE s.session_id = ws.id
               ), '[]'::json) AS workout_sets
        FROM {WORKOUT_SESSIONS_TABLE} ws
        WHERE ws.user_id = %s
        ORDER BY ws.start_time DESC
        LIMIT %s
        """,
        (user_id, RECENT_LIMIT),
    )


def _recent_sleep(user_id: str) -> List[Dict[str, Any]]:
    return _fetch_all(
        f"""
        SELECT *
        FROM {SLEEP_ENTRIES_TABLE}
        WHERE user_id = %s
        ORDER BY sleep_date DESC
        LIMIT %s
        """,
        (user_id, RECENT_LIMIT),
    )


def _user_profile(user_id: str) -> Optional[Dict[str, Any]]:
    return _fetch_one(f"SELECT * FROM {USERS_TABLE} WHERE id = %s", (user_id,))


@router.options("/generate-insight")
def generate_insight_preflight():
    return _preflight()


@router.post("/generate-insight")
def generate_insight(body: InsightRequest):
    if not body.userId:
        raise HTTPException(status_code=400, detail="Missing userId")

    try:
        settings = load_settings()
        context_text = build_context(
            body.type,
            user=_user_profile(body.userId),
            recent_workouts=_recent_workouts(body.userId),
            recent_sleep=_recent_sleep(body.userId),
            context=body.context,
        )
        text = CompletionClient(settings).complete(
            get_system_prompt(body.type),
            context_text,
            temperature=0.7,
            max_tokens=256,
        )
        out = {"success": True, "insight": text or FALLBACK_INSIGHT}
        if body.type is not None:
            out["type"] = body.type
        return _json_response(out)
    except Exception as e:
        log.error("Error in generate-insight: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
