"""POST /parse-workout: free-text workout log to structured, catalog-matched sets."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException

from completion_client import CompletionClient
from constants import EXERCISES_TABLE
from models import WorkoutParseRequest
from routes.helpers import _fetch_all, _json_response, _preflight
from settings import load_settings
from workout_parser import PARSE_SYSTEM_PROMPT, match_exercises, parse_sets

log = logging.getLogger("api")

router = APIRouter()


def _exercise_catalog() -> List[Dict[str, Any]]:
    """Best effort: a failed lookup only means nothing gets matched."""
    try:
        return _fetch_all(f"SELECT id, name FROM {EXERCISES_TABLE}")
    except Exception as e:
        log.error("Error fetching exercises: %s", e)
        return []


@router.options("/parse-workout")
def parse_workout_preflight():
    return _preflight()


@router.post("/parse-workout")
def parse_workout(body: WorkoutParseRequest):
    if not body.input or not body.userId:
        raise HTTPException(status_code=400, detail="Missing input or userId")

    try:
        settings = load_settings()
        ai_response = CompletionClient(settings).complete(
            PARSE_SYSTEM_PROMPT,
            body.input,
            temperature=0.3,
            max_tokens=1024,
        )
        parsed = parse_sets(ai_response, body.input)
        matched = match_exercises(parsed, _exercise_catalog())
        return _json_response({
            "success": True,
            "parsed": matched,
            "rawAiResponse": ai_response,
        })
    except Exception as e:
        log.error("Error in parse-workout: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
