"""
Workout text parsing.
The completion API does the parsing; this module cleans its reply,
falls back to a simple regex when the reply is not a usable JSON array,
and reconciles exercise names with the catalog.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from models import ParsedSet

log = logging.getLogger("workout_parser")

PARSE_SYSTEM_PROMPT = """You are a workout logging assistant. Parse natural language workout input and return structured JSON.

Rules:
1. Identify exercise name, weight (kg), sets, reps
2. Common aliases: "bench" = "Bench Press", "squat" = "Squat", "dl" or "dead" = "Deadlift"
3. Format: exercise weight sets reps (e.g., "bench 80 3 10")
4. RPE (rate of perceived exertion) if mentioned (1-10)
5. Return ONLY valid JSON array, no markdown or extra text

Example input: "bench 80 3 10, squat 100 4 8"
Example output: [{"exerciseName":"Bench Press","weight":80,"sets":3,"reps":10},{"exerciseName":"Squat","weight":100,"sets":4,"reps":8}]"""

_FENCE_JSON = re.compile(r"```json\n?")
_FENCE = re.compile(r"```\n?")

# name, weight, sets, reps, optional "rpe N"
_SET_PATTERN = re.compile(
    r"([a-zA-Z\s]+?)\s+(\d+(?:\.\d+)?)\s+(\d+)\s+(\d+)(?:\s+rpe\s*(\d+))?",
    re.IGNORECASE,
)

_parsed_sets = TypeAdapter(List[ParsedSet])


def strip_code_fences(text: str) -> str:
    cleaned = _FENCE_JSON.sub("", text or "")
    return _FENCE.sub("", cleaned).strip()


def decode_sets(ai_response: str) -> List[ParsedSet]:
    """Decode the model reply as a JSON array of sets.

    Raises ValueError for anything that is not a list of valid sets.
    """
    payload = json.loads(strip_code_fences(ai_response))
    if not isinstance(payload, list):
        raise ValueError(f"expected a JSON array, got {type(payload).__name__}")
    try:
        return _parsed_sets.validate_python(payload)
    except ValidationError as e:
        raise ValueError(str(e)) from e


def regex_parse(text: str) -> List[ParsedSet]:
    results: List[ParsedSet] = []
    for m in _SET_PATTERN.finditer(text or ""):
        results.append(
            ParsedSet(
                exerciseName=m.group(1).strip(),
                weight=float(m.group(2)),
                sets=int(m.group(3)),
                reps=int(m.group(4)),
                rpe=int(m.group(5)) if m.group(5) else None,
            )
        )
    return results


def parse_sets(ai_response: str, original_input: str) -> List[ParsedSet]:
    """Model reply first; on any decode failure, regex over the user's own text."""
    try:
        return decode_sets(ai_response)
    except ValueError:
        log.warning("Failed to parse AI response, using regex fallback: %r", ai_response)
        return regex_parse(original_input)


def find_exercise(name: str, catalog: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """First catalog row whose name contains, or is contained by, `name` (case-insensitive)."""
    wanted = (name or "").lower()
    if not wanted:
        return None
    for row in catalog:
        candidate = str(row.get("name") or "").lower()
        if not candidate:
            continue
        if wanted in candidate or candidate in wanted:
            return row
    return None


def match_exercises(sets: List[ParsedSet], catalog: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    matched: List[Dict[str, Any]] = []
    for s in sets:
        item = s.model_dump(exclude_none=True)
        row = find_exercise(s.exerciseName, catalog)
        item["exerciseId"] = row.get("id") if row else None
        if row:
            item["exerciseName"] = row.get("name")
        matched.append(item)
    return matched
