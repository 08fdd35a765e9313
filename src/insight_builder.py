"""
Insight prompt building.
Turns recent workouts, sleep entries and the user profile into the
system/user prompt pair sent to the completion API.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from routes.helpers import _num

FALLBACK_INSIGHT = "Stay consistent and trust the process! 💪"

SYSTEM_PROMPTS = {
    "daily": (
        "You are a motivational fitness coach. Generate a short, encouraging daily insight "
        "(max 2 sentences) based on user progress. Be energetic and use emojis."
    ),
    "recovery": (
        "You are a recovery specialist. Analyze sleep and workout data to give actionable "
        "recovery advice (max 2 sentences). Be direct and helpful."
    ),
    "deload": (
        "You are a training expert. Recommend when to take a deload week based on fatigue "
        "signals (max 2 sentences). Be professional."
    ),
    "pr_celebration": (
        "You are a hype coach. Celebrate the user's personal record achievement "
        "(max 2 sentences). Be extremely enthusiastic with emojis!"
    ),
}


def get_system_prompt(insight_type: Optional[str]) -> str:
    return SYSTEM_PROMPTS.get(insight_type or "daily", SYSTEM_PROMPTS["daily"])


def _zero(value: Any) -> float:
    return _num(value) or 0.0


def _fmt(value: Any) -> Any:
    """Render whole floats without a trailing .0 (80.0 -> 80)."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def recovery_score(entry: Dict[str, Any]) -> float:
    """Per-night recovery score on a 0-10 scale."""
    return (
        _zero(entry.get("sleep_quality"))
        + (10 - _zero(entry.get("soreness_level")))
        + _zero(entry.get("energy_level"))
    ) / 3


def sleep_averages(entries: List[Dict[str, Any]]) -> Dict[str, float]:
    """Average hours slept and recovery score (0-100 display range).

    With no entries the divisor falls back to 1, so both averages are 0.
    """
    divisor = len(entries) or 1
    avg_sleep = sum(_zero(e.get("hours_slept")) for e in entries) / divisor
    avg_recovery = sum(recovery_score(e) for e in entries) / divisor
    return {
        "avg_sleep": avg_sleep,
        "avg_recovery": avg_recovery,
        "recovery_pct": (avg_recovery / 10) * 100,
    }


def _user_label(user: Dict[str, Any]) -> str:
    name = user.get("name")
    return f"User {name}" if name else "User"


def build_context(
    insight_type: Optional[str],
    *,
    user: Optional[Dict[str, Any]],
    recent_workouts: List[Dict[str, Any]],
    recent_sleep: List[Dict[str, Any]],
    context: Any = None,
) -> str:
    user = user or {}
    recent_workouts = recent_workouts or []
    recent_sleep = recent_sleep or []

    # pr_celebration without a context payload falls through to the daily text
    if insight_type == "pr_celebration" and context is not None:
        pr = context if isinstance(context, dict) else {}
        return (
            f"{_user_label(user)} just hit a PR: {pr.get('exercise')} at "
            f"{_fmt(pr.get('weight'))}kg! Previous best was "
            f"{_fmt(pr.get('previousBest'))}kg. Celebrate this achievement!"
        )

    if insight_type == "deload":
        avgs = sleep_averages(recent_sleep)
        return (
            f"User has been training for {len(recent_workouts)} sessions in the last week. "
            f"Average sleep: {avgs['avg_sleep']:.1f}h. "
            f"Average recovery score: {avgs['recovery_pct']:.0f}/100. Should they deload?"
        )

    if insight_type == "recovery":
        last = recent_sleep[0] if recent_sleep else {}
        return (
            f"Last night: {_fmt(last.get('hours_slept') or 0)}h sleep, "
            f"quality {_fmt(last.get('sleep_quality') or 0)}/10, "
            f"soreness {_fmt(last.get('soreness_level') or 0)}/10. Recovery advice?"
        )

    streak = user.get("current_streak") or 0
    return (
        f"{_user_label(user)} has {len(recent_workouts)} workouts this week and a "
        f"{streak}-day streak. Goal: {user.get('fitness_goal') or 'not set'}. Give motivational insight."
    )
