"""Request and transient payload models shared by the route handlers."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


# Required fields are Optional here on purpose: the handlers answer a
# missing field with their own 400 message instead of FastAPI's 422.

class InsightRequest(BaseModel):
    userId: Optional[str] = None
    type: Optional[str] = None
    # Only pr_celebration reads it, and only when it is an object.
    context: Optional[Any] = None


class WorkoutParseRequest(BaseModel):
    input: Optional[str] = None
    userId: Optional[str] = None


class SyncRequest(BaseModel):
    userId: Optional[str] = None
    # Items stay raw so one malformed change fails alone.
    changes: Optional[List[Any]] = None


class SyncChange(BaseModel):
    table: str
    operation: Literal["insert", "update", "delete"]
    data: Dict[str, Any] = Field(default_factory=dict)
    localId: Optional[Union[str, int]] = None

    @field_validator("data", mode="before")
    @classmethod
    def _null_data_is_empty(cls, value):
        return {} if value is None else value


class ParsedSet(BaseModel):
    exerciseName: str
    weight: Union[int, float]
    sets: int
    reps: int
    rpe: Optional[int] = None

    @field_validator("weight")
    @classmethod
    def _whole_weight_as_int(cls, value):
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value
