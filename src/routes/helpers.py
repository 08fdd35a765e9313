"""
Shared helpers for API routes.
Contains: DB access, type coercion, CORS-aware responses.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

import psycopg2
from fastapi.responses import JSONResponse, PlainTextResponse
from psycopg2 import sql
from psycopg2.extras import RealDictCursor

from constants import CORS_HEADERS
from settings import get_conn_str

log = logging.getLogger("api")

Query = Union[str, sql.Composable]


# ─── DB helpers ─────────────────────────────────────────────

def _conn_str() -> str:
    return get_conn_str()


def _connect():
    cs = _conn_str()
    if not cs:
        raise RuntimeError("POSTGRES_CONNECTION_STRING is not set")
    return psycopg2.connect(cs)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


def _rows_out(rows) -> List[Dict[str, Any]]:
    return [{k: _to_jsonable(v) for k, v in dict(row).items()} for row in rows]


def _fetch_all(query: Query, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
    conn = _connect()
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(query, params or ())
            return _rows_out(cur.fetchall())
    finally:
        conn.close()


def _fetch_one(query: Query, params: Optional[tuple] = None) -> Optional[Dict[str, Any]]:
    rows = _fetch_all(query, params=params)
    return rows[0] if rows else None


def _execute(query: Query, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
    """Run a single write statement in its own autocommit connection.

    Returns the RETURNING rows, or an empty list for statements without one.
    """
    conn = _connect()
    conn.autocommit = True
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(query, params or ())
            if cur.description is None:
                return []
            return _rows_out(cur.fetchall())
    finally:
        conn.close()


# ─── Type coercion ──────────────────────────────────────────

def _num(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except Exception:
        return None


# ─── Responses ──────────────────────────────────────────────

def _json_response(content: Dict[str, Any], status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=dict(CORS_HEADERS))


def _error_response(message: str, status_code: int) -> JSONResponse:
    return _json_response({"error": message}, status_code=status_code)


def _preflight() -> PlainTextResponse:
    return PlainTextResponse("ok", status_code=200, headers=dict(CORS_HEADERS))
