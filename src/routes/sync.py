"""POST /sync-data: apply offline client changes and refresh the streak."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from models import SyncRequest
from routes.helpers import _json_response, _preflight
from settings import load_settings
from sync_engine import apply_changes

log = logging.getLogger("api")

router = APIRouter()


@router.options("/sync-data")
def sync_data_preflight():
    return _preflight()


@router.post("/sync-data")
def sync_data(body: SyncRequest):
    if not body.userId or body.changes is None:
        raise HTTPException(status_code=400, detail="Missing userId or changes")

    try:
        outcome = apply_changes(body.userId, body.changes, load_settings())
        return _json_response(outcome.to_response())
    except Exception as e:
        log.error("Error in sync-data: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
