"""
FastAPI backend for the fitness tracker client.

Route handlers live in routes/; this module wires the app: logging,
CORS, uniform {"error": ...} responses and the auxiliary endpoints.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from constants import CORS_ALLOW_HEADERS
from pipeline.migrations import ensure_startup_schema, schema_audit
from routes import insights, sync, workouts
from routes.helpers import _error_response, _fetch_one
from settings import load_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger("api")


# ─── App setup ─────────────────────────────────────────────

@asynccontextmanager
async def lifespan(_app: FastAPI):
    settings = load_settings()
    if settings.run_startup_migrations:
        log.info("Running startup migrations...")
        ensure_startup_schema(settings.conn_str)
    yield


app = FastAPI(title="Fitness Sync API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(load_settings().frontend_origins),
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=[h.strip() for h in CORS_ALLOW_HEADERS.split(",")],
)

app.include_router(insights.router)
app.include_router(workouts.router)
app.include_router(sync.router)


@app.exception_handler(StarletteHTTPException)
async def http_error(_request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(str(exc.detail), exc.status_code)


@app.exception_handler(RequestValidationError)
async def invalid_body(_request, exc: RequestValidationError) -> JSONResponse:
    log.warning("Rejected request body: %s", exc.errors())
    return _error_response("Invalid request body", 400)


# ─── Routes ────────────────────────────────────────────────

@app.get("/")
def root() -> Dict[str, Any]:
    return {"service": "fitness-sync-api", "status": "ok"}


@app.get("/health-check")
def health_check() -> JSONResponse:
    try:
        _fetch_one("SELECT 1 AS ok")
        return JSONResponse({"status": "Online", "message": "Online"})
    except Exception as e:
        return JSONResponse(
            status_code=200,
            content={
                "status": "Waking up",
                "message": f"Service starting or DB unavailable: {e}",
            },
        )


@app.get("/admin/schema-audit")
def admin_schema_audit() -> Dict[str, Any]:
    try:
        return schema_audit(load_settings().conn_str)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
