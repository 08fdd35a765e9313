"""
Shared test configuration.

Adds src/ to sys.path so the flat modules (api, sync_engine, ...) and the
routes/analytics/pipeline packages import the same way they do at runtime.
Nothing here talks to Postgres or the completion API.
"""

import os
import sys

import pytest

_project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_src_dir = os.path.join(_project_root, "src")

if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)


@pytest.fixture
def settings():
    from settings import Settings

    return Settings(conn_str="postgresql://test@localhost/test", groq_api_key="test-key")


@pytest.fixture
def env(monkeypatch):
    """Process environment the handlers read on every request."""
    monkeypatch.setenv("POSTGRES_CONNECTION_STRING", "postgresql://test@localhost/test")
    monkeypatch.setenv("GROQ_API_KEY", "test-key")
    monkeypatch.delenv("SYNC_TABLES", raising=False)
    return monkeypatch


@pytest.fixture
def client(env):
    from fastapi.testclient import TestClient

    import api

    return TestClient(api.app)


class FakeCompletionClient:
    """Stands in for CompletionClient; records every prompt it is sent."""

    reply = ""
    calls = []

    def __init__(self, settings):
        self.settings = settings

    def complete(self, system_prompt, user_prompt, *, temperature, max_tokens):
        FakeCompletionClient.calls.append({
            "system": system_prompt,
            "user": user_prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        return FakeCompletionClient.reply


@pytest.fixture
def fake_completion():
    FakeCompletionClient.reply = ""
    FakeCompletionClient.calls = []
    return FakeCompletionClient
