"""
Completion API client
=====================
Thin wrapper over Groq's OpenAI-compatible chat/completions endpoint,
shared by the insight and workout-parse handlers.

  - The API key is checked on every call, not at import time, so a missing
    key surfaces as a request failure instead of a crashed worker.
  - Connection errors, timeouts, 429 and 5xx responses are retried with
    exponential backoff before giving up.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import requests
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from settings import Settings

log = logging.getLogger("completion_client")


class CompletionError(Exception):
    """Base class for completion API failures."""


class CompletionConfigError(CompletionError):
    """Raised when the completion API credential is missing."""


class CompletionAPIError(CompletionError):
    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, CompletionAPIError) and exc.status is not None:
        return exc.status == 429 or exc.status >= 500
    return False


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    retry=retry_if_exception(_is_transient),
    reraise=True,
)
def _post_completion(url: str, api_key: str, payload: Dict[str, Any], timeout: float) -> Dict[str, Any]:
    resp = requests.post(
        url,
        headers={
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        },
        json=payload,
        timeout=timeout,
    )
    if not resp.ok:
        log.error("Groq API error: %s", resp.text)
        raise CompletionAPIError(f"Groq API failed: {resp.status_code}", status=resp.status_code)
    try:
        return resp.json()
    except ValueError as e:
        raise CompletionAPIError(f"Groq API returned invalid JSON: {e}") from e


def first_choice_text(data: Dict[str, Any]) -> str:
    choices = data.get("choices") or []
    if not choices:
        return ""
    message = (choices[0] or {}).get("message") or {}
    return message.get("content") or ""


class CompletionClient:
    def __init__(self, settings: Settings):
        self.settings = settings

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Send a two-message prompt and return the first choice's text ("" if none)."""
        if not self.settings.groq_api_key:
            raise CompletionConfigError("GROQ_API_KEY not configured")

        messages: List[Dict[str, str]] = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        payload = {
            "model": self.settings.groq_model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        data = _post_completion(
            self.settings.groq_api_url,
            self.settings.groq_api_key,
            payload,
            self.settings.completion_timeout,
        )
        return first_choice_text(data)
