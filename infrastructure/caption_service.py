"""Short travel-diary captions from the Gemini REST API.

`generate` never raises: without an API key, or on any transport or
response problem, it returns the user's own notes or a fixed placeholder.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"

EMPTY_RESPONSE_TEXT = "No description generated."
FALLBACK_TEXT = "An amazing moment captured during my travels."

PROMPT_TEMPLATE = (
    "Generate a poetic and engaging short travel diary entry (max 2 sentences) "
    "for a photo taken at {location}. Additional context: {notes}"
)


def fallback_caption(notes: str) -> str:
    return notes.strip() or FALLBACK_TEXT


def _extract_text(payload: Any) -> str:
    try:
        parts = payload["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    return "".join(str(p.get("text", "")) for p in parts if isinstance(p, dict)).strip()


class CaptionService:
    """Generates captions with `generateContent`."""

    def __init__(
        self,
        api_key: str | None,
        *,
        model: str = DEFAULT_MODEL,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 20.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key or ""
        self._url = f"{endpoint.rstrip('/')}/models/{model}:generateContent"
        self._client = client or httpx.Client(timeout=timeout)

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    def close(self) -> None:
        self._client.close()

    def generate(self, location_name: str, notes: str = "") -> str:
        """Caption for a photo taken at `location_name`."""
        if not self.enabled:
            logger.info("Caption generation disabled (no API key)")
            return fallback_caption(notes)
        body = {
            "contents": [
                {"parts": [{"text": PROMPT_TEMPLATE.format(location=location_name, notes=notes)}]}
            ],
            "generationConfig": {"temperature": 0.7, "topP": 0.95},
        }
        try:
            response = self._client.post(self._url, params={"key": self._api_key}, json=body)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as ex:
            logger.warning("Caption generation failed: {}", ex)
            return fallback_caption(notes)
        return _extract_text(payload) or EMPTY_RESPONSE_TEXT
