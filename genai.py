from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger("math-problems")

DEFAULT_MODEL = "gemini-2.5-flash"
_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class GeminiError(RuntimeError):
    """The Gemini call failed or answered with something we cannot use."""


class GeminiClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 30,
    ) -> None:
        # A missing key is reported on first use so callers get a normal failure
        self.api_key = api_key if api_key is not None else os.getenv("GEMINI_API_KEY", "")
        self.model = model or os.getenv("GEMINI_MODEL", DEFAULT_MODEL)
        self.base_url = base_url or _BASE_URL.format(model=self.model)
        self._timeout = timeout
        self._transport = transport
        # opened on first call; resume-only requests never touch the network
        self._client: Optional[httpx.Client] = None

    @property
    def http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self._timeout, transport=self._transport)
        return self._client

    def generate_json(
        self,
        prompt: str,
        *,
        response_schema: Dict[str, Any],
        temperature: float = 0.7,
    ) -> str:
        """
        Ask for a JSON answer shaped like ``response_schema`` and return the raw text
        of the first candidate. Single attempt; raises GeminiError on any failure.
        """
        if not self.api_key:
            raise GeminiError("GEMINI_API_KEY is not configured")

        payload: Dict[str, Any] = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            },
        }
        try:
            r = self.http.post(
                self.base_url,
                headers={"x-goog-api-key": self.api_key},
                json=payload,
            )
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise GeminiError(f"Gemini returned HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise GeminiError(f"Gemini request failed: {type(e).__name__}: {e}") from e

        try:
            data = r.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise GeminiError(f"Unexpected Gemini response: {r.text[:200]}") from e
        if not isinstance(text, str):
            raise GeminiError("Gemini candidate text is not a string")
        return text

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
