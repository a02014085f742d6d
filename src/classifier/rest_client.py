"""Plain HTTPS client for the Gemini generateContent endpoint."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from classifier.base import RESPONSE_SCHEMA, BaseAudioClassifier, audio_mime_type, encode_audio
from config.settings import get_settings
from wizard.schemas import AudioInput

LOGGER = logging.getLogger(__name__)


class GeminiRestClassifier(BaseAudioClassifier):
    """Minimal client that talks to the REST API without the SDK."""

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        settings = get_settings()
        super().__init__(model_context_max_chars=settings.model_context_max_chars)
        if not settings.gemini_api_key:
            raise ValueError("Gemini API key must be configured for the REST classifier.")

        self._endpoint = settings.gemini_endpoint.rstrip("/")
        self._model = settings.classifier_model
        self._api_key = settings.gemini_api_key
        self._timeout = settings.classifier_timeout_seconds
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self._api_key,
        }

    def _payload(self, audio: AudioInput, prompt: str) -> dict[str, Any]:
        return {
            "contents": [
                {
                    "parts": [
                        {
                            "inlineData": {
                                "mimeType": audio_mime_type(audio),
                                "data": encode_audio(audio),
                            }
                        },
                        {"text": prompt},
                    ]
                }
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    async def _generate(self, audio: AudioInput, prompt: str) -> str | None:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(
                f"{self._endpoint}/models/{self._model}:generateContent",
                json=self._payload(audio, prompt),
                headers=self._headers(),
            )

        response.raise_for_status()
        data = response.json()
        candidates: list[dict] = data.get("candidates", [])
        if not candidates:
            raise RuntimeError("Classifier response contains no candidates.")
        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(part.get("text", "") for part in parts)
