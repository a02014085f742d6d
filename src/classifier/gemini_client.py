"""Google Gemini classifier using the google-genai SDK."""

from __future__ import annotations

import logging

from google import genai
from google.genai import types

from classifier.base import RESPONSE_SCHEMA, BaseAudioClassifier, audio_mime_type
from config.settings import get_settings
from wizard.schemas import AudioInput

LOGGER = logging.getLogger(__name__)


class GeminiClassifier(BaseAudioClassifier):
    """Sends inline audio plus the classification prompt to Gemini."""

    def __init__(self, *, client: genai.Client | None = None) -> None:
        settings = get_settings()
        super().__init__(model_context_max_chars=settings.model_context_max_chars)
        if client is None:
            if not settings.gemini_api_key:
                raise ValueError("Gemini API key must be configured for the Gemini classifier.")
            client = genai.Client(api_key=settings.gemini_api_key)

        self._client = client
        self._model = settings.classifier_model

    async def _generate(self, audio: AudioInput, prompt: str) -> str | None:
        response = await self._client.aio.models.generate_content(
            model=self._model,
            contents=[
                types.Part.from_bytes(data=audio.data, mime_type=audio_mime_type(audio)),
                prompt,
            ],
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=RESPONSE_SCHEMA,
            ),
        )
        LOGGER.debug("Gemini replied for %d audio bytes", audio.size)
        return response.text
