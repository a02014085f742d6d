"""Shared abstractions for remote audio classifiers."""

from __future__ import annotations

import base64
import json
import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import ValidationError

from prompts.loader import load_prompt
from wizard.errors import ClassificationFailedError
from wizard.schemas import URBAN_SOUND_CATEGORIES, AudioInput, ClassificationResult

LOGGER = logging.getLogger(__name__)

CLASSIFICATION_PROMPT_TEMPLATE = load_prompt("classification.txt")

DEFAULT_AUDIO_MIME_TYPE = "audio/wav"

# JSON schema for the structured reply, in the OpenAPI subset Gemini accepts.
RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "label": {"type": "STRING"},
        "accuracy": {"type": "NUMBER"},
        "explanation": {"type": "STRING"},
        "probabilities": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING"},
                    "value": {"type": "NUMBER"},
                },
            },
        },
    },
}


def encode_audio(audio: AudioInput) -> str:
    """Return the audio bytes as base64 text for inline transfer."""

    return base64.b64encode(audio.data).decode("ascii")


def audio_mime_type(audio: AudioInput) -> str:
    return audio.mime_type or DEFAULT_AUDIO_MIME_TYPE


def build_prompt(model_context: str, max_chars: int) -> str:
    categories = "\n".join(f"- {name}" for name in URBAN_SOUND_CATEGORIES)
    return CLASSIFICATION_PROMPT_TEMPLATE.format(
        model_context=model_context[:max_chars],
        categories=categories,
    )


def parse_classification(text: str | None) -> ClassificationResult:
    """Parse the model reply into a ClassificationResult.

    Raises ValueError for an empty reply, invalid JSON or missing fields.
    """

    if not text or not text.strip():
        raise ValueError("No response text from classifier.")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError("Classifier returned invalid JSON.") from exc
    try:
        return ClassificationResult.model_validate(payload)
    except ValidationError as exc:
        raise ValueError("Classifier response does not match the result schema.") from exc


class BaseAudioClassifier(ABC):
    """Abstract base class for hosted classification providers.

    Subclasses perform exactly one outbound request per call; there is no
    retry and no caching.
    """

    def __init__(self, *, model_context_max_chars: int = 2000) -> None:
        self._model_context_max_chars = model_context_max_chars

    async def classify(self, audio: AudioInput, model_context: str) -> ClassificationResult:
        """Classify an audio clip, collapsing every failure into one error."""

        prompt = build_prompt(model_context, self._model_context_max_chars)
        try:
            text = await self._generate(audio, prompt)
            return parse_classification(text)
        except Exception as exc:
            LOGGER.error("Classifier request failed: %s", exc, exc_info=True)
            raise ClassificationFailedError() from exc

    @abstractmethod
    async def _generate(self, audio: AudioInput, prompt: str) -> str | None:
        """Send audio and prompt to the provider and return the raw reply text."""


class UnavailableClassifier(BaseAudioClassifier):
    """Placeholder used when no provider could be built; every call fails."""

    def __init__(self, reason: str) -> None:
        super().__init__()
        self._reason = reason

    async def _generate(self, audio: AudioInput, prompt: str) -> str | None:
        raise RuntimeError(self._reason)
