"""Factory returning the configured classifier implementation."""

from __future__ import annotations

from classifier.base import BaseAudioClassifier
from classifier.rest_client import GeminiRestClassifier
from config.settings import get_settings


def build_classifier() -> BaseAudioClassifier:
    """Instantiate the configured remote classifier."""

    settings = get_settings()
    if settings.classifier_provider == "gemini":
        # Imported lazily so the REST provider works without the SDK installed.
        from classifier.gemini_client import GeminiClassifier

        return GeminiClassifier()
    if settings.classifier_provider == "gemini_rest":
        return GeminiRestClassifier()
    raise ValueError(f"Unsupported classifier_provider: {settings.classifier_provider}")
