"""Shared FastAPI dependencies.

Separated to avoid circular imports between route modules.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends
from starlette.requests import HTTPConnection

from classifier.base import BaseAudioClassifier, UnavailableClassifier
from wizard.session import ClassifierSession
from wizard.store import SessionStore

LOGGER = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _classifier_factory() -> BaseAudioClassifier:
    # Lazy import to avoid importing the SDK at module import time.
    from classifier.factory import build_classifier

    return build_classifier()


def get_classifier() -> BaseAudioClassifier:
    try:
        return _classifier_factory()
    except ValueError as exc:
        # Missing credentials surface as an ordinary classification failure.
        LOGGER.error("Classifier unavailable: %s", exc)
        return UnavailableClassifier(str(exc))


def get_session_store(connection: HTTPConnection) -> SessionStore:
    return connection.app.state.sessions


async def get_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> ClassifierSession:
    return await store.get(session_id)
