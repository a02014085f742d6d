from __future__ import annotations

import asyncio
import logging

from visualizer.widget import VisualizerConfig
from wizard.errors import SessionNotFoundError
from wizard.session import ClassifierSession

LOGGER = logging.getLogger(__name__)


class SessionStore:
    """In-memory store for wizard sessions.

    Note: This is a single-process store; sessions do not survive a restart
    and are not shared between workers.
    """

    def __init__(self, visualizer_config: VisualizerConfig | None = None) -> None:
        self._lock = asyncio.Lock()
        self._sessions: dict[str, ClassifierSession] = {}
        self._visualizer_config = visualizer_config

    async def create(self) -> ClassifierSession:
        session = ClassifierSession(visualizer_config=self._visualizer_config)
        async with self._lock:
            self._sessions[session.session_id] = session
        return session

    async def get(self, session_id: str) -> ClassifierSession:
        async with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError()
        return session

    async def delete(self, session_id: str) -> None:
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError()
        await session.close()

    async def close_all(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            try:
                await session.close()
            except Exception as exc:
                LOGGER.warning("Failed to close session %s: %s", session.session_id, exc)
        if sessions:
            LOGGER.info("Closed %d wizard sessions", len(sessions))
