"""WebSocket endpoints for microphone recording and the spectrum feed.

Recording protocol (browser -> service, JSON text frames):
- ``{"event": "start", "sample_rate": 48000}`` once the microphone is granted
- ``{"event": "denied"}`` when the user refused microphone access
- ``{"event": "chunk", "payload": <base64 recorder data>}``
- ``{"event": "pcm", "payload": <base64 PCM16 little-endian>}``
- ``{"event": "stop"}``

Failures are answered with ``{"event": "error", "detail": ...}`` and the
socket stays open.
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from api.dependencies import get_session_store
from visualizer.widget import SpectrumFrame
from wizard.errors import SessionNotFoundError, WizardError
from wizard.session import ClassifierSession
from wizard.store import SessionStore

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["streams"])

DEFAULT_SAMPLE_RATE = 48000
SESSION_NOT_FOUND_CLOSE_CODE = 4404


def parse_stream_message(text: str) -> dict[str, Any]:
    message = json.loads(text)
    if not isinstance(message, dict):
        raise ValueError("Stream messages must be JSON objects.")
    return message


def _payload_bytes(message: dict[str, Any]) -> bytes:
    payload = message.get("payload")
    if not isinstance(payload, str):
        raise ValueError("Missing base64 payload.")
    return base64.b64decode(payload, validate=True)


async def handle_recording_event(
    session: ClassifierSession, message: dict[str, Any]
) -> dict[str, Any] | None:
    event = str(message.get("event") or "")
    if event == "chunk":
        session.push_recording_chunk(_payload_bytes(message))
        return None
    if event == "pcm":
        session.push_recording_pcm(_payload_bytes(message))
        return None
    if event == "start":
        sample_rate = int(message.get("sample_rate") or DEFAULT_SAMPLE_RATE)
        stream = await session.start_recording(sample_rate)
        return {"event": "started", "sample_rate": stream.sample_rate}
    if event == "stop":
        audio = await session.stop_recording()
        return {"event": "stopped", "mime_type": audio.mime_type, "size": audio.size}
    if event == "denied":
        session.deny_microphone()
        return None
    raise ValueError(f"Unknown event: {event or '<missing>'}")


@router.websocket("/{session_id}/recording")
async def recording_stream(
    websocket: WebSocket,
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> None:
    await websocket.accept()
    try:
        session = await store.get(session_id)
    except SessionNotFoundError:
        await websocket.close(code=SESSION_NOT_FOUND_CLOSE_CODE)
        return

    try:
        while True:
            text = await websocket.receive_text()
            try:
                reply = await handle_recording_event(session, parse_stream_message(text))
            except WizardError as exc:
                reply = {"event": "error", "detail": exc.detail}
            except ValueError as exc:
                reply = {"event": "error", "detail": f"Invalid message: {exc}"}
            if reply is not None:
                await websocket.send_json(reply)
    except WebSocketDisconnect:
        if session.recording:
            LOGGER.info("Recording socket for session %s closed mid-recording", session_id)
            try:
                await session.stop_recording()
            except WizardError as exc:
                LOGGER.warning("Could not stop recording for session %s: %s", session_id, exc)


async def _pump_frames(websocket: WebSocket, queue: asyncio.Queue[SpectrumFrame]) -> None:
    while True:
        frame = await queue.get()
        await websocket.send_json(frame.to_payload())


@router.websocket("/{session_id}/spectrum")
async def spectrum_stream(
    websocket: WebSocket,
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> None:
    await websocket.accept()
    try:
        session = await store.get(session_id)
    except SessionNotFoundError:
        await websocket.close(code=SESSION_NOT_FOUND_CLOSE_CODE)
        return

    queue = session.visualizer.subscribe()
    pump = asyncio.create_task(_pump_frames(websocket, queue))
    try:
        # Incoming messages are ignored; receiving only detects the disconnect.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        pump.cancel()
        await asyncio.wait({pump})
        if not pump.cancelled() and pump.exception() is not None:
            LOGGER.warning("Spectrum feed for session %s stopped with an error: %s", session_id, pump.exception())
        session.visualizer.unsubscribe(queue)
