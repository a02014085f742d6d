"""Entry point for the urban sound classification service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.routes import router as sessions_router
from api.streams import router as streams_router
from config.settings import get_settings
from visualizer.widget import VisualizerConfig
from wizard.errors import WizardError
from wizard.store import SessionStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.sessions = SessionStore(VisualizerConfig.from_settings(get_settings()))
    yield
    await app.state.sessions.close_all()


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(
    title="Urban Sound Classifier",
    description="Classifies urban sound clips with a hosted Gemini model, using an uploaded notebook as context.",
    lifespan=lifespan,
)


@app.exception_handler(WizardError)
async def wizard_error_handler(request: Request, exc: WizardError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(sessions_router, prefix="/api")
app.include_router(streams_router, prefix="/api")
