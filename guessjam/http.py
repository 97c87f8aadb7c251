"""Endpoints HTTP (FastAPI) de l'API du jeu."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .exceptions import (
    GuessJamError,
    NotEnoughSongs,
    SetupLocked,
    SongSourceError,
    ValidationError,
)
from .payloads import state_payload
from .session import GameSession

_SOURCE_STATUS = {
    SongSourceError.INVALID_INPUT: 400,
    SongSourceError.NOT_FOUND: 404,
    SongSourceError.FORBIDDEN: 403,
    SongSourceError.QUOTA_EXCEEDED: 429,
    SongSourceError.UPSTREAM_ERROR: 502,
}


class PlaylistRequest(BaseModel):
    url: Optional[str] = None


def error_status(error: GuessJamError) -> int:
    if isinstance(error, SongSourceError):
        return _SOURCE_STATUS.get(error.code, 502)
    if isinstance(error, NotEnoughSongs):
        return 422
    if isinstance(error, SetupLocked):
        return 409
    if isinstance(error, ValidationError):
        return 400
    return 500


def create_http_app(session: GameSession, lifespan: Optional[Callable[..., Any]] = None) -> FastAPI:
    app = FastAPI(title="Guess the Jam", lifespan=lifespan)

    @app.exception_handler(GuessJamError)
    async def on_game_error(_request: Request, exc: GuessJamError) -> JSONResponse:
        return JSONResponse(
            {"error": str(exc), "code": exc.code}, status_code=error_status(exc)
        )

    @app.exception_handler(RequestValidationError)
    async def on_invalid_body(_request: Request, exc: RequestValidationError) -> JSONResponse:
        # Corps illisible ou champ du mauvais type
        return JSONResponse(
            {"error": "Requête invalide.", "code": SongSourceError.INVALID_INPUT}, status_code=400
        )

    @app.post("/api/playlist")
    async def load_playlist(body: PlaylistRequest) -> JSONResponse:
        if not body.url or not body.url.strip():
            raise SongSourceError(SongSourceError.INVALID_INPUT, "Un lien de playlist est requis.")
        songs = await session.load_playlist(body.url)
        return JSONResponse({"songs": [asdict(s) for s in songs]})

    @app.get("/api/state")
    async def get_state() -> JSONResponse:
        return JSONResponse(state_payload(session))

    @app.get("/api/teams")
    async def get_teams() -> JSONResponse:
        return JSONResponse([asdict(t) for t in session.state.teams])

    @app.get("/api/config")
    async def get_config() -> JSONResponse:
        return JSONResponse(asdict(session.rules))

    return app
