"""Configuration lue depuis l'environnement."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from .exceptions import ConfigurationError
from .paths import STATE_PATH


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} doit être un entier, reçu {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    # Règles du jeu
    min_songs: int = 5
    max_teams: int = 6
    win_score: int = 10
    countdown_seconds: int = 3
    answer_time_limit: int = 15
    # Compte à rebours entre deux manches
    next_round_seconds: int = 3
    playback_duration: int = 3
    # Lecture: décalage fixe dans la vidéo
    snippet_start_seconds: int = 30

    # Persistance / serveur
    state_path: Path = field(default=STATE_PATH)
    host: str = "0.0.0.0"
    port: int = 4000
    cors_origins: str = "*"
    youtube_api_key: Optional[str] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            min_songs=_int_env(env, "GUESSJAM_MIN_SONGS", 5),
            max_teams=_int_env(env, "GUESSJAM_MAX_TEAMS", 6),
            win_score=_int_env(env, "GUESSJAM_WIN_SCORE", 10),
            countdown_seconds=_int_env(env, "GUESSJAM_COUNTDOWN_SECONDS", 3),
            answer_time_limit=_int_env(env, "GUESSJAM_ANSWER_TIME_LIMIT", 15),
            next_round_seconds=_int_env(env, "GUESSJAM_NEXT_ROUND_SECONDS", 3),
            playback_duration=_int_env(env, "GUESSJAM_PLAYBACK_DURATION", 3),
            snippet_start_seconds=_int_env(env, "GUESSJAM_SNIPPET_START_SECONDS", 30),
            state_path=Path(env.get("GUESSJAM_STATE_PATH") or STATE_PATH),
            host=env.get("GUESSJAM_HOST") or "0.0.0.0",
            port=_int_env(env, "GUESSJAM_PORT", 4000),
            cors_origins=env.get("GUESSJAM_CORS_ORIGINS") or "*",
            youtube_api_key=env.get("YOUTUBE_API_KEY") or None,
        )
