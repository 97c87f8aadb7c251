"""Règles de jeu configurables utilisées par le reducer."""

from __future__ import annotations

from dataclasses import dataclass

from .config import Settings
from .exceptions import ConfigurationError
from .state import PLAYBACK_DURATIONS


@dataclass(frozen=True)
class GameRules:
    min_songs: int = 5
    max_teams: int = 6
    win_score: int = 10
    countdown_seconds: int = 3
    answer_time_limit: int = 15
    default_playback_duration: int = 3
    next_round_seconds: int = 3

    @classmethod
    def from_settings(cls, settings: Settings) -> "GameRules":
        if settings.playback_duration not in PLAYBACK_DURATIONS:
            raise ConfigurationError(
                f"durée de lecture {settings.playback_duration} invalide, "
                f"valeurs possibles: {PLAYBACK_DURATIONS}"
            )
        for name in ("min_songs", "max_teams", "win_score"):
            if getattr(settings, name) < 1:
                raise ConfigurationError(f"{name} doit être >= 1")
        if (
            settings.countdown_seconds < 0
            or settings.next_round_seconds < 0
            or settings.answer_time_limit < 1
        ):
            raise ConfigurationError("durées de compte à rebours invalides")
        return cls(
            min_songs=settings.min_songs,
            max_teams=settings.max_teams,
            win_score=settings.win_score,
            countdown_seconds=settings.countdown_seconds,
            answer_time_limit=settings.answer_time_limit,
            default_playback_duration=settings.playback_duration,
            next_round_seconds=settings.next_round_seconds,
        )


DEFAULT_RULES = GameRules()
