"""Modèle du jeu : équipes, chansons, manche et état de la partie.

Tous les types sont immuables. Le reducer produit un nouvel état à chaque
transition (``dataclasses.replace``), il ne modifie jamais l'existant.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

SNAPSHOT_VERSION = 1
MAX_TEAM_NAME_LENGTH = 24
PLAYBACK_DURATIONS = (1, 3, 5)


class Phase(str, Enum):
    SETUP = "setup"
    COUNTDOWN = "countdown"
    PLAYING = "playing"
    GUESSING = "guessing"
    ROUND_RESULT = "round-result"
    GAME_OVER = "game-over"


# Phases pendant lesquelles une manche existe
ROUND_PHASES = frozenset({Phase.PLAYING, Phase.GUESSING, Phase.ROUND_RESULT})


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    score: int = 0


@dataclass(frozen=True)
class Song:
    id: str
    title: str
    artist: Optional[str] = None
    thumbnail_url: Optional[str] = None


@dataclass(frozen=True)
class Round:
    song_index: int
    answering_team_id: Optional[str] = None
    teams_attempted: Tuple[str, ...] = ()
    revealed: bool = False


@dataclass(frozen=True)
class GameState:
    phase: Phase = Phase.SETUP
    teams: Tuple[Team, ...] = ()
    songs: Tuple[Song, ...] = ()
    current_round_index: int = 0
    round: Optional[Round] = None
    playback_duration: int = 3
    countdown_remaining: int = 3
    winner_id: Optional[str] = None

    def team(self, team_id: Optional[str]) -> Optional[Team]:
        for t in self.teams:
            if t.id == team_id:
                return t
        return None

    @property
    def team_ids(self) -> List[str]:
        return [t.id for t in self.teams]


def initial_game_state(playback_duration: int = 3, countdown_seconds: int = 3) -> GameState:
    return GameState(playback_duration=playback_duration, countdown_remaining=countdown_seconds)


def is_valid_team_name(name: Any) -> bool:
    return isinstance(name, str) and 0 < len(name.strip()) <= MAX_TEAM_NAME_LENGTH


# ============ Invariants ============

def check_invariants(state: GameState) -> List[str]:
    """Retourne la liste des invariants violés (vide si l'état est valide)."""
    errors: List[str] = []

    if not isinstance(state.phase, Phase):
        errors.append(f"phase inconnue: {state.phase!r}")
        return errors

    ids = state.team_ids
    if len(set(ids)) != len(ids):
        errors.append("identifiants d'équipe dupliqués")
    for t in state.teams:
        if not is_valid_team_name(t.name):
            errors.append(f"nom d'équipe invalide: {t.name!r}")
        if not isinstance(t.score, int) or t.score < 0:
            errors.append(f"score négatif pour {t.id}")

    if state.phase != Phase.SETUP and not state.teams:
        errors.append(f"aucune équipe en phase {state.phase.value}")

    if state.playback_duration not in PLAYBACK_DURATIONS:
        errors.append(f"durée de lecture invalide: {state.playback_duration}")
    if state.countdown_remaining < 0:
        errors.append("compte à rebours négatif")

    in_round_phase = state.phase in ROUND_PHASES
    if in_round_phase and state.round is None:
        errors.append(f"aucune manche en phase {state.phase.value}")
    if not in_round_phase and state.round is not None:
        errors.append(f"manche présente en phase {state.phase.value}")

    if state.round is not None:
        attempted = state.round.teams_attempted
        if len(set(attempted)) != len(attempted):
            errors.append("équipe en double dans teams_attempted")
        if not set(attempted) <= set(ids):
            errors.append("teams_attempted contient une équipe inconnue")
        if len(attempted) > len(ids):
            errors.append("teams_attempted dépasse le nombre d'équipes")
        answering = state.round.answering_team_id
        if answering is not None:
            if answering not in ids:
                errors.append("équipe qui répond inconnue")
            if answering in attempted:
                errors.append("l'équipe qui répond a déjà tenté")
        if state.round.song_index != state.current_round_index:
            errors.append("song_index ne correspond pas à la manche courante")

    if state.phase != Phase.SETUP and not 0 <= state.current_round_index < len(state.songs):
        errors.append(f"current_round_index hors limites: {state.current_round_index}")

    if state.phase == Phase.GAME_OVER:
        if state.winner_id is None:
            errors.append("partie terminée sans gagnant")
        elif state.winner_id not in ids:
            errors.append("le gagnant n'est pas une équipe")
    elif state.winner_id is not None:
        errors.append(f"gagnant défini en phase {state.phase.value}")

    return errors


# ============ Sérialisation (snapshot persisté) ============

def to_dict(state: GameState) -> Dict[str, Any]:
    rnd = state.round
    return {
        "version": SNAPSHOT_VERSION,
        "state": {
            "phase": state.phase.value,
            "teams": [{"id": t.id, "name": t.name, "score": t.score} for t in state.teams],
            "songs": [
                {
                    "id": s.id,
                    "title": s.title,
                    "artist": s.artist,
                    "thumbnail_url": s.thumbnail_url,
                }
                for s in state.songs
            ],
            "current_round_index": state.current_round_index,
            "round": None
            if rnd is None
            else {
                "song_index": rnd.song_index,
                "answering_team_id": rnd.answering_team_id,
                "teams_attempted": list(rnd.teams_attempted),
                "revealed": rnd.revealed,
            },
            "playback_duration": state.playback_duration,
            "countdown_remaining": state.countdown_remaining,
            "winner_id": state.winner_id,
        },
    }


def _require(data: Dict[str, Any], key: str, kind: Any) -> Any:
    value = data[key]
    # bool est un int en Python : on le refuse là où un entier est attendu
    if kind is int and isinstance(value, bool):
        raise TypeError(f"{key}: entier attendu")
    if not isinstance(value, kind):
        raise TypeError(f"{key}: {kind} attendu, reçu {type(value).__name__}")
    return value


def _optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise TypeError(f"{key}: chaîne attendue")
    return value


def from_dict(blob: Dict[str, Any]) -> GameState:
    """Reconstruit un ``GameState`` depuis un snapshot.

    Lève ``KeyError``, ``TypeError`` ou ``ValueError`` si le snapshot est
    mal formé ; c'est au réconciliateur de les traiter comme « absent ».
    """
    if _require(blob, "version", int) != SNAPSHOT_VERSION:
        raise ValueError(f"version de snapshot non supportée: {blob['version']}")
    data = _require(blob, "state", dict)

    teams = tuple(
        Team(
            id=_require(t, "id", str),
            name=_require(t, "name", str),
            score=_require(t, "score", int),
        )
        for t in _require(data, "teams", list)
    )
    songs = tuple(
        Song(
            id=_require(s, "id", str),
            title=_require(s, "title", str),
            artist=_optional_str(s, "artist"),
            thumbnail_url=_optional_str(s, "thumbnail_url"),
        )
        for s in _require(data, "songs", list)
    )

    raw_round = data.get("round")
    rnd: Optional[Round] = None
    if raw_round is not None:
        if not isinstance(raw_round, dict):
            raise TypeError("round: objet attendu")
        attempted = _require(raw_round, "teams_attempted", list)
        if not all(isinstance(a, str) for a in attempted):
            raise TypeError("teams_attempted: chaînes attendues")
        rnd = Round(
            song_index=_require(raw_round, "song_index", int),
            answering_team_id=_optional_str(raw_round, "answering_team_id"),
            teams_attempted=tuple(attempted),
            revealed=_require(raw_round, "revealed", bool),
        )

    return GameState(
        phase=Phase(_require(data, "phase", str)),
        teams=teams,
        songs=songs,
        current_round_index=_require(data, "current_round_index", int),
        round=rnd,
        playback_duration=_require(data, "playback_duration", int),
        countdown_remaining=_require(data, "countdown_remaining", int),
        winner_id=_optional_str(data, "winner_id"),
    )
