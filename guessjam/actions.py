"""Actions acceptées par le reducer.

Chaque action est un petit objet immuable ; ``type`` reprend le nom utilisé
dans les logs et sur le canal Socket.IO.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Tuple, Union

from .state import Song, Team


@dataclass(frozen=True)
class SetPlaylist:
    type: ClassVar[str] = "SET_PLAYLIST"
    songs: Tuple[Song, ...]


@dataclass(frozen=True)
class AddTeam:
    type: ClassVar[str] = "ADD_TEAM"
    team: Team


@dataclass(frozen=True)
class RemoveTeam:
    type: ClassVar[str] = "REMOVE_TEAM"
    team_id: str


@dataclass(frozen=True)
class SetPlaybackDuration:
    type: ClassVar[str] = "SET_PLAYBACK_DURATION"
    duration: int


@dataclass(frozen=True)
class StartGame:
    type: ClassVar[str] = "START_GAME"


@dataclass(frozen=True)
class CountdownTick:
    type: ClassVar[str] = "COUNTDOWN_TICK"


@dataclass(frozen=True)
class CountdownEnd:
    type: ClassVar[str] = "COUNTDOWN_END"


@dataclass(frozen=True)
class PlaybackEnded:
    type: ClassVar[str] = "PLAYBACK_ENDED"


@dataclass(frozen=True)
class SelectAnsweringTeam:
    type: ClassVar[str] = "SELECT_ANSWERING_TEAM"
    team_id: str


@dataclass(frozen=True)
class MarkCorrect:
    type: ClassVar[str] = "MARK_CORRECT"


@dataclass(frozen=True)
class MarkIncorrect:
    type: ClassVar[str] = "MARK_INCORRECT"


@dataclass(frozen=True)
class RevealAnswer:
    type: ClassVar[str] = "REVEAL_ANSWER"


@dataclass(frozen=True)
class NextRound:
    type: ClassVar[str] = "NEXT_ROUND"


@dataclass(frozen=True)
class EndGame:
    """Arrêt manuel de la partie par l'hôte."""

    type: ClassVar[str] = "END_GAME"


@dataclass(frozen=True)
class ResetGame:
    type: ClassVar[str] = "RESET_GAME"


@dataclass(frozen=True)
class RestoreState:
    """Restaure un snapshot persisté (JSON brut ou dict déjà décodé)."""

    type: ClassVar[str] = "RESTORE_STATE"
    snapshot: Optional[Any]


Action = Union[
    SetPlaylist,
    AddTeam,
    RemoveTeam,
    SetPlaybackDuration,
    StartGame,
    CountdownTick,
    CountdownEnd,
    PlaybackEnded,
    SelectAnsweringTeam,
    MarkCorrect,
    MarkIncorrect,
    RevealAnswer,
    NextRound,
    EndGame,
    ResetGame,
    RestoreState,
]
