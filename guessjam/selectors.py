"""Lectures dérivées de l'état (aucune ne modifie l'état)."""

from __future__ import annotations

from typing import List, Optional

from .reducer import best_team
from .state import GameState, Song, Team


def current_song(state: GameState) -> Optional[Song]:
    """Chanson de la manche en cours, ou ``None`` hors manche."""
    if state.round is None:
        return None
    if 0 <= state.round.song_index < len(state.songs):
        return state.songs[state.round.song_index]
    return None


def teams_available_to_guess(state: GameState) -> List[Team]:
    if state.round is None:
        return []
    return [t for t in state.teams if t.id not in state.round.teams_attempted]


def all_teams_attempted(state: GameState) -> bool:
    if state.round is None:
        return False
    return len(state.round.teams_attempted) >= len(state.teams)


def winner(state: GameState) -> Optional[Team]:
    return state.team(state.winner_id)


def leader(state: GameState) -> Optional[Team]:
    return best_team(state)


def rounds_left(state: GameState) -> int:
    if not state.songs:
        return 0
    return max(0, len(state.songs) - state.current_round_index - 1)


def can_start(state: GameState, min_songs: int) -> bool:
    return len(state.songs) >= min_songs and len(state.teams) >= 1
