"""Représentation JSON de l'état envoyée à l'écran de l'hôte."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING, Any, Dict

from .selectors import can_start, current_song, rounds_left, teams_available_to_guess
from .state import to_dict

if TYPE_CHECKING:
    from .session import GameSession


def state_payload(session: "GameSession") -> Dict[str, Any]:
    state = session.state
    payload = to_dict(state)["state"]
    song = current_song(state)
    # La réponse est réservée à l'écran de l'hôte
    payload["current_song"] = asdict(song) if song is not None else None
    payload["available_team_ids"] = [t.id for t in teams_available_to_guess(state)]
    payload["answer_time_left"] = session.answer_time_left
    payload["next_round_in"] = session.next_round_in
    payload["rounds_total"] = len(state.songs)
    payload["rounds_left"] = rounds_left(state)
    payload["can_start"] = can_start(state, session.rules.min_songs)
    return payload
