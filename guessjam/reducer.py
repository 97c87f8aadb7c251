"""Machine à états du jeu.

``game_reducer(state, action)`` est une fonction pure : elle retourne un
nouvel état, ou l'état reçu (le même objet) quand la précondition de
l'action n'est pas remplie. Une action hors séquence n'est jamais une
erreur, l'interface peut en envoyer en rafale (double clic, timer en
retard...).
"""

from __future__ import annotations

import random
from dataclasses import replace
from typing import Callable, Dict, Optional

from .actions import (
    Action,
    AddTeam,
    CountdownEnd,
    CountdownTick,
    EndGame,
    MarkCorrect,
    MarkIncorrect,
    NextRound,
    PlaybackEnded,
    RemoveTeam,
    ResetGame,
    RestoreState,
    RevealAnswer,
    SelectAnsweringTeam,
    SetPlaybackDuration,
    SetPlaylist,
    StartGame,
)
from .reconcile import reconcile
from .rules import DEFAULT_RULES, GameRules
from .state import (
    PLAYBACK_DURATIONS,
    ROUND_PHASES,
    GameState,
    Phase,
    Round,
    Team,
    initial_game_state,
    is_valid_team_name,
)


def initial_state(rules: GameRules = DEFAULT_RULES) -> GameState:
    return initial_game_state(
        playback_duration=rules.default_playback_duration,
        countdown_seconds=rules.countdown_seconds,
    )


def best_team(state: GameState) -> Optional[Team]:
    """Equipe au score strictement le plus haut ; à égalité, la première de la liste."""
    best: Optional[Team] = None
    for team in state.teams:
        if best is None or team.score > best.score:
            best = team
    return best


def _finish(state: GameState) -> GameState:
    winner = best_team(state)
    if winner is None:
        return state
    return replace(state, phase=Phase.GAME_OVER, winner_id=winner.id, round=None)


# ============ Mise en place ============

def _set_playlist(state: GameState, action: SetPlaylist, rules: GameRules, rng) -> GameState:
    if state.phase != Phase.SETUP:
        return state
    return replace(state, songs=tuple(action.songs))


def _add_team(state: GameState, action: AddTeam, rules: GameRules, rng) -> GameState:
    team = action.team
    if state.phase != Phase.SETUP or len(state.teams) >= rules.max_teams:
        return state
    if state.team(team.id) is not None or not is_valid_team_name(team.name):
        return state
    return replace(state, teams=state.teams + (replace(team, score=0),))


def _remove_team(state: GameState, action: RemoveTeam, rules: GameRules, rng) -> GameState:
    if state.phase != Phase.SETUP or state.team(action.team_id) is None:
        return state
    return replace(state, teams=tuple(t for t in state.teams if t.id != action.team_id))


def _set_playback_duration(
    state: GameState, action: SetPlaybackDuration, rules: GameRules, rng
) -> GameState:
    if action.duration not in PLAYBACK_DURATIONS:
        return state
    return replace(state, playback_duration=action.duration)


def _start_game(state: GameState, action: StartGame, rules: GameRules, rng) -> GameState:
    if len(state.songs) < rules.min_songs or not state.teams:
        return state
    songs = list(state.songs)
    rng.shuffle(songs)
    return replace(
        state,
        phase=Phase.COUNTDOWN,
        songs=tuple(songs),
        current_round_index=0,
        countdown_remaining=rules.countdown_seconds,
        round=None,
        winner_id=None,
        teams=tuple(replace(t, score=0) for t in state.teams),
    )


# ============ Compte à rebours et lecture ============

def _countdown_tick(state: GameState, action: CountdownTick, rules: GameRules, rng) -> GameState:
    if state.phase != Phase.COUNTDOWN:
        return state
    return replace(state, countdown_remaining=max(0, state.countdown_remaining - 1))


def _countdown_end(state: GameState, action: CountdownEnd, rules: GameRules, rng) -> GameState:
    if state.phase != Phase.COUNTDOWN:
        return state
    return replace(state, phase=Phase.PLAYING, current_round_index=0, round=Round(song_index=0))


def _playback_ended(state: GameState, action: PlaybackEnded, rules: GameRules, rng) -> GameState:
    if state.phase != Phase.PLAYING:
        return state
    return replace(state, phase=Phase.GUESSING)


# ============ Réponses ============

def _select_answering_team(
    state: GameState, action: SelectAnsweringTeam, rules: GameRules, rng
) -> GameState:
    rnd = state.round
    if state.phase != Phase.GUESSING or rnd is None:
        return state
    if state.team(action.team_id) is None or action.team_id in rnd.teams_attempted:
        return state
    if rnd.answering_team_id == action.team_id:
        return state
    return replace(state, round=replace(rnd, answering_team_id=action.team_id))


def _mark_correct(state: GameState, action: MarkCorrect, rules: GameRules, rng) -> GameState:
    rnd = state.round
    if state.phase != Phase.GUESSING or rnd is None or rnd.answering_team_id is None:
        return state

    scoring_id = rnd.answering_team_id
    teams = tuple(replace(t, score=t.score + 1) if t.id == scoring_id else t for t in state.teams)
    state = replace(state, teams=teams, round=replace(rnd, revealed=True))

    scoring_team = state.team(scoring_id)
    if scoring_team is not None and scoring_team.score >= rules.win_score:
        return replace(state, phase=Phase.GAME_OVER, winner_id=scoring_id, round=None)
    return replace(state, phase=Phase.ROUND_RESULT)


def _mark_incorrect(state: GameState, action: MarkIncorrect, rules: GameRules, rng) -> GameState:
    rnd = state.round
    if state.phase != Phase.GUESSING or rnd is None or rnd.answering_team_id is None:
        return state

    attempted = rnd.teams_attempted + (rnd.answering_team_id,)
    rnd = replace(rnd, teams_attempted=attempted, answering_team_id=None)
    if len(attempted) >= len(state.teams):
        return replace(state, phase=Phase.ROUND_RESULT, round=replace(rnd, revealed=True))
    return replace(state, round=rnd)


def _reveal_answer(state: GameState, action: RevealAnswer, rules: GameRules, rng) -> GameState:
    if state.round is None or state.round.revealed:
        return state
    return replace(state, round=replace(state.round, revealed=True))


# ============ Enchaînement des manches ============

def _next_round(state: GameState, action: NextRound, rules: GameRules, rng) -> GameState:
    if state.round is None:
        return state
    next_index = state.current_round_index + 1
    if next_index >= len(state.songs):
        return _finish(state)
    return replace(
        state,
        phase=Phase.PLAYING,
        current_round_index=next_index,
        round=Round(song_index=next_index),
    )


def _end_game(state: GameState, action: EndGame, rules: GameRules, rng) -> GameState:
    if state.phase not in ROUND_PHASES:
        return state
    return _finish(state)


def _reset_game(state: GameState, action: ResetGame, rules: GameRules, rng) -> GameState:
    return initial_state(rules)


def _restore_state(state: GameState, action: RestoreState, rules: GameRules, rng) -> GameState:
    restored = reconcile(action.snapshot, rules)
    return state if restored is None else restored


_HANDLERS: Dict[type, Callable[..., GameState]] = {
    SetPlaylist: _set_playlist,
    AddTeam: _add_team,
    RemoveTeam: _remove_team,
    SetPlaybackDuration: _set_playback_duration,
    StartGame: _start_game,
    CountdownTick: _countdown_tick,
    CountdownEnd: _countdown_end,
    PlaybackEnded: _playback_ended,
    SelectAnsweringTeam: _select_answering_team,
    MarkCorrect: _mark_correct,
    MarkIncorrect: _mark_incorrect,
    RevealAnswer: _reveal_answer,
    NextRound: _next_round,
    EndGame: _end_game,
    ResetGame: _reset_game,
    RestoreState: _restore_state,
}


def game_reducer(
    state: GameState,
    action: Action,
    rules: GameRules = DEFAULT_RULES,
    rng: Optional[random.Random] = None,
) -> GameState:
    handler = _HANDLERS.get(type(action))
    if handler is None:
        return state
    return handler(state, action, rules, rng if rng is not None else random)
