import json
from dataclasses import replace

import pytest

from guessjam.persistence import MemoryStore
from guessjam.reconcile import load_snapshot, reconcile
from guessjam.rules import GameRules
from guessjam.state import GameState, Phase, Round, Song, Team, to_dict


def _match_state(phase=Phase.GUESSING, **round_fields):
    return GameState(
        phase=phase,
        teams=(Team(id="a", name="Rouge", score=2), Team(id="b", name="Bleu", score=1)),
        songs=tuple(Song(id=f"v{i}", title=f"Titre {i}") for i in range(4)),
        current_round_index=1,
        round=Round(song_index=1, **round_fields),
        playback_duration=5,
    )


def _blob(state):
    return json.dumps(to_dict(state))


def test_playing_becomes_guessing(rules):
    state = _match_state(phase=Phase.PLAYING)
    restored = reconcile(_blob(state), rules)
    assert restored.phase == Phase.GUESSING
    assert restored.round == state.round
    assert restored.teams == state.teams
    assert restored.songs == state.songs
    assert restored.playback_duration == 5


def test_countdown_restarts_from_full_duration():
    rules = GameRules(countdown_seconds=5)
    state = GameState(
        phase=Phase.COUNTDOWN,
        teams=(Team(id="a", name="Rouge"),),
        songs=tuple(Song(id=f"v{i}", title="t") for i in range(5)),
        countdown_remaining=2,
    )
    restored = reconcile(_blob(state), rules)
    assert restored.phase == Phase.COUNTDOWN
    assert restored.countdown_remaining == 5


@pytest.mark.parametrize("phase", [Phase.GUESSING, Phase.ROUND_RESULT])
def test_other_round_phases_restored_verbatim(rules, phase):
    state = _match_state(phase=phase, teams_attempted=("b",), revealed=phase == Phase.ROUND_RESULT)
    assert reconcile(_blob(state), rules) == state


def test_game_over_and_setup_restored_verbatim(rules):
    over = replace(_match_state(), phase=Phase.GAME_OVER, round=None, winner_id="a")
    assert reconcile(_blob(over), rules) == over

    setup = GameState(teams=(Team(id="a", name="Rouge"),), playback_duration=1)
    assert reconcile(_blob(setup), rules) == setup


def test_accepts_bytes_and_decoded_dicts(rules):
    state = _match_state()
    assert reconcile(_blob(state).encode("utf-8"), rules) == state
    assert reconcile(to_dict(state), rules) == state


@pytest.mark.parametrize(
    "snapshot",
    [
        None,
        "",
        "{pas du json",
        "[]",
        "42",
        json.dumps({"version": 99, "state": {}}),
        json.dumps({"version": 1}),
        json.dumps({"version": True, "state": {}}),
        b"\xff\xfe",
    ],
)
def test_unreadable_snapshots_are_absent(rules, snapshot):
    assert reconcile(snapshot, rules) is None


def test_malformed_fields_are_absent(rules):
    data = to_dict(_match_state())
    data["state"]["phase"] = "intermission"
    assert reconcile(json.dumps(data), rules) is None

    data = to_dict(_match_state())
    data["state"]["teams"][0]["score"] = "2"
    assert reconcile(json.dumps(data), rules) is None

    data = to_dict(_match_state())
    data["state"]["round"]["teams_attempted"] = [1]
    assert reconcile(json.dumps(data), rules) is None


def test_inconsistent_snapshots_are_absent(rules):
    # Manche en phase de préparation
    setup_with_round = replace(_match_state(), phase=Phase.SETUP)
    assert reconcile(_blob(setup_with_round), rules) is None

    # Equipe qui répond inconnue
    ghost = _match_state(answering_team_id="fantome")
    assert reconcile(_blob(ghost), rules) is None

    # Index hors playlist
    out_of_range = replace(_match_state(), current_round_index=9, round=Round(song_index=9))
    assert reconcile(_blob(out_of_range), rules) is None

    # Fin de partie sans gagnant
    no_winner = replace(_match_state(), phase=Phase.GAME_OVER, round=None)
    assert reconcile(_blob(no_winner), rules) is None

    # Partie en cours sans équipe
    no_teams = replace(_match_state(), teams=())
    assert reconcile(_blob(no_teams), rules) is None


def test_deeply_nested_json_is_absent(rules):
    nested = "[" * 100000 + "]" * 100000
    assert reconcile(nested, rules) is None
    assert reconcile(nested.encode("utf-8"), rules) is None


def test_load_snapshot_reads_store(rules):
    assert load_snapshot(MemoryStore(), rules) is None
    store = MemoryStore(_blob(_match_state(phase=Phase.PLAYING)))
    assert load_snapshot(store, rules).phase == Phase.GUESSING
