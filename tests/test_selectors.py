from guessjam.selectors import (
    all_teams_attempted,
    can_start,
    current_song,
    leader,
    rounds_left,
    teams_available_to_guess,
    winner,
)
from guessjam.state import GameState, Phase, Round, Song, Team


def _state(**fields):
    base = dict(
        phase=Phase.GUESSING,
        teams=(Team(id="a", name="Rouge", score=1), Team(id="b", name="Bleu", score=3)),
        songs=tuple(Song(id=f"v{i}", title=f"Titre {i}") for i in range(4)),
        current_round_index=1,
        round=Round(song_index=1, teams_attempted=("a",)),
    )
    base.update(fields)
    return GameState(**base)


def test_round_selectors():
    state = _state()
    assert current_song(state).id == "v1"
    assert [t.id for t in teams_available_to_guess(state)] == ["b"]
    assert not all_teams_attempted(state)
    assert rounds_left(state) == 2
    assert leader(state).id == "b"


def test_selectors_outside_round():
    state = GameState()
    assert current_song(state) is None
    assert teams_available_to_guess(state) == []
    assert not all_teams_attempted(state)
    assert rounds_left(state) == 0
    assert winner(state) is None
    assert leader(state) is None


def test_winner_and_can_start():
    over = _state(phase=Phase.GAME_OVER, round=None, winner_id="b")
    assert winner(over).name == "Bleu"

    setup = GameState(songs=_state().songs)
    assert not can_start(setup, min_songs=3)
    setup = GameState(songs=setup.songs, teams=(Team(id="a", name="Rouge"),))
    assert can_start(setup, min_songs=3)
    assert not can_start(setup, min_songs=5)
