"""Orchestration d'une partie.

``GameSession`` possède l'unique ``GameState`` vivant. Toute modification
passe par ``dispatch`` : les actions sont mises en file et appliquées une à
une par le reducer, dans leur ordre d'arrivée. Les timers (compte à
rebours, fenêtre de réponse, pause entre deux manches) et le lecteur ne
sont que des sources d'actions branchées sur cette file.

Après chaque transition :

- les timers sont armés/annulés immédiatement (un timer annulé ne délivre
  plus rien) ;
- les effets asynchrones (ordres au lecteur, notifications) partent dans
  une boîte d'envoi consommée dans l'ordre par une seule tâche ;
- l'état est sauvegardé dans le store.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
import uuid
from collections import deque
from typing import Any, Awaitable, Callable, Deque, List, Optional

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
from .exceptions import (
    ConfigurationError,
    DuplicateTeamName,
    InvalidPlaybackDuration,
    InvalidTeamName,
    NotEnoughSongs,
    NoTeams,
    SetupLocked,
    TeamNotFound,
    TooManyTeams,
)
from .persistence import MemoryStore, PersistenceStore
from .playback import EMBED_BLOCKED_CODES, PlaybackController
from .reducer import game_reducer, initial_state
from .rules import DEFAULT_RULES, GameRules
from .selectors import current_song
from .state import (
    MAX_TEAM_NAME_LENGTH,
    PLAYBACK_DURATIONS,
    ROUND_PHASES,
    GameState,
    Phase,
    Song,
    Team,
    is_valid_team_name,
    to_dict,
)
from .timer import Countdown

logger = logging.getLogger(__name__)

StateListener = Callable[[GameState], Awaitable[Any]]
TimerListener = Callable[[str, Optional[int]], Awaitable[Any]]
SongSource = Callable[[str], List[Song]]
Job = Callable[[], Awaitable[Any]]

# Nature du décompte diffusé aux écouteurs de timer
ANSWER_TIMER = "answer"
NEXT_ROUND_TIMER = "next_round"


def _answering_team(state: GameState) -> Optional[str]:
    if state.phase != Phase.GUESSING or state.round is None:
        return None
    return state.round.answering_team_id


class GameSession:
    def __init__(
        self,
        playback: PlaybackController,
        rules: GameRules = DEFAULT_RULES,
        store: Optional[PersistenceStore] = None,
        song_source: Optional[SongSource] = None,
        rng: Optional[random.Random] = None,
        timer_interval: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ) -> None:
        self.rules = rules
        self.store: PersistenceStore = store if store is not None else MemoryStore()
        self.playback = playback
        self._song_source = song_source
        self._rng = rng
        self._new_id = id_factory

        self._state = initial_state(rules)
        self._queue: Deque[Action] = deque()
        self._draining = False
        self._rehydrated = False

        self._outbox: "asyncio.Queue[Job]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task[None]] = None
        self._listeners: List[StateListener] = []
        self._timer_listeners: List[TimerListener] = []

        self._countdown = Countdown(
            on_tick=lambda _remaining: self.dispatch(CountdownTick()),
            on_end=lambda: self.dispatch(CountdownEnd()),
            interval=timer_interval,
            sleep=sleep,
            name="countdown",
        )
        self._answer_timer = Countdown(
            on_tick=self._answer_tick,
            on_end=self._answer_expired,
            interval=timer_interval,
            sleep=sleep,
            name="answer-window",
        )
        self._next_round_timer = Countdown(
            on_tick=self._next_round_tick,
            on_end=self._next_round_due,
            interval=timer_interval,
            sleep=sleep,
            name="next-round",
        )
        playback.on_snippet_end = self._on_snippet_end
        playback.on_error = self._on_playback_error

    # ============ Lecture ============

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def answer_time_left(self) -> Optional[int]:
        """Secondes restantes à l'équipe qui répond (``None`` hors fenêtre)."""
        if not self._answer_timer.running:
            return None
        return self._answer_timer.remaining

    @property
    def next_round_in(self) -> Optional[int]:
        if not self._next_round_timer.running:
            return None
        return self._next_round_timer.remaining

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def add_timer_listener(self, listener: TimerListener) -> None:
        self._timer_listeners.append(listener)

    # ============ Cycle de vie ============

    def start(self) -> None:
        if self._worker is None:
            self._worker = asyncio.get_running_loop().create_task(self._run_outbox(), name="outbox")

    async def flush(self) -> None:
        """Attend que tous les effets en attente aient été exécutés."""
        await self._outbox.join()

    async def aclose(self) -> None:
        await self._countdown.aclose()
        await self._answer_timer.aclose()
        await self._next_round_timer.aclose()
        aclose = getattr(self.playback, "aclose", None)
        if aclose is not None:
            await aclose()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

    async def __aenter__(self) -> "GameSession":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def rehydrate(self) -> Optional[GameState]:
        """Reprend la partie persistée, une seule fois, avant toute autre action."""
        if self._rehydrated:
            return None
        self._rehydrated = True
        blob = self.store.load()
        if blob is None:
            return None
        before = self._state
        self.dispatch(RestoreState(blob))
        if self._state is before:
            logger.warning("Snapshot persisté inutilisable, nouvelle partie")
            self.store.clear()
            return None
        logger.info("Partie restaurée en phase %s", self._state.phase.value)
        return self._state

    # ============ File d'actions ============

    def dispatch(self, action: Action) -> GameState:
        """Applique une action (et celles qu'elle déclenche) dans l'ordre d'arrivée."""
        self._queue.append(action)
        if self._draining:
            return self._state
        self._draining = True
        try:
            while self._queue:
                self._apply(self._queue.popleft())
        finally:
            self._draining = False
        return self._state

    def _apply(self, action: Action) -> None:
        prev = self._state
        nxt = game_reducer(prev, action, self.rules, self._rng)
        if nxt is prev:
            logger.debug("Action %s ignorée en phase %s", action.type, prev.phase.value)
            return
        self._state = nxt
        if nxt.phase != prev.phase:
            logger.info("Phase %s -> %s (%s)", prev.phase.value, nxt.phase.value, action.type)
        self._sync_timers(prev, nxt, action)
        self._sync_playback(prev, nxt)
        self._persist(nxt, action)
        self._post(lambda: self._notify(nxt))

    def _sync_timers(self, prev: GameState, nxt: GameState, action: Action) -> None:
        restarted = isinstance(action, (StartGame, RestoreState))
        if nxt.phase == Phase.COUNTDOWN:
            if prev.phase != Phase.COUNTDOWN or restarted:
                self._countdown.start(nxt.countdown_remaining)
        else:
            self._countdown.stop()

        answering = _answering_team(nxt)
        if answering is None:
            self._answer_timer.stop()
        elif answering != _answering_team(prev) or restarted:
            self._answer_timer.start(self.rules.answer_time_limit)

        if nxt.phase != Phase.ROUND_RESULT:
            self._next_round_timer.stop()

    def _sync_playback(self, prev: GameState, nxt: GameState) -> None:
        new_round = nxt.phase == Phase.PLAYING and (
            prev.phase != Phase.PLAYING or prev.current_round_index != nxt.current_round_index
        )
        if new_round:
            song = current_song(nxt)
            if song is not None:
                duration = nxt.playback_duration
                self._post(lambda: self.playback.play(song.id, duration))
        elif (
            prev.phase in ROUND_PHASES
            and nxt.phase != Phase.PLAYING
            and (prev.phase == Phase.PLAYING or nxt.phase not in ROUND_PHASES)
        ):
            self._post(self.playback.stop)

    def _persist(self, state: GameState, action: Action) -> None:
        if isinstance(action, ResetGame):
            self.store.clear()
            return
        self.store.save(json.dumps(to_dict(state)))

    # ============ Effets asynchrones ============

    def _post(self, job: Job) -> None:
        self._outbox.put_nowait(job)

    async def _run_outbox(self) -> None:
        while True:
            job = await self._outbox.get()
            try:
                await job()
            except Exception:
                logger.exception("Effet en échec")
            finally:
                self._outbox.task_done()

    async def _notify(self, state: GameState) -> None:
        for listener in list(self._listeners):
            await listener(state)

    async def _notify_timer(self, kind: str, remaining: Optional[int]) -> None:
        for listener in list(self._timer_listeners):
            await listener(kind, remaining)

    # ============ Evénements timers / lecteur ============

    def _answer_tick(self, remaining: int) -> None:
        self._post(lambda: self._notify_timer(ANSWER_TIMER, remaining))

    def _answer_expired(self) -> None:
        logger.info("Temps écoulé pour l'équipe %s", _answering_team(self._state))
        self._post(lambda: self._notify_timer(ANSWER_TIMER, 0))
        self.dispatch(MarkIncorrect())

    def _next_round_tick(self, remaining: int) -> None:
        self._post(lambda: self._notify_timer(NEXT_ROUND_TIMER, remaining))

    def _next_round_due(self) -> None:
        self._post(lambda: self._notify_timer(NEXT_ROUND_TIMER, 0))
        self.dispatch(NextRound())

    def _is_current_song(self, song_id: Optional[str]) -> bool:
        song = current_song(self._state)
        if song is None or song_id is None:
            return False
        return song.id == song_id

    def _on_snippet_end(self, song_id: str) -> None:
        if not self._is_current_song(song_id):
            logger.warning("Fin d'extrait périmée ignorée (%s)", song_id)
            return
        before = self._state
        self.dispatch(PlaybackEnded())
        if self._state is before:
            # Extrait rejoué pendant la phase de réponse : on coupe simplement
            self._post(self.playback.stop)

    def _on_playback_error(self, code: int, song_id: Optional[str]) -> None:
        if not self._is_current_song(song_id):
            logger.warning("Erreur lecteur périmée ignorée (%s, %s)", code, song_id)
            return
        if code in EMBED_BLOCKED_CODES:
            logger.warning("Vidéo %s non intégrable (code %s), chanson suivante", song_id, code)
            self.dispatch(NextRound())
        else:
            logger.warning("Erreur lecteur %s ignorée", code)

    # ============ Opérations de l'hôte ============

    def _require_setup(self, message: str) -> None:
        if self._state.phase != Phase.SETUP:
            raise SetupLocked(message)

    async def load_playlist(self, url: str) -> List[Song]:
        if self._song_source is None:
            raise ConfigurationError("Aucune source de chansons configurée.")
        self._require_setup("La playlist se choisit avant le début de la partie.")
        songs = await asyncio.to_thread(self._song_source, url)
        if len(songs) < self.rules.min_songs:
            raise NotEnoughSongs(len(songs), self.rules.min_songs)
        self._require_setup("La playlist se choisit avant le début de la partie.")
        self.dispatch(SetPlaylist(tuple(songs)))
        return songs

    def add_team(self, name: Any) -> Team:
        name = name.strip() if isinstance(name, str) else ""
        if not is_valid_team_name(name):
            raise InvalidTeamName(
                f"Le nom d'équipe doit faire entre 1 et {MAX_TEAM_NAME_LENGTH} caractères."
            )
        self._require_setup("Les équipes se créent avant le début de la partie.")
        if any(t.name.casefold() == name.casefold() for t in self._state.teams):
            raise DuplicateTeamName(name)
        if len(self._state.teams) >= self.rules.max_teams:
            raise TooManyTeams(self.rules.max_teams)
        team = Team(id=self._new_id(), name=name)
        self.dispatch(AddTeam(team))
        return team

    def remove_team(self, team_id: str) -> None:
        self._require_setup("Les équipes ne peuvent plus être supprimées en cours de partie.")
        if self._state.team(team_id) is None:
            raise TeamNotFound(team_id)
        self.dispatch(RemoveTeam(team_id))

    def set_playback_duration(self, duration: Any) -> None:
        try:
            value = int(duration)
        except (TypeError, ValueError):
            value = None
        if value not in PLAYBACK_DURATIONS:
            raise InvalidPlaybackDuration(
                f"Durée d'extrait invalide: {duration!r} (valeurs possibles: {PLAYBACK_DURATIONS})"
            )
        self.dispatch(SetPlaybackDuration(value))

    def start_game(self) -> GameState:
        state = self._state
        if len(state.songs) < self.rules.min_songs:
            raise NotEnoughSongs(len(state.songs), self.rules.min_songs)
        if not state.teams:
            raise NoTeams("Ajoutez au moins une équipe pour commencer.")
        return self.dispatch(StartGame())

    def select_team(self, team_id: str) -> GameState:
        return self.dispatch(SelectAnsweringTeam(team_id))

    def mark_correct(self) -> GameState:
        return self.dispatch(MarkCorrect())

    def mark_incorrect(self) -> GameState:
        return self.dispatch(MarkIncorrect())

    def reveal_answer(self) -> GameState:
        return self.dispatch(RevealAnswer())

    def next_round(self) -> GameState:
        """Lance le décompte avant la manche suivante.

        Seulement depuis le résultat de manche ; un second appel pendant le
        décompte est ignoré. La manche suivante démarre à la fin du décompte.
        """
        if self._state.phase != Phase.ROUND_RESULT:
            logger.debug("Manche suivante ignorée en phase %s", self._state.phase.value)
            return self._state
        if self._next_round_timer.running:
            return self._state
        seconds = self.rules.next_round_seconds
        self._next_round_timer.start(seconds)
        self._post(lambda: self._notify_timer(NEXT_ROUND_TIMER, seconds))
        return self._state

    def end_game(self) -> GameState:
        return self.dispatch(EndGame())

    def reset(self) -> GameState:
        return self.dispatch(ResetGame())

    def replay_snippet(self) -> bool:
        """Rejoue l'extrait courant pendant la phase de réponse (après une reprise)."""
        if self._state.phase != Phase.GUESSING:
            return False
        song = current_song(self._state)
        if song is None:
            return False
        duration = self._state.playback_duration
        self._post(lambda: self.playback.play(song.id, duration))
        return True
