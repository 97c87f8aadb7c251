"""Réhydratation d'un snapshot persisté.

Un snapshot peut dater d'une partie précédente ou avoir été figé en pleine
lecture. On le ramène dans une phase que le moteur sait reprendre sans
qu'aucun contrôleur externe n'ait d'état correspondant :

- ``playing`` devient ``guessing`` (l'extrait ne peut pas reprendre à la
  même position, l'hôte relance la lecture à la main) ;
- ``countdown`` repart du compte à rebours complet ;
- les autres phases sont restaurées telles quelles.

Tout snapshot illisible est traité comme absent.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from typing import TYPE_CHECKING, Any, Optional

from .rules import DEFAULT_RULES, GameRules
from .state import GameState, Phase, check_invariants, from_dict

if TYPE_CHECKING:
    from .persistence import PersistenceStore

logger = logging.getLogger(__name__)


def _decode(snapshot: Any) -> Any:
    if isinstance(snapshot, (bytes, bytearray)):
        snapshot = snapshot.decode("utf-8")
    if isinstance(snapshot, str):
        return json.loads(snapshot)
    return snapshot


def reconcile(snapshot: Any, rules: GameRules = DEFAULT_RULES) -> Optional[GameState]:
    if snapshot is None:
        return None
    try:
        state = from_dict(_decode(snapshot))
    except (KeyError, TypeError, ValueError, RecursionError) as e:
        # json.JSONDecodeError et UnicodeDecodeError sont des ValueError ;
        # RecursionError pour un JSON imbriqué trop profondément
        logger.warning("Snapshot illisible, ignoré: %s", e)
        return None

    errors = check_invariants(state)
    if errors:
        logger.warning("Snapshot incohérent, ignoré: %s", "; ".join(errors))
        return None

    if state.phase == Phase.PLAYING:
        state = dataclasses.replace(state, phase=Phase.GUESSING)
    elif state.phase == Phase.COUNTDOWN:
        state = dataclasses.replace(state, countdown_remaining=rules.countdown_seconds)
    return state


def load_snapshot(store: "PersistenceStore", rules: GameRules = DEFAULT_RULES) -> Optional[GameState]:
    """Lit le store et réconcilie son contenu ; ``None`` s'il n'y a rien à reprendre."""
    return reconcile(store.load(), rules)
