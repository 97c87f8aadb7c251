"""Chemins communs du projet (données persistées)."""

from __future__ import annotations

from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = ROOT_DIR / "data"
STATE_PATH = DATA_DIR / "game_state.json"
