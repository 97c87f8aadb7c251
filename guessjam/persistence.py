"""Stockage clé/valeur du dernier état de partie.

Le contenu est opaque pour le store (une chaîne JSON). Une lecture ratée
vaut « rien à restaurer », une écriture ratée est ignorée : la persistance
ne doit jamais interrompre une partie.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol, Union

logger = logging.getLogger(__name__)


class PersistenceStore(Protocol):
    def load(self) -> Optional[str]: ...

    def save(self, blob: str) -> None: ...

    def clear(self) -> None: ...


class MemoryStore:
    def __init__(self, blob: Optional[str] = None) -> None:
        self.blob = blob

    def load(self) -> Optional[str]:
        return self.blob

    def save(self, blob: str) -> None:
        self.blob = blob

    def clear(self) -> None:
        self.blob = None


class JsonFileStore:
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> Optional[str]:
        try:
            with open(self.path, encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Lecture de %s impossible: %s", self.path, e)
            return None

    def save(self, blob: str) -> None:
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=".game_state.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(blob)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            logger.warning("Sauvegarde de l'état impossible (%s): %s", self.path, e)
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Suppression de %s impossible: %s", self.path, e)
