"""Exceptions métier de Guess the Jam.

Seules les erreurs de validation (requête refusée) et les erreurs des
dépendances externes (source de chansons) remontent jusqu'à l'hôte. Les
actions arrivées dans le désordre ne lèvent jamais : le reducer les ignore.
"""

from __future__ import annotations


class GuessJamError(Exception):
    """Base de toutes les erreurs du jeu."""

    code = "ERROR"


class ConfigurationError(GuessJamError):
    """Variable d'environnement invalide au démarrage."""

    code = "CONFIGURATION"


# ============ Validation (requête refusée, état inchangé) ============

class ValidationError(GuessJamError):
    code = "INVALID_INPUT"


class InvalidTeamName(ValidationError):
    code = "INVALID_TEAM_NAME"


class DuplicateTeamName(ValidationError):
    code = "DUPLICATE_TEAM_NAME"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Une équipe nommée « {name} » existe déjà.")


class TooManyTeams(ValidationError):
    code = "TOO_MANY_TEAMS"

    def __init__(self, max_teams: int) -> None:
        self.max_teams = max_teams
        super().__init__(f"Maximum {max_teams} équipes.")


class TeamNotFound(ValidationError):
    code = "TEAM_NOT_FOUND"

    def __init__(self, team_id: str) -> None:
        self.team_id = team_id
        super().__init__(f"Équipe {team_id} introuvable.")


class InvalidPlaybackDuration(ValidationError):
    code = "INVALID_PLAYBACK_DURATION"


class NotEnoughSongs(ValidationError):
    code = "NOT_ENOUGH_SONGS"

    def __init__(self, found: int, required: int) -> None:
        self.found = found
        self.required = required
        super().__init__(
            f"La playlist doit contenir au moins {required} vidéos jouables "
            f"({found} trouvées)."
        )


class NoTeams(ValidationError):
    code = "NO_TEAMS"


class SetupLocked(ValidationError):
    """Modification réservée à la phase de préparation."""

    code = "SETUP_LOCKED"


# ============ Dépendances externes ============

class SongSourceError(GuessJamError):
    """Echec de résolution d'une playlist.

    ``code`` vaut INVALID_INPUT, NOT_FOUND, FORBIDDEN, QUOTA_EXCEEDED ou
    UPSTREAM_ERROR.
    """

    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(message)
