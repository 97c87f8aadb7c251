"""Récupération des chansons d'une playlist YouTube (API Data v3)."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

import requests

from .exceptions import SongSourceError
from .state import Song

logger = logging.getLogger(__name__)

YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"
# 5 pages x 50 = 250 vidéos maximum
MAX_PAGES = 5
PAGE_SIZE = 50
REQUEST_TIMEOUT = 10

_YOUTUBE_HOSTS = {"youtube.com", "music.youtube.com", "youtu.be"}
_LIST_PARAM_RE = re.compile(r"[?&]list=([A-Za-z0-9_-]+)")
_UNPLAYABLE_TITLES = {"Private video", "Deleted video"}


def parse_playlist_url(value: str) -> Optional[str]:
    """Extrait l'identifiant de playlist d'un lien YouTube.

    Formats reconnus::

        https://www.youtube.com/playlist?list=PLxxxx
        https://www.youtube.com/watch?v=xxxx&list=PLxxxx
        https://youtu.be/xxxx?list=PLxxxx
        https://music.youtube.com/playlist?list=PLxxxx
    """
    trimmed = value.strip()

    parsed = urlparse(trimmed)
    host = (parsed.hostname or "").replace("www.", "")
    if parsed.scheme in ("http", "https") and host in _YOUTUBE_HOSTS:
        values = parse_qs(parsed.query).get("list")
        if values and len(values[0]) > 2:
            return values[0]

    # Dernier recours: chercher list= dans la chaîne brute
    match = _LIST_PARAM_RE.search(trimmed)
    return match.group(1) if match else None


def _error_reason(resp: requests.Response) -> str:
    try:
        body = resp.json()
        return body["error"]["errors"][0]["reason"]
    except (ValueError, KeyError, IndexError, TypeError):
        return f"HTTP {resp.status_code}"


def _raise_for_status(resp: requests.Response) -> None:
    if resp.ok:
        return
    reason = _error_reason(resp)
    if reason == "quotaExceeded":
        raise SongSourceError(
            SongSourceError.QUOTA_EXCEEDED, "Quota de l'API YouTube dépassé. Réessayez plus tard."
        )
    if resp.status_code == 404:
        raise SongSourceError(SongSourceError.NOT_FOUND, "Playlist introuvable. Vérifiez le lien.")
    if resp.status_code == 403:
        raise SongSourceError(
            SongSourceError.FORBIDDEN, "Playlist privée ou accès refusé."
        )
    raise SongSourceError(SongSourceError.UPSTREAM_ERROR, f"Erreur de l'API YouTube: {reason}")


def _to_song(item: Dict[str, Any]) -> Optional[Song]:
    snippet = item.get("snippet") or {}
    title = snippet.get("title")
    privacy = (item.get("status") or {}).get("privacyStatus")
    # On ignore les vidéos supprimées ou privées
    if not title or title in _UNPLAYABLE_TITLES or privacy == "private":
        return None
    video_id = (snippet.get("resourceId") or {}).get("videoId")
    if not video_id:
        return None

    artist = snippet.get("videoOwnerChannelTitle") or None
    if artist and artist.endswith(" - Topic"):
        artist = artist[: -len(" - Topic")]
    thumbnails = snippet.get("thumbnails") or {}
    thumbnail = (thumbnails.get("medium") or thumbnails.get("default") or {}).get("url")
    return Song(id=video_id, title=title, artist=artist, thumbnail_url=thumbnail or None)


def fetch_playlist(playlist_id: str, api_key: Optional[str]) -> List[Song]:
    """Récupère toutes les vidéos jouables d'une playlist (pagination incluse)."""
    if not api_key:
        raise SongSourceError(
            SongSourceError.UPSTREAM_ERROR, "YOUTUBE_API_KEY n'est pas configurée sur le serveur."
        )

    songs: List[Song] = []
    page_token: Optional[str] = None
    for _page in range(MAX_PAGES):
        params = {
            "part": "snippet,status",
            "playlistId": playlist_id,
            "maxResults": str(PAGE_SIZE),
            "key": api_key,
        }
        if page_token:
            params["pageToken"] = page_token
        try:
            resp = requests.get(
                f"{YOUTUBE_API_BASE}/playlistItems", params=params, timeout=REQUEST_TIMEOUT
            )
        except requests.RequestException as e:
            logger.warning("Erreur réseau lors du chargement YouTube: %s", e)
            raise SongSourceError(
                SongSourceError.UPSTREAM_ERROR, "Erreur réseau. Réessayez."
            ) from e
        _raise_for_status(resp)

        try:
            data = resp.json()
        except ValueError as e:
            raise SongSourceError(
                SongSourceError.UPSTREAM_ERROR, "Réponse YouTube illisible."
            ) from e
        if not isinstance(data, dict):
            raise SongSourceError(SongSourceError.UPSTREAM_ERROR, "Réponse YouTube illisible.")

        for item in data.get("items") or []:
            song = _to_song(item)
            if song is not None:
                songs.append(song)

        page_token = data.get("nextPageToken")
        if not page_token:
            break
    return songs


def resolve_playlist(url: str, api_key: Optional[str]) -> List[Song]:
    """Lien de playlist -> chansons jouables, dans l'ordre de la playlist."""
    if not isinstance(url, str) or not url.strip():
        raise SongSourceError(SongSourceError.INVALID_INPUT, "Un lien de playlist est requis.")
    playlist_id = parse_playlist_url(url)
    if not playlist_id:
        raise SongSourceError(SongSourceError.INVALID_INPUT, "Lien de playlist YouTube invalide.")
    songs = fetch_playlist(playlist_id, api_key)
    logger.info("Playlist %s: %d chansons jouables", playlist_id, len(songs))
    return songs
