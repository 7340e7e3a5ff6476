"""SourceProvider implementation for YouTube, backed by yt-dlp."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, ClassVar, Final

from pydantic import ValidationError
from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadError

from discord_playlist.application.interfaces.source_provider import SourceProvider
from discord_playlist.config.settings import YouTubeSettings
from discord_playlist.domain.music.entities import Track
from discord_playlist.domain.music.value_objects import Requester, TrackId
from discord_playlist.domain.shared.exceptions import StreamUnavailableError
from discord_playlist.domain.shared.messages import LogTemplates
from discord_playlist.domain.shared.types import NonEmptyStr, PositiveInt
from discord_playlist.infrastructure.audio.models import YtDlpOpts, YtDlpTrackInfo

logger = logging.getLogger(__name__)

WATCH_URL: Final[str] = "https://www.youtube.com/watch?v={id}"
PLAYLIST_URL: Final[str] = "https://www.youtube.com/playlist?list={id}"

YOUTUBE_PATTERN: Final[re.Pattern[str]] = re.compile(r"(https?://)?(www\.)?youtu(be\.com|\.be)/")
VIDEO_URL_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(https?://)?(www\.)?youtu\.?be(\.com)?/.+$"
)
VIDEO_ID_IN_URL_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^.*(youtu\.be/|v/|e/|u/\w+/|embed/|v=)([^#&?]*).*"
)
PLAYLIST_ID_IN_URL_PATTERN: Final[re.Pattern[str]] = re.compile(r"list=([\w\-]+)")
VIDEO_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z0-9_-]{11}$")
PLAYLIST_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z0-9_-]{12,}$")


def extract_video_id(url: str) -> str | None:
    match = VIDEO_ID_IN_URL_PATTERN.match(url)
    if match is None:
        return None
    return match.group(2) or None


def extract_playlist_id(url: str) -> str | None:
    match = PLAYLIST_ID_IN_URL_PATTERN.search(url)
    return match.group(1) if match else None


def is_playlist_query(query: str) -> bool:
    """Playlist URLs and bare ids longer than a video id name a playlist."""
    return "/playlist?" in query or PLAYLIST_ID_PATTERN.match(query) is not None


class YouTubeTrack(Track):
    """A YouTube video whose direct audio URL is extracted with yt-dlp on demand.

    Direct media URLs expire, so nothing is extracted until the track is
    about to play.
    """

    ytdlp_format: NonEmptyStr = "bestaudio/best"
    socket_timeout: PositiveInt = 10

    async def _open_stream(self) -> str:
        return await asyncio.to_thread(self._extract_stream_url_sync)

    def _extract_stream_url_sync(self) -> str:
        opts = YtDlpOpts(format=self.ytdlp_format, socket_timeout=self.socket_timeout)
        try:
            with YoutubeDL(params=opts.to_params()) as ydl:
                data = ydl.extract_info(self.url, download=False)
        except DownloadError as e:
            raise StreamUnavailableError(self.title, str(e)) from e

        stream_url = None
        if isinstance(data, dict):
            try:
                stream_url = YtDlpTrackInfo.model_validate(data).stream_url
            except ValidationError as e:
                raise StreamUnavailableError(self.title, str(e)) from e
        if not stream_url:
            raise StreamUnavailableError(self.title)
        return stream_url


class YouTubeProvider(SourceProvider):
    """Resolves YouTube URLs, video ids, playlist ids and free-text searches."""

    name: ClassVar[str] = "youtube"
    aliases: ClassVar[tuple[str, ...]] = ("youtube", "yt", "tube")
    pattern: ClassVar[re.Pattern[str] | None] = YOUTUBE_PATTERN

    def __init__(self, settings: YouTubeSettings | None = None) -> None:
        self._settings = settings or YouTubeSettings()
        self._base_opts = YtDlpOpts(socket_timeout=self._settings.socket_timeout)

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    def _get_flat_opts(self) -> YtDlpOpts:
        return self._get_opts(
            noplaylist=False,
            extract_flat="in_playlist",
            playlistend=self._settings.playlist_limit,
        )

    async def resolve(
        self,
        query: str,
        *,
        requester: Requester | None = None,
        volume: float | None = None,
    ) -> list[Track] | None:
        query = query.strip()
        if is_playlist_query(query):
            infos = await self._resolve_playlist(query)
        else:
            infos = await self._resolve_video(query)

        if not infos:
            return None

        tracks: list[Track] = []
        for info in infos:
            track = self._info_to_track(info, requester=requester, volume=volume)
            if track is not None:
                tracks.append(track)
        return tracks or None

    async def _resolve_video(self, query: str) -> list[YtDlpTrackInfo]:
        if VIDEO_URL_PATTERN.match(query):
            query = extract_video_id(query) or query

        if VIDEO_ID_PATTERN.match(query):
            info = await asyncio.to_thread(self._extract_info_sync, WATCH_URL.format(id=query))
            return [info] if info is not None else []

        return await asyncio.to_thread(self._search_sync, query)

    async def _resolve_playlist(self, query: str) -> list[YtDlpTrackInfo]:
        playlist_id = query
        if "/playlist?" in query:
            playlist_id = extract_playlist_id(query) or query

        entries = await asyncio.to_thread(
            self._extract_playlist_sync, PLAYLIST_URL.format(id=playlist_id)
        )
        if not entries:
            logger.info(LogTemplates.YTDLP_PLAYLIST_FALLBACK, playlist_id)
            return await self._resolve_video(playlist_id)
        return entries

    def _info_to_track(
        self,
        info: YtDlpTrackInfo,
        *,
        requester: Requester | None,
        volume: float | None,
    ) -> YouTubeTrack | None:
        video_id = info.id
        if video_id is None and info.webpage_url:
            video_id = extract_video_id(info.webpage_url)
        if not video_id:
            logger.warning(LogTemplates.YTDLP_NO_VIDEO_ID, info.title)
            return None

        live = info.live
        return YouTubeTrack(
            id=TrackId(value=video_id),
            title=info.title[:500],
            url=WATCH_URL.format(id=video_id),
            thumbnail_url=info.best_thumbnail,
            duration_ms=0 if live else (info.duration or 0) * 1000,
            is_live=live,
            requester=requester,
            volume=volume,
            ytdlp_format=self._settings.ytdlp_format,
            socket_timeout=self._settings.socket_timeout,
        )

    @staticmethod
    def _parse_info(data: dict[str, Any]) -> YtDlpTrackInfo:
        return YtDlpTrackInfo.model_validate(data)

    def _entries(self, data: Any) -> list[YtDlpTrackInfo]:
        if not isinstance(data, dict):
            return []

        entries = data.get("entries", [])
        if not isinstance(entries, list):
            entries = list(entries or [])
        return [self._parse_info(dict(e)) for e in entries if e]

    def _extract_info_sync(self, url: str) -> YtDlpTrackInfo | None:
        try:
            with YoutubeDL(params=self._get_opts().to_params()) as ydl:
                data = ydl.extract_info(url, download=False, process=False)
                return self._parse_info(dict(data)) if isinstance(data, dict) else None
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, url)
            return None

    def _search_sync(self, query: str, limit: int = 1) -> list[YtDlpTrackInfo]:
        try:
            with YoutubeDL(params=self._get_flat_opts().to_params()) as ydl:
                data = ydl.extract_info(f"ytsearch{limit}:{query}", download=False)
                return self._entries(data)
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_SEARCH, query)
            return []

    def _extract_playlist_sync(self, url: str) -> list[YtDlpTrackInfo]:
        try:
            with YoutubeDL(params=self._get_flat_opts().to_params()) as ydl:
                data = ydl.extract_info(url, download=False)
                return self._entries(data)[: self._settings.playlist_limit]
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_PLAYLIST, url)
            return []
