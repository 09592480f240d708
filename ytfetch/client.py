"""
YouTube metadata client.

Resolves a video reference into a Video in two protocol steps:

1. Player asset: fetch the embed page, locate the versioned player
   JavaScript path, load the asset (through the single-slot cache) and read
   its signature timestamp.
2. Metadata: POST an InnerTube player request carrying the video id, a
   client profile and the signature timestamp, then parse the response.

Media bytes are then streamed with the ChunkedTransferEngine.

A client owns one PlayerAssetCache. The cache is not locked, so concurrent
get_video calls on one client may evict each other's player asset; use one
client per concurrent resolution or serialize the calls.
"""

import logging
from dataclasses import dataclass

from .config import get_settings
from .core.http_client import HTTPClient
from .core.innertube import build_player_request, player_endpoint, player_headers
from .core.player_cache import PlayerAssetCache
from .core.player_response import (
    extract_player_path,
    extract_signature_timestamp,
    parse_player_response,
)
from .core.signature import SignatureResolver, UnconfiguredSignatureResolver
from .core.transfer import ChunkedTransferEngine, MediaStream
from .core.video_id import extract_video_id
from .errors import CipherNotFoundError
from .models.enums import ClientType
from .models.video import Format, Video

logger = logging.getLogger(__name__)

YOUTUBE_URL = "https://www.youtube.com"


@dataclass(frozen=True)
class PlayerAsset:
    path: str
    payload: bytes
    signature_timestamp: int


class YouTubeClient:
    """Fetches video metadata and media streams."""

    def __init__(
        self,
        http: HTTPClient | None = None,
        player_cache: PlayerAssetCache | None = None,
        signature_resolver: SignatureResolver | None = None,
        chunk_size: int | None = None,
        hl: str | None = None,
        gl: str | None = None,
    ):
        settings = get_settings()
        self._owns_http = http is None
        self.http = http or HTTPClient()
        self.player_cache = player_cache or PlayerAssetCache()
        self.signature_resolver = signature_resolver or UnconfiguredSignatureResolver()
        self.transfer = ChunkedTransferEngine(self.http, chunk_size=chunk_size)
        self.hl = hl or settings.hl
        self.gl = gl or settings.gl

    async def close(self):
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            await self.http.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    async def get_video(
        self, reference: str, client_type: ClientType | str = ClientType.WEB
    ) -> Video:
        """Resolve ``reference`` (an id or any YouTube URL) and fetch its metadata."""
        video_id = extract_video_id(reference)
        return await self.get_video_by_id(video_id, client_type)

    async def get_video_by_id(
        self, video_id: str, client_type: ClientType | str = ClientType.WEB
    ) -> Video:
        body = await self.fetch_player_response(video_id, client_type)
        video = parse_player_response(video_id, body)
        logger.info(f"Fetched '{video.title}' ({video_id}) with {len(video.formats)} formats")
        return video

    async def fetch_player_asset(self, video_id: str) -> PlayerAsset:
        """Locate, load (or reuse) the player asset and read its signature timestamp."""
        embed_page = await self.http.get_bytes(f"{YOUTUBE_URL}/embed/{video_id}?hl=en")
        path = extract_player_path(embed_page)

        payload = self.player_cache.get(path)
        if payload is None:
            payload = await self.http.get_bytes(f"{YOUTUBE_URL}{path}")
            self.player_cache.set(path, payload)
            logger.debug("Cached player asset %s (%d bytes)", path, len(payload))

        sts = extract_signature_timestamp(payload)
        return PlayerAsset(path=path, payload=payload, signature_timestamp=sts)

    async def fetch_player_response(
        self, video_id: str, client_type: ClientType | str = ClientType.WEB
    ) -> bytes:
        """Run both protocol steps and return the raw player response body."""
        asset = await self.fetch_player_asset(video_id)

        payload, profile = build_player_request(
            video_id,
            asset.signature_timestamp,
            client_type,
            hl=self.hl,
            gl=self.gl,
        )
        return await self.http.post_bytes(
            player_endpoint(profile),
            json=payload,
            headers=player_headers(profile, video_id),
        )

    # ------------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------------

    async def get_stream_url(self, video: Video, fmt: Format) -> str:
        """Return a directly fetchable URL for ``fmt``."""
        if fmt.url:
            return fmt.url
        if not fmt.cipher:
            raise CipherNotFoundError(f"format {fmt.itag} has neither a url nor a cipher")

        asset = await self.fetch_player_asset(video.id)
        return self.signature_resolver.resolve(
            fmt.cipher, asset.signature_timestamp, asset.payload
        )

    async def get_stream(self, video: Video, fmt: Format) -> MediaStream:
        """Open a chunked stream of ``fmt``; its size is ``stream.total_length``."""
        url = await self.get_stream_url(video, fmt)
        return self.transfer.open_stream(url, fmt.content_length)
