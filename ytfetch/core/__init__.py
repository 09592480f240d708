"""Core building blocks: HTTP, identity resolution, caching, protocol and transfer."""

from .http_client import HTTPClient
from .innertube import ClientProfile, build_player_request, get_client_profile
from .player_cache import PlayerAssetCache
from .player_response import extract_player_path, extract_signature_timestamp, parse_player_response
from .signature import (
    SignatureCipher,
    SignatureResolver,
    TransformSignatureResolver,
    UnconfiguredSignatureResolver,
    parse_signature_cipher,
)
from .transfer import DEFAULT_CHUNK_SIZE, ChunkedTransferEngine, MediaStream
from .video_id import extract_video_id

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "ChunkedTransferEngine",
    "ClientProfile",
    "HTTPClient",
    "MediaStream",
    "PlayerAssetCache",
    "SignatureCipher",
    "SignatureResolver",
    "TransformSignatureResolver",
    "UnconfiguredSignatureResolver",
    "build_player_request",
    "extract_player_path",
    "extract_signature_timestamp",
    "extract_video_id",
    "get_client_profile",
    "parse_player_response",
    "parse_signature_cipher",
]
