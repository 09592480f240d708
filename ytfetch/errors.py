"""
Error hierarchy shared by the resolver, metadata client and transfer engine.

Every error carries a machine-readable ``error_code`` next to its
human-readable message. Nothing in the library retries: errors are raised
to the direct caller with the underlying cause chained via ``__cause__``.
"""


class YouTubeError(Exception):
    """Base class for all ytfetch errors."""

    default_code = "youtube.error"

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.error_code = error_code or self.default_code


# ── Input validation ─────────────────────────────────────────────────
class InputValidationError(YouTubeError):
    default_code = "input.invalid"


class InvalidCharactersError(InputValidationError):
    default_code = "input.invalid_characters"

    def __init__(self, video_id: str):
        super().__init__(f"invalid characters in video id: {video_id!r}")
        self.video_id = video_id


class VideoIDTooShortError(InputValidationError):
    default_code = "input.too_short"

    def __init__(self, video_id: str):
        super().__init__(
            f"the video id must be at least 10 characters long, got {video_id!r}"
        )
        self.video_id = video_id


# ── Protocol ─────────────────────────────────────────────────────────
class ProtocolError(YouTubeError):
    default_code = "protocol.error"


class PlayerAssetNotFoundError(ProtocolError):
    default_code = "protocol.player_asset_not_found"


class SignatureTimestampNotFoundError(ProtocolError):
    default_code = "protocol.signature_timestamp_not_found"


class ResponseDecodeError(ProtocolError):
    default_code = "protocol.decode_failed"


class NoFormatsError(ProtocolError):
    default_code = "protocol.no_formats"


# ── Playability ──────────────────────────────────────────────────────
class PlayabilityError(YouTubeError):
    """The video exists but cannot be played back (private, restricted...)."""

    default_code = "youtube.playability"

    def __init__(self, status: str, reason: str = ""):
        super().__init__(
            f"cannot playback and download, status: {status}, reason: {reason}"
        )
        self.status = status
        self.reason = reason


# ── Transport ────────────────────────────────────────────────────────
class TransportError(YouTubeError):
    """Network failure or an unexpected HTTP status code."""

    default_code = "transport.error"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    @classmethod
    def unexpected_status(cls, status_code: int, url: str | None = None) -> "TransportError":
        message = f"unexpected status code: {status_code}"
        if url:
            message = f"{message} ({url})"
        return cls(message, status_code=status_code)


class TransferCancelledError(TransportError):
    default_code = "transport.cancelled"


# ── Cipher ───────────────────────────────────────────────────────────
class CipherError(YouTubeError):
    default_code = "cipher.error"


class CipherNotFoundError(CipherError):
    default_code = "cipher.not_found"

    def __init__(self, message: str = "cipher not found"):
        super().__init__(message)


class DecipherError(CipherError):
    default_code = "cipher.decipher_failed"


__all__ = [
    "CipherError",
    "CipherNotFoundError",
    "DecipherError",
    "InputValidationError",
    "InvalidCharactersError",
    "NoFormatsError",
    "PlayabilityError",
    "PlayerAssetNotFoundError",
    "ProtocolError",
    "ResponseDecodeError",
    "SignatureTimestampNotFoundError",
    "TransferCancelledError",
    "TransportError",
    "VideoIDTooShortError",
    "YouTubeError",
]
