"""
Parsing helpers for the two protocol steps: locating the player asset and
its signature timestamp, and turning a player response into a Video.
"""

import json
import logging
import re
from datetime import timedelta
from typing import Any

from pydantic import ValidationError

from ..errors import (
    NoFormatsError,
    PlayabilityError,
    PlayerAssetNotFoundError,
    ResponseDecodeError,
    SignatureTimestampNotFoundError,
)
from ..models.video import Format, FormatList, Video
from ..utils.helpers import int_or_none, parse_datetime, str_or_none, traverse_obj

logger = logging.getLogger(__name__)

# example: /s/player/f676c671/player_ias.vflset/en_US/base.js
_PLAYER_PATH_RE = re.compile(rb"(/s/player/\w+/player_ias\.vflset/\w+/base\.js)")

_SIGNATURE_TIMESTAMP_RE = re.compile(rb"(?:^|[,{])\s*signatureTimestamp\s*:\s*(\d+)", re.MULTILINE)


def extract_player_path(embed_page: bytes) -> str:
    """Find the versioned player asset path in an embed page."""
    match = _PLAYER_PATH_RE.search(embed_page)
    if not match:
        raise PlayerAssetNotFoundError("unable to find the player asset path in the embed page")
    return match.group(1).decode("ascii")


def extract_signature_timestamp(player_asset: bytes) -> int:
    match = _SIGNATURE_TIMESTAMP_RE.search(player_asset)
    if not match:
        raise SignatureTimestampNotFoundError("signature timestamp not found")
    return int(match.group(1))


def _check_playability(data: dict[str, Any]) -> None:
    status = traverse_obj(data, ("playabilityStatus", "status"))
    if status is None or status == "OK":
        return
    reason = traverse_obj(data, ("playabilityStatus", "reason"), default="")
    raise PlayabilityError(status, reason)


def _typed(value: Any, expected: type, where: str, default: Any) -> Any:
    """Return ``value`` if it has the expected JSON type, ``default`` if absent."""
    if value is None:
        return default
    if not isinstance(value, expected):
        raise ResponseDecodeError(
            f"unexpected type for {where} in player response: {type(value).__name__}"
        )
    return value


def parse_player_response(video_id: str, body: bytes | str) -> Video:
    """
    Build a Video from a raw ``/player`` response body.

    Formats are ``streamingData.formats`` followed by
    ``streamingData.adaptiveFormats``, in the order the server sent them.
    Any field of the wrong JSON type is a ResponseDecodeError.
    """
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ResponseDecodeError(f"unable to parse player response JSON: {e}") from e

    if not isinstance(data, dict):
        raise ResponseDecodeError("player response is not a JSON object")

    _check_playability(data)

    streaming_data = _typed(data.get("streamingData"), dict, "streamingData", {})
    raw_formats = [
        *_typed(streaming_data.get("formats"), list, "streamingData.formats", []),
        *_typed(streaming_data.get("adaptiveFormats"), list, "streamingData.adaptiveFormats", []),
    ]
    try:
        formats = FormatList(Format.model_validate(f) for f in raw_formats)
    except ValidationError as e:
        raise ResponseDecodeError(f"malformed format entry in player response: {e}") from e

    if not formats:
        raise NoFormatsError("no formats found in the server's answer")

    details = _typed(data.get("videoDetails"), dict, "videoDetails", {})
    microformat = _typed(data.get("microformat"), dict, "microformat", {})
    renderer = _typed(
        microformat.get("playerMicroformatRenderer"),
        dict,
        "microformat.playerMicroformatRenderer",
        {},
    )

    length_seconds = int_or_none(details.get("lengthSeconds"))
    publish_date = _typed(
        renderer.get("publishDate") or renderer.get("uploadDate"), str, "publishDate", None
    )

    try:
        video = Video(
            id=video_id,
            title=details.get("title") or "",
            description=str_or_none(details.get("shortDescription")),
            duration=timedelta(seconds=length_seconds) if length_seconds is not None else None,
            publish_date=parse_datetime(publish_date) if publish_date else None,
            formats=formats,
        )
    except (ValidationError, OverflowError) as e:
        raise ResponseDecodeError(f"malformed video details in player response: {e}") from e

    logger.debug("Parsed %d formats for %s", len(formats), video_id)
    return video
