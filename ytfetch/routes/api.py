"""
API route definitions for the ytfetch service.
"""

import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from ..client import YouTubeClient
from ..config import get_settings
from ..core.transfer import MediaStream
from ..errors import (
    CipherError,
    InputValidationError,
    PlayabilityError,
    YouTubeError,
)
from ..models.enums import ClientType
from ..models.response import ErrorResponse, HealthResponse, PlayerCacheState
from ..models.video import Format, FormatList, Video

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid video reference"},
    403: {"model": ErrorResponse, "description": "Video is not playable"},
    502: {"model": ErrorResponse, "description": "Upstream protocol or transport failure"},
}


def get_client(request: Request) -> YouTubeClient:
    return request.app.state.client


def _status_for(error: YouTubeError) -> int:
    if isinstance(error, InputValidationError):
        return 400
    if isinstance(error, PlayabilityError):
        return 403
    if isinstance(error, CipherError):
        return 422
    return 502


def _http_error(error: YouTubeError) -> HTTPException:
    status = _status_for(error)
    if status >= 500:
        logger.warning("Upstream failure (%s): %s", error.error_code, error)
    return HTTPException(
        status_code=status,
        detail={"success": False, "error": str(error), "error_code": error.error_code},
    )


async def relay_stream(stream: MediaStream) -> AsyncIterator[bytes]:
    """Yield the stream's bytes and close it however the response ends."""
    try:
        async for chunk in stream:
            yield chunk
    finally:
        await stream.aclose()


async def _load_video(client: YouTubeClient, ref: str, client_type: ClientType | str) -> Video:
    try:
        return await client.get_video(ref.strip(), client_type)
    except YouTubeError as e:
        raise _http_error(e)


@router.get(
    "/video",
    response_model=Video,
    responses=_ERROR_RESPONSES,
    summary="Resolve a video reference into metadata and formats",
)
async def get_video(
    ref: str,
    client_type: str = get_settings().default_client,
    client: YouTubeClient = Depends(get_client),
):
    return await _load_video(client, ref, client_type)


@router.get(
    "/formats",
    response_model=list[Format],
    responses=_ERROR_RESPONSES,
    summary="List formats filtered by MIME type and/or quality",
)
async def list_formats(
    ref: str,
    type: str | None = None,
    quality: str | None = None,
    client: YouTubeClient = Depends(get_client),
):
    video = await _load_video(client, ref, get_settings().default_client)
    formats: FormatList = video.formats
    if type is not None:
        formats = formats.type(type)
    if quality is not None:
        formats = formats.quality(quality)
    return formats


@router.get(
    "/stream",
    responses={**_ERROR_RESPONSES, 404: {"model": ErrorResponse, "description": "Unknown itag"}},
    summary="Stream a format's media bytes",
    description=(
        "Resolves the video, picks the format with the given itag (the first "
        "format when omitted) and relays its bytes using sequential ranged requests."
    ),
)
async def stream_media(
    ref: str,
    itag: int | None = None,
    client: YouTubeClient = Depends(get_client),
):
    video = await _load_video(client, ref, get_settings().default_client)

    fmt = video.formats.find_itag(itag) if itag is not None else video.formats[0]
    if fmt is None:
        raise HTTPException(
            status_code=404,
            detail={
                "success": False,
                "error": f"format {itag} not available for {video.id}",
                "error_code": "format.not_found",
            },
        )

    try:
        stream = await client.get_stream(video, fmt)
    except YouTubeError as e:
        raise _http_error(e)

    headers = {"Cache-Control": "no-store"}
    if stream.total_length:
        headers["Content-Length"] = str(stream.total_length)
    media_type = fmt.mime_type.split(";")[0].strip() or "application/octet-stream"

    logger.info(f"Streaming itag {fmt.itag} of {video.id} ({media_type})")
    return StreamingResponse(relay_stream(stream), media_type=media_type, headers=headers)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health_check(client: YouTubeClient = Depends(get_client)):
    entry = client.player_cache.entry
    cache_state = PlayerCacheState()
    if entry is not None:
        cache_state = PlayerCacheState(
            key=entry.key,
            size=len(entry.payload),
            fresh=client.player_cache.get(entry.key) is not None,
        )
    return HealthResponse(player_cache=cache_state)
