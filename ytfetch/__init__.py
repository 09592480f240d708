"""ytfetch: YouTube metadata resolution and chunked media streaming."""

from .client import PlayerAsset, YouTubeClient
from .config import get_settings
from .core.video_id import extract_video_id
from .models import ClientType, Format, FormatList, Video

__all__ = [
    "ClientType",
    "Format",
    "FormatList",
    "PlayerAsset",
    "Video",
    "YouTubeClient",
    "extract_video_id",
    "get_settings",
]
