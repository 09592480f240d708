from .enums import ClientType
from .response import ErrorResponse, HealthResponse, PlayerCacheState
from .video import Format, FormatList, Video

__all__ = [
    "ClientType",
    "ErrorResponse",
    "Format",
    "FormatList",
    "HealthResponse",
    "PlayerCacheState",
    "Video",
]
