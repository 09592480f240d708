from enum import Enum


class ClientType(str, Enum):
    """InnerTube client identities a player request can impersonate."""

    WEB = "WEB"
    ANDROID = "ANDROID"
    IOS = "IOS"
    ANDROID_VR = "ANDROID_VR"
