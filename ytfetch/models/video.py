from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, GetCoreSchemaHandler
from pydantic_core import core_schema


class Format(BaseModel):
    """A single encoding/container/quality variant of a video's media."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    itag: int = Field(0, description="Variant identifier, unique within one video")
    mime_type: str = Field("", alias="mimeType", description='e.g. video/mp4; codecs="avc1"')
    quality: str = Field("", description="Quality keyword (tiny, medium, hd720...)")
    quality_label: str = Field("", alias="qualityLabel", description="Label such as '720p60'")
    cipher: str = Field(
        "",
        alias="signatureCipher",
        description="Encoded query string with url, s and sp; empty when no cipher applies",
    )
    content_length: int = Field(
        0, alias="contentLength", description="Size in bytes, 0 when unknown"
    )
    url: str = Field("", description="Direct URL when the server sent one unciphered")
    bitrate: int | None = Field(None, description="Peak bitrate in bits/s")
    width: int | None = Field(None, description="Video width in pixels")
    height: int | None = Field(None, description="Video height in pixels")
    fps: int | None = Field(None, description="Frames per second")


class FormatList(list[Format]):
    """Ordered formats of a video: progressive formats first, then adaptive ones."""

    def type(self, mime_type: str) -> "FormatList":
        """Formats whose MIME type contains ``mime_type``, in original order."""
        return FormatList(f for f in self if mime_type in f.mime_type)

    def quality(self, quality: str) -> "FormatList":
        """Formats matching ``quality`` by itag, quality keyword or quality label."""
        return FormatList(
            f
            for f in self
            if str(f.itag) == quality or quality in f.quality or quality in f.quality_label
        )

    def find_itag(self, itag: int) -> Format | None:
        for f in self:
            if f.itag == itag:
                return f
        return None

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_after_validator_function(cls, handler(list[Format]))


class Video(BaseModel):
    """Metadata and formats of one video, built once per metadata fetch."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Canonical video id")
    title: str = Field("", description="Video title")
    description: str | None = Field(None, description="Short description")
    duration: timedelta | None = Field(None, description="Length of the video")
    publish_date: datetime | None = Field(None, description="Publish timestamp")
    formats: FormatList = Field(default_factory=FormatList, description="All formats")
