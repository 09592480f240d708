from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = Field(False)
    error: str = Field(..., description="Error message")
    error_code: str | None = Field(None, description="Machine-readable error code")


class PlayerCacheState(BaseModel):
    key: str | None = Field(None, description="Player asset path currently cached")
    size: int = Field(0, description="Cached payload size in bytes")
    fresh: bool = Field(False, description="Whether the entry is still valid")


class HealthResponse(BaseModel):
    status: str = Field("healthy")
    player_cache: PlayerCacheState = Field(default_factory=PlayerCacheState)

