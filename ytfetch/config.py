from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    host: str = "0.0.0.0"
    port: int = 7652
    debug: bool = False

    request_timeout: int = 30
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    )

    # Size of each ranged media request in bytes
    chunk_size: int = 10_000_000
    # Lifetime of the cached player JavaScript, in seconds
    player_cache_ttl: float = 300.0

    # InnerTube client context
    hl: str = "en"
    gl: str = "US"
    default_client: str = "WEB"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
