"""Client configuration loaded from environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings


class OrariConfig(BaseSettings):
    """Portal client configuration loaded from environment variables.

    Settings are loaded from ORARI_-prefixed environment variables with
    sensible defaults. For local development, create a .env file in the
    project root.
    """

    # Portal settings (undocumented PHP endpoints, no public API)
    base_url: str = Field(
        default="https://logistica.univr.it/PortaleStudentiUnivr/",
        description="Base origin of the student timetable portal",
    )
    accept_language: str = Field(
        default="it-IT,it;q=0.9,en-US;q=0.7,en;q=0.6",
        description="Accept-Language header sent with every request",
    )
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) "
            "AppleWebKit/605.1.15 (KHTML, like Gecko) Mobile"
        ),
        description="Mobile User-Agent the portal expects",
    )

    # Request settings
    request_timeout: float = Field(
        default=30.0,
        description="Per-request timeout in seconds",
    )
    request_attempts: int = Field(
        default=1,
        ge=1,
        description="Attempts per request on transient failures (1 = no retry)",
    )
    retry_wait_seconds: float = Field(
        default=2.0,
        description="Fixed wait between transient-failure attempts",
    )

    # Portal data conventions
    timezone: str = Field(
        default="Europe/Rome",
        description="Time zone used to resolve lesson calendar days",
    )
    faculty_name: str = Field(
        default="UniVR",
        description="Faculty name assigned to every parsed course",
    )
    free_slot_tail_minutes: int = Field(
        default=10,
        description="Nominal duration of the last occupancy slot of the day",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "ORARI_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: OrariConfig | None = None


def get_config() -> OrariConfig:
    """Get the client configuration singleton.

    Returns:
        OrariConfig: Client configuration instance
    """
    global _config
    if _config is None:
        _config = OrariConfig()
    return _config
