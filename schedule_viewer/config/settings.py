import logging
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # Google Sheets access
    google_sheets_api_key: Optional[str] = Field(
        None,
        description="Sheets API key. Used directly by the fetcher, or held by the relay.",
    )
    api_proxy_url: Optional[str] = Field(
        None,
        description="URL of the credential-hiding relay. Used when no API key is supplied.",
    )

    # Spreadsheet layout
    match_tab_name: str = Field(
        "EmceePRT", description="Tab holding the match schedule."
    )
    team_tab_name: str = Field(
        "TeamListbyNumber", description="Tab holding the team roster."
    )
    common_tab_names: List[str] = Field(
        default_factory=lambda: [
            "EmceePRT",
            "EmceePrt",
            "EmceeTablet",
            "OfficialSchedule",
            "TeamListbyNumber",
            "Sheet1",
        ],
        description="Tab names probed, in order, when no tab is requested.",
    )
    value_range: str = Field("A:ZZ", description="Column range requested per tab.")

    # Transport
    request_timeout: float = Field(
        30.0, gt=0, description="Timeout in seconds for every HTTP request."
    )

    # Persisted user state
    state_file: Path = Field(
        default_factory=lambda: Path.home() / ".schedule_viewer" / "state.json",
        description="JSON file holding the last sheet URL, API key and load time.",
    )

    # Relay
    relay_host: str = Field("127.0.0.1", description="Bind address of the relay.")
    relay_port: int = Field(8888, ge=1, le=65535, description="Port of the relay.")

    # Logging Configuration
    log_level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."
    )

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


def load_settings() -> AppSettings:
    """Loads and validates application settings."""
    try:
        settings = AppSettings()
        log_level_upper = settings.log_level.upper()
        # Validate log_level even if loaded from .env
        if log_level_upper not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            logging.warning(
                f"Invalid LOG_LEVEL '{settings.log_level}' found in .env or default. Using INFO."
            )
            settings.log_level = "INFO"
        else:
            settings.log_level = log_level_upper
        return settings
    except Exception as e:
        logging.exception(f"Error loading application settings: {e}")
        raise SystemExit("Failed to load application settings. Exiting.")


settings: AppSettings = load_settings()
