"""Configuration management for Agent Activity Report.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the AGENT_REPORT_ prefix (e.g., AGENT_REPORT_BASE_URL).
    """

    model_config = SettingsConfigDict(
        env_prefix="AGENT_REPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Portal Configuration
    base_url: str = Field(
        default="https://ucdemo.voicemeetme.com:9443",
        description="Base URL of the telephony portal (reports, login, /ucp proxy target)",
    )
    events_host: str = Field(
        default="ucdemo.voicemeetme.com:9443",
        description="Host[:port] serving agent activity events; tenant subdomains are tried first",
    )
    api_username: str = Field(default="", description="Portal API username")
    api_password: str = Field(default="", description="Portal API password")
    account_id_header: str | None = Field(
        default=None,
        description="Override for the X-Account-ID header (defaults to the account argument)",
    )
    agent_status_endpoint: str = Field(
        default="/api/v2/reports/callcenter/agents/stats",
        description="Path of the agents status/activity report",
    )
    verify_tls: bool = Field(
        default=False,
        description="Verify upstream TLS certificates (PBX installs often use self-signed certs)",
    )

    # HTTP behaviour
    request_timeout: float = Field(
        default=30.0,
        description="Timeout for report requests in seconds",
    )
    login_timeout: float = Field(default=5.0, description="Timeout for login requests in seconds")
    max_retries: int = Field(
        default=3,
        description="Maximum number of attempts per upstream request",
    )
    retry_delay: float = Field(
        default=1.0,
        description="Initial backoff delay in seconds; doubled after each failed attempt",
    )

    # Token cache
    token_ttl: int = Field(
        default=3600,
        description="Token lifetime in seconds when the login response carries no expiry",
    )
    token_refresh_margin: int = Field(
        default=120,
        description="Cached tokens are refreshed this many seconds before they expire",
    )

    # Agent events
    events_page_size: int = Field(default=1000, description="Events requested per page")
    events_max_records: int = Field(
        default=10000,
        description="Stop paginating once this many events have been collected",
    )

    # State-change capture
    available_state_id: str = Field(
        default="18f56f25d9624a18ab11024b20f7b7ad",
        description="Upstream id of the AVAILABLE agent state",
    )

    # Web server
    host: str = Field(default="0.0.0.0", description="Interface the web server binds to")
    port: int = Field(default=5555, description="Port the web server listens on")
    public_url: str | None = Field(
        default=None,
        description="Public URL announced at startup (defaults to http://localhost:<port>)",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
