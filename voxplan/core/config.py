"""
VoxPlan settings.

Every tunable (provider keys, polling budget, gateway timeouts, capture
format, server bind) is read from the environment or a local ``.env``.
Services accept an explicit ``settings`` object and fall back to
``get_settings()``.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed configuration (``POLL_INTERVAL_SECONDS=1`` overrides
    ``poll_interval_seconds``; names are case-insensitive).

    Attributes:
        assemblyai_api_key: Key sent in the ``authorization`` header to AssemblyAI.
        transcription_provider: Client used by the CLIs ("assemblyai" or "proxy").
        poll_interval_seconds: Delay between two transcript status checks.
        planning_gateway_url: Treatment-planning orchestration endpoint.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- AssemblyAI ---
    assemblyai_api_key: str = ""  # Required by the proxy and the "assemblyai" provider
    assemblyai_base_url: str = "https://api.assemblyai.com"
    assemblyai_speech_model: str = "universal"
    assemblyai_timeout_seconds: float = 60.0

    # --- Transcription client ---
    # "assemblyai" talks to the provider directly, "proxy" goes through this app's API
    transcription_provider: str = "assemblyai"
    proxy_base_url: str = "http://localhost:8000"

    # --- Job polling ---
    poll_interval_seconds: float = 3.0
    poll_max_attempts: int = 100  # 100 * 3s = ~5 minutes

    # --- Treatment planning gateway ---
    planning_gateway_url: str = "https://dev-api-gateway.aesthatiq.com/mcp-orch-service/orch"
    planning_timeout_seconds: float = 180.0  # Gateway may take ~2 minutes
    planning_max_attempts: int = 2
    planning_retry_backoff_seconds: float = 2.0
    planner_user_id: str = "user-123"
    planner_slot_id: str = "b553d02b-102c-457b-b525-0bfca777b191"

    # --- Capture ---
    capture_sample_rate: int = 16000
    capture_channels: int = 1
    capture_device: str | None = None  # Name or index as listed by sounddevice
    elapsed_tick_seconds: float = 0.1

    # --- Application ---
    app_host: str = "0.0.0.0"  # Bind address for the FastAPI server
    app_port: int = 8000
    log_level: str = "INFO"  # Python logging level
    max_upload_bytes: int = 100 * 1024 * 1024
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings; the environment and .env are read on first call."""
    return Settings()
