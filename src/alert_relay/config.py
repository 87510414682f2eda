from __future__ import annotations

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RelaySettings(BaseSettings):
    """
    Configuration for the Alert Relay.
    """

    # Load environment variables from .env if present.
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # ignore unknown env vars
    )

    # --- HTTP / real-time surface ---
    host: str = "127.0.0.1"
    port: int = 3004

    # --- Logging ---
    log_level: str = "INFO"
    debug: bool = False

    # --- Local mirror ---
    mirror_dir: str = "downloaded_images"
    image_prefix: str = "images/"
    image_suffix: str = ".jpg"

    # --- Periodic timers (seconds) ---
    sync_interval_sec: float = Field(default=5.0, gt=0)  # remote -> local sync tick
    location_poll_interval_sec: float = Field(default=5.0, gt=0)  # per-connection location poll

    # --- Replay window for newly connected viewers ---
    replay_candidates: int = Field(default=10, ge=1)
    recency_window_minutes: int = Field(default=2, ge=0)

    # --- Remote store (Firebase) ---
    remote_timeout_sec: float = Field(default=10.0, gt=0)
    firebase_credentials: str = "serviceAccount.json"
    storage_bucket: str = "guardian-gesture.appspot.com"
    database_url: str = "https://guardian-gesture-default-rtdb.firebaseio.com"
    location_path: str = "location"

    # --- Alerting ---
    notification_title: str = "Emergency Detected ..."
    alarm_sound: str = "sounds/emergency-sound.mp3"

    # CORS for browser viewers served from another origin
    cors_origins: List[str] = []

    @property
    def location_url(self) -> str:
        return f"{self.database_url.rstrip('/')}/{self.location_path.strip('/')}.json"

    @property
    def viewer_url(self) -> str:
        return f"http://{self.host}:{self.port}/"


# Convenience global settings object.
# This lets other modules do: from alert_relay.config import settings
settings = RelaySettings()
