"""Environment-driven settings for the CropGuard service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc


@dataclass
class Settings:
    """Runtime configuration read from environment variables.

    Values are read once at startup; `.env` files are loaded by `main.py`
    before `Settings.from_env()` runs.
    """

    gateway_api_key: Optional[str] = None
    gateway_base_url: str = DEFAULT_GATEWAY_URL
    analysis_model: str = "google/gemini-2.5-pro"
    chat_model: str = "google/gemini-2.5-flash"
    tts_model: str = "tts-1"
    tts_voice: str = "alloy"
    camera_rear_index: int = 0
    camera_front_index: int = 1
    camera_first_frame_timeout: float = 10.0
    weather_base_url: str = "https://api.open-meteo.com/v1"
    geocode_base_url: str = "https://geocode.maps.co"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        return cls(
            gateway_api_key=os.getenv("AI_GATEWAY_API_KEY") or os.getenv("OPENAI_API_KEY"),
            gateway_base_url=os.getenv("AI_GATEWAY_BASE_URL", DEFAULT_GATEWAY_URL),
            analysis_model=os.getenv("ANALYSIS_MODEL", cls.analysis_model),
            chat_model=os.getenv("CHAT_MODEL", cls.chat_model),
            tts_model=os.getenv("TTS_MODEL", cls.tts_model),
            tts_voice=os.getenv("TTS_VOICE", cls.tts_voice),
            camera_rear_index=_int_env("CAMERA_REAR_INDEX", cls.camera_rear_index),
            camera_front_index=_int_env("CAMERA_FRONT_INDEX", cls.camera_front_index),
            camera_first_frame_timeout=_float_env("CAMERA_FIRST_FRAME_TIMEOUT", cls.camera_first_frame_timeout),
            weather_base_url=os.getenv("WEATHER_BASE_URL", cls.weather_base_url),
            geocode_base_url=os.getenv("GEOCODE_BASE_URL", cls.geocode_base_url),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )

    def require_api_key(self) -> str:
        """Return the gateway key or raise if it is not configured."""
        if not self.gateway_api_key:
            raise RuntimeError("AI_GATEWAY_API_KEY environment variable is not set")
        return self.gateway_api_key
