"""Environment-driven configuration for the weekly digest bot."""
import os
from dataclasses import dataclass
from datetime import tzinfo
from typing import Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from src.common.errors import ConfigurationError

DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "gemini-3-pro-image-preview"
DEFAULT_STYLE_IMAGE_PATH = "assets/style.png"
DEFAULT_CHARACTERS_DIR = "assets/characters"


@dataclass(frozen=True)
class DigestConfig:
    bot_token: str
    summary_channel_id: int
    gemini_api_key: str
    text_model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    style_image_path: str = DEFAULT_STYLE_IMAGE_PATH
    characters_dir: str = DEFAULT_CHARACTERS_DIR
    timezone_name: str = "UTC"
    language: str = "English"
    summary_max_attempts: int = 1
    image_max_attempts: int = 3
    gemini_timeout: float = 180.0
    discord_timeout: float = 30.0
    admin_user_id: Optional[int] = None

    @property
    def timezone(self) -> tzinfo:
        return ZoneInfo(self.timezone_name)

    @classmethod
    def from_env(cls, dev_mode: bool = False, environ: Optional[Mapping[str, str]] = None) -> "DigestConfig":
        """
        Build the config from environment variables.

        In dev mode DEV_-prefixed variants of the channel id take precedence,
        so a test server can be targeted without touching the prod values.
        """
        env = os.environ if environ is None else environ

        def get(name: str, default: Optional[str] = None) -> Optional[str]:
            value = env.get(name)
            if value is None or not value.strip():
                return default
            return value.strip()

        def require(name: str) -> str:
            value = get(name)
            if value is None:
                raise ConfigurationError(f"{name} not found in environment")
            return value

        def as_int(name: str, value: str) -> int:
            try:
                return int(value)
            except ValueError:
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")

        def as_positive(name: str, value: str, cast):
            try:
                number = cast(value)
            except ValueError:
                raise ConfigurationError(f"{name} must be a number, got {value!r}")
            if number <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value!r}")
            return number

        channel_key = 'SUMMARY_CHANNEL_ID'
        if dev_mode and get(f'DEV_{channel_key}'):
            channel_key = f'DEV_{channel_key}'

        admin_raw = get('ADMIN_USER_ID')
        timezone_name = get('DIGEST_TIMEZONE', 'UTC')
        try:
            ZoneInfo(timezone_name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigurationError(f"DIGEST_TIMEZONE {timezone_name!r} is not a known IANA timezone")

        return cls(
            bot_token=require('DISCORD_BOT_TOKEN'),
            summary_channel_id=as_int(channel_key, require(channel_key)),
            gemini_api_key=require('GEMINI_API_KEY'),
            text_model=get('GEMINI_TEXT_MODEL', DEFAULT_TEXT_MODEL),
            image_model=get('GEMINI_IMAGE_MODEL', DEFAULT_IMAGE_MODEL),
            style_image_path=get('STYLE_IMAGE_PATH', DEFAULT_STYLE_IMAGE_PATH),
            characters_dir=get('CHARACTERS_DIR', DEFAULT_CHARACTERS_DIR),
            timezone_name=timezone_name,
            language=get('DIGEST_LANGUAGE', 'English'),
            summary_max_attempts=as_positive('SUMMARY_MAX_ATTEMPTS', get('SUMMARY_MAX_ATTEMPTS', '1'), int),
            image_max_attempts=as_positive('IMAGE_MAX_ATTEMPTS', get('IMAGE_MAX_ATTEMPTS', '3'), int),
            gemini_timeout=as_positive('GEMINI_TIMEOUT', get('GEMINI_TIMEOUT', '180'), float),
            discord_timeout=as_positive('DISCORD_TIMEOUT', get('DISCORD_TIMEOUT', '30'), float),
            admin_user_id=as_int('ADMIN_USER_ID', admin_raw) if admin_raw else None,
        )
