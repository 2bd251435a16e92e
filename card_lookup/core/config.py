"""Application configuration (Pydantic v2). Load from card_lookup.yml with optional env override."""

import os
from pathlib import Path
from typing import Mapping

import yaml
from pydantic import BaseModel, field_validator


DEFAULT_CONFIG_ENV_VAR = "CARD_LOOKUP_CONFIG"
DEFAULT_CONFIG_FILENAME = "card_lookup.yml"
API_KEY_ENV_VAR = "GEMINI_API_KEY"


class Settings(BaseModel):
    """
    Lookup config loaded from YAML.

    By default, ocr_api_key may be overridden by the GEMINI_API_KEY environment variable
    when loading the default config (but not when an explicit config_path is provided).
    """

    model_config = {"extra": "ignore"}

    ocr_api_key: str | None = None
    ocr_analyzer: str = "gemini"
    ocr_model: str = "gemini-2.5-flash-lite"
    ocr_endpoint: str = "https://generativelanguage.googleapis.com/v1beta/models"
    card_db_base_url: str = "https://api.scryfall.com"
    card_db_min_interval_ms: int = 100
    capture_width: int = 125
    capture_height: int = 60
    capture_scale: int = 2
    request_timeout_seconds: float = 30.0
    log_level: str = "INFO"
    forensics_dir: str = "logs/forensics"

    @field_validator("ocr_api_key", mode="before")
    @classmethod
    def blank_key_is_none(cls, v: object) -> str | None:
        if v is None or str(v).strip() == "":
            return None
        return str(v).strip()

    @field_validator("capture_width", "capture_height", "capture_scale")
    @classmethod
    def positive_dimension(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("capture dimensions and scale must be positive")
        return v

    @field_validator("card_db_min_interval_ms")
    @classmethod
    def non_negative_interval(cls, v: int) -> int:
        if v < 0:
            raise ValueError("card_db_min_interval_ms must be >= 0")
        return v

    @property
    def expected_capture_size(self) -> tuple[int, int]:
        """Pixel size of a validated capture (logical size times upscale factor)."""
        return self.capture_width * self.capture_scale, self.capture_height * self.capture_scale


_config: Settings | None = None


class ConfigLoader:
    """
    Helper responsible for loading Settings from YAML and environment.

    - load_from_yaml(path, apply_env_override): read a YAML file and optionally apply env overrides.
    - load_default(): resolve the default config path from CARD_LOOKUP_CONFIG / card_lookup.yml and
      apply the GEMINI_API_KEY override when present.
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = env if env is not None else os.environ

    def load_from_yaml(self, path: Path, apply_env_override: bool) -> Settings:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = yaml.safe_load(f)
        if not data:
            data = {}
        if apply_env_override and self._env.get(API_KEY_ENV_VAR):
            data["ocr_api_key"] = self._env[API_KEY_ENV_VAR]
        return Settings.model_validate(data)

    def load_default(self) -> Settings:
        """
        Load the default Settings, using CARD_LOOKUP_CONFIG or card_lookup.yml.

        The credential is normally provisioned through GEMINI_API_KEY; when set it wins over
        whatever the YAML file carries.
        """
        path_str = self._env.get(DEFAULT_CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILENAME
        path = Path(path_str)
        if path.exists():
            return self.load_from_yaml(path, apply_env_override=True)

        settings = Settings()
        if self._env.get(API_KEY_ENV_VAR):
            settings = Settings.model_validate({"ocr_api_key": self._env[API_KEY_ENV_VAR]})
        return settings


_loader = ConfigLoader()


def get_config(config_path: str | Path | None = None) -> Settings:
    """
    Return singleton config.

    - If config_path is given, load from it (without env overrides for ocr_api_key) and update the cache.
    - Otherwise, return the cached config if available, or load via ConfigLoader.load_default().
    """
    global _config
    if config_path is not None:
        _config = _loader.load_from_yaml(Path(config_path), apply_env_override=False)
        return _config
    if _config is not None:
        return _config
    _config = _loader.load_default()
    return _config


def reset_config() -> None:
    """Clear cached config (for tests)."""
    global _config
    _config = None
