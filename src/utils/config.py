"""Configuration management for the admission form OCR service.

Loads and validates YAML configuration with sensible defaults, then
applies environment variable overrides for deployment-specific values
such as endpoints and credentials.
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ServerConfig(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = 3000


class StorageConfig(BaseModel):
    """Transient file storage and database settings."""

    tmp_dir: str = "tmp"
    database_url: str = "sqlite:///admission_forms.db"


class PreprocessingConfig(BaseModel):
    """Configuration for the image conditioning pipeline."""

    target_width: int = 1800
    contrast_method: str = "stretch"
    clahe_clip_limit: float = 2.0
    clahe_tile_size: int = 8
    finish: str = "sharpen"
    binarize_method: str = "otsu"


class OCRConfig(BaseModel):
    """Configuration for the recognition engine."""

    engine: str = "tesseract"
    tesseract_cmd: str | None = None
    languages: list[str] = Field(default_factory=lambda: ["eng"])
    psm: int = 3
    timeout: float = 60.0
    concurrent_sessions: bool = False


class VisionConfig(BaseModel):
    """Configuration for the remote vision-language recognition engine."""

    api_key: str | None = None
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    timeout: float = 60.0


class AdmissionsConfig(BaseModel):
    """Configuration for pushing leads to the admissions service."""

    push_enabled: bool = False
    uploaded_leads_url: str | None = None
    lead_status_url: str | None = None
    token: str | None = None
    timeout: float = 30.0


class ImportConfig(BaseModel):
    """Configuration for batch and scheduled imports."""

    source_api: str | None = None
    schedule_enabled: bool = True
    interval_seconds: int = 3600
    stop_on_error: bool = False
    fetch_timeout: float = 30.0


class AppConfig(BaseModel):
    """Top-level application configuration."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    vision: VisionConfig = Field(default_factory=VisionConfig)
    admissions: AdmissionsConfig = Field(default_factory=AdmissionsConfig)
    imports: ImportConfig = Field(default_factory=ImportConfig)
    log_level: str = "INFO"


# Environment variable -> (section, key, converter)
_ENV_OVERRIDES: dict[str, tuple[str | None, str, str]] = {
    "PORT": ("server", "port", "int"),
    "TMP_DIR": ("storage", "tmp_dir", "str"),
    "DATABASE_URL": ("storage", "database_url", "str"),
    "LANGS": ("ocr", "languages", "list"),
    "RECOGNITION_ENGINE": ("ocr", "engine", "str"),
    "OPENAI_API_KEY": ("vision", "api_key", "str"),
    "PUSH_TO_ADMISSIONS": ("admissions", "push_enabled", "bool"),
    "UPLOADED_LEADS_URL": ("admissions", "uploaded_leads_url", "str"),
    "LEAD_STATUS_URL": ("admissions", "lead_status_url", "str"),
    "ADMISSIONS_TOKEN": ("admissions", "token", "str"),
    "SOURCE_API": ("imports", "source_api", "str"),
    "LOG_LEVEL": (None, "log_level", "str"),
}


def _convert(value: str, kind: str) -> object:
    if kind == "int":
        return int(value)
    if kind == "bool":
        return value.strip().lower() == "true"
    if kind == "list":
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


def apply_env_overrides(raw: dict, environ: Mapping[str, str] | None = None) -> dict:
    """Overlay recognised environment variables onto raw config data.

    Args:
        raw: Configuration mapping loaded from YAML.
        environ: Environment to read. Defaults to ``os.environ``.

    Returns:
        The updated configuration mapping.
    """
    environ = os.environ if environ is None else environ
    for var, (section, key, kind) in _ENV_OVERRIDES.items():
        value = environ.get(var)
        if value is None or value == "":
            continue
        target = raw if section is None else raw.setdefault(section, {})
        target[key] = _convert(value, kind)
        logger.debug("Config override from %s", var)
    return raw


def load_config(
    path: Path | None = None, environ: Mapping[str, str] | None = None
) -> AppConfig:
    """Load configuration from a YAML file and the environment.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.
        environ: Environment mapping used for overrides.
            Defaults to ``os.environ``.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    raw: dict = {}
    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    else:
        logger.info("No config file found at %s, using defaults", path)

    return AppConfig(**apply_env_overrides(raw, environ))
