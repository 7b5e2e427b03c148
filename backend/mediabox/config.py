"""Mediabox application configuration.

Loads settings from ``mediabox.settings.yaml`` (optional) and then applies
environment overrides, including a ``.env`` file when present:

  PORT, HOST, NODE_ENV / APP_ENV, LOG_LEVEL, CORS_ORIGIN,
  UPLOAD_DIR, MAX_FILE_SIZE, MAX_FILES, STORAGE_BACKEND,
  ALLOWED_IMAGE_TYPES, ALLOWED_AUDIO_TYPES, ALLOWED_VIDEO_TYPES

The resulting AppConfig is frozen; it is built once at startup and read by
every request.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from mediabox.uploads.schemas import MediaCategory, StorageBackend, UploadPolicy

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("mediabox.settings.yaml")

# Environment markers set by serverless platforms with a read-only filesystem.
SERVERLESS_ENV_MARKERS = ("VERCEL", "VERCEL_ENV", "AWS_LAMBDA_FUNCTION_NAME", "NETLIFY")


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.info("Settings file not found, using defaults: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def _split_csv(value: Any) -> List[str]:
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else list(value)
    cleaned = (str(item).strip().lower().lstrip(".") for item in items)
    return [item for item in cleaned if item]


def is_serverless(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Return True if any serverless platform marker is set."""
    env = os.environ if environ is None else environ
    return any(env.get(marker) for marker in SERVERLESS_ENV_MARKERS)


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ServerConfig(_Frozen):
    host:            str       = "0.0.0.0"
    port:            int       = 3000
    environment:     str       = "development"
    reload:          bool      = False
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> List[str]:
        if isinstance(value, str):
            return [o.strip() for o in value.split(",") if o.strip()]
        return value


class LoggingConfig(_Frozen):
    level: str = "info"


class UploadConfig(_Frozen):
    """Upload policy settings."""
    upload_dir:          str       = "./uploads"
    max_file_size:       int       = Field(default=10 * 1024 * 1024, ge=0)
    max_files:           int       = Field(default=10, ge=1)
    allowed_image_types: List[str] = Field(default_factory=lambda: ["jpg", "jpeg", "png", "gif", "webp"])
    allowed_audio_types: List[str] = Field(default_factory=lambda: ["mp3", "wav", "ogg", "m4a", "aac"])
    allowed_video_types: List[str] = Field(
        default_factory=lambda: ["mp4", "avi", "mov", "wmv", "flv", "webm", "mkv"]
    )

    @field_validator(
        "allowed_image_types", "allowed_audio_types", "allowed_video_types", mode="before"
    )
    @classmethod
    def _normalise_types(cls, value: Any) -> List[str]:
        return _split_csv(value)


class StorageConfig(_Frozen):
    """``auto`` picks the buffer backend when a serverless marker is set."""
    backend: Literal["auto", "disk", "buffer"] = "auto"


class AppConfig(_Frozen):
    server:  ServerConfig  = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    upload:  UploadConfig  = Field(default_factory=UploadConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    def upload_policy(self) -> UploadPolicy:
        """Build the immutable upload policy from the upload section."""
        return UploadPolicy(
            max_file_size=self.upload.max_file_size,
            allowed_types={
                MediaCategory.IMAGE: tuple(self.upload.allowed_image_types),
                MediaCategory.AUDIO: tuple(self.upload.allowed_audio_types),
                MediaCategory.VIDEO: tuple(self.upload.allowed_video_types),
            },
            upload_dir=Path(self.upload.upload_dir),
            max_files=self.upload.max_files,
        )

    def storage_backend(self, environ: Optional[Mapping[str, str]] = None) -> StorageBackend:
        """Resolve the configured backend, detecting serverless for ``auto``."""
        if self.storage.backend == "auto":
            return StorageBackend.BUFFER if is_serverless(environ) else StorageBackend.DISK
        return StorageBackend(self.storage.backend)


# ---------------------------------------------------------------------------
# Environment overrides
# ---------------------------------------------------------------------------

# env var -> (section, key)
_ENV_OVERRIDES = {
    "HOST":                ("server", "host"),
    "PORT":                ("server", "port"),
    "NODE_ENV":            ("server", "environment"),
    "APP_ENV":             ("server", "environment"),
    "RELOAD":              ("server", "reload"),
    "CORS_ORIGIN":         ("server", "allowed_origins"),
    "LOG_LEVEL":           ("logging", "level"),
    "UPLOAD_DIR":          ("upload", "upload_dir"),
    "MAX_FILE_SIZE":       ("upload", "max_file_size"),
    "MAX_FILES":           ("upload", "max_files"),
    "ALLOWED_IMAGE_TYPES": ("upload", "allowed_image_types"),
    "ALLOWED_AUDIO_TYPES": ("upload", "allowed_audio_types"),
    "ALLOWED_VIDEO_TYPES": ("upload", "allowed_video_types"),
    "STORAGE_BACKEND":     ("storage", "backend"),
}


def _apply_env_overrides(data: Dict[str, Any], environ: Mapping[str, str]) -> None:
    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None or value.strip() == "":
            continue
        if env_name == "STORAGE_BACKEND":
            value = value.strip().lower()
        data.setdefault(section, {})[key] = value
        logger.debug("Config override from env: %s -> %s.%s", env_name, section, key)


def _resolve_upload_dir(data: Dict[str, Any], base_dir: Path) -> None:
    upload = data.get("upload") or {}
    raw = upload.get("upload_dir")
    if raw and not Path(raw).is_absolute():
        upload["upload_dir"] = str(base_dir / raw)


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_config(
    settings_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """Load settings from YAML and environment into a frozen *AppConfig*.

    A relative ``upload.upload_dir`` from the YAML file resolves against the
    file's directory; one from ``UPLOAD_DIR`` stays relative to the working
    directory.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    path = Path(settings_path or environ.get("MEDIABOX_SETTINGS") or SETTINGS_FILE)
    data = _load_yaml(path)
    for section in ("server", "logging", "upload", "storage"):
        data[section] = dict(data.get(section) or {})
    _resolve_upload_dir(data, path.resolve().parent)
    _apply_env_overrides(data, environ)

    config = AppConfig(**data)
    logger.info(
        "Config loaded (upload_dir=%s, max_file_size=%d, storage=%s)",
        config.upload.upload_dir,
        config.upload.max_file_size,
        config.storage.backend,
    )
    return config


_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Return the process-wide config, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[AppConfig]) -> None:
    """Replace the process-wide config (``None`` forces a reload)."""
    global _config
    _config = config
