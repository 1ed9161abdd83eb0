from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class EnvironmentMode(str, Enum):
    PRODUCTION = "production"
    DEVELOPMENT = "development"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_first(*names: str, default: str = "") -> str:
    for name in names:
        raw = os.getenv(name)
        if raw is not None and raw.strip():
            return raw.strip()
    return default


def _env_mode() -> EnvironmentMode:
    raw = os.getenv("APP_ENV", "").strip().lower()
    if raw in ("dev", "development", "local"):
        return EnvironmentMode.DEVELOPMENT
    return EnvironmentMode.PRODUCTION


@dataclass(frozen=True)
class Settings:
    environment_mode: EnvironmentMode

    # Key-value store
    kv_rest_url: str
    kv_rest_token: str
    storage_backend: str
    key_prefix: str
    data_dir: Path

    # Email delivery
    email_api_key: str
    email_api_url: str
    email_from: str
    club_name: str

    # Blob storage
    blob_token: str
    blob_api_url: str

    # HTTP
    cors_allow_origins: tuple[str, ...]
    debug_log_requests: bool

    @property
    def is_production(self) -> bool:
        return self.environment_mode is EnvironmentMode.PRODUCTION


def get_settings() -> Settings:
    environment_mode = _env_mode()

    kv_rest_url = _env_first("KV_REST_API_URL", "UPSTASH_REDIS_REST_URL").rstrip("/")
    kv_rest_token = _env_first("KV_REST_API_TOKEN", "UPSTASH_REDIS_REST_TOKEN")

    # Development without a remote store falls back to files under DATA_DIR.
    default_backend = "rest"
    if environment_mode is EnvironmentMode.DEVELOPMENT and not kv_rest_url:
        default_backend = "disk"
    storage_backend = os.getenv("STORAGE_BACKEND", default_backend).strip().lower()

    key_prefix = os.getenv("KV_KEY_PREFIX", "walk4health").strip() or "walk4health"

    raw_data_dir = os.getenv("DATA_DIR", "").strip()
    data_dir = Path(raw_data_dir) if raw_data_dir else Path(__file__).resolve().parent / "data"

    email_api_key = _env_first("RESEND_API_KEY", "SENDGRID_API_KEY")
    email_api_url = os.getenv("EMAIL_API_URL", "https://api.resend.com").rstrip("/")
    email_from = os.getenv("EMAIL_FROM", "noreply@walk4health.co.nz")
    club_name = os.getenv("CLUB_NAME", "Walk4Health")

    blob_token = _env_first("BLOB_READ_WRITE_TOKEN")
    blob_api_url = os.getenv("BLOB_API_URL", "https://blob.vercel-storage.com").rstrip("/")

    cors_allow_origins = tuple(
        o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()
    ) or ("*",)
    debug_log_requests = _env_bool("DEBUG_LOG_REQUESTS", False)

    return Settings(
        environment_mode=environment_mode,
        kv_rest_url=kv_rest_url,
        kv_rest_token=kv_rest_token,
        storage_backend=storage_backend,
        key_prefix=key_prefix,
        data_dir=data_dir,
        email_api_key=email_api_key,
        email_api_url=email_api_url,
        email_from=email_from,
        club_name=club_name,
        blob_token=blob_token,
        blob_api_url=blob_api_url,
        cors_allow_origins=cors_allow_origins,
        debug_log_requests=debug_log_requests,
    )
