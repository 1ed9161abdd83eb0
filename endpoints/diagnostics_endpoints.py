from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request

from endpoints.common import add_method_fallback
from endpoints.dependencies import EmailClientFactory, get_app_settings, get_email_client_factory, get_optional_document_store
from errors import DecodeError, DeliveryError, NotConfiguredError
from persistence import codec
from persistence.documents import iso_timestamp
from persistence.interfaces import Absent, Found
from persistence.repositories import AsyncDocumentStore
from persistence.resources import EMAIL_CONFIG
from settings import Settings

router = APIRouter(tags=["diagnostics"])
logger = logging.getLogger(__name__)


def _mask(value: str) -> str:
    return "***SET***" if value else "NOT SET"


@router.api_route("/test", methods=["GET", "HEAD"])
async def api_test(request: Request, settings: Settings = Depends(get_app_settings)) -> dict[str, Any]:
    return {
        "environment": settings.environment_mode.value,
        "hostname": request.headers.get("host", "unknown"),
        "timestamp": iso_timestamp(),
        "storage": {
            "backend": settings.storage_backend,
            "kvRestApiUrl": _mask(settings.kv_rest_url),
            "kvRestApiToken": _mask(settings.kv_rest_token),
        },
        "message": "API test endpoint working",
    }


async def _store_status(store: AsyncDocumentStore | None) -> tuple[str, dict[str, Any] | None]:
    if store is None:
        return "NOT CONFIGURED", None
    outcome = await store.raw_outcome(EMAIL_CONFIG)
    if isinstance(outcome, Absent):
        return "CONNECTED - No email config", None
    if isinstance(outcome, Found):
        try:
            doc = codec.decode(outcome.raw)
        except DecodeError:
            return "CONNECTED - Email config unreadable", None
        return "CONNECTED - Email config found", doc if isinstance(doc, dict) else None
    return f"UNAVAILABLE - Failed to get config ({outcome.status})", None


def _email_api_status(factory: EmailClientFactory) -> str:
    try:
        client = factory()
    except NotConfiguredError:
        return "NOT CONFIGURED"
    try:
        domains = client.list_domains()
    except DeliveryError as e:
        return f"CONFIGURED - API test failed ({e.status})"
    return f"CONFIGURED - {len(domains)} domains found"


@router.get("/test-email")
async def email_test(
    settings: Settings = Depends(get_app_settings),
    store: AsyncDocumentStore | None = Depends(get_optional_document_store),
    email_client_factory: EmailClientFactory = Depends(get_email_client_factory),
) -> dict[str, Any]:
    store_status, email_config = await _store_status(store)
    email_status = await asyncio.to_thread(_email_api_status, email_client_factory)

    recommendations: list[str] = []
    if not settings.email_api_key:
        recommendations.append("Set RESEND_API_KEY environment variable")
    if store_status == "NOT CONFIGURED":
        recommendations.append("Configure Redis/KV environment variables")
    if email_config is None:
        recommendations.append("Set up email configuration in admin panel")
    if "API test failed" in email_status:
        recommendations.append("Check email API key validity")

    logger.info("EMAIL TEST: store=%s email=%s", store_status, email_status)
    return {
        "timestamp": iso_timestamp(),
        "environment": {
            "APP_ENV": settings.environment_mode.value,
            "RESEND_API_KEY": _mask(settings.email_api_key),
            "KV_REST_API_URL": _mask(settings.kv_rest_url),
        },
        "redis": store_status,
        "resend": email_status,
        "emailConfig": email_config,
        "recommendations": recommendations,
    }


add_method_fallback(router, "/test", ["GET", "HEAD"])
add_method_fallback(router, "/test-email", ["GET"])
