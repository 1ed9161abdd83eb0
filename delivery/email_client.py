from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, Field

from errors import DeliveryError, DeliveryFailure, NotConfiguredError

logger = logging.getLogger(__name__)

_RECIPIENT_HINTS = ("invalid_to", "`to`", "'to'", "\"to\"", "to field", "recipient", "email address")


class EmailMessage(BaseModel):
    sender: str = Field(serialization_alias="from")
    to: list[str]
    subject: str
    html: str
    text: str
    reply_to: str | None = None

    def to_api_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class EmailClient(Protocol):
    def send(self, message: EmailMessage) -> dict[str, Any]:
        ...

    def list_domains(self) -> list[dict[str, Any]]:
        ...


def classify_delivery_failure(status: int | None, body: str) -> DeliveryFailure:
    """
    Map an email API error response onto the small failure taxonomy.

    401 is always a credential problem; 403 is either an unverified sending
    domain or a key without access; 400/422 naming the recipient is a bad
    address. Anything else is a generic service error.
    """
    text = (body or "").lower()
    if status == 401:
        return DeliveryFailure.CREDENTIALS_INVALID
    if "domain" in text and ("not verified" in text or "verify" in text):
        return DeliveryFailure.SENDER_DOMAIN_UNVERIFIED
    if status == 403:
        return DeliveryFailure.CREDENTIALS_INVALID
    if status in (400, 422) and any(h in text for h in _RECIPIENT_HINTS):
        return DeliveryFailure.RECIPIENT_MALFORMED
    return DeliveryFailure.SERVICE_ERROR


class ResendEmailClient(EmailClient):
    """
    Resend-compatible email API (`POST {api}/emails`, `GET {api}/domains`).
    """

    def __init__(self, api_key: str, *, api_url: str = "https://api.resend.com", client: httpx.Client | None = None):
        if not api_key:
            raise NotConfiguredError("Email service", "Email API key not configured")
        self._api_key = api_key
        self._api_url = api_url.rstrip("/")
        self._client = client or httpx.Client()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}", "Content-Type": "application/json"}

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = self._client.request(method, f"{self._api_url}{path}", headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.error("EMAIL API %s %s: request failed: %r", method, path, e)
            raise DeliveryError(DeliveryFailure.SERVICE_ERROR, body=repr(e)) from e

        if not resp.is_success:
            reason = classify_delivery_failure(resp.status_code, resp.text)
            logger.error("EMAIL API %s %s: status=%s reason=%s body=%s", method, path, resp.status_code, reason.value, resp.text)
            raise DeliveryError(reason, status=resp.status_code, body=resp.text)
        return resp

    @staticmethod
    def _json_body(resp: httpx.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            # A 2xx already means the API accepted the request.
            logger.warning("EMAIL API: non-JSON success body: %s", resp.text[:200])
            return None

    def send(self, message: EmailMessage) -> dict[str, Any]:
        resp = self._request("POST", "/emails", json=message.to_api_payload())
        result = self._json_body(resp)
        return result if isinstance(result, dict) else {}

    def list_domains(self) -> list[dict[str, Any]]:
        resp = self._request("GET", "/domains")
        payload = self._json_body(resp)
        data = payload.get("data") if isinstance(payload, dict) else None
        return data if isinstance(data, list) else []
