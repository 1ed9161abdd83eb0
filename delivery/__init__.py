from __future__ import annotations

from .contact import ContactNotifier, ContactSubmission, compose_notification
from .email_client import EmailClient, EmailMessage, ResendEmailClient, classify_delivery_failure

__all__ = [
    "ContactNotifier",
    "ContactSubmission",
    "compose_notification",
    "EmailClient",
    "EmailMessage",
    "ResendEmailClient",
    "classify_delivery_failure",
]
