from __future__ import annotations

import html
import logging
from typing import Any, Callable

from pydantic import BaseModel

from errors import ValidationError
from persistence.document_store import DocumentStore
from persistence.documents import EmailConfig
from persistence.resources import EMAIL_CONFIG

from .email_client import EmailClient, EmailMessage

logger = logging.getLogger(__name__)

CONFIRMATION_MESSAGE = "Contact form submitted successfully. We will get back to you soon!"
REQUIRED_FIELDS = ("name", "email", "subject", "message")


class ContactSubmission(BaseModel):
    name: str
    email: str
    subject: str
    message: str

    @classmethod
    def from_fields(cls, **values: Any) -> "ContactSubmission":
        missing = [
            f for f in REQUIRED_FIELDS if not isinstance(values.get(f), str) or not values[f].strip()
        ]
        if missing:
            raise ValidationError("Missing required fields", fields=missing)
        return cls(**{f: values[f] for f in REQUIRED_FIELDS})


def compose_notification(
    submission: ContactSubmission,
    config: EmailConfig,
    *,
    email_from: str,
    club_name: str,
) -> EmailMessage:
    name = html.escape(submission.name)
    email = html.escape(submission.email)
    subject = html.escape(submission.subject)
    body = html.escape(submission.message).replace("\r\n", "\n").replace("\n", "<br>")
    footer = f"This message was sent from the {club_name} website contact form."

    html_body = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #2563eb;">New Contact Form Submission</h2>
  <div style="background-color: #f8fafc; padding: 20px; border-radius: 8px; margin: 20px 0;">
    <p><strong>Name:</strong> {name}</p>
    <p><strong>Email:</strong> {email}</p>
    <p><strong>Subject:</strong> {subject}</p>
    <p><strong>Message:</strong></p>
    <div style="background-color: white; padding: 15px; border-radius: 4px; border-left: 4px solid #2563eb;">
      {body}
    </div>
  </div>
  <p style="color: #64748b; font-size: 14px;">{html.escape(footer)}</p>
</div>
""".strip()

    text_body = f"""New Contact Form Submission

Name: {submission.name}
Email: {submission.email}
Subject: {submission.subject}

Message:
{submission.message}

---
{footer}
"""

    return EmailMessage(
        sender=email_from,
        to=[config.inquiryEmail],
        subject=f"{config.subjectPrefix} {submission.subject}",
        html=html_body,
        text=text_body,
        reply_to=submission.email,
    )


class ContactNotifier:
    """
    Forwards contact-form submissions to the configured inquiry address.

    The store and the email client are built on demand, after the submission
    has been validated, so a bad form is rejected even when neither backend
    is configured.
    """

    def __init__(
        self,
        store_factory: Callable[[], DocumentStore],
        email_client_factory: Callable[[], EmailClient],
        *,
        email_from: str,
        club_name: str,
    ):
        self._store_factory = store_factory
        self._email_client_factory = email_client_factory
        self._email_from = email_from
        self._club_name = club_name

    def submit(self, name: Any, email: Any, subject: Any, message: Any) -> str:
        submission = ContactSubmission.from_fields(name=name, email=email, subject=subject, message=message)

        config = self._store_factory().read(EMAIL_CONFIG)
        client = self._email_client_factory()

        notification = compose_notification(
            submission, config, email_from=self._email_from, club_name=self._club_name
        )
        result = client.send(notification)
        logger.info("CONTACT: delivered to %s id=%s", config.inquiryEmail, result.get("id"))
        return CONFIRMATION_MESSAGE
