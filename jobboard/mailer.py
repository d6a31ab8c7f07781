"""
Outbound email channel.

``send`` either returns normally (the message was accepted) or raises
:class:`DeliveryFailed`. Retries, if any, belong to the remote service.
"""
from __future__ import annotations

import logging

import requests

from .config import settings
from .errors import DeliveryFailed

logger = logging.getLogger(__name__)


class ConsoleMailer:
    """Writes messages to the log instead of sending them (development)."""

    def send(self, recipient: str, subject: str, body: str) -> None:
        logger.info("email to=%s subject=%r\n%s", recipient, subject, body)


class HttpMailer:
    """Posts messages as JSON to a transactional email API."""

    def __init__(self, url: str, api_key: str | None = None, sender: str | None = None, timeout: int | None = None):
        self.url = url
        self.api_key = api_key
        self.sender = sender or settings.EMAIL_FROM
        self.timeout = timeout or settings.EMAIL_TIMEOUT_SECONDS

    def send(self, recipient: str, subject: str, body: str) -> None:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        payload = {"from": self.sender, "to": [recipient], "subject": subject, "text": body}
        try:
            r = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            raise DeliveryFailed(f"email API rejected message to {recipient}: {e}") from e


def get_mailer():
    if settings.EMAIL_BACKEND == "http":
        if not settings.EMAIL_API_URL:
            raise RuntimeError("Set EMAIL_API_URL when EMAIL_BACKEND=http")
        return HttpMailer(settings.EMAIL_API_URL, settings.EMAIL_API_KEY)
    return ConsoleMailer()
