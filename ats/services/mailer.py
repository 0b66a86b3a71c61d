"""Outgoing mail through an HTTP webhook."""
import logging
from typing import Optional

import httpx

from ats.config import settings

logger = logging.getLogger(__name__)


class Mailer:
    """Posts messages to a mail-relay webhook.

    Delivery is best effort: failures are logged and never raised, so a
    registration does not fail because mail is down.
    """

    def __init__(self, webhook_url: Optional[str] = None, sender: Optional[str] = None):
        self.webhook_url = webhook_url if webhook_url is not None else settings.email_webhook_url
        self.sender = sender or settings.email_sender

    async def send(self, to: str, subject: str, body: str) -> bool:
        if not self.webhook_url:
            logger.info("Email webhook not configured; skipping mail to %s", to)
            return False

        async with httpx.AsyncClient() as client:
            try:
                response = await client.post(
                    self.webhook_url,
                    json={"from": self.sender, "to": to, "subject": subject, "text": body},
                    timeout=10.0,
                )
                response.raise_for_status()
                return True
            except httpx.HTTPError as e:
                logger.warning("Failed to send mail to %s: %s", to, e)
                return False

    async def send_verification(self, to: str, name: str, code: str) -> bool:
        return await self.send(
            to,
            "Verify your account",
            f"Hi {name},\n\nUse this code to verify your account: {code}\n",
        )

    async def send_password_reset(self, to: str, code: str) -> bool:
        return await self.send(to, "Reset your password", f"Use this code to reset your password: {code}\n")
