"""
Booking confirmation emails via Resend
"""
import asyncio
import logging
from dataclasses import dataclass
from html import escape
from typing import Protocol

import resend

logger = logging.getLogger(__name__)


@dataclass
class Message:
    to: str
    subject: str
    html: str


class Notifier(Protocol):
    async def send(self, message: Message) -> bool: ...


class ResendNotifier:
    def __init__(self, api_key: str, from_address: str):
        resend.api_key = api_key
        self._from_address = from_address

    async def send(self, message: Message) -> bool:
        email_data = {
            "from": self._from_address,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }
        try:
            response = await asyncio.to_thread(resend.Emails.send, email_data)
        except Exception as e:
            logger.error(f"❌ Email send error to {message.to}: {e}")
            return False
        logger.info(f"✅ Confirmation email sent via Resend: {response}")
        return True


class NullNotifier:
    """Used when no Resend key is configured."""

    async def send(self, message: Message) -> bool:
        logger.info(f"ℹ️ Email disabled, not sending '{message.subject}' to {message.to}")
        return False


def booking_confirmation(to: str, title: str, when: dict, staff: str | None) -> Message:
    start = when.get("dateTime") or when.get("date") or ""
    staff_line = f"<p>Profissional: {escape(staff)}</p>" if staff else ""
    html = (
        "<h2>Marcação confirmada</h2>"
        f"<p>{escape(title)}</p>"
        f"<p>Data: {escape(start)}</p>"
        f"{staff_line}"
    )
    return Message(to=to, subject="Confirmação da sua marcação", html=html)
