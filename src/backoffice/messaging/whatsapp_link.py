"""Click-to-chat adapter: turns a message into a wa.me link.

Nothing is sent; the link is returned for the operator to open. Local numbers
starting with ``0`` are rewritten to the Moroccan ``212`` prefix.
"""

import re
from urllib.parse import quote
from uuid import uuid4

from backoffice.messaging.port import MessagingPort

DEFAULT_COUNTRY_CODE = "212"


def normalize_phone(phone, country_code=DEFAULT_COUNTRY_CODE):
    digits = re.sub(r"[^0-9]", "", phone or "")
    if digits.startswith("0"):
        digits = country_code + digits[1:]
    return digits


def whatsapp_link(phone, text):
    return f"https://wa.me/{normalize_phone(phone)}?text={quote(text, safe='')}"


class WhatsAppLinkMessenger(MessagingPort):
    def __init__(self):
        self.links: list[str] = []

    def send_templated_message(self, phone: str, text: str) -> dict:
        if not normalize_phone(phone):
            return {"message_id": None, "status": "failed", "error": "Missing phone number"}

        link = whatsapp_link(phone, text)
        self.links.append(link)
        return {"message_id": f"wa-{uuid4().hex[:12]}", "status": "link", "link": link}
