"""Messaging adapter selection for customer notifications.

``fake`` records messages in memory; ``link`` produces WhatsApp click-to-chat
links for the operator to open. Select with MESSAGING_ADAPTER.
"""

import os

_messenger_instance = None


def get_messenger():
    """Return the configured messaging adapter (singleton)."""
    global _messenger_instance
    if _messenger_instance is None:
        adapter = os.environ.get("MESSAGING_ADAPTER", "fake")
        if adapter == "fake":
            from backoffice.messaging.fake_adapter import FakeMessenger

            _messenger_instance = FakeMessenger()
        elif adapter == "link":
            from backoffice.messaging.whatsapp_link import WhatsAppLinkMessenger

            _messenger_instance = WhatsAppLinkMessenger()
        else:
            raise ValueError(f"Unknown messaging adapter: {adapter}")
    return _messenger_instance


def set_messenger(messenger):
    global _messenger_instance
    _messenger_instance = messenger


def reset_messenger():
    """Reset the messaging singleton (useful for testing)."""
    global _messenger_instance
    _messenger_instance = None
