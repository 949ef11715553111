"""Messaging port: abstract interface for templated customer messages."""

from abc import ABC, abstractmethod


class MessagingPort(ABC):
    @abstractmethod
    def send_templated_message(self, phone: str, text: str) -> dict:
        """Deliver an already rendered message to ``phone``.

        Returns:
            dict with keys: message_id, status ("sent", "link" or "failed"), error (optional)
        """
        ...
