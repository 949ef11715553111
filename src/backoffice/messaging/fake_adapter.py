"""Fake messaging adapter: records sent messages for testing."""

from uuid import uuid4

from backoffice.messaging.port import MessagingPort


class FakeMessenger(MessagingPort):
    """Messaging adapter that records messages in memory for test assertions."""

    def __init__(self):
        self.sent_messages: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Message delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Message delivery failed"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def send_templated_message(self, phone: str, text: str) -> dict:
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"msg-{uuid4().hex[:12]}"
        self.sent_messages.append({"message_id": message_id, "to": phone, "body": text})
        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        """Clear sent messages (useful between tests)."""
        self.sent_messages.clear()
        self.should_succeed = True
        self.failure_reason = "Message delivery failed"
