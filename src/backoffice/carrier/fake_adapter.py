"""Fake carrier adapter: deterministic carrier for testing and development.

Generates mock tracking ids and label URLs and records every call.
Configurable success/failure behavior for integration testing.
"""

from uuid import uuid4

from backoffice.carrier.port import CarrierError, CarrierPort, PickupResult, ShipmentResult


class FakeCarrier(CarrierPort):
    """Fake carrier that always succeeds by default."""

    name = "fake"

    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Carrier unavailable"
        self.shipments = []
        self.pickups = []

    def configure(self, should_succeed: bool = True, failure_reason: str = "Carrier unavailable"):
        """Configure the fake carrier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def authenticate(self, credentials: dict) -> str:
        if not self.should_succeed:
            raise CarrierError(self.failure_reason)
        if not credentials or not credentials.get("public_key") or not credentials.get("secret_key"):
            raise CarrierError("Missing carrier credentials")
        return f"fake-token-{credentials['public_key']}"

    def create_shipment(self, token: str, order: dict, sender: dict) -> ShipmentResult:
        if not self.should_succeed:
            raise CarrierError(self.failure_reason)

        tracking_id = f"FAKE-{uuid4().hex[:12].upper()}"
        self.shipments.append({"token": token, "order": dict(order), "sender": dict(sender), "tracking_id": tracking_id})

        return ShipmentResult(
            tracking_id=tracking_id,
            status="pending",
            label_url=f"https://fake-carrier.example.com/labels/{tracking_id}.pdf",
            raw={"trackingID": tracking_id, "status": "pending"},
        )

    def request_pickup(self, token: str, tracking_ids: list[str]) -> PickupResult:
        if not self.should_succeed:
            raise CarrierError(self.failure_reason)

        self.pickups.append({"token": token, "tracking_ids": list(tracking_ids)})
        return PickupResult(
            accepted=True,
            tracking_ids=tuple(tracking_ids),
            reference=f"pickup-{uuid4().hex[:8]}",
        )

    def tracking_url(self, tracking_id: str) -> str:
        return f"https://fake-carrier.example.com/tracking/{tracking_id}"
