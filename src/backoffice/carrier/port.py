"""Carrier port: the interface shipping providers are driven through.

Calls are made by the automation engine and the shipment dispatcher, always
after the order transaction has committed.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class CarrierError(Exception):
    """The carrier rejected a request or could not be reached."""


@dataclass(frozen=True)
class ShipmentResult:
    tracking_id: str | None
    status: str
    label_url: str | None = None
    raw: dict = field(default_factory=dict)


@dataclass(frozen=True)
class PickupResult:
    accepted: bool
    tracking_ids: tuple = ()
    reference: str | None = None


class CarrierPort(ABC):
    """Abstract interface for carrier adapters."""

    name = "carrier"

    @abstractmethod
    def authenticate(self, credentials: dict) -> str:
        """Exchange the store's public/secret key pair for an access token."""
        ...

    @abstractmethod
    def create_shipment(self, token: str, order: dict, sender: dict) -> ShipmentResult:
        """Register a parcel for ``order`` (an order automation payload).

        ``sender`` holds the store's name, phone, address and pickup city.
        """
        ...

    @abstractmethod
    def request_pickup(self, token: str, tracking_ids: list[str]) -> PickupResult:
        ...

    @abstractmethod
    def tracking_url(self, tracking_id: str) -> str:
        ...
