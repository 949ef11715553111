"""Store profile: tenant settings consumed by automations and shipping.

``TenantConfig`` is the read-only view handed to the automation engine and the
shipment dispatcher so they never reach back into the repository.
"""

from dataclasses import dataclass, field

from protean.exceptions import ObjectNotFoundError
from protean.fields import String
from protean.utils.globals import current_domain

from backoffice.domain import backoffice


@backoffice.aggregate
class StoreProfile:
    name = String(max_length=255)
    carrier_public_key = String(max_length=255)
    carrier_secret_key = String(max_length=255)
    pickup_city = String(max_length=100)
    sender_phone = String(max_length=50)
    sender_address = String(max_length=500)


@dataclass(frozen=True)
class TenantConfig:
    store_id: str
    name: str | None = None
    carrier_credentials: dict | None = None
    sender: dict = field(default_factory=dict)

    @property
    def has_carrier(self) -> bool:
        return bool(self.carrier_credentials)


def tenant_config_for(store_id) -> TenantConfig:
    """Build the tenant view for ``store_id``; stores without a profile get defaults."""
    try:
        profile = current_domain.repository_for(StoreProfile).get(store_id)
    except ObjectNotFoundError:
        return TenantConfig(store_id=str(store_id))

    credentials = None
    if profile.carrier_public_key and profile.carrier_secret_key:
        credentials = {
            "public_key": profile.carrier_public_key,
            "secret_key": profile.carrier_secret_key,
        }

    return TenantConfig(
        store_id=str(store_id),
        name=profile.name,
        carrier_credentials=credentials,
        sender={
            "name": profile.name,
            "phone": profile.sender_phone,
            "address": profile.sender_address,
            "pickup_city": profile.pickup_city,
        },
    )
