"""Manual hand-off of an order to the store's carrier.

The carrier is called first, outside any transaction. Only once it has
accepted the parcel is the order moved to ``shipping`` with the tracking
details, through the regular order update.
"""

import structlog
from protean.exceptions import ValidationError

from backoffice.carrier import get_carrier
from backoffice.order.status import OrderStatus

logger = structlog.get_logger(__name__)

PENDING_TRACKING = "PENDING"


class ShipmentDispatcher:
    def __init__(self, manager, carrier=None):
        self.manager = manager
        self._carrier = carrier

    @property
    def carrier(self):
        return self._carrier or get_carrier()

    def dispatch(self, store_id, order_id, tenant):
        """Create the shipment and record it on the order. Carrier errors propagate."""
        if not tenant.has_carrier:
            raise ValidationError({"carrier": ["Carrier credentials are not configured for this store"]})

        order = self.manager.get(store_id, order_id)

        token = self.carrier.authenticate(tenant.carrier_credentials)
        shipment = self.carrier.create_shipment(token, order.automation_payload(), tenant.sender)

        self.manager.update(
            store_id,
            order_id,
            {
                "carrier": self.carrier.name,
                "tracking_id": shipment.tracking_id or PENDING_TRACKING,
                "carrier_status": shipment.status,
                "label_url": shipment.label_url,
                "status": OrderStatus.SHIPPING.value,
            },
        )
        logger.info(
            "Order sent to carrier",
            store_id=str(store_id),
            order_id=str(order_id),
            carrier=self.carrier.name,
            tracking_id=shipment.tracking_id,
        )
        return shipment
