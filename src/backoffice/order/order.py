"""Order aggregate: one line of the store's order ledger.

An order references at most one catalogue product (``article_id``) and holds
a copy of the buyer's contact details. Status and payment are edited freely
between the known statuses; the stock consequences of those edits are
decided by ``backoffice.order.status`` and applied by the transaction manager.
Soft deletion is a separate flag and never touches status or stock.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, Date, DateTime, Float, Identifier, Integer, String

from backoffice.domain import backoffice
from backoffice.order.events import OrderDeleted, OrderPlaced, OrderRestored, OrderUpdated
from backoffice.order.status import OrderStatus

# Fields a caller may supply when placing an order
PLACEMENT_FIELDS = frozenset(
    {
        "article_id",
        "article_name",
        "quantity",
        "price",
        "cost_price",
        "real_delivery_cost",
        "payment_method",
        "customer_id",
        "client_name",
        "client_phone",
        "client_address",
        "client_city",
        "date",
        "carrier",
        "tracking_id",
    }
)

# Fields a caller may change on an existing order
EDITABLE_FIELDS = PLACEMENT_FIELDS | {"status", "is_paid", "carrier_status", "label_url"}


def reject_unknown_fields(data, allowed):
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ValidationError({field: ["Field cannot be set on an order"] for field in unknown})


@backoffice.aggregate
class Order:
    store_id = Identifier(required=True)
    article_id = Identifier()
    article_name = String(max_length=255)
    quantity = Integer(default=1, min_value=1)
    price = Float(default=0.0, min_value=0.0)
    cost_price = Float(default=0.0, min_value=0.0)
    real_delivery_cost = Float(default=0.0, min_value=0.0)
    status = String(choices=OrderStatus, default=OrderStatus.RECEIVED.value)
    is_paid = Boolean(default=False)
    payment_method = String(max_length=50, default="cod")
    customer_id = Identifier()
    client_name = String(max_length=255)
    client_phone = String(max_length=50)
    client_address = String(max_length=500)
    client_city = String(max_length=100)
    date = Date()
    carrier = String(max_length=100)
    tracking_id = String(max_length=255)
    carrier_status = String(max_length=100)
    label_url = String(max_length=500)
    deleted = Boolean(default=False)
    revision = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def place(cls, store_id, **fields):
        """Create a new order in the ``received`` state, unpaid."""
        reject_unknown_fields(fields, PLACEMENT_FIELDS)

        now = datetime.now(UTC)
        fields.setdefault("date", now.date())

        order = cls(
            store_id=store_id,
            status=OrderStatus.RECEIVED.value,
            is_paid=False,
            created_at=now,
            updated_at=now,
            **fields,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                store_id=str(store_id),
                article_id=str(order.article_id) if order.article_id else None,
                quantity=order.quantity,
                price=order.price,
                placed_at=now,
            )
        )
        return order

    def total_amount(self):
        return (self.price or 0.0) * (self.quantity or 1)

    def revise(self, changes):
        """Merge ``changes`` into the order. Unmentioned fields keep their values."""
        reject_unknown_fields(changes, EDITABLE_FIELDS)

        previous_status = self.status
        previous_quantity = self.quantity

        for field_name, value in changes.items():
            setattr(self, field_name, value)

        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            OrderUpdated(
                order_id=str(self.id),
                store_id=str(self.store_id),
                previous_status=previous_status,
                new_status=self.status,
                previous_quantity=previous_quantity,
                new_quantity=self.quantity,
                is_paid=bool(self.is_paid),
                updated_at=now,
            )
        )

    def mark_deleted(self):
        if self.deleted:
            return
        now = datetime.now(UTC)
        self.deleted = True
        self.updated_at = now
        self.raise_(OrderDeleted(order_id=str(self.id), store_id=str(self.store_id), deleted_at=now))

    def restore(self):
        if not self.deleted:
            return
        now = datetime.now(UTC)
        self.deleted = False
        self.updated_at = now
        self.raise_(OrderRestored(order_id=str(self.id), store_id=str(self.store_id), restored_at=now))

    def automation_payload(self):
        """Flatten the order into the event payload consumed by automations."""
        return {
            "id": str(self.id),
            "store_id": str(self.store_id),
            "status": self.status,
            "total": self.total_amount(),
            "quantity": self.quantity,
            "price": self.price,
            "name": self.client_name,
            "phone": self.client_phone,
            "address": self.client_address,
            "city": self.client_city,
            "product": self.article_name,
            "article_id": str(self.article_id) if self.article_id else None,
            "payment_method": self.payment_method,
            "carrier": self.carrier,
            "tracking_id": self.tracking_id,
        }
