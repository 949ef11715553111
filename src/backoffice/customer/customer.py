"""Customer aggregate: the store's contact record for a buyer.

Orders keep their own copy of the contact fields; when an order linked to a
customer is edited, the customer is brought in line with the order.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, Integer, String

from backoffice.domain import backoffice


@backoffice.aggregate
class Customer:
    store_id = Identifier(required=True)
    name = String(max_length=255)
    phone = String(max_length=50)
    address = String(max_length=500)
    city = String(max_length=100)
    revision = Integer(default=0)
    created_at = DateTime(default=lambda: datetime.now(UTC))
    updated_at = DateTime()

    def sync_contact(self, name=None, phone=None, address=None, city=None):
        self.name = name
        self.phone = phone
        self.address = address
        self.city = city
        self.updated_at = datetime.now(UTC)
