"""Product aggregate: the catalogue entry whose stock orders reserve.

Only stock is managed here. Names, prices and the rest of the catalogue are
maintained elsewhere and are carried as plain attributes.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Float, Identifier, Integer, String

from backoffice.catalogue.events import StockAdjusted
from backoffice.domain import backoffice
from backoffice.shared.errors import OutOfStock


@backoffice.aggregate
class Product:
    store_id = Identifier()
    name = String(max_length=255)
    stock = Integer(default=0, min_value=0)
    price = Float(default=0.0, min_value=0.0)
    cost_price = Float(default=0.0, min_value=0.0)
    revision = Integer(default=0)
    updated_at = DateTime()

    @classmethod
    def register(cls, name, stock=0, price=0.0, cost_price=0.0, store_id=None, product_id=None):
        fields = {
            "name": name,
            "stock": stock,
            "price": price,
            "cost_price": cost_price,
            "store_id": store_id,
            "updated_at": datetime.now(UTC),
        }
        if product_id is not None:
            fields["id"] = product_id
        return cls(**fields)

    def adjust_stock(self, delta, order_id=None):
        """Move ``delta`` units in (positive) or out (negative) of stock.

        Raises ``OutOfStock`` instead of letting stock go below zero.
        """
        if not delta:
            return

        previous = self.stock or 0
        new_stock = previous + delta
        if new_stock < 0:
            raise OutOfStock(self.id, available=previous, requested=-delta)

        now = datetime.now(UTC)
        self.stock = new_stock
        self.updated_at = now

        self.raise_(
            StockAdjusted(
                product_id=str(self.id),
                order_id=str(order_id) if order_id else None,
                previous_stock=previous,
                new_stock=new_stock,
                delta=delta,
                adjusted_at=now,
            )
        )
