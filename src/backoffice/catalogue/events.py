"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Identifier, Integer

from backoffice.domain import backoffice


@backoffice.event(part_of="Product")
class StockAdjusted:
    """Stock moved because an order reserved or released units."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier()
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    delta = Integer(required=True)
    adjusted_at = DateTime(required=True)
