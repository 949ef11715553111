"""Domain events for the Order aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from backoffice.domain import backoffice


@backoffice.event(part_of="Order")
class OrderPlaced:
    """A new order entered the ledger in the ``received`` state."""

    __version__ = 1

    order_id = Identifier(required=True)
    store_id = Identifier(required=True)
    article_id = Identifier()
    quantity = Integer(required=True)
    price = Float(required=True)
    placed_at = DateTime(required=True)


@backoffice.event(part_of="Order")
class OrderUpdated:
    """An order's fields were edited, possibly changing its status."""

    __version__ = 1

    order_id = Identifier(required=True)
    store_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    is_paid = Boolean(required=True)
    updated_at = DateTime(required=True)


@backoffice.event(part_of="Order")
class OrderDeleted:
    __version__ = 1

    order_id = Identifier(required=True)
    store_id = Identifier(required=True)
    deleted_at = DateTime(required=True)


@backoffice.event(part_of="Order")
class OrderRestored:
    __version__ = 1

    order_id = Identifier(required=True)
    store_id = Identifier(required=True)
    restored_at = DateTime(required=True)
