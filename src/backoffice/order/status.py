"""Order statuses and the stock/payment rules attached to status changes.

Statuses are partitioned into Active and Inactive. Active orders hold a stock
reservation; Inactive ones (cancelled, returned, no answer) have released it.
Everything here is pure: the transaction manager reads the inputs, asks these
functions what to do, and performs the writes.
"""

from enum import Enum

from backoffice.shared.errors import InvalidTransition


class OrderStatus(Enum):
    RECEIVED = "received"
    CONFIRMED = "confirmed"
    PACKING = "packing"
    SHIPPING = "shipping"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"
    NO_ANSWER = "no_answer"
    POSTPONED = "postponed"


INACTIVE_STATUSES = frozenset(
    {
        OrderStatus.CANCELLED.value,
        OrderStatus.RETURNED.value,
        OrderStatus.NO_ANSWER.value,
    }
)


def parse_status(token):
    """Return the ``OrderStatus`` for a token, raising ``InvalidTransition`` for unknown ones."""
    if isinstance(token, OrderStatus):
        return token
    try:
        return OrderStatus(token)
    except ValueError:
        raise InvalidTransition(token) from None


def status_value(status):
    """Plain string form of a status given either as an ``OrderStatus`` or a token."""
    return status.value if isinstance(status, OrderStatus) else status


def is_active(status):
    return status_value(status) not in INACTIVE_STATUSES


def should_restock(old_status, new_status):
    return is_active(old_status) and not is_active(new_status)


def should_deduct(old_status, new_status):
    return not is_active(old_status) and is_active(new_status)


def stock_delta(old_status, new_status, old_quantity, new_quantity):
    """Change to apply to the product's stock when an order moves between states.

    Positive values return units to the shelf, negative values consume them.
    """
    if should_restock(old_status, new_status):
        return old_quantity
    if should_deduct(old_status, new_status):
        return -new_quantity
    if is_active(new_status):
        return -(new_quantity - old_quantity)
    return 0


def stock_adjustments(old_article_id, new_article_id, old_status, new_status, old_quantity, new_quantity):
    """Per-product stock deltas for an order edit, including a change of article.

    Returns a dict of product id to non-zero delta.
    """
    adjustments = {}

    if old_article_id and old_article_id == new_article_id:
        delta = stock_delta(old_status, new_status, old_quantity, new_quantity)
        if delta:
            adjustments[str(old_article_id)] = delta
        return adjustments

    # Article swapped: release the old reservation, then reserve on the new article
    if old_article_id and is_active(old_status):
        adjustments[str(old_article_id)] = old_quantity
    if new_article_id and is_active(new_status):
        adjustments[str(new_article_id)] = -new_quantity

    return {product_id: delta for product_id, delta in adjustments.items() if delta}


def settle_payment(old_status, new_status, is_paid):
    """Apply the payment coupling of a status change and return the new flag.

    Entering an inactive state refunds a paid order. Reaching ``delivered``
    settles a cash-on-delivery order.
    """
    old_status, new_status = status_value(old_status), status_value(new_status)
    if old_status == new_status:
        return is_paid
    if not is_active(new_status) and is_paid:
        return False
    if new_status == OrderStatus.DELIVERED.value and not is_paid:
        return True
    return is_paid
