"""Error taxonomy for order mutations.

Business errors extend Protean's exceptions so the FastAPI integration and
callers that already catch ``ValidationError``/``ObjectNotFoundError`` keep
working. Every error carries a messages dict keyed by the offending field.
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError


class OutOfStock(ValidationError):
    """The requested quantity is larger than the product's remaining stock."""

    def __init__(self, product_id, available, requested):
        self.product_id = str(product_id)
        self.available = available
        self.requested = requested
        super().__init__(
            {
                "stock": [
                    f"Insufficient stock for product {product_id}: "
                    f"{available} available, {requested} requested"
                ]
            }
        )


class InvalidTransition(ValidationError):
    """The target status is not one of the known order statuses."""

    def __init__(self, status):
        self.status = status
        super().__init__({"status": [f"Unknown order status '{status}'"]})


class ProductNotFound(ObjectNotFoundError):
    def __init__(self, product_id):
        self.product_id = str(product_id)
        self.messages = {"article_id": [f"Product {product_id} does not exist"]}
        super().__init__(self.messages)


class OrderNotFound(ObjectNotFoundError):
    def __init__(self, order_id, store_id=None):
        self.order_id = str(order_id)
        self.store_id = store_id
        self.messages = {"order_id": [f"Order {order_id} not found in store {store_id}"]}
        super().__init__(self.messages)


class TransactionConflict(InvalidOperationError):
    """A record read by the transaction changed before it could commit."""

    def __init__(self, record_type, identifier):
        self.record_type = record_type
        self.identifier = str(identifier)
        self.messages = {"transaction": [f"{record_type} {identifier} was modified concurrently"]}
        super().__init__(self.messages)


class TransactionFailed(InvalidOperationError):
    """Conflicts persisted past the retry budget; the caller may try again."""

    def __init__(self, attempts):
        self.attempts = attempts
        self.messages = {
            "transaction": [f"Could not complete the operation after {attempts} attempts, please retry"]
        }
        super().__init__(self.messages)
