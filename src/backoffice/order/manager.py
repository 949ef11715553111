"""Transactional order create/update with stock reservation.

Every operation takes the store id explicitly and runs as one transaction
over the order, the products it reserves stock on and the linked customer.
Subscribers hear about a change only after it has been committed.
"""

from dataclasses import dataclass, field
from enum import Enum

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from backoffice.catalogue.product import Product
from backoffice.customer.customer import Customer
from backoffice.order.order import EDITABLE_FIELDS, PLACEMENT_FIELDS, Order, reject_unknown_fields
from backoffice.order.status import parse_status, settle_payment, stock_adjustments
from backoffice.order.transaction import run_in_transaction
from backoffice.shared.errors import OrderNotFound, ProductNotFound

logger = structlog.get_logger(__name__)


class TriggerType(Enum):
    ORDER_CREATED = "order_created"
    ORDER_UPDATED = "order_updated"


@dataclass(frozen=True)
class OrderChange:
    """A committed order change, as handed to subscribers."""

    trigger: TriggerType
    store_id: str
    order_id: str
    payload: dict = field(default_factory=dict)
    previous_status: str | None = None


def _clean(data):
    data = dict(data)
    # Blank references unlink; a null quantity, status or payment flag means "not given"
    for key in ("article_id", "customer_id"):
        if key in data and not data[key]:
            data[key] = None
    for key in ("quantity", "status", "is_paid"):
        if key in data and data[key] is None:
            del data[key]
    return data


class OrderTransactionManager:
    def __init__(self, max_attempts=None):
        self.max_attempts = max_attempts
        self._subscribers = []

    def subscribe(self, callback):
        self._subscribers.append(callback)

    def create(self, store_id, order_input) -> str:
        """Place a new order, reserving stock on its article. Returns the order id."""
        data = _clean(order_input)
        reject_unknown_fields(data, PLACEMENT_FIELDS)

        def work(txn):
            product = None
            if data.get("article_id"):
                product = self._read_product(txn, data["article_id"])

            order = Order.place(store_id, **data)
            if product is not None:
                product.adjust_stock(-order.quantity, order_id=order.id)
                txn.set(product)
            txn.set(order)
            return order

        order = run_in_transaction(work, self.max_attempts)
        logger.info(
            "Order created",
            store_id=str(store_id),
            order_id=str(order.id),
            article_id=str(order.article_id) if order.article_id else None,
            quantity=order.quantity,
        )

        self._notify(
            OrderChange(
                trigger=TriggerType.ORDER_CREATED,
                store_id=str(store_id),
                order_id=str(order.id),
                payload=order.automation_payload(),
            )
        )
        return str(order.id)

    def update(self, store_id, order_id, changes, snapshot=None) -> Order:
        """Merge ``changes`` into an order and apply the stock and payment effects.

        The stored order is the reference for the previous state. ``snapshot``
        is the caller's view of the order before editing and is only compared
        against the stored one.
        """
        changes = _clean(changes)
        reject_unknown_fields(changes, EDITABLE_FIELDS)
        if "status" in changes:
            changes["status"] = parse_status(changes["status"]).value

        def work(txn):
            order = self._read_order(txn, store_id, order_id)
            if snapshot is not None:
                self._check_snapshot(order, snapshot)

            old_status = order.status
            old_quantity = order.quantity
            new_status = changes.get("status", old_status)
            new_quantity = changes.get("quantity", old_quantity)

            customer_id = changes.get("customer_id", order.customer_id)
            customer = self._read_customer(txn, store_id, customer_id) if customer_id else None

            adjustments = stock_adjustments(
                order.article_id,
                changes.get("article_id", order.article_id),
                old_status,
                new_status,
                old_quantity,
                new_quantity,
            )
            products = [(self._read_product(txn, product_id), delta) for product_id, delta in adjustments.items()]

            for product, delta in products:
                product.adjust_stock(delta, order_id=order.id)

            merged = dict(changes)
            merged["is_paid"] = settle_payment(old_status, new_status, bool(changes.get("is_paid", order.is_paid)))
            order.revise(merged)

            if customer is not None:
                customer.sync_contact(
                    name=order.client_name,
                    phone=order.client_phone,
                    address=order.client_address,
                    city=order.client_city,
                )

            for product, _ in products:
                txn.set(product)
            txn.set(order)
            if customer is not None:
                txn.set(customer)

            return order, old_status, adjustments

        order, old_status, adjustments = run_in_transaction(work, self.max_attempts)
        logger.info(
            "Order updated",
            store_id=str(store_id),
            order_id=str(order_id),
            previous_status=old_status,
            status=order.status,
            stock_adjustments=adjustments,
        )

        self._notify(
            OrderChange(
                trigger=TriggerType.ORDER_UPDATED,
                store_id=str(store_id),
                order_id=str(order.id),
                payload=order.automation_payload(),
                previous_status=old_status,
            )
        )
        return order

    def soft_delete(self, store_id, order_id) -> Order:
        """Hide an order from the ledger. Status and stock are left alone."""

        def work(txn):
            order = self._read_order(txn, store_id, order_id)
            order.mark_deleted()
            txn.set(order)
            return order

        order = run_in_transaction(work, self.max_attempts)
        logger.info("Order soft-deleted", store_id=str(store_id), order_id=str(order_id))
        return order

    def restore(self, store_id, order_id) -> Order:
        def work(txn):
            order = self._read_order(txn, store_id, order_id)
            order.restore()
            txn.set(order)
            return order

        order = run_in_transaction(work, self.max_attempts)
        logger.info("Order restored", store_id=str(store_id), order_id=str(order_id))
        return order

    def get(self, store_id, order_id) -> Order:
        """Read a single order of the store outside any transaction."""
        try:
            order = current_domain.repository_for(Order).get(order_id)
        except ObjectNotFoundError:
            raise OrderNotFound(order_id, store_id) from None
        if str(order.store_id) != str(store_id):
            raise OrderNotFound(order_id, store_id)
        return order

    def _read_order(self, txn, store_id, order_id):
        try:
            order = txn.get(Order, order_id)
        except ObjectNotFoundError:
            raise OrderNotFound(order_id, store_id) from None
        if str(order.store_id) != str(store_id):
            raise OrderNotFound(order_id, store_id)
        return order

    def _read_product(self, txn, product_id):
        try:
            return txn.get(Product, product_id)
        except ObjectNotFoundError:
            raise ProductNotFound(product_id) from None

    def _read_customer(self, txn, store_id, customer_id):
        try:
            customer = txn.get(Customer, customer_id)
        except ObjectNotFoundError:
            return None
        if str(customer.store_id) != str(store_id):
            return None
        return customer

    def _check_snapshot(self, order, snapshot):
        stale = {
            key: value
            for key, value in snapshot.items()
            if key in ("status", "quantity", "article_id", "is_paid") and value != getattr(order, key)
        }
        if stale:
            logger.warning(
                "Ignoring stale order snapshot",
                order_id=str(order.id),
                stale_fields=sorted(stale),
            )

    def _notify(self, change):
        for callback in list(self._subscribers):
            try:
                callback(change)
            except Exception:
                logger.error(
                    "Order change subscriber failed",
                    store_id=change.store_id,
                    order_id=change.order_id,
                    trigger=change.trigger.value,
                    exc_info=True,
                )
