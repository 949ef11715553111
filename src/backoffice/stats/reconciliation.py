"""Rebuild a store's statistics from its orders.

Incremental counters drift whenever an order write and a stats write do not
both land. Reconciliation ignores the stored counters: it scans every order
of the store, folds them into a fresh ``AggregateStats`` and overwrites the
``StoreStats`` document in one write. Running it twice gives the same result.
"""

import json
import os
from dataclasses import dataclass, field
from datetime import UTC, date, datetime

import structlog
from protean import UnitOfWork
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from backoffice.order.order import Order
from backoffice.order.status import OrderStatus
from backoffice.stats.store_stats import StoreStats
from backoffice.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)

STATS_PAGE_SIZE = int(os.getenv("BACKOFFICE_STATS_PAGE_SIZE", "200"))

UNKNOWN = "unknown"


@dataclass
class Totals:
    revenue: float = 0.0
    count: int = 0
    realized_revenue: float = 0.0
    realized_cogs: float = 0.0
    realized_delivery_cost: float = 0.0
    delivered_revenue: float = 0.0


@dataclass
class AggregateStats:
    totals: Totals = field(default_factory=Totals)
    status_counts: dict = field(default_factory=dict)
    daily: dict = field(default_factory=dict)

    def to_dict(self):
        return {
            "totals": {
                "revenue": self.totals.revenue,
                "count": self.totals.count,
                "realized_revenue": self.totals.realized_revenue,
                "realized_cogs": self.totals.realized_cogs,
                "realized_delivery_cost": self.totals.realized_delivery_cost,
                "delivered_revenue": self.totals.delivered_revenue,
            },
            "status_counts": dict(sorted(self.status_counts.items())),
            "daily": {day: dict(values) for day, values in sorted(self.daily.items())},
        }


def _day_key(value):
    if value is None or value == "":
        return UNKNOWN
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]


def compute_store_stats(orders) -> AggregateStats:
    """Fold orders into statistics. Pure: reads only the given orders."""
    stats = AggregateStats()
    totals = stats.totals

    for order in orders:
        quantity = order.quantity or 1
        value = (order.price or 0.0) * quantity
        cost = (order.cost_price or 0.0) * quantity
        delivery = order.real_delivery_cost or 0.0

        totals.revenue += value
        totals.count += 1

        if order.is_paid:
            totals.realized_revenue += value
            totals.realized_cogs += cost
            totals.realized_delivery_cost += delivery

        if order.status == OrderStatus.DELIVERED.value:
            totals.delivered_revenue += value

        status = order.status or UNKNOWN
        stats.status_counts[status] = stats.status_counts.get(status, 0) + 1

        day = stats.daily.setdefault(_day_key(order.date), {"revenue": 0.0, "count": 0})
        day["revenue"] += value
        day["count"] += 1

    stats.status_counts = dict(sorted(stats.status_counts.items()))
    stats.daily = dict(sorted(stats.daily.items()))
    return stats


def iter_store_orders(store_id, page_size=None):
    """Yield every order of the store, including soft-deleted ones, page by page in id order."""
    page_size = page_size or STATS_PAGE_SIZE
    repo = current_domain.repository_for(Order)

    offset = 0
    while True:
        page = repo._dao.query.filter(store_id=str(store_id)).order_by("id").offset(offset).limit(page_size).all().items
        yield from page
        if len(page) < page_size:
            return
        offset += page_size


class StatsReconciler:
    def __init__(self, page_size=None):
        self.page_size = page_size or STATS_PAGE_SIZE

    def reconcile(self, store_id) -> AggregateStats:
        add_context(store_id=str(store_id))
        try:
            stats = compute_store_stats(iter_store_orders(store_id, self.page_size))
            self._write(str(store_id), stats)
        finally:
            clear_context("store_id")

        logger.info(
            "Store stats reconciled",
            store_id=str(store_id),
            orders=stats.totals.count,
            revenue=stats.totals.revenue,
        )
        return stats

    def _write(self, store_id, stats):
        repo = current_domain.repository_for(StoreStats)
        try:
            record = repo.get(store_id)
        except ObjectNotFoundError:
            record = StoreStats(store_id=store_id)

        record.revenue = stats.totals.revenue
        record.count = stats.totals.count
        record.realized_revenue = stats.totals.realized_revenue
        record.realized_cogs = stats.totals.realized_cogs
        record.realized_delivery_cost = stats.totals.realized_delivery_cost
        record.delivered_revenue = stats.totals.delivered_revenue
        record.status_counts = json.dumps(stats.status_counts, sort_keys=True)
        record.daily = json.dumps(stats.daily, sort_keys=True)
        record.reconciled_at = datetime.now(UTC)

        with UnitOfWork():
            repo.add(record)
