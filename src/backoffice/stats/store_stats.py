"""Per-store aggregate statistics, rebuilt from the order ledger.

The document is only ever written whole by the reconciler. Maps are kept as
JSON text with sorted keys so two reconciliations of the same ledger store
identical documents.
"""

import json

from protean.fields import DateTime, Float, Integer, String, Text

from backoffice.domain import backoffice


@backoffice.projection
class StoreStats:
    store_id = String(identifier=True, required=True, max_length=255)
    revenue = Float(default=0.0)
    count = Integer(default=0)
    realized_revenue = Float(default=0.0)
    realized_cogs = Float(default=0.0)
    realized_delivery_cost = Float(default=0.0)
    delivered_revenue = Float(default=0.0)
    status_counts = Text(default="{}")  # JSON: {status: count}
    daily = Text(default="{}")  # JSON: {YYYY-MM-DD: {revenue, count}}
    reconciled_at = DateTime()

    def status_count_map(self) -> dict:
        return json.loads(self.status_counts or "{}")

    def daily_map(self) -> dict:
        return json.loads(self.daily or "{}")
