"""Process-wide services: the order manager with the automation engine subscribed."""

from backoffice.automation.engine import AutomationEngine
from backoffice.order.manager import OrderTransactionManager
from backoffice.order.shipping import ShipmentDispatcher
from backoffice.stats.reconciliation import StatsReconciler

_order_manager = None
_automation_engine = None


def get_automation_engine():
    global _automation_engine
    if _automation_engine is None:
        _automation_engine = AutomationEngine()
    return _automation_engine


def get_order_manager():
    """Return the shared order manager (singleton), wired to the automation engine."""
    global _order_manager
    if _order_manager is None:
        _order_manager = OrderTransactionManager()
        _order_manager.subscribe(get_automation_engine().on_order_change)
    return _order_manager


def get_shipment_dispatcher():
    return ShipmentDispatcher(get_order_manager())


def get_stats_reconciler():
    return StatsReconciler()


def reset_services():
    """Drop the singletons (useful for testing)."""
    global _order_manager, _automation_engine
    _order_manager = None
    _automation_engine = None
