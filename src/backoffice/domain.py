"""Back office bounded context: orders, stock, automations and store statistics.

Handles the transactional order lifecycle against the shared product catalogue,
the automation rules that react to order changes, and the reconciliation of
per-store aggregate statistics from the order ledger.
"""

from protean.domain import Domain

from backoffice.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

backoffice = Domain(name="backoffice")
