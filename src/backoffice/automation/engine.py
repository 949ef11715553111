"""Runs a store's automations when an order changes.

Each definition is evaluated and executed on its own: a failing action is
logged and reported as a ``failed`` outcome, never raised. Definitions run in
creation order, one after the other.
"""

from dataclasses import dataclass
from enum import Enum

import structlog
from protean.utils.globals import current_domain

from backoffice.automation.automation import AutomationDefinition, AutomationStatus
from backoffice.automation.rules import ActionKind, compile_rule, evaluate_condition
from backoffice.automation.templates import render_message
from backoffice.carrier import get_carrier
from backoffice.messaging import get_messenger
from backoffice.tenant.profile import tenant_config_for
from backoffice.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)


class OutcomeStatus(Enum):
    EXECUTED = "executed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class AutomationOutcome:
    definition_id: str
    name: str
    status: OutcomeStatus
    action: str | None = None
    detail: str | None = None


def active_definitions(store_id, trigger_type):
    """Active definitions of ``store_id`` listening on ``trigger_type``, oldest first."""
    repo = current_domain.repository_for(AutomationDefinition)
    return (
        repo._dao.query.filter(
            store_id=str(store_id),
            status=AutomationStatus.ACTIVE.value,
            trigger_type=trigger_type,
        )
        .order_by("created_at")
        .all()
        .items
    )


class AutomationEngine:
    def __init__(self, carrier=None, messenger=None, definitions=None):
        self._carrier = carrier
        self._messenger = messenger
        self._definitions = definitions or active_definitions
        self._actions = {
            ActionKind.CREATE_DELIVERY: self._create_delivery,
            ActionKind.SEND_WHATSAPP: self._send_whatsapp,
            ActionKind.REQUEST_PICKUP: self._request_pickup,
        }

    @property
    def carrier(self):
        return self._carrier or get_carrier()

    @property
    def messenger(self):
        return self._messenger or get_messenger()

    def run(self, trigger_type, payload, tenant) -> list[AutomationOutcome]:
        trigger = trigger_type.value if isinstance(trigger_type, Enum) else str(trigger_type)

        add_context(store_id=tenant.store_id, trigger=trigger)
        try:
            definitions = self._definitions(tenant.store_id, trigger)
            if definitions:
                logger.info("Running automations", count=len(definitions), order_id=payload.get("id"))
            return [self._run_definition(definition, payload, tenant) for definition in definitions]
        finally:
            clear_context("store_id", "trigger")

    def on_order_change(self, change):
        """Subscriber for committed order changes."""
        return self.run(change.trigger, change.payload, tenant_config_for(change.store_id))

    def _run_definition(self, definition, payload, tenant):
        try:
            rule = compile_rule(definition)
        except Exception as exc:
            logger.error(
                "Automation definition could not be loaded",
                automation=definition.name,
                order_id=payload.get("id"),
                exc_info=True,
            )
            return AutomationOutcome(
                definition_id=str(definition.id),
                name=definition.name or "",
                status=OutcomeStatus.FAILED,
                detail=str(exc),
            )

        if rule is None:
            return AutomationOutcome(
                definition_id=str(definition.id),
                name=definition.name or "",
                status=OutcomeStatus.SKIPPED,
                detail="Automation has fewer than two nodes",
            )

        def outcome(status, detail=None):
            return AutomationOutcome(
                definition_id=rule.definition_id,
                name=rule.name,
                status=status,
                action=rule.action.key,
                detail=detail,
            )

        try:
            if not evaluate_condition(rule.condition, payload):
                logger.info("Automation skipped, condition not met", automation=rule.name)
                return outcome(OutcomeStatus.SKIPPED, "Condition not met")

            handler = self._actions.get(rule.action.kind)
            if handler is None:
                logger.warning("Unknown automation action", automation=rule.name, action=rule.action.key)
                return outcome(OutcomeStatus.SKIPPED, f"Unknown action {rule.action.key}")

            status, detail = handler(rule.action, payload, tenant)
        except Exception as exc:
            logger.error(
                "Automation action failed",
                automation=rule.name,
                action=rule.action.key,
                order_id=payload.get("id"),
                exc_info=True,
            )
            return outcome(OutcomeStatus.FAILED, str(exc))

        logger.info(
            "Automation finished",
            automation=rule.name,
            action=rule.action.key,
            status=status.value,
            order_id=payload.get("id"),
        )
        return outcome(status, detail)

    def _create_delivery(self, action, payload, tenant):
        if not tenant.has_carrier:
            logger.warning("Automation skipped, carrier keys missing", order_id=payload.get("id"))
            return OutcomeStatus.SKIPPED, "Carrier credentials missing"

        token = self.carrier.authenticate(tenant.carrier_credentials)
        shipment = self.carrier.create_shipment(token, payload, tenant.sender)
        return OutcomeStatus.EXECUTED, shipment.tracking_id

    def _send_whatsapp(self, action, payload, tenant):
        template = action.config.get("message")
        if not template:
            return OutcomeStatus.SKIPPED, "No message configured"
        if not payload.get("phone"):
            return OutcomeStatus.SKIPPED, "Order has no phone number"

        tracking_url = None
        if payload.get("tracking_id") and tenant.has_carrier:
            tracking_url = self.carrier.tracking_url(payload["tracking_id"])

        text = render_message(template, payload, tenant, tracking_url)
        response = self.messenger.send_templated_message(payload["phone"], text)
        if response.get("status") == "failed":
            return OutcomeStatus.FAILED, response.get("error")
        return OutcomeStatus.EXECUTED, response.get("message_id")

    def _request_pickup(self, action, payload, tenant):
        if not tenant.has_carrier:
            return OutcomeStatus.SKIPPED, "Carrier credentials missing"
        if not payload.get("tracking_id"):
            return OutcomeStatus.SKIPPED, "Order has no tracking id"

        token = self.carrier.authenticate(tenant.carrier_credentials)
        pickup = self.carrier.request_pickup(token, [payload["tracking_id"]])
        return OutcomeStatus.EXECUTED, pickup.reference
