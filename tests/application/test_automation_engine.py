"""Tests for running automations against order changes."""

import pytest
from protean import current_domain

from backoffice.automation.automation import AutomationDefinition
from backoffice.automation.engine import AutomationEngine, OutcomeStatus, active_definitions
from backoffice.carrier.fake_adapter import FakeCarrier
from backoffice.messaging.fake_adapter import FakeMessenger
from backoffice.order.manager import OrderChange, TriggerType
from backoffice.tenant.profile import StoreProfile, TenantConfig

STORE = "store-001"

CARRIER_TENANT = TenantConfig(
    store_id=STORE,
    name="Dar Caftan",
    carrier_credentials={"public_key": "pk", "secret_key": "sk"},
    sender={"name": "Dar Caftan", "phone": "0522000000", "address": "Casablanca", "pickup_city": "Casablanca"},
)
PLAIN_TENANT = TenantConfig(store_id=STORE, name="Dar Caftan")

PAYLOAD = {
    "id": "ord-001",
    "store_id": STORE,
    "status": "confirmed",
    "total": 300.0,
    "name": "Amina",
    "phone": "0612345678",
    "city": "Rabat",
    "product": "Caftan",
    "payment_method": "cod",
    "tracking_id": None,
}


def _define(nodes, name="Rule", active=True, store_id=STORE):
    definition = AutomationDefinition.define(store_id=store_id, name=name, nodes=nodes, active=active)
    current_domain.repository_for(AutomationDefinition).add(definition)
    return definition


def _whatsapp_rule(message="Bonjour {name}, total {total}", **kwargs):
    return _define(
        [
            {"kind": "trigger", "key": "order_updated"},
            {"kind": "action", "key": "send_whatsapp", "config": {"message": message}},
        ],
        **kwargs,
    )


@pytest.fixture()
def carrier():
    return FakeCarrier()


@pytest.fixture()
def messenger():
    return FakeMessenger()


@pytest.fixture()
def engine(carrier, messenger):
    return AutomationEngine(carrier=carrier, messenger=messenger)


class TestActiveDefinitions:
    def test_filters_by_store_trigger_and_status(self):
        wanted = _whatsapp_rule(name="wanted")
        _whatsapp_rule(name="inactive", active=False)
        _whatsapp_rule(name="other store", store_id="store-002")
        _define([{"kind": "trigger", "key": "order_created"}, {"kind": "action", "key": "send_whatsapp"}])

        found = active_definitions(STORE, "order_updated")
        assert [d.id for d in found] == [wanted.id]


class TestConditions:
    def test_condition_met_runs_action(self, engine, carrier):
        _define(
            [
                {"kind": "trigger", "key": "order_updated"},
                {"kind": "condition", "key": "status_equals", "config": {"status": "confirmed"}},
                {"kind": "action", "key": "create_delivery"},
            ]
        )
        outcomes = engine.run("order_updated", PAYLOAD, CARRIER_TENANT)

        assert [o.status for o in outcomes] == [OutcomeStatus.EXECUTED]
        assert len(carrier.shipments) == 1
        assert carrier.shipments[0]["order"]["id"] == "ord-001"
        assert carrier.shipments[0]["sender"]["pickup_city"] == "Casablanca"

    def test_condition_not_met_is_skipped(self, engine, carrier):
        _define(
            [
                {"kind": "trigger", "key": "order_updated"},
                {"kind": "condition", "key": "total_greater", "config": {"amount": 500}},
                {"kind": "action", "key": "create_delivery"},
            ]
        )
        outcomes = engine.run("order_updated", PAYLOAD, CARRIER_TENANT)

        assert outcomes[0].status is OutcomeStatus.SKIPPED
        assert carrier.shipments == []

    def test_single_node_definition_is_skipped(self, engine):
        _define([{"kind": "trigger", "key": "order_updated"}])
        outcomes = engine.run("order_updated", PAYLOAD, CARRIER_TENANT)
        assert outcomes[0].status is OutcomeStatus.SKIPPED


class TestActions:
    def test_create_delivery_without_credentials_is_skipped(self, engine, carrier):
        _define([{"kind": "trigger", "key": "order_updated"}, {"kind": "action", "key": "create_delivery"}])
        outcomes = engine.run("order_updated", PAYLOAD, PLAIN_TENANT)
        assert outcomes[0].status is OutcomeStatus.SKIPPED
        assert carrier.shipments == []

    def test_send_whatsapp_renders_template(self, engine, messenger):
        _whatsapp_rule()
        outcomes = engine.run("order_updated", PAYLOAD, PLAIN_TENANT)

        assert outcomes[0].status is OutcomeStatus.EXECUTED
        assert messenger.sent_messages[0]["to"] == "0612345678"
        assert messenger.sent_messages[0]["body"] == "Bonjour Amina, total 300 DH"

    def test_send_whatsapp_includes_tracking_link(self, engine, messenger):
        _whatsapp_rule(message="Suivi: {tracking}")
        engine.run("order_updated", {**PAYLOAD, "tracking_id": "TRK1"}, CARRIER_TENANT)
        assert messenger.sent_messages[0]["body"] == "Suivi: https://fake-carrier.example.com/tracking/TRK1"

    def test_send_whatsapp_without_template_is_skipped(self, engine, messenger):
        _whatsapp_rule(message="")
        outcomes = engine.run("order_updated", PAYLOAD, PLAIN_TENANT)
        assert outcomes[0].status is OutcomeStatus.SKIPPED
        assert messenger.sent_messages == []

    def test_request_pickup(self, engine, carrier):
        _define([{"kind": "trigger", "key": "order_updated"}, {"kind": "action", "key": "request_pickup"}])
        outcomes = engine.run("order_updated", {**PAYLOAD, "tracking_id": "TRK1"}, CARRIER_TENANT)

        assert outcomes[0].status is OutcomeStatus.EXECUTED
        assert carrier.pickups[0]["tracking_ids"] == ["TRK1"]

    def test_unknown_action_is_skipped(self, engine):
        _define([{"kind": "trigger", "key": "order_updated"}, {"kind": "action", "key": "send_email"}])
        outcomes = engine.run("order_updated", PAYLOAD, PLAIN_TENANT)
        assert outcomes[0].status is OutcomeStatus.SKIPPED


class TestIsolation:
    def test_failing_action_does_not_stop_the_next(self, engine, carrier, messenger):
        _define(
            [{"kind": "trigger", "key": "order_updated"}, {"kind": "action", "key": "create_delivery"}],
            name="delivery",
        )
        _whatsapp_rule(name="whatsapp")
        carrier.configure(should_succeed=False, failure_reason="Carrier down")

        outcomes = engine.run("order_updated", PAYLOAD, CARRIER_TENANT)

        by_name = {o.name: o for o in outcomes}
        assert by_name["delivery"].status is OutcomeStatus.FAILED
        assert by_name["delivery"].detail == "Carrier down"
        assert by_name["whatsapp"].status is OutcomeStatus.EXECUTED
        assert len(messenger.sent_messages) == 1

    def test_unreadable_definition_does_not_stop_the_next(self, engine, messenger):
        broken = AutomationDefinition.define(
            store_id=STORE,
            name="broken",
            nodes=[
                {"kind": "trigger", "key": "order_updated"},
                {"kind": "action", "key": "send_whatsapp", "config": {"message": "Bonjour"}},
            ],
            active=True,
        )
        action_node = next(node for node in broken.nodes if node.kind == "action")
        action_node.config = "{not json"
        current_domain.repository_for(AutomationDefinition).add(broken)
        _whatsapp_rule(name="whatsapp")

        outcomes = engine.run("order_updated", PAYLOAD, PLAIN_TENANT)

        by_name = {o.name: o for o in outcomes}
        assert by_name["broken"].status is OutcomeStatus.FAILED
        assert by_name["whatsapp"].status is OutcomeStatus.EXECUTED
        assert len(messenger.sent_messages) == 1

    def test_no_definitions(self, engine):
        assert engine.run("order_created", PAYLOAD, PLAIN_TENANT) == []


class TestOrderChangeSubscription:
    def test_on_order_change_uses_store_profile(self, engine, carrier):
        profile = StoreProfile(
            id=STORE,
            name="Dar Caftan",
            carrier_public_key="pk",
            carrier_secret_key="sk",
            pickup_city="Casablanca",
        )
        current_domain.repository_for(StoreProfile).add(profile)
        _define([{"kind": "trigger", "key": "order_updated"}, {"kind": "action", "key": "create_delivery"}])

        change = OrderChange(
            trigger=TriggerType.ORDER_UPDATED,
            store_id=STORE,
            order_id="ord-001",
            payload=PAYLOAD,
        )
        outcomes = engine.on_order_change(change)

        assert outcomes[0].status is OutcomeStatus.EXECUTED
        assert len(carrier.shipments) == 1

    def test_committed_update_fires_automation(self, engine, messenger, manager):
        manager.subscribe(engine.on_order_change)
        _whatsapp_rule(message="Commande {status_label} pour {name}")

        order_id = manager.create(STORE, {"client_name": "Amina", "client_phone": "0612345678"})
        manager.update(STORE, order_id, {"status": "confirmed"})

        assert len(messenger.sent_messages) == 1
        assert messenger.sent_messages[0]["body"] == "Commande {status_label} pour Amina"
