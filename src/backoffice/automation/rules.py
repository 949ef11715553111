"""Condition and action vocabulary for automations.

Both sets are closed. Definitions are parsed into ``Rule`` objects before
evaluation; keys outside the vocabulary survive parsing with ``kind=None`` so
that definitions saved by older clients still load.
"""

from dataclasses import dataclass, field
from enum import Enum

import structlog

from backoffice.automation.automation import NodeKind

logger = structlog.get_logger(__name__)


class ConditionKind(Enum):
    STATUS_EQUALS = "status_equals"
    TOTAL_GREATER = "total_greater"


class ActionKind(Enum):
    CREATE_DELIVERY = "create_delivery"
    SEND_WHATSAPP = "send_whatsapp"
    REQUEST_PICKUP = "request_pickup"


@dataclass(frozen=True)
class Condition:
    key: str
    kind: ConditionKind | None
    config: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Action:
    key: str
    kind: ActionKind | None
    config: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Rule:
    definition_id: str
    name: str
    trigger_type: str
    condition: Condition | None
    action: Action


def _kind(enum_cls, key):
    try:
        return enum_cls(key)
    except ValueError:
        return None


def compile_rule(definition) -> Rule | None:
    """Turn a stored definition into a ``Rule``, or ``None`` if it has fewer than two nodes."""
    nodes = definition.ordered_nodes()
    if len(nodes) < 2:
        return None

    condition_node = next((node for node in nodes if node.kind == NodeKind.CONDITION.value), None)
    action_node = next((node for node in nodes if node.kind == NodeKind.ACTION.value), nodes[-1])

    condition = None
    if condition_node is not None:
        condition = Condition(
            key=condition_node.key,
            kind=_kind(ConditionKind, condition_node.key),
            config=condition_node.settings(),
        )

    return Rule(
        definition_id=str(definition.id),
        name=definition.name or "",
        trigger_type=definition.trigger_type,
        condition=condition,
        action=Action(
            key=action_node.key,
            kind=_kind(ActionKind, action_node.key),
            config=action_node.settings(),
        ),
    )


def _status_equals(config, payload):
    expected = config.get("status")
    if not expected:
        return True
    return payload.get("status") == expected


def _total_greater(config, payload):
    return float(payload.get("total") or 0) > float(config.get("amount") or 0)


CONDITION_EVALUATORS = {
    ConditionKind.STATUS_EQUALS: _status_equals,
    ConditionKind.TOTAL_GREATER: _total_greater,
}


def evaluate_condition(condition: Condition | None, payload: dict) -> bool:
    """True when the rule should fire. A missing condition always passes."""
    if condition is None:
        return True
    if condition.kind is None:
        logger.warning("Unknown automation condition, treating as met", condition=condition.key)
        return True
    return CONDITION_EVALUATORS[condition.kind](condition.config, payload)
