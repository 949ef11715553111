"""Automation definitions: a trigger, an optional condition and an action.

A definition is stored as an ordered list of nodes. The first node names the
trigger; the engine looks for a ``condition`` node and an ``action`` node,
falling back to the last node for the action.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from backoffice.domain import backoffice


class AutomationStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class NodeKind(Enum):
    TRIGGER = "trigger"
    CONDITION = "condition"
    ACTION = "action"


@backoffice.entity(part_of="AutomationDefinition")
class AutomationNode:
    position = Integer(required=True, min_value=0)
    kind = String(required=True, choices=NodeKind)
    key = String(required=True, max_length=100)
    config = Text()  # JSON object

    def settings(self) -> dict:
        if not self.config:
            return {}
        return json.loads(self.config)


@backoffice.aggregate
class AutomationDefinition:
    store_id = Identifier(required=True)
    name = String(max_length=255, default="")
    status = String(choices=AutomationStatus, default=AutomationStatus.INACTIVE.value)
    trigger_type = String(required=True, max_length=100)
    nodes = HasMany(AutomationNode)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def define(cls, store_id, name, nodes, active=False):
        """Build a definition from a list of ``{"kind", "key", "config"}`` dicts.

        The trigger type is the key of the first node.
        """
        if not nodes:
            raise ValidationError({"nodes": ["An automation needs at least a trigger node"]})

        now = datetime.now(UTC)
        definition = cls(
            store_id=store_id,
            name=name or "",
            trigger_type=nodes[0]["key"],
            status=(AutomationStatus.ACTIVE if active else AutomationStatus.INACTIVE).value,
            created_at=now,
            updated_at=now,
        )
        for position, node in enumerate(nodes):
            definition.add_nodes(
                AutomationNode(
                    position=position,
                    kind=node.get("kind") or (NodeKind.TRIGGER.value if position == 0 else NodeKind.ACTION.value),
                    key=node["key"],
                    config=json.dumps(node.get("config") or {}),
                )
            )
        return definition

    def ordered_nodes(self):
        return sorted(self.nodes or [], key=lambda node: node.position)

    def activate(self):
        self.status = AutomationStatus.ACTIVE.value
        self.updated_at = datetime.now(UTC)

    def deactivate(self):
        self.status = AutomationStatus.INACTIVE.value
        self.updated_at = datetime.now(UTC)
