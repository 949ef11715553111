"""Automation definition management: commands and handler."""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from backoffice.automation.automation import AutomationDefinition
from backoffice.domain import backoffice


@backoffice.command(part_of="AutomationDefinition")
class DefineAutomation:
    store_id = Identifier(required=True)
    name = String(max_length=255)
    nodes = Text(required=True)  # JSON: list of {kind, key, config}
    active = Boolean(default=False)


@backoffice.command(part_of="AutomationDefinition")
class ActivateAutomation:
    store_id = Identifier(required=True)
    automation_id = Identifier(required=True)


@backoffice.command(part_of="AutomationDefinition")
class DeactivateAutomation:
    store_id = Identifier(required=True)
    automation_id = Identifier(required=True)


@backoffice.command(part_of="AutomationDefinition")
class RemoveAutomation:
    store_id = Identifier(required=True)
    automation_id = Identifier(required=True)


def _load(store_id, automation_id):
    definition = current_domain.repository_for(AutomationDefinition).get(automation_id)
    if str(definition.store_id) != str(store_id):
        raise ObjectNotFoundError({"automation_id": [f"Automation {automation_id} not found in store {store_id}"]})
    return definition


@backoffice.command_handler(part_of=AutomationDefinition)
class AutomationDefinitionHandler:
    @handle(DefineAutomation)
    def define_automation(self, command):
        nodes = json.loads(command.nodes) if isinstance(command.nodes, str) else command.nodes
        definition = AutomationDefinition.define(
            store_id=command.store_id,
            name=command.name,
            nodes=nodes,
            active=bool(command.active),
        )
        current_domain.repository_for(AutomationDefinition).add(definition)
        return str(definition.id)

    @handle(ActivateAutomation)
    def activate_automation(self, command):
        definition = _load(command.store_id, command.automation_id)
        definition.activate()
        current_domain.repository_for(AutomationDefinition).add(definition)

    @handle(DeactivateAutomation)
    def deactivate_automation(self, command):
        definition = _load(command.store_id, command.automation_id)
        definition.deactivate()
        current_domain.repository_for(AutomationDefinition).add(definition)

    @handle(RemoveAutomation)
    def remove_automation(self, command):
        definition = _load(command.store_id, command.automation_id)
        current_domain.repository_for(AutomationDefinition)._dao.delete(definition)
