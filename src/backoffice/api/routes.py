"""FastAPI routes for the back office: orders, shipments, stats and automations."""

import json

from fastapi import APIRouter
from protean.utils.globals import current_domain

from backoffice.api.schemas import (
    AutomationIdResponse,
    AutomationStatusRequest,
    CreateOrderRequest,
    DefineAutomationRequest,
    OrderIdResponse,
    OrderResponse,
    ShipmentResponse,
    StatsResponse,
    StatusResponse,
    UpdateOrderRequest,
)
from backoffice.automation.management import (
    ActivateAutomation,
    DeactivateAutomation,
    DefineAutomation,
    RemoveAutomation,
)
from backoffice.tenant.profile import tenant_config_for
from backoffice.wiring import get_order_manager, get_shipment_dispatcher, get_stats_reconciler


def _order_response(order) -> OrderResponse:
    return OrderResponse(
        id=str(order.id),
        store_id=str(order.store_id),
        article_id=str(order.article_id) if order.article_id else None,
        article_name=order.article_name,
        quantity=order.quantity,
        price=order.price or 0.0,
        cost_price=order.cost_price or 0.0,
        real_delivery_cost=order.real_delivery_cost or 0.0,
        status=order.status,
        is_paid=bool(order.is_paid),
        payment_method=order.payment_method,
        customer_id=str(order.customer_id) if order.customer_id else None,
        client_name=order.client_name,
        client_phone=order.client_phone,
        client_address=order.client_address,
        client_city=order.client_city,
        date=order.date,
        carrier=order.carrier,
        tracking_id=order.tracking_id,
        carrier_status=order.carrier_status,
        label_url=order.label_url,
        deleted=bool(order.deleted),
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/stores/{store_id}/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def create_order(store_id: str, body: CreateOrderRequest) -> OrderIdResponse:
    order_id = get_order_manager().create(store_id, body.model_dump(exclude_none=True))
    return OrderIdResponse(order_id=order_id)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(store_id: str, order_id: str) -> OrderResponse:
    return _order_response(get_order_manager().get(store_id, order_id))


@order_router.patch("/{order_id}", response_model=OrderResponse)
async def update_order(store_id: str, order_id: str, body: UpdateOrderRequest) -> OrderResponse:
    changes = body.model_dump(exclude_unset=True)
    snapshot = changes.pop("snapshot", None)
    order = get_order_manager().update(store_id, order_id, changes, snapshot=snapshot)
    return _order_response(order)


@order_router.delete("/{order_id}", response_model=OrderResponse)
async def delete_order(store_id: str, order_id: str) -> OrderResponse:
    return _order_response(get_order_manager().soft_delete(store_id, order_id))


@order_router.post("/{order_id}/restore", response_model=OrderResponse)
async def restore_order(store_id: str, order_id: str) -> OrderResponse:
    return _order_response(get_order_manager().restore(store_id, order_id))


@order_router.post("/{order_id}/shipment", response_model=ShipmentResponse)
async def ship_order(store_id: str, order_id: str) -> ShipmentResponse:
    shipment = get_shipment_dispatcher().dispatch(store_id, order_id, tenant_config_for(store_id))
    return ShipmentResponse(
        tracking_id=shipment.tracking_id,
        status=shipment.status,
        label_url=shipment.label_url,
    )


# ---------------------------------------------------------------------------
# Stats Router
# ---------------------------------------------------------------------------
stats_router = APIRouter(prefix="/stores/{store_id}/stats", tags=["stats"])


@stats_router.post("/reconcile", response_model=StatsResponse)
async def reconcile_stats(store_id: str) -> StatsResponse:
    stats = get_stats_reconciler().reconcile(store_id)
    return StatsResponse(**stats.to_dict())


# ---------------------------------------------------------------------------
# Automation Router
# ---------------------------------------------------------------------------
automation_router = APIRouter(prefix="/stores/{store_id}/automations", tags=["automations"])


@automation_router.post("", status_code=201, response_model=AutomationIdResponse)
async def define_automation(store_id: str, body: DefineAutomationRequest) -> AutomationIdResponse:
    command = DefineAutomation(
        store_id=store_id,
        name=body.name,
        nodes=json.dumps([node.model_dump() for node in body.nodes]),
        active=body.active,
    )
    result = current_domain.process(command, asynchronous=False)
    return AutomationIdResponse(automation_id=result)


@automation_router.put("/{automation_id}/status", response_model=StatusResponse)
async def set_automation_status(store_id: str, automation_id: str, body: AutomationStatusRequest) -> StatusResponse:
    command_cls = ActivateAutomation if body.status == "active" else DeactivateAutomation
    current_domain.process(command_cls(store_id=store_id, automation_id=automation_id), asynchronous=False)
    return StatusResponse()


@automation_router.delete("/{automation_id}", response_model=StatusResponse)
async def remove_automation(store_id: str, automation_id: str) -> StatusResponse:
    current_domain.process(RemoveAutomation(store_id=store_id, automation_id=automation_id), asynchronous=False)
    return StatusResponse()
