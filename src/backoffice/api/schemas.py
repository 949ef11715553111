"""Pydantic request/response schemas for the back office API.

These are external contracts (anti-corruption layer), kept apart from the
aggregates and commands they are translated into.
"""

import datetime
from typing import Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    article_id: str | None = None
    article_name: str | None = None
    quantity: int = Field(default=1, ge=1)
    price: float = Field(default=0.0, ge=0)
    cost_price: float | None = Field(default=None, ge=0)
    real_delivery_cost: float | None = Field(default=None, ge=0)
    payment_method: str | None = None
    customer_id: str | None = None
    client_name: str | None = None
    client_phone: str | None = None
    client_address: str | None = None
    client_city: str | None = None
    date: datetime.date | None = None
    carrier: str | None = None
    tracking_id: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "article_id": "prod-001",
                    "article_name": "Caftan",
                    "quantity": 2,
                    "price": 150.0,
                    "client_name": "Amina",
                    "client_phone": "0612345678",
                    "client_city": "Rabat",
                }
            ]
        }
    }


class UpdateOrderRequest(BaseModel):
    article_id: str | None = None
    article_name: str | None = None
    quantity: int | None = Field(default=None, ge=1)
    price: float | None = Field(default=None, ge=0)
    cost_price: float | None = Field(default=None, ge=0)
    real_delivery_cost: float | None = Field(default=None, ge=0)
    status: str | None = None
    is_paid: bool | None = None
    payment_method: str | None = None
    customer_id: str | None = None
    client_name: str | None = None
    client_phone: str | None = None
    client_address: str | None = None
    client_city: str | None = None
    date: datetime.date | None = None
    carrier: str | None = None
    tracking_id: str | None = None
    carrier_status: str | None = None
    label_url: str | None = None
    snapshot: dict | None = None


class OrderIdResponse(BaseModel):
    order_id: str


class OrderResponse(BaseModel):
    id: str
    store_id: str
    article_id: str | None = None
    article_name: str | None = None
    quantity: int
    price: float
    cost_price: float = 0.0
    real_delivery_cost: float = 0.0
    status: str
    is_paid: bool
    payment_method: str | None = None
    customer_id: str | None = None
    client_name: str | None = None
    client_phone: str | None = None
    client_address: str | None = None
    client_city: str | None = None
    date: datetime.date | None = None
    carrier: str | None = None
    tracking_id: str | None = None
    carrier_status: str | None = None
    label_url: str | None = None
    deleted: bool


class ShipmentResponse(BaseModel):
    tracking_id: str | None = None
    status: str
    label_url: str | None = None


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------
class StatsTotalsSchema(BaseModel):
    revenue: float
    count: int
    realized_revenue: float
    realized_cogs: float
    realized_delivery_cost: float
    delivered_revenue: float


class DailyStatsSchema(BaseModel):
    revenue: float
    count: int


class StatsResponse(BaseModel):
    totals: StatsTotalsSchema
    status_counts: dict[str, int]
    daily: dict[str, DailyStatsSchema]


# ---------------------------------------------------------------------------
# Automations
# ---------------------------------------------------------------------------
class AutomationNodeSchema(BaseModel):
    kind: Literal["trigger", "condition", "action"]
    key: str
    config: dict = Field(default_factory=dict)


class DefineAutomationRequest(BaseModel):
    name: str = ""
    nodes: list[AutomationNodeSchema] = Field(min_length=1)
    active: bool = False


class AutomationIdResponse(BaseModel):
    automation_id: str


class AutomationStatusRequest(BaseModel):
    status: Literal["active", "inactive"]


class StatusResponse(BaseModel):
    status: str = "ok"
