"""Back office API package."""

from backoffice.api.application import create_app
from backoffice.api.errors import register_error_handlers
from backoffice.api.routes import automation_router, order_router, stats_router

__all__ = ["create_app", "order_router", "stats_router", "automation_router", "register_error_handlers"]
