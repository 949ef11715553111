"""FastAPI application factory for the back office API."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from protean.integrations.fastapi import register_exception_handlers

from backoffice.api.errors import register_error_handlers
from backoffice.api.routes import automation_router, order_router, stats_router
from backoffice.domain import backoffice


def create_app() -> FastAPI:
    """Build the app. The domain must already be initialized."""
    app = FastAPI(
        title="ShopDesk Back Office API",
        description="Orders, stock, automations and store statistics",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the back office domain context for store routes."""
        if request.url.path.startswith("/stores"):
            with backoffice.domain_context():
                response = await call_next(request)
            return response
        # Health check, docs
        return await call_next(request)

    app.include_router(order_router)
    app.include_router(stats_router)
    app.include_router(automation_router)

    register_exception_handlers(app)
    register_error_handlers(app)
    return app
