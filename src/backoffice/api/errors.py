"""HTTP status mapping for back office errors.

Registered on top of Protean's own FastAPI handlers, which cover the generic
``ValidationError``/``ObjectNotFoundError``/``InvalidOperationError`` cases.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backoffice.carrier.port import CarrierError
from backoffice.shared.errors import (
    InvalidTransition,
    OrderNotFound,
    OutOfStock,
    ProductNotFound,
    TransactionFailed,
)

STATUS_BY_ERROR = {
    OutOfStock: 409,
    InvalidTransition: 422,
    OrderNotFound: 404,
    ProductNotFound: 404,
    TransactionFailed: 503,
}


def register_error_handlers(app: FastAPI) -> None:
    for error_cls, status_code in STATUS_BY_ERROR.items():

        async def handler(request: Request, exc: Exception, status_code=status_code) -> JSONResponse:
            messages = getattr(exc, "messages", None) or {"error": [str(exc)]}
            return JSONResponse(status_code=status_code, content={"error": messages})

        app.add_exception_handler(error_cls, handler)

    @app.exception_handler(CarrierError)
    async def carrier_error_handler(request: Request, exc: CarrierError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"error": {"carrier": [str(exc)]}})
