"""Error taxonomy for the payment flow and the JSON handlers that render it.

Every failure leaves the service as ``{"error": ..., "details": ...}`` with
``details`` omitted when there is nothing to add.
"""
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.logging import logger


INTERNAL_ERROR = "Internal server error"


class PaymentFlowError(Exception):
    status_code: int = 500
    error: str = INTERNAL_ERROR

    def __init__(self, message: Optional[str] = None, *, status_code: Optional[int] = None, details: Any = None):
        super().__init__(message or self.error)
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def to_body(self) -> dict:
        body = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class AuthenticationMissing(PaymentFlowError):
    status_code = 401
    error = "Not authenticated"


class InvalidToken(PaymentFlowError):
    status_code = 401
    error = "Invalid token"


class UpstreamOrderError(PaymentFlowError):
    """Non-success answer from the order endpoint; status is relayed."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        super().__init__(message or "Order not found", status_code=status_code)
        self.error = message or "Order not found"


class OrderNotFound(PaymentFlowError):
    status_code = 404
    error = "Order not found"


class UserNotFound(PaymentFlowError):
    status_code = 404
    error = "User not found"


class GatewayError(PaymentFlowError):
    """Non-2xx answer from PayOnHub; status and body are relayed."""

    def __init__(self, status_code: int, payload: Any):
        message = None
        if isinstance(payload, dict):
            message = payload.get("error")
        message = message or "Failed to create PIX transaction"
        super().__init__(str(message), status_code=status_code, details=payload)
        self.error = message


class InternalFlowError(PaymentFlowError):
    """500-class failures; the message travels in ``details``."""

    def to_body(self) -> dict:
        return {"error": INTERNAL_ERROR, "details": str(self)}


class ConfigurationMissing(InternalFlowError):
    pass


class UpstreamMalformedResponse(InternalFlowError):
    pass


def error_response(status_code: int, error: str, details: Any = None) -> JSONResponse:
    body = {"error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PaymentFlowError)
    async def payment_flow_error_handler(request: Request, exc: PaymentFlowError):
        if exc.status_code >= 500:
            logger.error("request_failed path=%s status=%s error=%s", request.url.path, exc.status_code, exc)
        else:
            logger.warning("request_rejected path=%s status=%s error=%s", request.url.path, exc.status_code, exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response(422, "Invalid request", jsonable_errors(exc))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled_error path=%s", request.url.path)
        return error_response(500, INTERNAL_ERROR, str(exc) or exc.__class__.__name__)


def jsonable_errors(exc: RequestValidationError) -> list:
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in exc.errors()]
