"""Error taxonomy and the JSON error envelope.

Every error leaving a request handler is rendered as ``{"error": message}``
(plus any extra fields the error carries), never as a raw exception.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class StorefrontError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, message: str | None = None, **extra):
        self.message = message or self.message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = dict(self.extra)
        body["error"] = self.message
        return body


class ValidationError(StorefrontError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class NotFound(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class MethodNotAllowed(StorefrontError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    message = "Method not allowed"


class UpstreamError(StorefrontError):
    message = "Upstream service error"


class EmailError(UpstreamError):
    message = "Failed to send email"


class PaymentVerificationError(ValidationError):
    message = "Payment verification failed"


async def storefront_error_handler(request: Request, exc: StorefrontError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # routing errors from Starlette (unknown path, wrong verb)
    message = "Method not allowed" if exc.status_code == 405 else exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.info("rejected request to %s: %s", request.url.path, errors)
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"Invalid value for {field}" if field else "Invalid request payload"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
