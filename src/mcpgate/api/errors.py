"""Admin/OAuth app error handlers."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mcpgate.api.middleware.request_id import get_request_id
from mcpgate.errors import GatewayError

logger = logging.getLogger(__name__)


def setup_error_handlers(app: FastAPI, realm: str = "MCP Server") -> None:
    """Configure error handlers for the FastAPI app."""

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        """Handle gateway errors."""
        if exc.is_authorization_failure:
            logger.warning(f"[ADMIN] Forbidden {request.method} {request.url.path}: {exc.message}")
        elif exc.is_authentication_failure:
            logger.info(f"[AUTH] Unauthenticated {request.method} {request.url.path}")

        error_dict = exc.to_dict()
        error_dict["request_id"] = get_request_id()

        headers = {}
        if exc.code == "AUTH_REQUIRED":
            headers["WWW-Authenticate"] = f'Bearer realm="{realm}"'

        return JSONResponse(
            status_code=exc.http_status,
            content={"error": error_dict},
            headers=headers or None,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "code": f"HTTP_{exc.status_code}",
                    "category": "SYSTEM",
                    "message": str(exc.detail),
                    "request_id": get_request_id(),
                }
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Handle request validation errors."""
        errors = exc.errors()
        first_error = errors[0] if errors else {"msg": "Validation error"}

        return JSONResponse(
            status_code=400,
            content={
                "error": {
                    "code": "FIELD_INVALID",
                    "category": "VALIDATION",
                    "message": first_error.get("msg", "Validation error"),
                    "detail": str(errors),
                    "request_id": get_request_id(),
                }
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "category": "SYSTEM",
                    "message": "An unexpected error occurred",
                    "detail": str(exc) if app.debug else None,
                    "request_id": get_request_id(),
                }
            },
        )
