"""
Error handling middleware for Order Service.
Provides centralized exception handling and standardized error responses.

Client errors (4xx) get a JSON error envelope. Server errors (5xx) are logged
and answered with an empty body so no backend detail reaches the caller.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...core.exceptions import (
    InvalidOrderIdError,
    InvalidOrderStatusError,
    OrderNotFoundError,
    OrderServiceError,
)
from ...core.setting import get_settings
from ...utils.logging import setup_order_logging

logger = setup_order_logging(
    "order_service.error_handler", log_level=get_settings().LOG_LEVEL
)


class OrderServiceErrorHandler:
    """
    Centralized error handling for Order Service.

    Features:
    - Standardized error response format for client errors
    - Empty-bodied 500 responses for server errors
    - Order-specific error mapping (not found, invalid id/status)
    """

    @staticmethod
    def setup_error_handlers(app: FastAPI) -> None:
        """
        Setup all error handlers for the FastAPI application.
        """

        @app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(
            request: Request, exc: StarletteHTTPException
        ) -> Response:
            """Handle HTTP exceptions from Starlette/FastAPI."""
            if exc.status_code >= 500:
                return Response(status_code=exc.status_code)

            return OrderServiceErrorHandler._create_error_response(
                request=request,
                status_code=exc.status_code,
                error_type="http_error",
                message=str(exc.detail),
            )

        @app.exception_handler(RequestValidationError)
        async def validation_exception_handler(
            request: Request, exc: RequestValidationError
        ) -> Response:
            """Handle malformed request bodies and parameters."""
            error_details: list[Dict[str, Any]] = []
            for error in exc.errors():
                error_details.append(
                    {
                        "field": ".".join(str(loc) for loc in error["loc"]),
                        "message": error["msg"],
                        "type": error["type"],
                    }
                )

            return OrderServiceErrorHandler._create_error_response(
                request=request,
                status_code=400,
                error_type="validation_error",
                message="Request validation failed",
                details={"validation_errors": error_details},
            )

        @app.exception_handler(InvalidOrderIdError)
        @app.exception_handler(InvalidOrderStatusError)
        async def order_value_error_handler(
            request: Request, exc: ValueError
        ) -> Response:
            """Handle invalid order IDs and statuses raised below the routes."""
            return OrderServiceErrorHandler._create_error_response(
                request=request,
                status_code=400,
                error_type="value_error",
                message=str(exc),
            )

        @app.exception_handler(OrderNotFoundError)
        async def order_not_found_handler(
            request: Request, exc: OrderNotFoundError
        ) -> Response:
            """Handle lookups of orders that do not exist."""
            return OrderServiceErrorHandler._create_error_response(
                request=request,
                status_code=404,
                error_type="not_found",
                message="Order not found",
            )

        @app.exception_handler(OrderServiceError)
        async def order_service_error_handler(
            request: Request, exc: OrderServiceError
        ) -> Response:
            """Handle backend and queue failures that escaped the routes."""
            logger.error(
                "Order service operation failed",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "exception_type": type(exc).__name__,
                    "operation": getattr(exc, "operation", None),
                    "event_type": "service_error",
                },
            )
            return Response(status_code=500)

        @app.exception_handler(Exception)
        async def unhandled_exception_handler(
            request: Request, exc: Exception
        ) -> Response:
            """Log anything unexpected and answer with a bare 500."""
            logger.error(
                "Unhandled exception occurred",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "exception_type": type(exc).__name__,
                    "event_type": "unhandled_exception",
                },
                exc_info=True,
            )
            return Response(status_code=500)

    @staticmethod
    def _create_error_response(
        request: Request,
        status_code: int,
        error_type: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> JSONResponse:
        """
        Create a standardized client error response.

        Args:
            request: The FastAPI request object
            status_code: HTTP status code
            error_type: Type of error for categorization
            message: Human-readable error message
            details: Additional error details

        Returns:
            JSONResponse with standardized error format
        """
        error_response: Dict[str, Any] = {
            "error": {
                "type": error_type,
                "message": message,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "path": request.url.path,
                "method": request.method,
            }
        }

        if details:
            error_response["error"]["details"] = details

        logger.warning(
            f"Client error: {error_type}",
            extra={
                "status_code": status_code,
                "error_type": error_type,
                "path": request.url.path,
                "method": request.method,
                "event_type": "client_error",
            },
        )

        return JSONResponse(status_code=status_code, content=error_response)


def setup_order_error_handling(app: FastAPI) -> None:
    """
    Convenience function to setup error handling for Order Service.

    Args:
        app: FastAPI application instance
    """
    error_handler = OrderServiceErrorHandler()
    error_handler.setup_error_handlers(app)

    logger.info(
        "Order Service error handling configured",
        extra={"event_type": "error_handler_setup"},
    )
