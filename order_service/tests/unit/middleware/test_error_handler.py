"""
Unit tests for Order Service Error Handler.
"""

import json
from unittest.mock import Mock

import pytest
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from order_service.app.core.exceptions import (
    InvalidOrderIdError,
    InvalidOrderStatusError,
    OrderNotFoundError,
    OrderServiceError,
    RepositoryError,
)
from order_service.app.middleware.error.error_handler import (
    OrderServiceErrorHandler,
    setup_order_error_handling,
)


def mock_request(path="/order", method="GET"):
    request = Mock(spec=Request)
    request.url.path = path
    request.method = method
    return request


class TestOrderServiceErrorHandler:
    """Test cases for error handler."""

    @pytest.fixture
    def app(self):
        """Create FastAPI app for testing."""
        app = FastAPI()
        OrderServiceErrorHandler.setup_error_handlers(app)
        return app

    def test_setup_error_handlers(self, app):
        """Test that error handlers are properly set up."""
        assert StarletteHTTPException in app.exception_handlers
        assert RequestValidationError in app.exception_handlers
        assert InvalidOrderIdError in app.exception_handlers
        assert InvalidOrderStatusError in app.exception_handlers
        assert OrderNotFoundError in app.exception_handlers
        assert OrderServiceError in app.exception_handlers
        assert Exception in app.exception_handlers

    @pytest.mark.asyncio
    async def test_http_exception_handler(self, app):
        """Client HTTP errors get the JSON envelope."""
        handler = app.exception_handlers[StarletteHTTPException]
        exc = StarletteHTTPException(status_code=404, detail="Order not found")

        response = await handler(mock_request("/order/9"), exc)

        assert response.status_code == 404
        response_data = json.loads(response.body)
        assert response_data["error"]["type"] == "http_error"
        assert response_data["error"]["message"] == "Order not found"
        assert response_data["error"]["path"] == "/order/9"
        assert response_data["error"]["method"] == "GET"

    @pytest.mark.asyncio
    async def test_http_server_error_has_empty_body(self, app):
        handler = app.exception_handlers[StarletteHTTPException]

        response = await handler(
            mock_request(), StarletteHTTPException(status_code=500)
        )

        assert response.status_code == 500
        assert response.body == b""

    @pytest.mark.asyncio
    async def test_request_validation_error_handler(self, app):
        """Malformed bodies are reported as 400."""
        handler = app.exception_handlers[RequestValidationError]
        exc = RequestValidationError(
            [
                {
                    "loc": ["body", "customerId"],
                    "msg": "Field required",
                    "type": "missing",
                }
            ]
        )

        response = await handler(mock_request(method="PUT"), exc)

        assert response.status_code == 400
        response_data = json.loads(response.body)
        assert response_data["error"]["type"] == "validation_error"
        assert "Request validation failed" in response_data["error"]["message"]
        errors = response_data["error"]["details"]["validation_errors"]
        assert errors == [
            {"field": "body.customerId", "message": "Field required", "type": "missing"}
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc_class", [InvalidOrderIdError, InvalidOrderStatusError]
    )
    async def test_invalid_value_handler(self, app, exc_class):
        handler = app.exception_handlers[exc_class]

        response = await handler(mock_request(), exc_class("Invalid input"))

        assert response.status_code == 400
        response_data = json.loads(response.body)
        assert response_data["error"]["type"] == "value_error"
        assert response_data["error"]["message"] == "Invalid input"

    @pytest.mark.asyncio
    async def test_order_not_found_handler(self, app):
        handler = app.exception_handlers[OrderNotFoundError]

        response = await handler(mock_request("/order/77"), OrderNotFoundError("77"))

        assert response.status_code == 404
        response_data = json.loads(response.body)
        assert response_data["error"]["type"] == "not_found"

    @pytest.mark.asyncio
    async def test_order_service_error_has_empty_body(self, app):
        """Backend failures never leak details to the caller."""
        handler = app.exception_handlers[OrderServiceError]

        response = await handler(
            mock_request(), RepositoryError("get_order", "mongodb")
        )

        assert response.status_code == 500
        assert response.body == b""

    @pytest.mark.asyncio
    async def test_general_exception_handler(self, app):
        """Test general exception handling."""
        handler = app.exception_handlers[Exception]

        response = await handler(mock_request(), Exception("Unexpected error"))

        assert response.status_code == 500
        assert response.body == b""

    def test_create_error_response_basic(self):
        """Test basic error response creation."""
        response = OrderServiceErrorHandler._create_error_response(
            request=mock_request(),
            status_code=400,
            error_type="test_error",
            message="Test message",
        )

        assert response.status_code == 400
        response_data = json.loads(response.body)
        assert response_data["error"]["type"] == "test_error"
        assert response_data["error"]["message"] == "Test message"
        assert "timestamp" in response_data["error"]
        assert "details" not in response_data["error"]

    def test_create_error_response_with_details(self):
        """Test error response creation with details."""
        details = {"field": "status", "reason": "out of range"}

        response = OrderServiceErrorHandler._create_error_response(
            request=mock_request(),
            status_code=400,
            error_type="validation_error",
            message="Validation failed",
            details=details,
        )

        response_data = json.loads(response.body)
        assert response_data["error"]["details"] == details

    def test_setup_order_error_handling(self):
        """Test the convenience setup function."""
        app = FastAPI()
        setup_order_error_handling(app)

        assert OrderNotFoundError in app.exception_handlers
