"""
Tests for middleware and infrastructure components.
"""

import json
import logging
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi import FastAPI

from shared.config.logging import StructuredFormatter, get_logger, mask_actor_id
from shared.infrastructure.correlation import (
    CorrelationIdMiddleware,
    CorrelationIdFilter,
    actor_var,
    bind_actor,
    get_request_id,
    request_id_var,
)
from shared.infrastructure.db import safe_commit


# =============================================================================
# CorrelationIdMiddleware Tests
# =============================================================================

class TestCorrelationIdMiddleware:
    """Tests for correlation ID middleware."""

    @pytest.fixture
    async def correlation_client(self):
        """Client for a bare app with correlation ID middleware."""
        app = FastAPI()
        app.add_middleware(CorrelationIdMiddleware)

        @app.get("/echo")
        async def echo():
            return {"request_id": get_request_id()}

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client

    async def test_generates_request_id_when_not_provided(self, correlation_client):
        """Should generate a new request ID when not provided."""
        response = await correlation_client.get("/echo")

        request_id = response.headers.get("X-Request-ID")
        assert request_id is not None
        assert len(request_id) == 36  # UUID v4 length
        assert response.json()["request_id"] == request_id

    async def test_uses_provided_request_id(self, correlation_client):
        """Should use the provided X-Request-ID header."""
        custom_id = "my-custom-request-id-12345"
        response = await correlation_client.get("/echo", headers={"X-Request-ID": custom_id})

        assert response.headers.get("X-Request-ID") == custom_id
        assert response.json()["request_id"] == custom_id


# =============================================================================
# CorrelationIdFilter Tests
# =============================================================================

class TestCorrelationIdFilter:
    """Tests for correlation ID logging filter."""

    def test_adds_request_id_to_log_record(self):
        """Should add request_id attribute to log record."""
        filter_obj = CorrelationIdFilter()
        token = request_id_var.set("test-request-123")

        try:
            record = MagicMock()
            assert filter_obj.filter(record) is True
            assert record.request_id == "test-request-123"
        finally:
            request_id_var.reset(token)

    def test_uses_dash_when_no_request_id(self):
        """Should use '-' when no request ID is set."""
        filter_obj = CorrelationIdFilter()
        token = request_id_var.set("")

        try:
            record = MagicMock()
            assert filter_obj.filter(record) is True
            assert record.request_id == "-"
            assert record.actor == "-"
        finally:
            request_id_var.reset(token)

    def test_adds_masked_actor(self):
        filter_obj = CorrelationIdFilter()
        token = actor_var.set("")

        try:
            bind_actor("5b0c2f5e-1d2a-4c1b-9a53-0d4e2f6a7b8c")
            record = MagicMock()
            filter_obj.filter(record)
            assert record.actor == "5b0c2f5e..."

            bind_actor(None)
            filter_obj.filter(record)
            assert record.actor == "<anonymous>"
        finally:
            actor_var.reset(token)


# =============================================================================
# Structured logging Tests
# =============================================================================

class TestStructuredLogging:
    def test_keyword_context_lands_in_extra_data(self, caplog):
        logger = get_logger("tests.structured")
        with caplog.at_level(logging.INFO, logger="tests.structured"):
            logger.info("Entity created", entity="Company", entity_id=7)

        record = caplog.records[-1]
        assert record.getMessage() == "Entity created"
        assert record.extra_data == {"entity": "Company", "entity_id": 7}

    def test_json_formatter(self):
        record = logging.LogRecord("rest_api", logging.ERROR, __file__, 1, "Store operation failed", (), None)
        record.extra_data = {"operation": "update", "entity": "Company"}
        record.request_id = "req-1"
        record.actor = "5b0c2f5e..."

        payload = json.loads(StructuredFormatter().format(record))
        assert payload["level"] == "ERROR"
        assert payload["request_id"] == "req-1"
        assert payload["actor"] == "5b0c2f5e..."
        assert payload["data"]["operation"] == "update"

    def test_mask_actor_id(self):
        assert mask_actor_id(None) == "<anonymous>"
        assert mask_actor_id("5b0c2f5e-1d2a-4c1b-9a53-0d4e2f6a7b8c") == "5b0c2f5e..."


# =============================================================================
# safe_commit Tests
# =============================================================================

class TestSafeCommit:
    """Tests for safe_commit utility."""

    async def test_commits_successfully(self):
        """Should commit when no error occurs."""
        mock_db = AsyncMock()

        await safe_commit(mock_db)

        mock_db.commit.assert_awaited_once()
        mock_db.rollback.assert_not_awaited()

    async def test_rollbacks_on_error(self):
        """Should rollback when commit fails."""
        mock_db = AsyncMock()
        mock_db.commit.side_effect = Exception("Database error")

        with pytest.raises(Exception, match="Database error"):
            await safe_commit(mock_db)

        mock_db.rollback.assert_awaited_once()

    async def test_reraises_original_exception(self):
        """Should re-raise the original exception after rollback."""
        mock_db = AsyncMock()

        class CustomDBError(Exception):
            pass

        mock_db.commit.side_effect = CustomDBError("Custom error")

        with pytest.raises(CustomDBError):
            await safe_commit(mock_db)
