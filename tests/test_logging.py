import logging
import uuid

import pytest

from config.settings import mask_sensitive_data


class TestCorrelationIdMiddleware:
    def test_returns_provided_request_id(self, client):
        custom_id = "my-custom-request-id-123"
        response = client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        assert response["X-Request-ID"] == custom_id

    def test_generates_uuid7_when_no_request_id(self, client):
        response = client.get("/health")
        parsed = uuid.UUID(response["X-Request-ID"])
        assert parsed.version == 7

    def test_rejects_unsafe_request_id(self, client):
        response = client.get("/health", HTTP_X_REQUEST_ID="bad id\nwith newline")
        assert response["X-Request-ID"] != "bad id\nwith newline"
        assert uuid.UUID(response["X-Request-ID"]).version == 7

    def test_correlation_id_in_logs(self, api_client_with_correlation, caplog):
        client, cid = api_client_with_correlation
        with caplog.at_level(logging.INFO):
            client.get("/health")
        assert any(cid in record.getMessage() for record in caplog.records)

    def test_request_finished_carries_actor(self, client_for, salesperson, caplog):
        with caplog.at_level(logging.INFO):
            client_for(salesperson).get("/api/v1/me")
        finished = [
            r.getMessage() for r in caplog.records if "request_finished" in r.getMessage()
        ]
        assert finished
        assert str(salesperson.id) in finished[-1]


class TestSensitiveDataMasking:
    @pytest.mark.parametrize(
        "text,secret",
        [
            ("password='s3cret123'", "s3cret123"),
            ("token=abc123xyz", "abc123xyz"),
            ("Authorization: eyJhbGciOi", "eyJhbGciOi"),
            ("api_key=AKIA1234", "AKIA1234"),
        ],
    )
    def test_secret_values_masked(self, text, secret):
        result = mask_sensitive_data(None, None, {"event": "test", "data": text})
        assert secret not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_key_name_kept(self):
        result = mask_sensitive_data(None, None, {"event": "t", "data": "token=abc"})
        assert result["data"] == "token=***MASKED***"

    def test_non_string_values_untouched(self):
        result = mask_sensitive_data(None, None, {"event": "t", "quantity": 10})
        assert result["quantity"] == 10

    def test_plain_text_untouched(self):
        result = mask_sensitive_data(None, None, {"event": "order.created"})
        assert result["event"] == "order.created"
