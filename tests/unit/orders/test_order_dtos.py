"""Unit tests for order DTO validation."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.orders.dtos import CreateOrderDTO, OrderEventDTO

pytestmark = pytest.mark.unit


def _payload(**overrides):
    data = {
        "spa_name": "Titan Spa",
        "address": "12 MG Road",
        "product_name": "Aroma Oil",
        "quantity": 10,
        "salesperson_id": uuid4(),
    }
    data.update(overrides)
    return data


class TestCreateOrderDTO:
    def test_valid_payload(self):
        dto = CreateOrderDTO(**_payload())
        assert dto.quantity == 10
        assert dto.distributor_id is None
        assert dto.idempotency_key is None

    def test_text_fields_are_trimmed(self):
        dto = CreateOrderDTO(**_payload(spa_name="  Titan Spa  "))
        assert dto.spa_name == "Titan Spa"

    @pytest.mark.parametrize("field", ["spa_name", "address", "product_name"])
    def test_blank_text_rejected(self, field):
        with pytest.raises(ValidationError) as exc_info:
            CreateOrderDTO(**_payload(**{field: "   "}))
        assert exc_info.value.errors()[0]["loc"] == (field,)

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_rejected(self, quantity):
        with pytest.raises(ValidationError):
            CreateOrderDTO(**_payload(quantity=quantity))

    def test_is_frozen(self):
        dto = CreateOrderDTO(**_payload())
        with pytest.raises(ValidationError):
            dto.quantity = 5


class TestOrderEventDTO:
    def test_json_dump_is_broadcast_ready(self):
        dto = OrderEventDTO(
            id=uuid4(),
            order_id=uuid4(),
            type="created",
            message="Order created",
            actor_id=None,
            actor_role="Admin",
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        payload = dto.model_dump(mode="json")
        assert payload["actor_id"] is None
        assert payload["created_at"].startswith("2024-01-01T00:00:00")
        assert OrderEventDTO.model_validate(payload) == dto
