"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.models import Order

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload.

    ``salesperson_id`` is only read for admins; a salesperson always
    creates orders for themself.
    """

    spa_name = serializers.CharField(max_length=255)
    address = serializers.CharField()
    product_name = serializers.CharField(max_length=255)
    quantity = serializers.IntegerField(min_value=1)
    salesperson_id = serializers.UUIDField(required=False)
    distributor_id = serializers.UUIDField(required=False, allow_null=True)


class UpdateStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)


class UpdatePaymentSerializer(serializers.Serializer):
    payment_status = serializers.ChoiceField(choices=PaymentStatus.choices)


class AssignDistributorSerializer(serializers.Serializer):
    distributor_id = serializers.UUIDField()


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with the parties' display names."""

    salesperson_name = serializers.CharField(
        source="salesperson.display_name", read_only=True
    )
    distributor_name = serializers.CharField(
        source="distributor.display_name", read_only=True, allow_null=True
    )

    class Meta:
        model = Order
        fields = [
            "id",
            "spa_name",
            "address",
            "product_name",
            "quantity",
            "status",
            "payment_status",
            "salesperson_id",
            "salesperson_name",
            "distributor_id",
            "distributor_name",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderEventSerializer(serializers.Serializer):
    """Read serializer for ``OrderEventDTO`` timeline entries."""

    id = serializers.UUIDField()
    order_id = serializers.UUIDField()
    type = serializers.CharField()
    message = serializers.CharField()
    actor_id = serializers.UUIDField(allow_null=True)
    actor_role = serializers.CharField()
    actor_name = serializers.CharField(allow_null=True)
    actor_email = serializers.CharField(allow_null=True)
    created_at = serializers.DateTimeField()
