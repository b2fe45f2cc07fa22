"""Order repositories package."""

from modules.orders.repositories.django_repository import (
    OrderDjangoRepository,
    OrderEventDjangoRepository,
)
from modules.orders.repositories.interfaces import (
    IOrderEventRepository,
    IOrderRepository,
)

__all__ = [
    "IOrderEventRepository",
    "IOrderRepository",
    "OrderDjangoRepository",
    "OrderEventDjangoRepository",
]
