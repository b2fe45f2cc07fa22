"""Routes for orders and their timelines.

``/orders/{id}/status``, ``/payment``, ``/assign``, ``/events`` and
``/events/stream`` come from the viewset's ``@action`` methods.
"""

from __future__ import annotations

from rest_framework.routers import SimpleRouter

from modules.orders.views import OrderViewSet

app_name = "orders"

router = SimpleRouter()
router.register("orders", OrderViewSet, basename="order")

urlpatterns = [*router.urls]
