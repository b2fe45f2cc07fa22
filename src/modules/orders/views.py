"""Order API views.

Exposes ``OrderService`` and ``TimelineService`` via HTTP using DRF
ViewSets.  Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.

Visibility is role-scoped: admins see every order, salespeople the orders
they sold, distributors the orders assigned to them.  An order outside the
caller's scope answers 404.
"""

from __future__ import annotations

import json
from typing import Iterator
from uuid import UUID

import pydantic
import structlog
from django.conf import settings
from django.http import StreamingHttpResponse
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.renderers import JSONRenderer
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.accounts.constants import Role
from modules.accounts.dtos import ActorDTO
from modules.accounts.exceptions import InvalidActorRole
from modules.accounts.permissions import (
    IsAdmin,
    IsDistributorOrAdmin,
    IsSalespersonOrAdmin,
)
from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.accounts.services import UserDirectory
from modules.core.renderers import EventStreamRenderer
from modules.orders.dtos import CreateOrderDTO
from modules.orders.exceptions import (
    ConsistencyFailure,
    InvalidStatusTransition,
    OrderValidationError,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories import (
    OrderDjangoRepository,
    OrderEventDjangoRepository,
)
from modules.orders.serializers import (
    AssignDistributorSerializer,
    CreateOrderSerializer,
    OrderEventSerializer,
    OrderSerializer,
    UpdatePaymentSerializer,
    UpdateStatusSerializer,
)
from modules.orders.services import OrderService
from modules.orders.timeline import TimelineService
from shared.domain.exceptions import NotFoundError, RetryableError

logger = structlog.get_logger(__name__)

DOMAIN_ERRORS = (
    pydantic.ValidationError,
    OrderValidationError,
    InvalidActorRole,
    NotFoundError,
    InvalidStatusTransition,
    ConsistencyFailure,
    RetryableError,
)


def _domain_error_response(exc: Exception) -> Response:
    """Translate a service-layer exception into an HTTP response."""
    if isinstance(exc, pydantic.ValidationError):
        errors = {
            ".".join(str(part) for part in error["loc"]) or "non_field_errors": [
                error["msg"]
            ]
            for error in exc.errors()
        }
        return Response(errors, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, (OrderValidationError, InvalidActorRole)):
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, NotFoundError):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, InvalidStatusTransition):
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, RetryableError):
        return Response(
            {"detail": str(exc)},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
            headers={"Retry-After": "1"},
        )
    return Response(
        {"detail": "The change could not be recorded and was rolled back."},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _order_not_found() -> Response:
    return Response({"detail": "Order not found."}, status=status.HTTP_404_NOT_FOUND)


def can_view_order(user, order: Order) -> bool:
    if user.role == Role.ADMIN:
        return True
    if user.role == Role.SALESPERSON:
        return order.salesperson_id == user.id
    if user.role == Role.DISTRIBUTOR:
        return order.distributor_id == user.id
    return False


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` / ``TimelineService`` with injected repositories
    (DIP).  Does **not** extend ``ModelViewSet``; all ORM access goes
    through the service/repository layer.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    filter_backends = [DjangoFilterBackend]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._order_repo = OrderDjangoRepository()
        directory = UserDirectory(user_repository=UserDjangoRepository())
        self._timeline = TimelineService(
            order_repository=self._order_repo,
            event_repository=OrderEventDjangoRepository(),
            directory=directory,
        )
        self._service = OrderService(
            order_repository=self._order_repo,
            timeline=self._timeline,
            directory=directory,
        )

    def get_permissions(self):
        if self.action == "create":
            return [IsSalespersonOrAdmin()]
        if self.action in {"update_status", "update_payment"}:
            return [IsDistributorOrAdmin()]
        if self.action == "assign":
            return [IsAdmin()]
        return super().get_permissions()

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttle scopes per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "events"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        return self._order_repo.queryset()

    def _actor(self, request: Request) -> ActorDTO:
        return ActorDTO.from_entity(request.user)

    def _visible_order(self, request: Request, pk: str | None) -> Order | None:
        """The order *pk* if the caller may see it, else ``None``.

        Raises the service's domain errors (``OrderNotFound``,
        ``RetryableError``) for the caller to translate.
        """
        if pk is None:
            return None
        order = self._service.get_order(pk)
        return order if can_view_order(request.user, order) else None

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Supports idempotency via the ``Idempotency-Key`` header.
        A salesperson always creates for themself; an admin may name the
        salesperson (defaults to the admin).
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)
        data = create_serializer.validated_data

        salesperson_id = request.user.id
        if request.user.role == Role.ADMIN:
            salesperson_id = data.get("salesperson_id") or request.user.id

        try:
            dto = CreateOrderDTO(
                spa_name=data["spa_name"],
                address=data["address"],
                product_name=data["product_name"],
                quantity=data["quantity"],
                salesperson_id=salesperson_id,
                distributor_id=data.get("distributor_id"),
                idempotency_key=request.headers.get("Idempotency-Key") or None,
            )
            order = self._service.create_order(dto, self._actor(request))
        except DOMAIN_ERRORS as exc:
            return _domain_error_response(exc)

        out = OrderSerializer(order)
        return Response(out.data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Admins get every order, filterable by status, payment status,
        salesperson, distributor and date range (``OrderFilter``).
        Salespeople and distributors get their own orders.  Not paginated.
        """
        user = request.user
        try:
            if user.role == Role.SALESPERSON:
                orders = self._service.list_by_salesperson(user.id)
            elif user.role == Role.DISTRIBUTOR:
                orders = self._service.list_by_distributor(user.id)
            else:
                orders = self._service.search_orders(self.filter_queryset)
            serializer = OrderSerializer(orders, many=True)
            return Response(serializer.data)
        except RetryableError as exc:
            return _domain_error_response(exc)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._visible_order(request, pk)
        except DOMAIN_ERRORS as exc:
            return _domain_error_response(exc)
        if order is None:
            return _order_not_found()
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @action(detail=True, methods=["patch"], url_path="status")
    def update_status(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/status/

        Moves the order one step forward (Pending -> Dispatched ->
        Delivered).  Distributors may only update orders assigned to them.
        """
        serializer = UpdateStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            if self._visible_order(request, pk) is None:
                return _order_not_found()
            order = self._service.update_status(
                order_id=pk,
                new_status=serializer.validated_data["status"],
                actor=self._actor(request),
            )
        except DOMAIN_ERRORS as exc:
            return _domain_error_response(exc)

        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["patch"], url_path="payment")
    def update_payment(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/payment/"""
        serializer = UpdatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            if self._visible_order(request, pk) is None:
                return _order_not_found()
            order = self._service.update_payment_status(
                order_id=pk,
                new_payment_status=serializer.validated_data["payment_status"],
                actor=self._actor(request),
            )
        except DOMAIN_ERRORS as exc:
            return _domain_error_response(exc)

        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def assign(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/assign/ (admin only)."""
        serializer = AssignDistributorSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.assign_distributor(
                order_id=pk,
                distributor_id=serializer.validated_data["distributor_id"],
                actor=self._actor(request),
            )
        except DOMAIN_ERRORS as exc:
            return _domain_error_response(exc)

        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Timeline
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get"])
    def events(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/events/ (newest first)."""
        try:
            order = self._visible_order(request, pk)
            if order is None:
                return _order_not_found()
            entries = self._timeline.list_by_order(order.id)
        except DOMAIN_ERRORS as exc:
            return _domain_error_response(exc)

        serializer = OrderEventSerializer(
            [entry.model_dump() for entry in entries], many=True
        )
        return Response(serializer.data)

    @action(
        detail=True,
        methods=["get"],
        url_path="events/stream",
        renderer_classes=[EventStreamRenderer, JSONRenderer],
    )
    def stream(self, request: Request, pk: str | None = None):
        """GET /api/v1/orders/{pk}/events/stream/

        Server-Sent Events feed of entries appended after the connection
        opens.  A comment line is sent every
        ``TIMELINE_STREAM_KEEPALIVE_SECONDS`` while idle.
        """
        try:
            order = self._visible_order(request, pk)
        except DOMAIN_ERRORS as exc:
            return _domain_error_response(exc)
        if order is None:
            return _order_not_found()

        response = StreamingHttpResponse(
            self._event_stream(order.id),
            content_type="text/event-stream",
        )
        response["Cache-Control"] = "no-cache"
        response["X-Accel-Buffering"] = "no"
        return response

    def _event_stream(self, order_id: UUID) -> Iterator[str]:
        # No channel is held until the first chunk is pulled
        log = logger.bind(order_id=str(order_id))
        try:
            subscription = self._timeline.subscribe(order_id)
        except DOMAIN_ERRORS as exc:
            log.warning("timeline.stream_rejected", error=str(exc))
            yield f"event: error\ndata: {json.dumps({'detail': str(exc)})}\n\n"
            return

        keepalive = settings.TIMELINE_STREAM_KEEPALIVE_SECONDS
        log.info("timeline.stream_opened")
        try:
            yield "retry: 3000\n\n"
            while not subscription.cancelled:
                entry = subscription.next_event(timeout=keepalive)
                if entry is None:
                    yield ": keepalive\n\n"
                    continue
                payload = json.dumps(entry.model_dump(mode="json"))
                yield f"id: {entry.id}\nevent: {entry.type}\ndata: {payload}\n\n"
        finally:
            subscription.cancel()
            log.info("timeline.stream_closed")
