import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.accounts.constants import Role
from modules.accounts.dtos import ActorDTO
from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.accounts.services import UserDirectory
from modules.orders.dtos import CreateOrderDTO
from modules.orders.repositories import (
    OrderDjangoRepository,
    OrderEventDjangoRepository,
)
from modules.orders.services import OrderService
from modules.orders.timeline import TimelineBackfillService, TimelineService
from shared.infrastructure.broadcast import get_broadcaster

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _fresh_broadcaster():
    """Each test gets its own in-memory broadcaster."""
    get_broadcaster.cache_clear()
    yield
    get_broadcaster.cache_clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------


def _make_user(username: str, role: Role, name: str) -> User:
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="testpass123",
        name=name,
        role=role,
    )


@pytest.fixture()
def admin_user():
    return _make_user("admin", Role.ADMIN, "Asha Admin")


@pytest.fixture()
def salesperson():
    return _make_user("sales", Role.SALESPERSON, "Ravi Sales")


@pytest.fixture()
def other_salesperson():
    return _make_user("sales2", Role.SALESPERSON, "Meera Sales")


@pytest.fixture()
def distributor():
    return _make_user("distributor", Role.DISTRIBUTOR, "Kabir Distribution")


@pytest.fixture()
def other_distributor():
    return _make_user("distributor2", Role.DISTRIBUTOR, "Zoya Logistics")


@pytest.fixture()
def client_for():
    """Build an APIClient force-authenticated as *user*."""

    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest.fixture()
def directory():
    return UserDirectory(user_repository=UserDjangoRepository())


@pytest.fixture()
def timeline_service(directory):
    return TimelineService(
        order_repository=OrderDjangoRepository(),
        event_repository=OrderEventDjangoRepository(),
        directory=directory,
    )


@pytest.fixture()
def order_service(timeline_service, directory):
    return OrderService(
        order_repository=OrderDjangoRepository(),
        timeline=timeline_service,
        directory=directory,
    )


@pytest.fixture()
def backfill_service(directory):
    return TimelineBackfillService(
        order_repository=OrderDjangoRepository(),
        event_repository=OrderEventDjangoRepository(),
        directory=directory,
    )


@pytest.fixture()
def actor_of():
    return ActorDTO.from_entity


@pytest.fixture()
def make_order(order_service, salesperson):
    """Create an order through ``OrderService`` (so it has a timeline)."""

    def _make(**overrides):
        seller = overrides.pop("salesperson", salesperson)
        data = {
            "spa_name": "Titan Spa",
            "address": "12 MG Road, Bengaluru",
            "product_name": "Aroma Oil 500ml",
            "quantity": 10,
            "salesperson_id": seller.id,
        }
        data.update(overrides)
        return order_service.create_order(
            CreateOrderDTO(**data), ActorDTO.from_entity(seller)
        )

    return _make
