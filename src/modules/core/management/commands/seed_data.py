from __future__ import annotations

import random

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.accounts.constants import Role
from modules.accounts.dtos import ActorDTO
from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.accounts.services import UserDirectory
from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.dtos import CreateOrderDTO
from modules.orders.models import Order
from modules.orders.repositories import (
    OrderDjangoRepository,
    OrderEventDjangoRepository,
)
from modules.orders.services import OrderService
from modules.orders.timeline import TimelineService

SEED_USERS = [
    ("admin", "admin123", "Asha Admin", Role.ADMIN),
    ("sales", "sales123", "Ravi Sales", Role.SALESPERSON),
    ("sales2", "sales123", "Meera Sales", Role.SALESPERSON),
    ("distributor", "distributor123", "Kabir Distribution", Role.DISTRIBUTOR),
]

SEED_ORDERS = [
    ("Titan Spa", "12 MG Road, Bengaluru", "Aroma Oil 500ml"),
    ("Lotus Wellness", "4 Park Street, Kolkata", "Hot Stone Kit"),
    ("Serene Salon", "88 Linking Road, Mumbai", "Facial Cream 250g"),
    ("Blue Lagoon Spa", "7 Calangute Beach Road, Goa", "Bath Salts 1kg"),
    ("Urban Glow", "21 Connaught Place, Delhi", "Hair Serum 100ml"),
    ("Ayur Retreat", "3 Marine Drive, Kochi", "Herbal Scrub 500g"),
]


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users = self._seed_users()
        orders_created = self._seed_orders(users)

        self.stdout.write(
            self.style.SUCCESS(
                f"Seed completed: users={len(users)}, orders={orders_created}"
            )
        )

    def _seed_users(self) -> dict:
        self.stdout.write("Creating users...")
        User = get_user_model()
        users = {}
        for username, password, name, role in SEED_USERS:
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(
                    username,
                    email=f"{username}@example.com",
                    password=password,
                    name=name,
                    role=role,
                    is_staff=role == Role.ADMIN,
                    is_superuser=role == Role.ADMIN,
                )
            users[username] = user
        self.stdout.write(self.style.SUCCESS("Creating users... Done!"))
        return users

    def _seed_orders(self, users: dict) -> int:
        """Create orders through ``OrderService`` so each gets a timeline."""
        self.stdout.write("Creating orders...")
        if Order.objects.exists():
            self.stdout.write(self.style.WARNING("Skipping orders (already seeded)."))
            return 0

        order_repo = OrderDjangoRepository()
        directory = UserDirectory(user_repository=UserDjangoRepository())
        service = OrderService(
            order_repository=order_repo,
            timeline=TimelineService(
                order_repository=order_repo,
                event_repository=OrderEventDjangoRepository(),
                directory=directory,
            ),
            directory=directory,
        )
        admin = ActorDTO.from_entity(users["admin"])
        distributor = users["distributor"]
        salespeople = [users["sales"], users["sales2"]]

        for spa_name, address, product_name in SEED_ORDERS:
            salesperson = random.choice(salespeople)
            order = service.create_order(
                CreateOrderDTO(
                    spa_name=spa_name,
                    address=address,
                    product_name=product_name,
                    quantity=random.randint(1, 20),
                    salesperson_id=salesperson.id,
                ),
                ActorDTO.from_entity(salesperson),
            )
            if random.random() < 0.7:
                service.assign_distributor(order.id, distributor.id, admin)
                carrier = ActorDTO.from_entity(distributor)
                steps = random.randint(0, 2)
                for new_status in [OrderStatus.DISPATCHED, OrderStatus.DELIVERED][:steps]:
                    service.update_status(order.id, new_status, carrier)
            if random.random() < 0.5:
                service.update_payment_status(order.id, PaymentStatus.PAID, admin)

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return len(SEED_ORDERS)
