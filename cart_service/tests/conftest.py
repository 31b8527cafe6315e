"""
Shared fixtures for cart-service tests.

InMemoryCartStore is a CartStore double with the same row semantics as
cart_items: one row per (user, product), additive re-adds, ownership-matched
update/delete. It records every call so tests can assert that validation
short-circuits before the store is reached.
"""
from datetime import datetime
from decimal import Decimal

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from auth_utils import get_current_user_id
from db.functions import CartStore
from db.schemas import CartLineItem
from errors import ErrorKind, StoreError
from main import create_app
from service import CartService

ALICE = 1
BOB = 2


class InMemoryCartStore(CartStore):

    def __init__(self):
        self.rows: dict[int, dict] = {}
        self.calls: list[tuple] = []
        self.fail_with: StoreError | None = None
        self._next_id = 1

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if self.fail_with is not None:
            raise self.fail_with

    @staticmethod
    def _to_item(row: dict) -> CartLineItem:
        return CartLineItem(**row)

    async def find_by_user(self, user_id):
        self._record("find_by_user", user_id)
        return [self._to_item(row) for row in sorted(self.rows.values(), key=lambda r: r["id"])
                if row["user_id"] == user_id]

    async def get_item_count(self, user_id):
        self._record("get_item_count", user_id)
        return sum(1 for row in self.rows.values() if row["user_id"] == user_id)

    async def add_item(self, user_id, product_id, product_name, product_price, quantity):
        self._record("add_item", user_id, product_id, quantity)
        now = datetime.utcnow()
        for row in self.rows.values():
            if row["user_id"] == user_id and row["product_id"] == product_id:
                row["quantity"] += quantity
                row["updated_at"] = now
                return self._to_item(row)
        row = {
            "id": self._next_id,
            "user_id": user_id,
            "product_id": product_id,
            "product_name": product_name,
            "product_price": Decimal(product_price),
            "quantity": quantity,
            "created_at": now,
            "updated_at": now,
        }
        self.rows[row["id"]] = row
        self._next_id += 1
        return self._to_item(row)

    def _owned_row(self, user_id, item_id):
        row = self.rows.get(item_id)
        if row is None or row["user_id"] != user_id:
            raise StoreError(ErrorKind.NOT_FOUND, f"cart item {item_id} not found for user {user_id}")
        return row

    async def update_item(self, user_id, item_id, quantity):
        self._record("update_item", user_id, item_id, quantity)
        row = self._owned_row(user_id, item_id)
        row["quantity"] = quantity
        row["updated_at"] = datetime.utcnow()

    async def remove_item(self, user_id, item_id):
        self._record("remove_item", user_id, item_id)
        self._owned_row(user_id, item_id)
        del self.rows[item_id]

    async def clear(self, user_id):
        self._record("clear", user_id)
        for item_id in [i for i, row in self.rows.items() if row["user_id"] == user_id]:
            del self.rows[item_id]


class CurrentUser:
    """Mutable holder standing in for the authenticated user."""

    def __init__(self, user_id: int = ALICE):
        self.user_id = user_id


@pytest.fixture
def store() -> InMemoryCartStore:
    return InMemoryCartStore()


@pytest.fixture
def cart_service(store: InMemoryCartStore) -> CartService:
    return CartService(store, shipping=Decimal("5.00"))


@pytest.fixture
def current_user() -> CurrentUser:
    return CurrentUser()


@pytest.fixture
def app(cart_service: CartService, current_user: CurrentUser) -> FastAPI:
    test_app = create_app(cart_service=cart_service)
    test_app.dependency_overrides[get_current_user_id] = lambda: current_user.user_id
    return test_app


@pytest.fixture
async def client(app: FastAPI) -> AsyncClient:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
async def unauthenticated_client(cart_service: CartService) -> AsyncClient:
    """Client against an app that performs real JWT verification."""
    test_app = create_app(cart_service=cart_service)
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as client:
        yield client
