"""Shared pytest fixtures for the bakery storefront tests."""

import asyncio
import json
from typing import Any, Optional

import httpx
import pytest

from bakery_server.config import BackendSettings
from bakery_server.models import CheckoutForm, Product
from bakery_server.storefront import Storefront
from bakery_server.supabase_client import SupabaseClient

CATEGORIES = [
    {"id": 1, "name": "Pães"},
    {"id": 2, "name": "Doces"},
]

PRODUCTS = [
    {
        "id": 1,
        "name": "Pão de Queijo",
        "description": "Fornada do dia",
        "price": 15.0,
        "category_id": 1,
        "image_url": "https://example.com/pao.jpg",
    },
    {
        "id": 2,
        "name": "Brigadeiro",
        "description": None,
        "price": 8.5,
        "category_id": 2,
        "image_url": None,
    },
    {
        "id": 3,
        "name": "Bolo de Cenoura",
        "description": "Com cobertura de chocolate",
        "price": 120.0,
        "category_id": 2,
        "image_url": None,
    },
]


class FakeBackend:
    """PostgREST stand-in that records every request it receives."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {
            "categories": [dict(row) for row in CATEGORIES],
            "products": [dict(row) for row in PRODUCTS],
        }
        self.requests: list[httpx.Request] = []
        self.failing: set[str] = set()
        self.next_order_id = 42
        self.order_body: Optional[Any] = None
        # When set, inserts wait on it before answering
        self.gate: Optional[asyncio.Event] = None

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        table = request.url.path.rsplit("/", 1)[-1]

        if request.method == "POST" and self.gate is not None:
            await self.gate.wait()

        if table in self.failing:
            return httpx.Response(500, json={"message": f"{table} unavailable", "code": "XX000"})

        if request.method == "GET":
            return httpx.Response(200, json=self.tables.get(table, []))

        rows = json.loads(request.content)
        if table == "orders":
            body = self.order_body
            if body is None:
                body = [{**rows[0], "id": self.next_order_id}]
            return httpx.Response(201, json=body)
        return httpx.Response(201)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def inserts(self, table: str) -> list[list[dict[str, Any]]]:
        """Bodies of every insert sent to a table."""
        return [
            json.loads(request.content)
            for request in self.requests
            if request.method == "POST" and request.url.path.endswith(f"/{table}")
        ]

    def selects(self, table: str) -> list[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.method == "GET" and request.url.path.endswith(f"/{table}")
        ]


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def settings():
    return BackendSettings(supabase_url="https://bakery.supabase.co", supabase_key="anon-key")


@pytest.fixture
def backend(fake_backend, settings):
    return SupabaseClient(settings, transport=fake_backend.transport)


@pytest.fixture
def storefront(backend):
    return Storefront(backend)


@pytest.fixture
def products():
    return [Product.model_validate(row) for row in PRODUCTS]


@pytest.fixture
def pao(products):
    return products[0]


@pytest.fixture
def brigadeiro(products):
    return products[1]


@pytest.fixture
def complete_form():
    """A checkout form with every field filled in."""
    return CheckoutForm(
        name="Maria Silva",
        whatsapp_contact="(11) 98765-4321",
        payment_method="PIX",
        pickup_date="2099-12-31",
        pickup_shift="morning",
        pickup_time="09:30",
    )
