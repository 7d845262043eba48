"""Supabase (PostgREST) API client."""

import logging
from typing import Any, Optional

import httpx

from .config import BackendSettings
from .errors import BackendError
from .models import Category, NewOrder, NewOrderItem, Order, Product

logger = logging.getLogger(__name__)


class SupabaseClient:
    """Client for the bakery's tables on a hosted Supabase project."""

    REST_PATH = "/rest/v1"

    def __init__(
        self,
        settings: BackendSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the Supabase client.

        Args:
            settings: Backend connection settings
            transport: Optional httpx transport (used to fake the backend in tests)
        """
        self.settings = settings
        self.client = httpx.AsyncClient(
            base_url=settings.supabase_url.rstrip("/") + self.REST_PATH,
            timeout=settings.timeout,
            transport=transport,
            headers={
                "apikey": settings.supabase_key,
                "Authorization": f"Bearer {settings.supabase_key}",
                "Accept": "application/json",
            },
        )

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self.client.aclose()

    def _raise_for_error(self, table: str, response: httpx.Response) -> None:
        """Convert a PostgREST error response into a BackendError."""
        if response.status_code < 400:
            return

        message = response.text[:200] or response.reason_phrase
        code = None
        try:
            data = response.json()
            if isinstance(data, dict):
                message = data.get("message") or message
                code = data.get("code")
        except ValueError:
            pass

        logger.error(f"Backend error on {table}: status={response.status_code}, code={code}, message={message}")
        raise BackendError(
            f"{table}: {message}", status_code=response.status_code, code=code
        )

    async def select(self, table: str) -> list[dict[str, Any]]:
        """
        Fetch every row of a table.

        Args:
            table: Table name

        Returns:
            List of rows as dictionaries

        Raises:
            BackendError: If the request fails
        """
        logger.info(f"SELECT * FROM {table}")
        try:
            response = await self.client.get(f"/{table}", params={"select": "*"})
        except httpx.HTTPError as e:
            raise BackendError(f"{table}: {e}") from e

        self._raise_for_error(table, response)
        try:
            rows = response.json()
        except ValueError as e:
            raise BackendError(f"{table}: invalid JSON in response") from e
        if not isinstance(rows, list):
            raise BackendError(f"{table}: expected a list of rows, got {type(rows).__name__}")

        logger.info(f"Fetched {len(rows)} row(s) from {table}")
        return rows

    async def insert(
        self, table: str, rows: list[dict[str, Any]], returning: bool = True
    ) -> list[dict[str, Any]]:
        """
        Insert rows into a table.

        Args:
            table: Table name
            rows: Rows to insert (JSON-serializable dictionaries)
            returning: Ask the backend to return the inserted rows

        Returns:
            Inserted rows when returning is True, otherwise an empty list

        Raises:
            BackendError: If the request fails
        """
        logger.info(f"INSERT INTO {table} ({len(rows)} row(s))")
        prefer = "return=representation" if returning else "return=minimal"
        try:
            response = await self.client.post(
                f"/{table}",
                json=rows,
                headers={"Content-Type": "application/json", "Prefer": prefer},
            )
        except httpx.HTTPError as e:
            raise BackendError(f"{table}: {e}") from e

        self._raise_for_error(table, response)
        if not returning or not response.content:
            return []

        try:
            data = response.json()
        except ValueError as e:
            raise BackendError(f"{table}: invalid JSON in response") from e
        return data if isinstance(data, list) else [data]

    async def fetch_categories(self) -> list[Category]:
        """Fetch all categories."""
        return [Category.model_validate(row) for row in await self.select("categories")]

    async def fetch_products(self) -> list[Product]:
        """Fetch all products."""
        return [Product.model_validate(row) for row in await self.select("products")]

    async def insert_order(self, order: NewOrder) -> Optional[Order]:
        """
        Create an order row.

        Returns:
            The created order, or None if the backend returned no row with an id
        """
        rows = await self.insert("orders", [order.model_dump(mode="json")])
        if not rows or rows[0].get("id") is None:
            logger.warning("Order insert returned no id")
            return None
        return Order.model_validate(rows[0])

    async def insert_order_items(self, items: list[NewOrderItem]) -> None:
        """Create order item rows; nothing is returned."""
        await self.insert(
            "order_items", [item.model_dump(mode="json") for item in items], returning=False
        )
