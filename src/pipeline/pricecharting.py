"""
Toreca Tracker — PriceCharting API Client

Looks up single products and runs free-text product searches against the
PriceCharting API. Prices come back as integer pennies (e.g. 1732 = $17.32);
see src/utils/currency.py for conversion.

PriceCharting sometimes answers with an HTML page instead of JSON, so the
content type is checked before parsing.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from src.config import settings
from src.errors import UpstreamError

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Pydantic Response Models
# ---------------------------------------------------------------------------


class PriceChartingProduct(BaseModel):
    """Subset of a PriceCharting product record. Prices are pennies."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    id: str = ""
    product_name: str = Field(default="", alias="product-name")
    console_name: str = Field(default="", alias="console-name")
    loose_price: int | None = Field(default=None, alias="loose-price")
    cib_price: int | None = Field(default=None, alias="cib-price")
    new_price: int | None = Field(default=None, alias="new-price")
    graded_price: int | None = Field(default=None, alias="graded-price")


# ---------------------------------------------------------------------------
# API Client
# ---------------------------------------------------------------------------


class PriceChartingClient:
    """
    Async client for the PriceCharting API.

    Usage:
        async with PriceChartingClient() as client:
            product = await client.get_product("12345")
            candidates = await client.search_products("charizard pokemon")
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        self._token = token if token is not None else settings.PRICECHARTING_TOKEN
        self._base_url = base_url or settings.PRICECHARTING_BASE_URL
        self._timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> PriceChartingClient:
        self._client = httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout)
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()

    async def _request(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        assert self._client is not None, "Client not initialized. Use 'async with'."

        if not self._token:
            raise UpstreamError("PRICECHARTING_TOKEN is not configured")

        try:
            response = await self._client.get(path, params={"t": self._token, **params})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("pricecharting_http_error", status_code=e.response.status_code, path=path)
            raise UpstreamError(
                f"PriceCharting API error: {e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except httpx.RequestError as e:
            logger.error(
                "pricecharting_request_error",
                error=str(e),
                error_type=type(e).__name__,
                path=path,
            )
            raise UpstreamError(f"PriceCharting API request failed: {e}") from e

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            raise UpstreamError(f"PriceCharting API: unexpected content-type: {content_type}")

        try:
            data = response.json()
        except ValueError as e:
            logger.error("pricecharting_invalid_json", path=path, error=str(e))
            raise UpstreamError("PriceCharting API: response body is not valid JSON") from e
        if not isinstance(data, dict):
            raise UpstreamError(
                f"PriceCharting API: expected a JSON object, got {type(data).__name__}"
            )

        if data.get("status") == "error":
            raise UpstreamError(
                f"PriceCharting API error: {data.get('error-message') or data.get('message') or 'Unknown error'}"
            )
        return data

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    async def get_product(self, product_id: str) -> PriceChartingProduct:
        """Fetch a single product by its PriceCharting id."""
        logger.info("pricecharting_fetch_product", product_id=product_id)
        data = await self._request("/product", {"id": product_id})
        try:
            return PriceChartingProduct.model_validate(data)
        except PydanticValidationError as e:
            logger.error("pricecharting_invalid_product", product_id=product_id, error=str(e))
            raise UpstreamError(f"PriceCharting API: malformed product {product_id}") from e

    async def search_products(self, query: str) -> list[dict[str, Any]]:
        """
        Free-text product search, used to find link candidates.

        Returns the raw product dicts; an empty list when the API omits or
        malforms ``products``.
        """
        data = await self._request("/products", {"q": query})
        products = data.get("products")
        if not isinstance(products, list):
            return []

        logger.info("pricecharting_search_complete", query=query, results_count=len(products))
        return products
