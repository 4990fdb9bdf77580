from decimal import Decimal
from typing import Sequence

import httpx
import structlog

from shared.config.upstream import PRODUCT_SERVICE_URL, UPSTREAM_TIMEOUT_SECONDS, USER_SERVICE_URL
from shared.observability import order_upstream_requests_total

from .errors import UpstreamDecodeError, UpstreamNotFound, UpstreamUnavailable
from .schemas import ProductPayload

logger = structlog.get_logger(__name__)


async def validate_user(client: httpx.AsyncClient, user_id: int) -> None:
    """Single GET against the user service; anything but 200 rejects the user."""
    try:
        resp = await client.get(
            f"{USER_SERVICE_URL}/api/users/{user_id}", timeout=UPSTREAM_TIMEOUT_SECONDS
        )
    except httpx.TransportError as e:
        order_upstream_requests_total.labels(service="user", outcome="unavailable").inc()
        logger.error("user_service_unreachable", user_id=user_id, error=repr(e))
        raise UpstreamUnavailable("Failed to contact user service") from e

    order_upstream_requests_total.labels(service="user", outcome=str(resp.status_code)).inc()
    if resp.status_code != 200:
        raise UpstreamNotFound(f"User with ID {user_id} not found", status_code=resp.status_code)


async def resolve_total_price(client: httpx.AsyncClient, product_ids: Sequence[int]) -> Decimal:
    """
    Fetch every product in request order and return the exact sum of their
    prices. Duplicates are fetched and counted again. The first failing
    product aborts the whole lookup.
    """
    total = Decimal("0")
    for pid in product_ids:
        try:
            resp = await client.get(
                f"{PRODUCT_SERVICE_URL}/api/products/{pid}", timeout=UPSTREAM_TIMEOUT_SECONDS
            )
        except httpx.TransportError as e:
            order_upstream_requests_total.labels(service="product", outcome="unavailable").inc()
            logger.error("product_service_unreachable", product_id=pid, error=repr(e))
            raise UpstreamUnavailable("Failed to contact product service") from e

        order_upstream_requests_total.labels(service="product", outcome=str(resp.status_code)).inc()
        if resp.status_code != 200:
            raise UpstreamNotFound(
                f"Failed to fetch product with ID {pid}; "
                f"downstream service returned status {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            # parse_float keeps prices exact; ValueError covers bad JSON and bad shape
            product = ProductPayload.model_validate(resp.json(parse_float=Decimal))
        except ValueError as e:
            logger.error("product_decode_failed", product_id=pid, error=str(e))
            raise UpstreamDecodeError(f"Failed to decode product data for ID {pid}") from e

        logger.debug("product_priced", product_id=pid, price=str(product.price))
        total += product.price

    return total
