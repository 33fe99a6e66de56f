"""Zone discovery over the REST API.

Pages through ``GET /zones?account.id=...&status=active`` and collects every
active zone. Discovery never raises: failures come back on
``ZoneDiscoveryResult.error`` with an empty zone list.
"""

import asyncio
import logging
import re
import time
from typing import Any

import httpx
from whenever import TimeDelta

from usage_monitor.models import Zone, ZoneDiscoveryResult

logger = logging.getLogger(__name__)

API_BASE = "https://api.cloudflare.com/client/v4"

# Maximum page size accepted by the zones endpoint
DEFAULT_PER_PAGE = 50
DEFAULT_PAGE_DELAY = TimeDelta(milliseconds=50)

ZONE_ID_PATTERN = re.compile(r"[0-9a-fA-F]{32}")


class ZoneDiscoveryError(Exception):
    pass


async def discover_zones(
    api_token: str,
    account_id: str,
    *,
    client: httpx.AsyncClient | None = None,
    per_page: int = DEFAULT_PER_PAGE,
    page_delay: TimeDelta = DEFAULT_PAGE_DELAY,
    base_url: str = API_BASE,
) -> ZoneDiscoveryResult:
    """List every active zone of an account.

    Args:
        api_token: Token with Zone:Read permission
        account_id: Account whose zones are listed
        client: Optional shared httpx client (closed only if created here)
        per_page: Page size
        page_delay: Pause between page requests
    """
    started = time.perf_counter()
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=30.0)
    zones: list[Zone] = []

    try:
        page = 1
        while True:
            payload = await _fetch_page(client, base_url, api_token, account_id, page, per_page)
            zones.extend(Zone.model_validate(item) for item in payload.get("result") or [])

            total_pages = (payload.get("result_info") or {}).get("total_pages")
            if not total_pages or page >= total_pages:
                break
            page += 1
            await asyncio.sleep(page_delay.in_seconds())
    except (ZoneDiscoveryError, httpx.HTTPError, ValueError) as e:
        logger.error("Zone discovery failed for account %s: %s", account_id, e)
        return ZoneDiscoveryResult(error=str(e), duration_ms=_elapsed_ms(started))
    finally:
        if owns_client:
            await client.aclose()

    logger.info("Discovered %d active zones for account %s", len(zones), account_id)
    return ZoneDiscoveryResult(zones=zones, duration_ms=_elapsed_ms(started))


async def _fetch_page(
    client: httpx.AsyncClient,
    base_url: str,
    api_token: str,
    account_id: str,
    page: int,
    per_page: int,
) -> dict[str, Any]:
    response = await client.get(
        f"{base_url}/zones",
        params={
            "account.id": account_id,
            "status": "active",
            "page": page,
            "per_page": per_page,
        },
        headers={
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        },
    )
    if not response.is_success:
        raise ZoneDiscoveryError(f"API request failed: {response.status_code} - {response.text}")

    payload = response.json()
    if not payload.get("success"):
        messages = ", ".join(error.get("message", "") for error in payload.get("errors") or [])
        raise ZoneDiscoveryError(f"API error: {messages}")
    return payload


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


def is_valid_zone_id(zone_id: str) -> bool:
    """Zone ids are 32 lowercase or uppercase hex characters."""
    return ZONE_ID_PATTERN.fullmatch(zone_id) is not None
