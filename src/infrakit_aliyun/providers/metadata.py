"""Aliyun instance metadata lookups."""

import logging
from typing import Optional

import httpx


logger = logging.getLogger(__name__)

DEFAULT_METADATA_ENDPOINT = "http://100.100.100.200/latest/meta-data"


async def get_region(
    endpoint: str = DEFAULT_METADATA_ENDPOINT,
    timeout: float = 5.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Return the Aliyun region the current host runs in."""
    url = f"{endpoint.rstrip('/')}/region-id"
    async with httpx.AsyncClient(transport=transport, timeout=timeout) as client:
        response = await client.get(url)
        response.raise_for_status()

    region = response.text.strip()
    if not region:
        raise ValueError(f"Empty region returned by {url}")
    logger.debug(f"Discovered region {region} from instance metadata")
    return region
