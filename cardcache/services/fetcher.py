"""
Bulk document fetcher.

One HTTPS GET, body fully buffered. No retry here; the attempt loop in the
sync job decides what happens after a failure.
"""

import logging

import httpx

from cardcache.models.failure import TransientFetchError

logger = logging.getLogger(__name__)

USER_AGENT = "cardcache/1.0"


def create_client(timeout: float = 300.0) -> httpx.AsyncClient:
    """HTTP client shared across cycles, with standard TLS verification."""
    return httpx.AsyncClient(
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        timeout=timeout,
    )


async def fetch_document(url: str, client: httpx.AsyncClient) -> bytes:
    """
    Download the bulk document.

    Args:
        url: Source document URL
        client: HTTP client

    Returns:
        Full response body

    Raises:
        TransientFetchError: On network failure, non-2xx status or body read failure
    """
    logger.info("Download started: %s", url)

    try:
        response = await client.get(url)
        response.raise_for_status()
        body = response.content
    except httpx.HTTPStatusError as e:
        raise TransientFetchError(
            f"Could not fetch cards from source: HTTP {e.response.status_code}", e
        ) from e
    except httpx.HTTPError as e:
        raise TransientFetchError("Could not fetch cards from source", e) from e

    logger.info("Download finished, body length: %d", len(body))
    return body
