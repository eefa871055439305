"""
services/fetch_service.py

Responsibility: Queries every endpoint in a registry concurrently and returns
the addresses that were both fetched and decoded successfully.
Does NOT: vote on addresses, decide which endpoints exist, or retry.
"""

from __future__ import annotations

import asyncio
import logging
import ssl

import httpx

from config import Settings
from exceptions import HttpClientInitError, IpSourceError, SourceRequestError
from sources.decoder import IpAddress
from sources.endpoint_registry import EndpointRegistry, EndpointSpec

logger = logging.getLogger(__name__)


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """
    Creates the httpx.AsyncClient used to query IP sources.

    The caller owns the client and must close it (use it as an async
    context manager).

    Args:
        settings: Supplies the request timeout and optional CA bundle.

    Returns:
        A configured httpx.AsyncClient that follows redirects.

    Raises:
        HttpClientInitError: If the TLS context or the client cannot be built.
    """
    try:
        verify: ssl.SSLContext | bool = True
        if settings.ca_bundle:
            verify = ssl.create_default_context(cafile=settings.ca_bundle)
        return httpx.AsyncClient(
            timeout=httpx.Timeout(settings.request_timeout_seconds),
            follow_redirects=True,
            verify=verify,
        )
    except (OSError, ValueError) as exc:
        raise HttpClientInitError(f"Could not build HTTP client: {exc}") from exc


class FetchService:
    """
    Fans a GET out to every registry endpoint under a concurrency cap.

    Each attempt is isolated: a slow, dead or nonsensical endpoint only
    loses its own vote and never aborts its siblings.

    Collaborators:
        - httpx.AsyncClient: injected; must be kept alive externally
        - Decoder: taken from each EndpointSpec to read the reply
    """

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings | None = None) -> None:
        """
        Initialises the service with a shared HTTP client.

        Args:
            http_client: A live httpx.AsyncClient.
            settings: Timeout and concurrency limits; defaults to Settings().
        """
        self._client = http_client
        self._settings = settings or Settings()

    async def fetch_all(self, registry: EndpointRegistry) -> list[IpAddress]:
        """
        Queries every endpoint and collects the decoded addresses.

        Args:
            registry: The endpoints to query.

        Returns:
            The successfully decoded addresses, in no particular order.
            May be empty; failures are logged at DEBUG and dropped.
        """
        semaphore = asyncio.Semaphore(self._settings.max_concurrency)

        async def attempt(spec: EndpointSpec) -> IpAddress | None:
            async with semaphore:
                try:
                    return await self.fetch_one(spec)
                except IpSourceError as exc:
                    logger.debug("Failed to retrieve IP from `%s`: %s", spec, exc)
                    return None

        results = await asyncio.gather(*(attempt(spec) for spec in registry))
        ips = [ip for ip in results if ip is not None]
        logger.debug("Collected %d of %d candidate addresses.", len(ips), len(results))
        return ips

    async def fetch_one(self, spec: EndpointSpec) -> IpAddress:
        """
        Performs a single bounded GET against one endpoint and decodes it.

        Args:
            spec: The endpoint to query.

        Returns:
            The decoded address.

        Raises:
            SourceRequestError: On transport failure, non-2xx status or timeout.
            IpSourceError: Any decode failure raised by the endpoint's Decoder.
        """
        timeout = self._settings.request_timeout_seconds
        try:
            body = await asyncio.wait_for(self._get_text(spec.url, timeout), timeout)
        except asyncio.TimeoutError as exc:
            raise SourceRequestError(f"Timed out after {timeout}s") from exc

        ip = spec.decoder.decode(body)
        logger.debug("Source `%s` reported %s.", spec, ip)
        return ip

    async def _get_text(self, url: httpx.URL, timeout: float) -> str:
        try:
            response = await self._client.get(url, timeout=timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SourceRequestError(
                f"Source returned status {exc.response.status_code}."
            ) from exc
        except httpx.HTTPError as exc:
            raise SourceRequestError(f"Failed to retrieve request result: {exc}") from exc
        return response.text
