"""
sources/endpoint_registry.py

Responsibility: Holds the immutable list of known "what is my IP" endpoints,
each paired with the Decoder that understands its reply.
Does NOT: make HTTP calls or decode responses.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

import httpx

from sources.decoder import Decoder

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = ("http", "https")

# NOTE: every service below answers with the bare caller address as text.
DEFAULT_ENDPOINTS: tuple[tuple[str, Decoder], ...] = (
    ("https://icanhazip.com/", Decoder.plain()),
    ("https://myexternalip.com/raw", Decoder.plain()),
    ("https://ifconfig.io/ip", Decoder.plain()),
    ("https://ipecho.net/plain", Decoder.plain()),
    ("https://checkip.amazonaws.com/", Decoder.plain()),
    ("http://whatismyip.akamai.com/", Decoder.plain()),
    ("https://myip.dnsomatic.com/", Decoder.plain()),
    ("https://diagnostic.opendns.com/myip", Decoder.plain()),
    ("https://v4.ident.me/", Decoder.plain()),
    ("https://v6.ident.me/", Decoder.plain()),
    ("https://api4.ipify.org/", Decoder.plain()),
    ("https://api6.ipify.org/", Decoder.plain()),
    ("https://ipv4.wtfismyip.com/text", Decoder.plain()),
    ("https://ipv6.wtfismyip.com/text", Decoder.plain()),
)


@dataclass(frozen=True)
class EndpointSpec:
    """A single IP source: where to send the GET and how to read the reply."""

    url: httpx.URL
    decoder: Decoder

    def __str__(self) -> str:
        return f"{self.url}, ({self.decoder})"


class EndpointRegistry:
    """
    Ordered, read-only collection of EndpointSpec.

    Built once and shared by every Consensus.get() call. Entries whose URL
    cannot be parsed are dropped at construction time, so building a
    registry never fails.
    """

    def __init__(self, specs: Iterable[EndpointSpec]) -> None:
        self._specs: tuple[EndpointSpec, ...] = tuple(specs)

    @classmethod
    def from_entries(cls, entries: Iterable[tuple[str, Decoder]]) -> EndpointRegistry:
        """
        Parses (url, decoder) pairs into a registry, skipping invalid URLs.

        Args:
            entries: Raw URL strings paired with their decoders.

        Returns:
            A registry holding every entry whose URL is an absolute
            http(s) URL, in input order.
        """
        specs = []
        for raw_url, decoder in entries:
            url = _parse_endpoint_url(raw_url)
            if url is None:
                continue
            specs.append(EndpointSpec(url=url, decoder=decoder))
        return cls(specs)

    def __iter__(self) -> Iterator[EndpointSpec]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def __repr__(self) -> str:
        return f"EndpointRegistry({len(self._specs)} endpoints)"


@functools.lru_cache(maxsize=None)
def default_registry() -> EndpointRegistry:
    """
    Returns the process-wide registry built from DEFAULT_ENDPOINTS.

    The registry is built on first use; later calls return the same object.
    """
    return EndpointRegistry.from_entries(DEFAULT_ENDPOINTS)


def _parse_endpoint_url(raw_url: str) -> httpx.URL | None:
    try:
        url = httpx.URL(raw_url)
    except httpx.InvalidURL as exc:
        logger.warning("Failed to parse endpoint for HTTP source `%s`: %s", raw_url, exc)
        return None

    if url.scheme not in _ALLOWED_SCHEMES or not url.host:
        logger.warning(
            "Skipping endpoint `%s`: not an absolute http(s) URL.", raw_url
        )
        return None
    return url
