"""
services/consensus_service.py

Responsibility: Turns the addresses reported by many IP sources into a single
external IPv4 and IPv6 by plurality vote, and exposes Consensus.get() as the
public entry point.
Does NOT: decode responses or talk to endpoints directly; that is delegated
to FetchService.
"""

from __future__ import annotations

import ipaddress
import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TypeVar

import httpx

from config import Settings, load_settings
from services.fetch_service import FetchService, build_http_client
from sources.decoder import IpAddress
from sources.endpoint_registry import EndpointRegistry, default_registry

logger = logging.getLogger(__name__)

_AddressT = TypeVar("_AddressT", ipaddress.IPv4Address, ipaddress.IPv6Address)


def tally_votes(
    candidates: Iterable[IpAddress],
) -> tuple[Counter[ipaddress.IPv4Address], Counter[ipaddress.IPv6Address]]:
    """
    Counts how many sources reported each address, separately per family.

    Args:
        candidates: Decoded addresses from one fan-out.

    Returns:
        A (v4 tally, v6 tally) pair of Counters.
    """
    votes_v4: Counter[ipaddress.IPv4Address] = Counter()
    votes_v6: Counter[ipaddress.IPv6Address] = Counter()
    for ip in candidates:
        if isinstance(ip, ipaddress.IPv4Address):
            votes_v4[ip] += 1
        else:
            votes_v6[ip] += 1
    return votes_v4, votes_v6


def pick_winner(votes: Counter[_AddressT]) -> _AddressT | None:
    """
    Returns the address with the most votes, or None for an empty tally.

    Ties go to the numerically lowest address, so the result does not depend
    on the order in which sources answered.
    """
    if not votes:
        return None
    ip, _ = min(votes.items(), key=lambda item: (-item[1], item[0]))
    return ip


def build_consensus(candidates: Iterable[IpAddress]) -> Consensus:
    """
    Votes on the external address for each family.

    Args:
        candidates: Decoded addresses from one fan-out.

    Returns:
        A Consensus whose v4/v6 are absent when no source reported that family.
    """
    votes_v4, votes_v6 = tally_votes(candidates)
    return Consensus(ipv4=pick_winner(votes_v4), ipv6=pick_winner(votes_v6))


@dataclass(frozen=True)
class Consensus:
    """
    A consensus on what the external IPv4 and IPv6 is.

    Either field may be None: no source answered for that family, which is a
    valid outcome rather than an error.
    """

    ipv4: ipaddress.IPv4Address | None = None
    ipv6: ipaddress.IPv6Address | None = None

    def v4(self) -> ipaddress.IPv4Address | None:
        return self.ipv4

    def v6(self) -> ipaddress.IPv6Address | None:
        return self.ipv6

    @classmethod
    async def get(
        cls,
        http_client: httpx.AsyncClient | None = None,
        registry: EndpointRegistry | None = None,
        settings: Settings | None = None,
    ) -> Consensus:
        """
        Queries every known IP source and votes on the result.

        Args:
            http_client: Optional long-lived client. When omitted a client is
                         built from settings and closed before returning.
            registry: Endpoints to query; defaults to default_registry().
            settings: Timeout and concurrency limits; defaults to
                      load_settings(), i.e. the IP_CONSENSUS_* environment.

        Returns:
            The Consensus for this run.

        Raises:
            ConfigLoadError: If settings were not given and the environment
                             holds an invalid value. Raised before any request.
            HttpClientInitError: If no client was injected and one could not
                                 be built. Per-source failures never raise.
        """
        settings = settings if settings is not None else load_settings()
        registry = registry if registry is not None else default_registry()

        if http_client is not None:
            ips = await FetchService(http_client, settings).fetch_all(registry)
        else:
            async with build_http_client(settings) as client:
                ips = await FetchService(client, settings).fetch_all(registry)

        consensus = build_consensus(ips)
        logger.info(
            "External IP consensus from %d of %d sources: v4=%s v6=%s",
            len(ips),
            len(registry),
            consensus.ipv4,
            consensus.ipv6,
        )
        return consensus
