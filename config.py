"""
config.py

Responsibility: Holds the runtime settings for querying IP sources and loads
overrides from environment variables.
Does NOT: build HTTP clients, know about individual endpoints, or log.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from exceptions import ConfigLoadError

DEFAULT_REQUEST_TIMEOUT_SECONDS = 2.0
DEFAULT_MAX_CONCURRENCY = 10

_ENV_TIMEOUT = "IP_CONSENSUS_REQUEST_TIMEOUT"
_ENV_CONCURRENCY = "IP_CONSENSUS_MAX_CONCURRENCY"
_ENV_CA_BUNDLE = "IP_CONSENSUS_CA_BUNDLE"


@dataclass(frozen=True)
class Settings:
    """
    Tunables for one fan-out over the endpoint registry.

    request_timeout_seconds bounds each individual request; max_concurrency
    caps how many requests are in flight at once.
    """

    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY

    # Path to a CA bundle; None means httpx's default certifi bundle
    ca_bundle: str | None = None


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """
    Builds Settings from environment variables, falling back to defaults.

    Args:
        environ: Mapping to read from; defaults to os.environ.

    Returns:
        A frozen Settings instance.

    Raises:
        ConfigLoadError: If a variable is set but not a valid value.
    """
    env = os.environ if environ is None else environ

    raw_timeout = env.get(_ENV_TIMEOUT, "").strip()
    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_REQUEST_TIMEOUT_SECONDS
    except ValueError as exc:
        raise ConfigLoadError(f"{_ENV_TIMEOUT} must be a number, got {raw_timeout!r}") from exc
    if timeout <= 0:
        raise ConfigLoadError(f"{_ENV_TIMEOUT} must be > 0, got {timeout}")

    raw_concurrency = env.get(_ENV_CONCURRENCY, "").strip()
    try:
        concurrency = int(raw_concurrency) if raw_concurrency else DEFAULT_MAX_CONCURRENCY
    except ValueError as exc:
        raise ConfigLoadError(
            f"{_ENV_CONCURRENCY} must be an integer, got {raw_concurrency!r}"
        ) from exc
    if concurrency < 1:
        raise ConfigLoadError(f"{_ENV_CONCURRENCY} must be >= 1, got {concurrency}")

    ca_bundle = env.get(_ENV_CA_BUNDLE, "").strip() or None

    return Settings(
        request_timeout_seconds=timeout,
        max_concurrency=concurrency,
        ca_bundle=ca_bundle,
    )
