"""
exceptions.py

Responsibility: Defines all custom exception classes used across the application.
Does NOT: contain business logic, logging, or HTTP handling.
"""

from __future__ import annotations


class IpSourceError(Exception):
    """
    Base class for anything that went wrong while querying a single IP source.

    FetchService catches this family per endpoint, logs it, and drops the
    endpoint's vote. It never reaches the caller of Consensus.get().
    """


class SourceRequestError(IpSourceError):
    """
    Raised when the HTTP request to a source fails: connection error,
    timeout, or a non-2xx response status.
    """


class SourceDecodeError(IpSourceError):
    """
    Raised when a JSON source replies with a body that is not valid JSON.
    """


class JsonFieldMissingError(IpSourceError):
    """
    Raised when the expected field is absent from a JSON source's reply.
    """

    def __init__(self, field_name: str) -> None:
        super().__init__(f"Missing field `{field_name}` in response")
        self.field_name = field_name


class JsonFieldMalformedError(IpSourceError):
    """
    Raised when the expected JSON field is present but is not a string.
    """

    def __init__(self, field_name: str, raw_value: str) -> None:
        super().__init__(f"Malformed field `{field_name}` in response: `{raw_value}`")
        self.field_name = field_name
        self.raw_value = raw_value


class RawIpMalformedError(IpSourceError):
    """
    Raised when the extracted text is not a valid IPv4 or IPv6 literal.
    """

    def __init__(self, raw_value: str) -> None:
        super().__init__(f"Malformed raw IP value `{raw_value}`")
        self.raw_value = raw_value


class HttpClientInitError(Exception):
    """
    Raised when the shared httpx.AsyncClient cannot be constructed.

    This is the only error Consensus.get() lets through: without a client
    no source can be queried at all.
    """


class ConfigLoadError(Exception):
    """
    Raised by load_settings() when an environment override cannot be parsed
    or is out of range.
    """
