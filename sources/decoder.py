"""
sources/decoder.py

Responsibility: Turns the raw body of an IP source's reply into a typed
IPv4Address or IPv6Address.
Does NOT: make HTTP calls, retry, resolve hostnames, or log.
"""

from __future__ import annotations

import enum
import ipaddress
import json
from dataclasses import dataclass
from typing import Union

from exceptions import (
    JsonFieldMalformedError,
    JsonFieldMissingError,
    RawIpMalformedError,
    SourceDecodeError,
)

IpAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

# Quote characters trimmed from both ends of a plain-text reply
_PLAIN_QUOTE_CHARS = "\"'"


class DecoderKind(enum.Enum):
    PLAIN = "plain"
    JSON = "json"


@dataclass(frozen=True)
class Decoder:
    """
    Describes how to extract the IP from one source's reply.

    * PLAIN expects the body to contain only the IP. Surrounding whitespace
      and quotes are stripped.
    * JSON expects the body to be a JSON object holding the IP as a string
      under field_name.

    Build instances with Decoder.plain() or Decoder.json(field_name).
    """

    kind: DecoderKind
    field_name: str | None = None

    @classmethod
    def plain(cls) -> Decoder:
        return cls(DecoderKind.PLAIN)

    @classmethod
    def json(cls, field_name: str) -> Decoder:
        return cls(DecoderKind.JSON, field_name)

    def decode(self, body: str) -> IpAddress:
        """
        Extracts and parses the IP address from a response body.

        Args:
            body: The already-fetched response text.

        Returns:
            The parsed address; its family follows from the literal's syntax.

        Raises:
            SourceDecodeError: JSON decoder and the body is not valid JSON.
            JsonFieldMissingError: JSON decoder and the field is absent.
            JsonFieldMalformedError: JSON decoder and the field is not a string.
            RawIpMalformedError: The extracted text is not an IP literal.
        """
        if self.kind is DecoderKind.JSON:
            raw_ip = self._extract_json_field(body)
        else:
            raw_ip = body.strip().strip(_PLAIN_QUOTE_CHARS).strip()
        return _parse_ip(raw_ip)

    def _extract_json_field(self, body: str) -> str:
        field_name = self.field_name or ""
        # Deeply nested arrays exhaust the parser's recursion limit
        try:
            document = json.loads(body)
        except (ValueError, RecursionError) as exc:
            raise SourceDecodeError(f"Response is not valid JSON: {exc}") from exc

        # A non-object top level (list, number, ...) has no fields at all
        if not isinstance(document, dict) or field_name not in document:
            raise JsonFieldMissingError(field_name)

        raw_value = document[field_name]
        if not isinstance(raw_value, str):
            raise JsonFieldMalformedError(field_name, json.dumps(raw_value))
        return raw_value

    def __str__(self) -> str:
        if self.kind is DecoderKind.JSON:
            return f"Json({self.field_name!r})"
        return "Plain"


def _parse_ip(raw_ip: str) -> IpAddress:
    try:
        return ipaddress.ip_address(raw_ip)
    except ValueError as exc:
        raise RawIpMalformedError(raw_ip) from exc
