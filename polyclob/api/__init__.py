"""HTTP layer for the CLOB REST API."""

from .base import Transport, HttpTransport
from .clob import ClobAPI, serialize_body, parse_credentials

__all__ = ["Transport", "HttpTransport", "ClobAPI", "serialize_body", "parse_credentials"]
