"""HTTP transport for the CLOB API."""

from .base import BaseAPIClient, dumps_body

__all__ = ["BaseAPIClient", "dumps_body"]
