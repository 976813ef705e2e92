"""
Base HTTP client with typed error handling.

requests.Session with timeouts. No retries: a failed authenticated call
surfaces to the caller, which decides whether to re-sign.

Request bodies are passed as already-serialized strings so the bytes sent are
exactly the bytes that were signed.
"""

import itertools

import orjson
import requests
from typing import Optional, Any
from urllib.parse import urljoin
import logging

from ..config import ClobSettings
from ..exceptions import (
    APIError,
    AuthError,
    StaleAuthError,
    TimeoutError,
    RateLimitError,
)
from ..metrics import Metrics

logger = logging.getLogger(__name__)


def dumps_body(payload: Any) -> str:
    """Serialize a JSON body once, compactly. Sign and send the result."""
    return orjson.dumps(payload).decode("utf-8")


def server_message(error_data: Any, fallback: str = "") -> str:
    """Pull the human message out of an error payload, verbatim."""
    if isinstance(error_data, dict):
        for key in ("error", "errorMsg", "message"):
            if error_data.get(key):
                return str(error_data[key])
    if error_data is not None:
        return str(error_data)
    return fallback



def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    # Delay-seconds form only; an HTTP-date is ignored
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None

class BaseAPIClient:
    """
    Base HTTP client mapping HTTP failures onto the exception hierarchy.

    401/403 -> AuthError (StaleAuthError if the server blames the timestamp)
    429     -> RateLimitError
    other   -> APIError
    """

    def __init__(
        self,
        base_url: str,
        settings: ClobSettings,
        session: Optional[requests.Session] = None,
        metrics: Optional[Metrics] = None
    ):
        """
        Initialize base API client.

        Args:
            base_url: API base URL
            settings: Client settings
            session: Optional pre-configured session
            metrics: Optional metrics collector
        """
        self.base_url = base_url.rstrip("/") + "/"
        self.settings = settings
        self.metrics = metrics

        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Connection": "keep-alive",
        })

        self.timeout = (settings.connect_timeout, settings.request_timeout)
        self._request_ids = itertools.count(1)

    def _raise_for_status(self, method: str, path: str, response: requests.Response) -> None:
        error_data = None
        error_msg = f"{method} {path} failed with {response.status_code}"
        try:
            error_data = orjson.loads(response.content)
        except (ValueError, TypeError, orjson.JSONDecodeError) as e:
            logger.debug(f"Could not parse error response as JSON: {e}")

        detail = server_message(error_data, fallback=response.text[:200])
        if detail:
            error_msg += f": {detail}"

        status = response.status_code
        if status in (401, 403):
            if "timestamp" in detail.lower():
                raise StaleAuthError(error_msg, status_code=status)
            raise AuthError(error_msg, status_code=status, response=error_data)
        if status == 429:
            raise RateLimitError(
                error_msg,
                endpoint=path,
                retry_after=_parse_retry_after(response.headers.get("Retry-After"))
            )
        raise APIError(error_msg, status_code=status, response=error_data)

    def request(
        self,
        method: str,
        path: str,
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, Any]] = None,
        data: Optional[str] = None
    ) -> Any:
        """
        Make HTTP request.

        Args:
            method: HTTP method
            path: Request path (the same path that was signed)
            headers: Additional headers (auth)
            params: Query parameters
            data: Serialized JSON body, sent verbatim

        Returns:
            Parsed JSON response (None for an empty body)

        Raises:
            AuthError: On 401/403
            RateLimitError: On 429
            TimeoutError: On timeout
            APIError: On any other failure
        """
        url = urljoin(self.base_url, path.lstrip("/"))

        request_id = f"{method}:{path}:{next(self._request_ids)}"

        if self.settings.log_requests:
            logger.debug(f"[{request_id}] {method} {url} params={params}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=headers,
                params=params,
                data=data.encode("utf-8") if data is not None else None,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"Request timeout: {method} {url}")
            self._track(method, "timeout")
            raise TimeoutError(f"Request timeout: {e}") from e
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Connection error: {method} {url}")
            self._track(method, "connection_error")
            raise APIError(f"Connection error: {e}") from e

        self._track(method, str(response.status_code))

        if response.status_code >= 400:
            self._raise_for_status(method, path, response)

        if not response.content:
            return None

        try:
            return orjson.loads(response.content)
        except (ValueError, orjson.JSONDecodeError) as e:
            logger.error(f"Invalid JSON response: {response.text[:200]}")
            raise APIError(f"Invalid JSON response: {e}", status_code=response.status_code)

    def get(self, path: str, headers: Optional[dict[str, str]] = None,
            params: Optional[dict[str, Any]] = None) -> Any:
        """Make GET request."""
        return self.request("GET", path, headers=headers, params=params)

    def post(self, path: str, headers: Optional[dict[str, str]] = None,
             data: Optional[str] = None) -> Any:
        """Make POST request."""
        return self.request("POST", path, headers=headers, data=data)

    def delete(self, path: str, headers: Optional[dict[str, str]] = None,
               data: Optional[str] = None) -> Any:
        """Make DELETE request."""
        return self.request("DELETE", path, headers=headers, data=data)

    def _track(self, method: str, status: str) -> None:
        if self.metrics:
            self.metrics.track_api_request(method, status)

    def close(self) -> None:
        """Close session and cleanup resources."""
        self.session.close()
        logger.info("API client session closed")
