"""
HTTP transport for the CLOB REST API.

Thread-safe session with timeouts, retries and a circuit breaker.
Request bodies are sent as the exact bytes the caller passes in, since L2
signatures cover those bytes.
"""

import orjson
import requests
from requests.adapters import HTTPAdapter
from typing import Optional, Any, Dict, Protocol
from urllib.parse import urljoin
import logging

from ..config import ClobSettings
from ..exceptions import (
    APIError,
    TimeoutError,
    RateLimitError,
    AuthenticationError
)
from ..utils.retry import RetryStrategy, CircuitBreaker

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Anything that can carry a request to the exchange and return parsed JSON."""

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[bytes] = None,
        params: Optional[Dict[str, Any]] = None,
        retry: bool = True
    ) -> Any:
        ...


class HttpTransport:
    """
    requests-based transport with error mapping and retries.

    401/403 become AuthenticationError, 429 becomes RateLimitError and any
    other status >= 400 becomes APIError.
    """

    def __init__(
        self,
        base_url: str,
        settings: Optional[ClobSettings] = None,
        circuit_breaker: Optional[CircuitBreaker] = None
    ):
        """
        Args:
            base_url: API base URL
            settings: Client settings (defaults are used when omitted)
            circuit_breaker: Optional circuit breaker
        """
        settings = settings or ClobSettings()
        self.base_url = base_url.rstrip("/") + "/"
        self.settings = settings

        if circuit_breaker is None and settings.enable_circuit_breaker:
            circuit_breaker = CircuitBreaker(
                failure_threshold=settings.circuit_breaker_threshold,
                timeout=settings.circuit_breaker_timeout,
                name="clob"
            )
        self.circuit_breaker = circuit_breaker

        self.retry_strategy = RetryStrategy(
            max_retries=settings.max_retries,
            base_delay=1.0,
            max_delay=settings.retry_backoff_max,
            exponential_base=settings.retry_backoff_base,
            circuit_breaker=circuit_breaker
        )

        self.session = requests.Session()
        adapter = HTTPAdapter(
            pool_connections=settings.pool_connections,
            pool_maxsize=settings.pool_maxsize,
            max_retries=0,  # RetryStrategy handles retries
            pool_block=False
        )
        self.session.mount('https://', adapter)
        self.session.mount('http://', adapter)

        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Connection": "keep-alive",
        })

        self.timeout = (settings.connect_timeout, settings.request_timeout)
        self._request_counter = 0

    def _make_request(
        self,
        method: str,
        path: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[bytes] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Make one HTTP request.

        Returns:
            Parsed response JSON (None for an empty body)

        Raises:
            AuthenticationError: On 401/403
            RateLimitError: On 429
            APIError: On other HTTP errors or connection failures
            TimeoutError: On timeout
        """
        url = urljoin(self.base_url, path.lstrip("/"))

        self._request_counter += 1
        request_id = f"{method}:{path}:{self._request_counter}"

        if self.settings.log_requests:
            logger.debug(f"[{request_id}] {method} {url} params={params}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=headers,
                params=params,
                data=body,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"Request timeout: {method} {url}")
            raise TimeoutError(f"Request timeout: {e}")
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Connection error: {method} {url}")
            raise APIError(f"Connection error: {e}")
        except requests.exceptions.RequestException as e:
            logger.error(f"Unexpected error: {method} {url}: {e}")
            raise APIError(f"Unexpected error: {e}")

        if response.status_code >= 400:
            error_msg = f"{method} {path} failed with {response.status_code}"
            error_data = None
            try:
                error_data = orjson.loads(response.content)
                error_msg += f": {error_data}"
            except orjson.JSONDecodeError as e:
                logger.debug(f"Could not parse error response as JSON: {e}")
                error_msg += f": {response.text[:200]}"

            if response.status_code in (401, 403):
                raise AuthenticationError(error_msg, {"status_code": response.status_code})
            elif response.status_code == 429:
                retry_after = response.headers.get("Retry-After")
                raise RateLimitError(
                    error_msg,
                    endpoint=path,
                    retry_after=float(retry_after) if retry_after else None
                )
            raise APIError(
                error_msg,
                status_code=response.status_code,
                response=error_data
            )

        if not response.content:
            return None

        try:
            return orjson.loads(response.content)
        except orjson.JSONDecodeError:
            # A few endpoints answer with bare text ("OK")
            return response.text

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[bytes] = None,
        params: Optional[Dict[str, Any]] = None,
        retry: bool = True
    ) -> Any:
        """
        Send a request.

        Args:
            method: HTTP method
            path: Request path, e.g. "/auth/api-key"
            headers: Auth headers for this request
            body: Serialized JSON body, sent unchanged
            params: Query parameters
            retry: Whether to retry transient failures

        Returns:
            Parsed response JSON
        """
        method = method.upper()
        if retry:
            return self.retry_strategy.execute(
                self._make_request,
                method,
                path,
                headers=headers,
                body=body,
                params=params
            )
        return self._make_request(method, path, headers=headers, body=body, params=params)

    def close(self) -> None:
        """Close session and cleanup resources."""
        self.session.close()
        logger.info("Transport session closed")
