"""
CLOB REST endpoints.

Thin layer over a Transport: builds paths and bodies, asks the caller for
auth headers, and turns responses into models. Serialization happens here
exactly once so that the L2 signature and the wire body are the same bytes.
"""

from typing import Optional, List, Dict, Any, Callable, Tuple
import logging

import orjson
from pydantic import ValidationError as PydanticValidationError

from .base import Transport
from ..models import (
    ApiCredentials,
    OpenOrder,
    OpenOrderParams,
    OrderResponse,
    OrderType,
    SignedOrder,
    Trade,
    TradeParams,
)
from ..exceptions import (
    AuthenticationError,
    InvalidOrderError,
    OrderRejectedError,
    TradingError,
)

logger = logging.getLogger(__name__)


# Paths
OK = "/"
TIME = "/time"
CREATE_API_KEY = "/auth/api-key"
GET_API_KEYS = "/auth/api-keys"
DELETE_API_KEY = "/auth/api-key"
DERIVE_API_KEY = "/auth/derive-api-key"
POST_ORDER = "/order"
CANCEL = "/order"
CANCEL_ALL = "/cancel-all"
GET_ORDER = "/data/order/"
ORDERS = "/data/orders"
TRADES = "/data/trades"

# nonce -> header dict
L1HeaderProvider = Callable[[Optional[int]], Dict[str, str]]
# (method, path, body) -> header dict
L2HeaderProvider = Callable[[str, str, bytes], Dict[str, str]]


def serialize_body(body: Any) -> bytes:
    """Compact JSON bytes, the form that gets both signed and sent."""
    return orjson.dumps(body)


def parse_credentials(response: Any) -> ApiCredentials:
    """
    Parse an {apiKey, secret, passphrase} response.

    Raises:
        AuthenticationError: If the response is not a usable credential triple
    """
    if not isinstance(response, dict):
        raise AuthenticationError(
            f"Malformed credential response: expected object, got {type(response).__name__}"
        )
    try:
        return ApiCredentials.model_validate(response)
    except PydanticValidationError as e:
        # SECURITY: field names only, never values
        missing = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        raise AuthenticationError(
            f"Malformed credential response (fields: {', '.join(missing)})"
        ) from None


def _check_order_error(error_msg: str, order_id: Optional[str]) -> None:
    """Map exchange error strings to typed exceptions."""
    error_upper = error_msg.upper()

    if "INVALID_SIGNATURE" in error_upper or "SIGNATURE_FAILED" in error_upper:
        raise AuthenticationError(f"Order signature invalid: {error_msg}")

    if "MIN_TICK_SIZE" in error_upper or "TICK_SIZE" in error_upper:
        raise InvalidOrderError(f"Order price violates minimum tick size: {error_msg}")

    if "SIZE_TOO_SMALL" in error_upper or "MINIMUM_SIZE" in error_upper:
        raise InvalidOrderError(f"Order size below minimum: {error_msg}")

    if "PRICE_OUT_OF_RANGE" in error_upper or "INVALID_PRICE" in error_upper:
        raise InvalidOrderError(f"Price out of valid range: {error_msg}")

    if "EXPIRATION" in error_upper or "EXPIRED" in error_upper:
        raise InvalidOrderError(f"Order expiration invalid: {error_msg}")

    if "NOT_ENOUGH_BALANCE" in error_upper or "INSUFFICIENT" in error_upper:
        reason = "ALLOWANCE" if "ALLOWANCE" in error_upper else "BALANCE"
        raise OrderRejectedError(
            f"Insufficient {reason.lower()}: {error_msg}",
            order_id=order_id,
            reason=reason
        )

    if "NONCE_TOO_LOW" in error_upper or "INVALID_NONCE" in error_upper:
        raise OrderRejectedError(
            f"Nonce conflict detected: {error_msg}",
            order_id=order_id,
            reason="NONCE_CONFLICT"
        )

    if "ORDER_ALREADY_EXISTS" in error_upper or "DUPLICATE_ORDER" in error_upper:
        raise OrderRejectedError(
            f"Duplicate order detected: {error_msg}",
            order_id=order_id,
            reason="DUPLICATE"
        )


class ClobAPI:
    """
    Endpoint wrappers for the CLOB.

    Header providers are called before the transport, so a missing key or
    missing credentials fail without any network traffic.
    """

    def __init__(
        self,
        transport: Transport,
        l1_headers: L1HeaderProvider,
        l2_headers: L2HeaderProvider
    ):
        """
        Args:
            transport: Request carrier
            l1_headers: Builds fresh L1 headers for a nonce
            l2_headers: Builds L2 headers for (method, path, body)
        """
        self.transport = transport
        self._l1_headers = l1_headers
        self._l2_headers = l2_headers

    def _l2_request(
        self,
        method: str,
        path: str,
        body: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        retry: bool = True
    ) -> Any:
        body_bytes = serialize_body(body) if body is not None else b""
        headers = self._l2_headers(method, path, body_bytes)
        return self.transport.request(
            method,
            path,
            headers=headers,
            body=body_bytes or None,
            params=params,
            retry=retry
        )

    # ========== Health & System ==========

    def get_ok(self) -> Any:
        """GET / (no auth). Returns the raw response, usually "OK"."""
        return self.transport.request("GET", OK, retry=False)

    def get_server_time(self) -> int:
        """
        Exchange clock in Unix seconds.

        Raises:
            TradingError: If the response carries no usable timestamp
        """
        response = self.transport.request("GET", TIME)
        if isinstance(response, dict):
            response = response.get("timestamp")
        try:
            return int(response)
        except (TypeError, ValueError):
            raise TradingError(f"Server time response missing timestamp: {response!r}")

    # ========== API keys ==========

    def create_api_key(self, nonce: Optional[int] = None) -> ApiCredentials:
        """POST /auth/api-key with L1 headers."""
        headers = self._l1_headers(nonce)
        response = self.transport.request("POST", CREATE_API_KEY, headers=headers, retry=False)
        return parse_credentials(response)

    def derive_api_key(self, nonce: Optional[int] = None) -> ApiCredentials:
        """GET /auth/derive-api-key with L1 headers."""
        headers = self._l1_headers(nonce)
        response = self.transport.request("GET", DERIVE_API_KEY, headers=headers, retry=False)
        return parse_credentials(response)

    def get_api_keys(self) -> List[str]:
        """API keys registered for this wallet."""
        response = self._l2_request("GET", GET_API_KEYS)
        if isinstance(response, dict):
            return list(response.get("apiKeys") or [])
        return list(response or [])

    def delete_api_key(self) -> Any:
        """Revoke the API key used to sign this request."""
        return self._l2_request("DELETE", DELETE_API_KEY, retry=False)

    # ========== Orders ==========

    def post_order(
        self,
        signed_order: SignedOrder,
        owner: str,
        order_type: OrderType = OrderType.GTC
    ) -> OrderResponse:
        """
        Post a signed order.

        Args:
            signed_order: Signed order
            owner: API key that owns the order
            order_type: GTC, GTD, FOK or FAK

        Returns:
            Order response

        Raises:
            OrderRejectedError: If the exchange rejects the order
            InvalidOrderError: If the exchange flags the order parameters
            AuthenticationError: If the order signature is refused
        """
        body = {
            "order": signed_order.to_payload(),
            "owner": owner,
            "orderType": OrderType(order_type).value,
        }

        # Never auto-retry order submissions
        response = self._l2_request("POST", POST_ORDER, body=body, retry=False)

        if not isinstance(response, dict):
            raise TradingError(
                f"Invalid order response format: expected dict, got {type(response).__name__}"
            )

        order_response = OrderResponse.model_validate(
            {**response, "success": bool(response.get("success", False))}
        )

        if order_response.error_msg:
            _check_order_error(order_response.error_msg, order_response.order_id)
            if not order_response.success:
                raise OrderRejectedError(
                    f"Order rejected: {order_response.error_msg}",
                    order_id=order_response.order_id,
                    reason=order_response.error_msg
                )

        if order_response.success:
            logger.info(f"Order placed: {order_response.order_id} ({order_response.status})")
        else:
            logger.warning(f"Order not accepted: {response}")

        return order_response

    def cancel(self, order_id: str) -> Dict[str, Any]:
        """DELETE /order for one order ID."""
        response = self._l2_request("DELETE", CANCEL, body={"orderID": order_id}, retry=False)
        logger.info(f"Cancel requested: {order_id}")
        return response

    def cancel_all(self) -> Dict[str, Any]:
        """DELETE /cancel-all."""
        response = self._l2_request("DELETE", CANCEL_ALL, retry=False)
        logger.info("Cancel-all requested")
        return response

    def get_order(self, order_id: str) -> OpenOrder:
        """GET /data/order/{id}."""
        response = self._l2_request("GET", GET_ORDER + order_id)
        return OpenOrder.model_validate(response)

    # ========== Paged reads ==========

    def _page(
        self,
        path: str,
        query: Dict[str, Any],
        cursor: str
    ) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        params = dict(query)
        params["next_cursor"] = cursor
        response = self._l2_request("GET", path, params=params)

        if not isinstance(response, dict):
            raise TradingError(
                f"Invalid page format from {path}: expected dict, got {type(response).__name__}"
            )
        return list(response.get("data") or []), response.get("next_cursor")

    def get_orders_page(
        self,
        params: Optional[OpenOrderParams] = None,
        cursor: str = "MA=="
    ) -> Tuple[List[OpenOrder], Optional[str]]:
        """One page of open orders and the cursor of the next page."""
        query = params.to_query() if params else {}
        records, next_cursor = self._page(ORDERS, query, cursor)
        return [OpenOrder.model_validate(r) for r in records], next_cursor

    def get_trades_page(
        self,
        params: Optional[TradeParams] = None,
        cursor: str = "MA=="
    ) -> Tuple[List[Trade], Optional[str]]:
        """One page of trades and the cursor of the next page."""
        query = params.to_query() if params else {}
        records, next_cursor = self._page(TRADES, query, cursor)
        logger.debug(f"Fetched {len(records)} trades (cursor={cursor})")
        return [Trade.model_validate(r) for r in records], next_cursor
