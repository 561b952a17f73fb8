"""
Main CLOB client.

Wires the key, signer variant, credential store and transport together
behind one object. Auth headers are built fresh for every request.
"""

from typing import Optional, Callable, Dict, Any, List, Tuple, Union
import logging
import time

from .config import ClobSettings, get_settings
from .contracts import ContractConfig, get_contract_config
from .models import (
    ApiCredentials,
    OpenOrder,
    OpenOrderParams,
    Order,
    OrderArgs,
    OrderParams,
    OrderResponse,
    OrderType,
    SignatureType,
    SignedOrder,
    Trade,
    TradeParams,
)
from .auth.key_material import KeyMaterial
from .auth.credentials import CredentialStore
from .auth.authenticator import L1Authenticator, L2Authenticator
from .api.base import Transport, HttpTransport
from .api.clob import ClobAPI
from .trading.order_builder import OrderBuilder, OrderSignature
from .trading.signer_variant import EOA, SignerVariant, signer_variant_for
from .utils.pagination import CursorPaginator
from .exceptions import (
    APIError,
    AuthenticationError,
    ConfigError,
    RateLimitError,
)

logger = logging.getLogger(__name__)


def _is_refusal(error: Exception) -> bool:
    """True if the exchange answered and refused; outages and rate limits are not refusals."""
    if isinstance(error, AuthenticationError):
        return True
    if isinstance(error, RateLimitError) or not isinstance(error, APIError):
        return False
    return error.status_code is not None and 400 <= error.status_code < 500


class ClobClient:
    """
    Client for the Polymarket CLOB.

    Levels of access:
    - no key: public endpoints only (get_ok, get_server_time)
    - key: L1 endpoints (create/derive API credentials) and order signing
    - key + credentials: L2 endpoints (orders, trades, cancels)

    Usage:
        client = ClobClient.with_l1_headers(HOST, private_key, POLYGON)
        client.set_api_creds(client.create_or_derive_api_key())
        client.set_order_builder_params(SignatureType.POLY_GNOSIS_SAFE, funder)
        for trade in client.get_trades():
            ...

    Not thread-safe while credentials are being set; once bootstrapped,
    requests may be signed from several threads.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        chain_id: Optional[int] = None,
        key: Optional[str] = None,
        credentials: Optional[ApiCredentials] = None,
        signature_type: Union[SignatureType, int, None] = None,
        funder: Optional[str] = None,
        settings: Optional[ClobSettings] = None,
        transport: Optional[Transport] = None,
        contracts: Optional[ContractConfig] = None,
        clock: Optional[Callable[[], int]] = None
    ):
        """
        Initialize CLOB client.

        Args:
            host: CLOB base URL (settings.clob_url if None)
            chain_id: Network identifier (settings.chain_id if None)
            key: Hex private key; omit for public access only
            credentials: API credentials for L2 access
            signature_type: Wallet topology tag (EOA if None)
            funder: Proxy/Safe address for non-EOA topologies
            settings: Client settings (loaded from env if None)
            transport: Request carrier (HttpTransport if None)
            contracts: Contract addresses (looked up by chain if None)
            clock: Unix-seconds clock for auth timestamps and expirations

        Raises:
            SigningError: If the key is malformed
            ConfigError: If the signature type is unknown
        """
        self.settings = settings or get_settings()
        self.host = (host or self.settings.clob_url).rstrip("/")
        self.chain_id = chain_id if chain_id is not None else self.settings.chain_id

        if contracts is None and (
            self.settings.exchange_address or self.settings.neg_risk_exchange_address
        ):
            contracts = get_contract_config(
                self.chain_id,
                exchange=self.settings.exchange_address,
                neg_risk_exchange=self.settings.neg_risk_exchange_address
            )
        self.contracts = contracts

        self.key_material = KeyMaterial(key) if key else None
        self.credential_store = CredentialStore(credentials)
        self.l1_auth: Optional[L1Authenticator] = None
        self.l2_auth: Optional[L2Authenticator] = None
        if self.key_material is not None:
            self.l1_auth = L1Authenticator(self.key_material, self.chain_id)
            self.l2_auth = L2Authenticator(self.key_material.address, self.credential_store)
        self.clock = clock or (lambda: int(time.time()))
        self.transport = transport or HttpTransport(self.host, self.settings)
        self.api = ClobAPI(self.transport, self._l1_headers, self._l2_headers)

        self.signer_variant: SignerVariant = EOA()
        self.funder: Optional[str] = None
        self.order_builder: Optional[OrderBuilder] = None
        if self.key_material is not None:
            self.set_order_builder_params(signature_type, funder)

        logger.info(
            f"CLOB client initialized (host={self.host}, chain_id={self.chain_id}, "
            f"address={self.address})"
        )

    # ========== Construction ==========

    @classmethod
    def with_l1_headers(cls, host: str, private_key: str, chain_id: int, **kwargs) -> "ClobClient":
        """Client that can sign L1 requests and orders, without API credentials yet."""
        return cls(host=host, chain_id=chain_id, key=private_key, **kwargs)

    @classmethod
    def with_l2_headers(
        cls,
        host: str,
        private_key: str,
        chain_id: int,
        credentials: ApiCredentials,
        **kwargs
    ) -> "ClobClient":
        """Client with both the key and API credentials."""
        return cls(host=host, chain_id=chain_id, key=private_key, credentials=credentials, **kwargs)

    @classmethod
    def from_settings(cls, settings: Optional[ClobSettings] = None, **kwargs) -> "ClobClient":
        """
        Client configured entirely from settings (POLYCLOB_* environment).

        Example:
            >>> # POLYCLOB_PRIVATE_KEY, POLYCLOB_FUNDER, POLYCLOB_SIGNATURE_TYPE=2
            >>> client = ClobClient.from_settings()
        """
        settings = settings or get_settings()
        key = settings.private_key.get_secret_value() if settings.private_key else None
        return cls(
            key=key,
            signature_type=settings.signature_type,
            funder=settings.funder,
            settings=settings,
            **kwargs
        )

    # ========== Identity ==========

    @property
    def address(self) -> Optional[str]:
        """Signing address, or None without a key."""
        return self.key_material.address if self.key_material else None

    def get_exchange_address(self, neg_risk: bool = False) -> str:
        """Verifying contract orders are signed for."""
        return self._contract_config().exchange_for(neg_risk)

    def get_collateral_address(self) -> str:
        return self._contract_config().collateral

    def get_conditional_address(self) -> str:
        return self._contract_config().conditional_tokens

    def _contract_config(self) -> ContractConfig:
        return self.contracts or get_contract_config(self.chain_id)

    # ========== Auth plumbing ==========

    def _require_key(self) -> KeyMaterial:
        if self.key_material is None:
            raise ConfigError("A private key is required for this operation")
        return self.key_material

    def _require_auth(self) -> Tuple[L1Authenticator, L2Authenticator]:
        self._require_key()
        return self.l1_auth, self.l2_auth

    def _timestamp(self) -> int:
        if self.settings.use_server_time:
            return self.api.get_server_time()
        return self.clock()

    def _l1_headers(self, nonce: Optional[int] = None) -> Dict[str, str]:
        l1_auth, _ = self._require_auth()
        return l1_auth.build_headers(self._timestamp(), nonce).as_dict()

    def _l2_headers(self, method: str, path: str, body: bytes = b"") -> Dict[str, str]:
        # Credentials first: no request (not even /time) goes out without them
        self.credential_store.require()
        _, l2_auth = self._require_auth()
        return l2_auth.build_headers(method, path, body, timestamp=self._timestamp()).as_dict()

    # ========== Health & System ==========

    def get_ok(self) -> bool:
        """
        Health check.

        Returns:
            True if the exchange answered; any failure gives False
        """
        try:
            response = self.api.get_ok()
        except Exception as e:
            logger.warning(f"CLOB health check failed: {type(e).__name__}: {e}")
            return False

        if isinstance(response, str):
            return response.strip().strip('"').upper() == "OK"
        return response is not None

    def get_server_time(self) -> int:
        """Exchange clock in Unix seconds."""
        return self.api.get_server_time()

    # ========== API credentials ==========

    def create_api_key(self, nonce: Optional[int] = None) -> ApiCredentials:
        """Create new API credentials (L1). Does not store them."""
        return self.api.create_api_key(nonce)

    def derive_api_key(self, nonce: Optional[int] = None) -> ApiCredentials:
        """Derive the existing API credentials for a nonce (L1). Does not store them."""
        return self.api.derive_api_key(nonce)

    def create_or_derive_api_key(self, nonce: Optional[int] = None) -> ApiCredentials:
        """
        Obtain API credentials and store them on the client.

        Tries to create credentials first; if the exchange refuses (for
        example because credentials already exist for this nonce) derives
        them instead. Each attempt carries fresh L1 headers.

        Args:
            nonce: Login nonce (None means 0)

        Returns:
            API credentials

        Raises:
            ConfigError: If the client has no key
            AuthenticationError: If both attempts are refused or the
                response is malformed
            APIError: Unchanged on outages and rate limits
        """
        self._require_key()

        try:
            credentials = self.api.create_api_key(nonce)
        except (AuthenticationError, APIError) as e:
            if not _is_refusal(e):
                raise
            logger.info(f"API key creation refused ({type(e).__name__}), deriving instead")
            try:
                credentials = self.api.derive_api_key(nonce)
            except APIError as derive_error:
                if not _is_refusal(derive_error):
                    raise
                raise AuthenticationError(
                    f"Could not create or derive API credentials: {derive_error.message}",
                    {"status_code": derive_error.status_code}
                ) from derive_error

        self.credential_store.set(credentials)
        return credentials

    def get_api_keys(self) -> List[str]:
        """API keys registered for this wallet (L2)."""
        return self.api.get_api_keys()

    def delete_api_key(self) -> Any:
        """Revoke the current API key (L2) and forget it locally."""
        response = self.api.delete_api_key()
        self.credential_store.clear()
        return response

    def set_api_creds(self, credentials: ApiCredentials) -> None:
        """Use these credentials for L2 requests."""
        self.credential_store.set(credentials)

    # ========== Order building ==========

    def set_order_builder_params(
        self,
        signature_type: Union[SignatureType, int, None] = None,
        funder: Optional[str] = None
    ) -> None:
        """
        Choose the wallet topology orders are signed for.

        A proxy or Safe topology without a funder is accepted here; building
        an order with it raises ConfigError.

        Args:
            signature_type: 0/1/2 or SignatureType (None means EOA)
            funder: Proxy/Safe address that backs the orders

        Raises:
            ConfigError: If the client has no key or the tag is unknown
        """
        key_material = self._require_key()
        variant = signer_variant_for(signature_type, funder)

        self.signer_variant = variant
        self.funder = funder
        self.order_builder = OrderBuilder(
            key_material,
            variant,
            self.chain_id,
            funder=funder,
            contracts=self.contracts,
            clock=self.clock
        )
        logger.info(
            f"Order builder set: {variant.signature_type.name} (funder={funder})"
        )

    def _require_builder(self) -> OrderBuilder:
        if self.order_builder is None:
            raise ConfigError("A private key is required to build orders")
        return self.order_builder

    def build_order(self, params: OrderParams, neg_risk: bool = False) -> Tuple[Order, OrderSignature]:
        """Build and sign an order from amount-level parameters."""
        return self._require_builder().build_order(params, neg_risk=neg_risk)

    def create_order(
        self,
        args: OrderArgs,
        tick_size: str = "0.01",
        neg_risk: bool = False,
        idempotency_key: Optional[str] = None
    ) -> SignedOrder:
        """Build and sign a limit order from price and size."""
        return self._require_builder().create_order(
            args,
            tick_size=tick_size,
            neg_risk=neg_risk,
            idempotency_key=idempotency_key
        )

    # ========== Orders (L2) ==========

    def post_order(
        self,
        signed_order: SignedOrder,
        order_type: OrderType = OrderType.GTC
    ) -> OrderResponse:
        """
        Submit a signed order. The owner is the current API key.

        Raises:
            MissingCredentialsError: If credentials are not set
        """
        credentials = self.credential_store.require()
        return self.api.post_order(signed_order, owner=credentials.api_key, order_type=order_type)

    def create_and_post_order(
        self,
        args: OrderArgs,
        order_type: OrderType = OrderType.GTC,
        tick_size: str = "0.01",
        neg_risk: bool = False,
        idempotency_key: Optional[str] = None
    ) -> OrderResponse:
        """Sign and submit a limit order."""
        self.credential_store.require()
        signed = self.create_order(
            args,
            tick_size=tick_size,
            neg_risk=neg_risk,
            idempotency_key=idempotency_key
        )
        return self.post_order(signed, order_type)

    def cancel(self, order_id: str) -> Dict[str, Any]:
        """Cancel one order."""
        return self.api.cancel(order_id)

    def cancel_all(self) -> Dict[str, Any]:
        """Cancel every open order for this API key."""
        return self.api.cancel_all()

    def get_order(self, order_id: str) -> OpenOrder:
        return self.api.get_order(order_id)

    def get_orders(
        self,
        params: Optional[OpenOrderParams] = None,
        next_cursor: Optional[str] = None
    ) -> CursorPaginator[OpenOrder]:
        """
        Open orders, fetched lazily page by page.

        Raises:
            MissingCredentialsError: If credentials are not set
        """
        self.credential_store.require()
        return CursorPaginator(
            lambda cursor: self.api.get_orders_page(params, cursor),
            start_cursor=next_cursor
        )

    def get_trades(
        self,
        params: Optional[TradeParams] = None,
        next_cursor: Optional[str] = None
    ) -> CursorPaginator[Trade]:
        """
        Trade history, fetched lazily page by page.

        Args:
            params: Optional filters
            next_cursor: Cursor to start from (None means the first page)

        Returns:
            Restartable iterable of trades

        Raises:
            MissingCredentialsError: If credentials are not set
        """
        self.credential_store.require()
        return CursorPaginator(
            lambda cursor: self.api.get_trades_page(params, cursor),
            start_cursor=next_cursor
        )

    # ========== Lifecycle ==========

    def close(self) -> None:
        """Release the transport's connections."""
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "ClobClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"ClobClient(host={self.host}, chain_id={self.chain_id}, "
            f"address={self.address}, signature_type={self.signer_variant.signature_type.name})"
        )
