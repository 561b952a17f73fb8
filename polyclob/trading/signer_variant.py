"""
Signer variants (wallet topologies).

The signing key always belongs to an EOA. What changes between variants is
which address is the order maker (whose funds back the order) and the
signature type the exchange uses to validate the signature:

- EOA: the key's own address is the maker.
- ProxyWallet: a Polymarket proxy wallet owned by the key is the maker.
- GnosisSafeWallet: a Gnosis Safe owned by the key is the maker.
"""

from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from ..contracts import ContractConfig, get_contract_config
from ..models import SignatureType
from ..exceptions import ConfigError, ValidationError
from ..utils.validators import validate_address


EXCHANGE_DOMAIN_NAME = "Polymarket CTF Exchange"
EXCHANGE_DOMAIN_VERSION = "1"


@dataclass(frozen=True)
class DomainParameters:
    """
    Typed-data domain an order is signed under.

    `signature_type` is part of the parameters so that no two variants share
    a domain on the same chain. It reaches the signed hash through the
    order struct's signatureType field; the on-chain EIP-712 domain itself is
    (name, version, chainId, verifyingContract).
    """
    name: str
    version: str
    chain_id: int
    verifying_contract: str
    signature_type: SignatureType

    def as_eip712_domain(self) -> dict:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract,
        }


def _checked(address: str, what: str) -> str:
    try:
        return validate_address(address)
    except ValidationError as e:
        raise ConfigError(f"Invalid {what}: {e.message}") from e


class SignerVariant:
    """Base for the three wallet topologies. Do not subclass outside this module."""

    signature_type: ClassVar[SignatureType]

    def _configured_address(self) -> Optional[str]:
        return None

    def resolve_maker_address(
        self,
        signing_address: str,
        configured_funder: Optional[str] = None
    ) -> str:
        """
        Address whose funds back the order.

        Args:
            signing_address: Address derived from the signing key
            configured_funder: Funder configured on the client

        Returns:
            Checksummed maker address

        Raises:
            ConfigError: If a funder is required but missing or malformed
        """
        funder = configured_funder or self._configured_address()
        if not funder:
            raise ConfigError(
                f"{type(self).__name__} requires a funder address",
                {"signature_type": int(self.signature_type)}
            )
        return _checked(funder, "funder address")

    def domain_parameters(
        self,
        chain_id: int,
        neg_risk: bool = False,
        contracts: Optional[ContractConfig] = None
    ) -> DomainParameters:
        """
        Typed-data domain for orders from this variant.

        Args:
            chain_id: Network identifier
            neg_risk: Sign for the neg-risk exchange
            contracts: Contract addresses (looked up by chain if None)

        Raises:
            ConfigError: If the chain is unknown
        """
        if contracts is None:
            contracts = get_contract_config(chain_id)
        return DomainParameters(
            name=EXCHANGE_DOMAIN_NAME,
            version=EXCHANGE_DOMAIN_VERSION,
            chain_id=chain_id,
            verifying_contract=_checked(contracts.exchange_for(neg_risk), "exchange address"),
            signature_type=self.signature_type,
        )


@dataclass(frozen=True)
class EOA(SignerVariant):
    """The signing key's own address makes the order."""

    signature_type: ClassVar[SignatureType] = SignatureType.EOA

    def resolve_maker_address(
        self,
        signing_address: str,
        configured_funder: Optional[str] = None
    ) -> str:
        # funder is ignored for EOA
        return _checked(signing_address, "signing address")


@dataclass(frozen=True)
class ProxyWallet(SignerVariant):
    """A Polymarket proxy wallet controlled by the key makes the order."""

    proxy_address: Optional[str] = None
    signature_type: ClassVar[SignatureType] = SignatureType.POLY_PROXY

    def _configured_address(self) -> Optional[str]:
        return self.proxy_address


@dataclass(frozen=True)
class GnosisSafeWallet(SignerVariant):
    """A Gnosis Safe controlled by the key makes the order."""

    safe_address: Optional[str] = None
    signature_type: ClassVar[SignatureType] = SignatureType.POLY_GNOSIS_SAFE

    def _configured_address(self) -> Optional[str]:
        return self.safe_address


AnySignerVariant = Union[EOA, ProxyWallet, GnosisSafeWallet]


def signer_variant_for(
    signature_type: Union[SignatureType, int, None],
    funder: Optional[str] = None
) -> AnySignerVariant:
    """
    Build the variant for a signature type tag.

    Args:
        signature_type: 0/1/2 or SignatureType (None means EOA)
        funder: Proxy or Safe address for non-EOA variants

    Returns:
        Signer variant

    Raises:
        ConfigError: If the tag is unknown
    """
    if signature_type is None:
        return EOA()

    try:
        sig_type = SignatureType(signature_type)
    except ValueError:
        raise ConfigError(
            f"Unknown signature type: {signature_type!r}",
            {"allowed": [t.value for t in SignatureType]}
        ) from None

    if sig_type is SignatureType.EOA:
        return EOA()
    if sig_type is SignatureType.POLY_PROXY:
        return ProxyWallet(proxy_address=funder)
    return GnosisSafeWallet(safe_address=funder)
