"""
EIP-712 structs for CLOB login (L1) signatures.

Uses poly_eip712_structs (Polymarket's fork of eip712-structs).
"""

from poly_eip712_structs import EIP712Struct, Address, String, Uint, make_domain


CLOB_AUTH_DOMAIN_NAME = "ClobAuthDomain"
CLOB_AUTH_DOMAIN_VERSION = "1"
CLOB_AUTH_MESSAGE = "This message attests that I control the given wallet"


class ClobAuth(EIP712Struct):
    """Login challenge proving control of `address` at `timestamp`."""
    address = Address()
    timestamp = String()
    nonce = Uint()
    message = String()


def clob_auth_domain(chain_id: int):
    """Domain for L1 login signatures on `chain_id`."""
    return make_domain(
        name=CLOB_AUTH_DOMAIN_NAME,
        version=CLOB_AUTH_DOMAIN_VERSION,
        chainId=chain_id
    )
