"""
Exchange contract addresses per network.

Sources:
- https://github.com/Polymarket/ctf-exchange
- https://github.com/Polymarket/neg-risk-ctf-adapter/blob/main/addresses.json
"""

from dataclasses import dataclass, replace
from typing import Dict, Optional

from .config import POLYGON, AMOY
from .exceptions import ConfigError


@dataclass(frozen=True)
class ContractConfig:
    """Contracts an order is settled against on one chain."""
    exchange: str
    neg_risk_exchange: str
    collateral: str
    conditional_tokens: str

    def exchange_for(self, neg_risk: bool = False) -> str:
        """EIP-712 verifying contract for standard or neg-risk markets."""
        return self.neg_risk_exchange if neg_risk else self.exchange


CONTRACTS: Dict[int, ContractConfig] = {
    POLYGON: ContractConfig(
        exchange="0x4bFb41d5B3570DeFd03C39a9A4D8dE6Bd8B8982E",
        neg_risk_exchange="0xC5d563A36AE78145C45a50134d48A1215220f80a",
        collateral="0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174",  # USDC.e
        conditional_tokens="0x4D97DCd97eC945f40cF65F87097ACe5EA0476045",
    ),
    AMOY: ContractConfig(
        exchange="0xdFE02Eb6733538f8Ea35D585af8DE5958AD99E40",
        neg_risk_exchange="0xC5d563A36AE78145C45a50134d48A1215220f80a",
        collateral="0x9c4e1703476e875070ee25b56a58b008cfb8fa78",
        conditional_tokens="0x69308FB512518e39F9b16112fA8d994F4e2Bf8bB",
    ),
}


def get_contract_config(
    chain_id: int,
    exchange: Optional[str] = None,
    neg_risk_exchange: Optional[str] = None
) -> ContractConfig:
    """
    Get contract addresses for a chain.

    Args:
        chain_id: Network identifier
        exchange: Optional override for the CTF exchange
        neg_risk_exchange: Optional override for the neg-risk exchange

    Returns:
        Contract config

    Raises:
        ConfigError: If the chain is unknown
    """
    try:
        config = CONTRACTS[chain_id]
    except KeyError:
        raise ConfigError(
            f"No contract config for chain {chain_id}",
            {"chain_id": chain_id, "supported": sorted(CONTRACTS)}
        )

    if exchange:
        config = replace(config, exchange=exchange)
    if neg_risk_exchange:
        config = replace(config, neg_risk_exchange=neg_risk_exchange)
    return config
