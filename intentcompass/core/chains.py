"""
Chain identification types and utilities.

Flows run on the testnets supported by the chain-abstraction backend. Chains
are identified by their integer EVM chain id everywhere in the engine.
"""

from __future__ import annotations

from typing import Dict, Optional

ChainId = int

SEPOLIA = 11155111
OPTIMISM_SEPOLIA = 11155420
POLYGON_AMOY = 80002
ARBITRUM_SEPOLIA = 421614
BASE_SEPOLIA = 84532
MONAD_TESTNET = 10143

CHAIN_NAMES: Dict[ChainId, str] = {
    SEPOLIA: "Sepolia",
    OPTIMISM_SEPOLIA: "Optimism Sepolia",
    POLYGON_AMOY: "Polygon Amoy",
    ARBITRUM_SEPOLIA: "Arbitrum Sepolia",
    BASE_SEPOLIA: "Base Sepolia",
    MONAD_TESTNET: "Monad Testnet",
}

EXPLORER_URLS: Dict[ChainId, str] = {
    SEPOLIA: "https://sepolia.etherscan.io",
    OPTIMISM_SEPOLIA: "https://sepolia-optimism.etherscan.io",
    POLYGON_AMOY: "https://amoy.polygonscan.com",
    ARBITRUM_SEPOLIA: "https://sepolia.arbiscan.io",
    BASE_SEPOLIA: "https://sepolia.basescan.org",
    MONAD_TESTNET: "https://testnet.monadexplorer.com",
}

# Decimals for the tokens a flow can carry
TOKEN_DECIMALS: Dict[str, int] = {
    "ETH": 18,
    "USDC": 6,
    "USDT": 6,
}


def is_supported_chain(chain_id: ChainId) -> bool:
    return chain_id in CHAIN_NAMES


def chain_id_to_name(chain_id: ChainId) -> str:
    """Get the human-readable name for a chain ID."""
    return CHAIN_NAMES.get(chain_id, f"Chain {chain_id}")


def explorer_tx_url(chain_id: ChainId, tx_hash: str, default_base: Optional[str] = None) -> str:
    """Build a block explorer link for a transaction hash."""
    base = EXPLORER_URLS.get(chain_id) or default_base or EXPLORER_URLS[SEPOLIA]
    return f"{base.rstrip('/')}/tx/{tx_hash}"


__all__ = [
    "ChainId",
    "CHAIN_NAMES",
    "EXPLORER_URLS",
    "TOKEN_DECIMALS",
    "SEPOLIA",
    "OPTIMISM_SEPOLIA",
    "POLYGON_AMOY",
    "ARBITRUM_SEPOLIA",
    "BASE_SEPOLIA",
    "MONAD_TESTNET",
    "is_supported_chain",
    "chain_id_to_name",
    "explorer_tx_url",
]
