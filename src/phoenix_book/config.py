"""
Network defaults and market/token configuration parsing.

The config file maps cluster names to the markets and tokens listed for them:

    {"mainnet-beta": {"markets": ["4DoNfFBf..."], "tokens": [{"name": ..., "symbol": ..., "mint": ..., "logoUri": ...}]}}

Market entries may also be objects with a "market" key.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"
DEFAULT_CONFIG_URL = (
    "https://raw.githubusercontent.com/Ellipsis-Labs/phoenix-sdk/master/typescript/phoenix-sdk/config.json"
)

PROGRAM_ID = "PhoeNiXZ8ByJGLkxNfZRnkUfjvmuYqLR89jjFHGqdXY"
CLOCK_SYSVAR_ID = "SysvarC1ock11111111111111111111111111111111"

MAINNET = "mainnet-beta"
DEVNET = "devnet"
LOCALNET = "localhost"


@dataclass(frozen=True)
class TokenConfig:
    name: str
    symbol: str
    mint: str
    logo_uri: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TokenConfig":
        return cls(
            name=data["name"],
            symbol=data["symbol"],
            mint=data["mint"],
            logo_uri=data.get("logoUri", ""),
        )


@dataclass(frozen=True)
class ClusterConfig:
    markets: list[str] = field(default_factory=list)
    tokens: list[TokenConfig] = field(default_factory=list)

    def token_for_mint(self, mint: str) -> Optional[TokenConfig]:
        for token in self.tokens:
            if token.mint == mint:
                return token
        return None


def cluster_from_endpoint(endpoint: str) -> str:
    """Guess the cluster name from an RPC endpoint URL."""
    endpoint = endpoint.lower()
    if "devnet" in endpoint:
        return DEVNET
    if "localhost" in endpoint or "127.0.0.1" in endpoint:
        return LOCALNET
    return MAINNET


def parse_market_config(data: dict[str, Any]) -> dict[str, ClusterConfig]:
    """Parse the config JSON into a ClusterConfig per cluster name."""
    clusters: dict[str, ClusterConfig] = {}
    for cluster, entry in data.items():
        markets = [m["market"] if isinstance(m, dict) else m for m in entry.get("markets", [])]
        tokens = [TokenConfig.from_dict(t) for t in entry.get("tokens", [])]
        clusters[cluster] = ClusterConfig(markets=markets, tokens=tokens)
    return clusters
