from decimal import Decimal
from pathlib import Path
from typing import Dict

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.chains import CHAIN_NAMES


BASE_DIR = Path(__file__).resolve().parents[1]

# Testnet ERC-4626 vault that stake and lend deposit into unless overridden
DEFAULT_VAULT_ADDRESS = "0x742d35Cc6634C0532925a3b8D4C9db96c4b4Db45"


def default_action_contracts() -> Dict[str, Dict[str, str]]:
    per_chain = {str(chain_id): DEFAULT_VAULT_ADDRESS for chain_id in CHAIN_NAMES}
    return {"stake": dict(per_chain), "lend": dict(per_chain)}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # Chain abstraction backend
    nexus_base_url: str = Field(
        default="http://127.0.0.1:8787",
        description="Base URL of the chain-abstraction gateway",
    )
    nexus_api_key: str = Field(default="", description="Gateway API key")
    nexus_network: str = Field(default="testnet", description="Backend network (testnet or mainnet)")
    request_timeout_seconds: int = Field(default=30, description="Backend request timeout")

    # Flow engine
    step_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Pause between executed steps so clients can render progress",
    )
    mock_execution_latency_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Artificial latency for locally estimated executions",
    )
    simulation_success_rate: float = Field(
        default=0.98,
        description="Success rate reported when every simulated step succeeds",
    )
    bridge_base_cost: Decimal = Field(default=Decimal("2.5"), description="Local estimator bridge base cost")
    default_explorer_url: str = Field(
        default="https://sepolia.etherscan.io",
        description="Explorer used for chains without a known explorer",
    )

    # Contract addresses per action and chain, e.g. {"lend": {"11155111": "0x..."}}
    action_contracts: Dict[str, Dict[str, str]] = Field(
        default_factory=default_action_contracts,
        description="Contract addresses keyed by action then chain id",
    )

    # Templates
    templates_path: Path = Field(
        default=BASE_DIR / "data" / "templates.json",
        description="JSON file holding saved flow templates",
    )

    @property
    def has_nexus_key(self) -> bool:
        return bool(self.nexus_api_key)


# Global settings instance
settings = Settings()
