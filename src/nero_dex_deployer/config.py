"""Deployer configuration via pydantic-settings.

Reads from .env file or environment variables. Only the CLI adapter reads
settings; the executor and the verification driver receive everything they
need as explicit arguments.

Usage:
    from nero_dex_deployer.config import get_settings
    settings = get_settings()
    print(settings.resolved_rpc_url)
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from nero_dex_deployer.domain.exceptions import ConfigurationError


@dataclass(frozen=True)
class NetworkPreset:
    """Connection details for a known network."""

    rpc_url: str
    chain_id: int | None
    explorer_api_url: str = ""
    explorer_browser_url: str = ""


# Chain IDs and endpoints for the NERO networks still need confirming against
# the published network docs.
NETWORK_PRESETS: dict[str, NetworkPreset] = {
    "localhost": NetworkPreset(rpc_url="http://127.0.0.1:8545", chain_id=None),
    "nero-testnet": NetworkPreset(
        rpc_url="https://rpc-testnet.nero.network",
        chain_id=1002,
        explorer_api_url="https://explorer-api-testnet.nero.network/api",
        explorer_browser_url="https://explorer-testnet.nero.network",
    ),
    "nero-mainnet": NetworkPreset(
        rpc_url="https://rpc.nero.network",
        chain_id=1001,
        explorer_api_url="https://explorer-api.nero.network/api",
        explorer_browser_url="https://explorer.nero.network",
    ),
    "polygon-mumbai": NetworkPreset(
        rpc_url="https://rpc-mumbai.maticvigil.com",
        chain_id=80001,
        explorer_api_url="https://api-testnet.polygonscan.com/api",
        explorer_browser_url="https://mumbai.polygonscan.com",
    ),
    "bsc-testnet": NetworkPreset(
        rpc_url="https://data-seed-prebsc-1-s1.binance.org:8545",
        chain_id=97,
        explorer_api_url="https://api-testnet.bscscan.com/api",
        explorer_browser_url="https://testnet.bscscan.com",
    ),
}


class Settings(BaseSettings):
    """Central configuration for the NERO DEX deployer."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_log_level: str = "INFO"
    log_json: bool = False

    # --- Network ---
    network: str = "localhost"
    rpc_url: str = ""  # empty -> use the preset
    chain_id: int | None = None

    # --- Signer ---
    # Hex private key of the deployer account. Never logged.
    private_key: str = ""

    # --- Deployment ---
    weth_address: str = ""  # reuse an existing wrapped native token
    display_symbol: str = "NERO"
    artifacts_dir: str = "artifacts"
    deployment_file: str = "deployments.json"
    gas_price_gwei: float | None = None
    confirmation_timeout_seconds: float = 120.0

    # --- Block explorer verification ---
    explorer_api_url: str = ""  # empty -> use the preset
    explorer_api_key: str = ""
    verification_timeout_seconds: float = 180.0
    verification_concurrency: int = 2
    verification_poll_interval_seconds: float = 5.0
    verification_max_polls: int = 12

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    def preset(self) -> NetworkPreset:
        """Return the preset for the configured network name."""
        try:
            return NETWORK_PRESETS[self.network]
        except KeyError:
            known = ", ".join(sorted(NETWORK_PRESETS))
            raise ConfigurationError(
                f"Unknown network '{self.network}'. Known networks: {known}"
            ) from None

    @property
    def resolved_rpc_url(self) -> str:
        return self.rpc_url or self.preset().rpc_url

    @property
    def resolved_chain_id(self) -> int | None:
        if self.chain_id is not None:
            return self.chain_id
        return self.preset().chain_id

    @property
    def resolved_explorer_api_url(self) -> str:
        return self.explorer_api_url or self.preset().explorer_api_url

    @property
    def explorer_browser_url(self) -> str:
        return self.preset().explorer_browser_url

    @property
    def gas_price_wei(self) -> int | None:
        """Convert the optional gwei gas price into wei."""
        if self.gas_price_gwei is None:
            return None
        return int(self.gas_price_gwei * 10**9)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the deployer settings."""
    return Settings()
