"""Infrastructure — record persistence, artifacts and chain clients."""

from nero_dex_deployer.infrastructure.artifacts import (
    BuildInfo,
    ContractArtifact,
    HardhatArtifacts,
)
from nero_dex_deployer.infrastructure.record_store import JsonRecordStore
from nero_dex_deployer.infrastructure.simulated_chain import SimulatedChainClient
from nero_dex_deployer.infrastructure.web3_chain import Web3ChainClient

__all__ = [
    "BuildInfo",
    "ContractArtifact",
    "HardhatArtifacts",
    "JsonRecordStore",
    "SimulatedChainClient",
    "Web3ChainClient",
]
