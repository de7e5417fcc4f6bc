"""Chain Client Protocol.

Defines the deployment primitive the executor drives. This is a Protocol
(structural subtyping), so concrete clients don't need to inherit from a base
class. The signer is owned by the client and never exposed.

The domain layer has ZERO imports from web3 or any RPC library.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class DeploymentRequest:
    """Input to a contract-creation transaction.

    Attributes:
        unit: Registry name of the unit being deployed.
        contract_name: Compiled artifact to deploy.
        args: Fully resolved constructor arguments.
    """

    unit: str
    contract_name: str
    args: tuple[Any, ...] = ()


@dataclass(frozen=True)
class PendingDeployment:
    """Handle for a submitted contract-creation transaction."""

    unit: str
    tx_hash: str


@runtime_checkable
class ChainClient(Protocol):
    """Protocol that all chain clients must satisfy.

    Concrete implementations:
        - infrastructure/web3_chain.py       (web3.py AsyncWeb3)
        - infrastructure/simulated_chain.py  (dry-run, no network)
    """

    async def chain_id(self) -> int:
        """Return the chain ID of the connected network.

        Raises:
            ChainConnectionError: If the node cannot be reached.
        """
        ...

    def check_deployable(self, contract_names: Iterable[str]) -> None:
        """Fail fast if any of the named contracts could not be deployed.

        Raises:
            ArtifactNotFoundError: If a compiled artifact is missing.
        """
        ...

    async def submit_deployment(self, request: DeploymentRequest) -> PendingDeployment:
        """Sign and send a contract-creation transaction.

        Raises:
            TransactionError: If the network rejects the transaction.
        """
        ...

    async def wait_for_address(self, pending: PendingDeployment) -> str:
        """Block until the transaction is included and return the contract address.

        Raises:
            TransactionError: If the transaction reverted.
        """
        ...
