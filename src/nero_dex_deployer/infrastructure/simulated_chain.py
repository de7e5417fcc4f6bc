"""Simulated chain client for dry runs and tests.

Generates deterministic contract addresses from the deployer address, the
unit name and a nonce counter, with zero network calls. A resumed dry run
therefore never reuses an address already in the record. Units listed in
``revert_units`` are rejected at confirmation time, which is how
crash/resume scenarios are rehearsed without a node.
"""

from __future__ import annotations

from collections.abc import Iterable

from eth_utils import keccak, to_checksum_address

from nero_dex_deployer.domain.chain_protocol import DeploymentRequest, PendingDeployment
from nero_dex_deployer.domain.exceptions import TransactionError
from nero_dex_deployer.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_DEPLOYER = "0x742d35Cc6634C0532925a3b844Bc9e7595f2bD18"


class SimulatedChainClient:
    """ChainClient that fakes contract creation.

    Attributes:
        submitted: Every DeploymentRequest received, in order.
    """

    def __init__(
        self,
        deployer: str = DEFAULT_DEPLOYER,
        chain_id: int = 31337,
        revert_units: Iterable[str] = (),
        balance_wei: int = 10**21,
    ) -> None:
        self._deployer = deployer
        self._chain_id = chain_id
        self._revert_units = set(revert_units)
        self._balance_wei = balance_wei
        self._nonce = 0
        self._addresses: dict[str, str] = {}
        self.submitted: list[DeploymentRequest] = []

    @property
    def address(self) -> str:
        return self._deployer

    async def chain_id(self) -> int:
        return self._chain_id

    async def balance(self) -> int:
        return self._balance_wei

    def check_deployable(self, contract_names: Iterable[str]) -> None:
        """Simulated deployments need no artifacts."""

    async def submit_deployment(self, request: DeploymentRequest) -> PendingDeployment:
        self.submitted.append(request)
        seed = f"{self._deployer}:{request.unit}:{self._nonce}".encode()
        self._nonce += 1

        tx_hash = "0x" + keccak(b"tx:" + seed).hex()
        self._addresses[tx_hash] = to_checksum_address("0x" + keccak(seed)[-20:].hex())

        logger.info(
            "chain.deployment_simulated",
            unit=request.unit,
            contract=request.contract_name,
            tx_hash=tx_hash,
        )
        return PendingDeployment(unit=request.unit, tx_hash=tx_hash)

    async def wait_for_address(self, pending: PendingDeployment) -> str:
        if pending.unit in self._revert_units:
            raise TransactionError(pending.unit, "transaction reverted", tx_hash=pending.tx_hash)
        return self._addresses[pending.tx_hash]

    @property
    def deployed_units(self) -> list[str]:
        return [r.unit for r in self.submitted]
