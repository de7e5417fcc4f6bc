"""Web3 chain client — deploys compiled contracts through an EVM JSON-RPC node.

Builds the contract-creation transaction from the Hardhat artifact, signs it
locally with the deployer account and sends it raw, so the node never sees
the private key. The account is only read, never mutated.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import aiohttp
from eth_account import Account
from web3 import AsyncWeb3, Web3
from web3.exceptions import TimeExhausted, Web3Exception

from nero_dex_deployer.domain.chain_protocol import DeploymentRequest, PendingDeployment
from nero_dex_deployer.domain.exceptions import (
    ChainConnectionError,
    ConfigurationError,
    TransactionError,
)
from nero_dex_deployer.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from eth_account.signers.local import LocalAccount

    from nero_dex_deployer.config import Settings
    from nero_dex_deployer.infrastructure.artifacts import HardhatArtifacts

logger = get_logger(__name__)

# Errors raised by the HTTP provider when the node is down or answers badly
CONNECTION_ERRORS = (Web3Exception, aiohttp.ClientError, OSError, TimeoutError)


class Web3ChainClient:
    """ChainClient backed by web3.py's AsyncWeb3."""

    def __init__(
        self,
        w3: AsyncWeb3,
        account: LocalAccount,
        artifacts: HardhatArtifacts,
        gas_price_wei: int | None = None,
        receipt_timeout: float = 120.0,
        poll_latency: float = 1.0,
        endpoint: str = "node",
    ) -> None:
        self._w3 = w3
        self._account = account
        self._artifacts = artifacts
        self._gas_price_wei = gas_price_wei
        self._receipt_timeout = receipt_timeout
        self._poll_latency = poll_latency
        self._endpoint = endpoint

    @classmethod
    def from_settings(cls, settings: Settings, artifacts: HardhatArtifacts) -> Web3ChainClient:
        """Create a client from settings.

        Raises:
            ConfigurationError: If no private key is configured or it is malformed.
        """
        if not settings.private_key:
            raise ConfigurationError("PRIVATE_KEY is not set; cannot sign deployments")
        try:
            account = Account.from_key(settings.private_key)
        except (ValueError, TypeError) as exc:
            # Never echo the key itself
            raise ConfigurationError("PRIVATE_KEY is not a valid private key") from exc

        w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(settings.resolved_rpc_url))
        return cls(
            w3=w3,
            account=account,
            artifacts=artifacts,
            gas_price_wei=settings.gas_price_wei,
            receipt_timeout=settings.confirmation_timeout_seconds,
            endpoint=settings.resolved_rpc_url,
        )

    @property
    def address(self) -> str:
        """Address of the deployer account."""
        return self._account.address

    async def chain_id(self) -> int:
        try:
            return await self._w3.eth.chain_id
        except CONNECTION_ERRORS as exc:
            raise ChainConnectionError(self._endpoint, str(exc) or type(exc).__name__) from exc

    async def balance(self) -> int:
        """Deployer balance in wei."""
        try:
            return await self._w3.eth.get_balance(self._account.address)
        except CONNECTION_ERRORS as exc:
            raise ChainConnectionError(self._endpoint, str(exc) or type(exc).__name__) from exc

    def check_deployable(self, contract_names: Iterable[str]) -> None:
        """Load every artifact up front so a missing one fails before any transaction."""
        for name in contract_names:
            self._artifacts.load(name)

    async def submit_deployment(self, request: DeploymentRequest) -> PendingDeployment:
        """Sign and send the contract-creation transaction for a unit."""
        artifact = self._artifacts.load(request.contract_name)
        contract = self._w3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)

        try:
            nonce = await self._w3.eth.get_transaction_count(self._account.address, "pending")
            tx_params: dict[str, Any] = {"from": self._account.address, "nonce": nonce}
            if self._gas_price_wei is not None:
                tx_params["gasPrice"] = self._gas_price_wei

            tx = await contract.constructor(*request.args).build_transaction(tx_params)
            signed = self._account.sign_transaction(tx)
            raw_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
        except (*CONNECTION_ERRORS, ValueError) as exc:
            logger.error("chain.submit_failed", unit=request.unit, error=str(exc))
            raise TransactionError(request.unit, f"rejected by node: {exc}") from exc

        tx_hash = Web3.to_hex(raw_hash)
        logger.info(
            "chain.deployment_sent",
            unit=request.unit,
            contract=request.contract_name,
            tx_hash=tx_hash,
            nonce=nonce,
        )
        return PendingDeployment(unit=request.unit, tx_hash=tx_hash)

    async def wait_for_address(self, pending: PendingDeployment) -> str:
        """Wait for the receipt and return the new contract's address."""
        try:
            receipt = await self._w3.eth.wait_for_transaction_receipt(
                pending.tx_hash,
                timeout=self._receipt_timeout,
                poll_latency=self._poll_latency,
            )
        except TimeExhausted as exc:
            raise TransactionError(
                pending.unit, "not confirmed before timeout", tx_hash=pending.tx_hash
            ) from exc
        except CONNECTION_ERRORS as exc:
            raise TransactionError(
                pending.unit, f"receipt lookup failed: {exc}", tx_hash=pending.tx_hash
            ) from exc

        if receipt["status"] != 1:
            raise TransactionError(pending.unit, "transaction reverted", tx_hash=pending.tx_hash)

        address = receipt.get("contractAddress")
        if not address:
            raise TransactionError(
                pending.unit, "receipt carries no contract address", tx_hash=pending.tx_hash
            )

        logger.info(
            "chain.deployment_mined",
            unit=pending.unit,
            address=address,
            block=receipt.get("blockNumber"),
            gas_used=receipt.get("gasUsed"),
        )
        return Web3.to_checksum_address(address)
