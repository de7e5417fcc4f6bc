"""EtherscanVerificationService — submits sources to an Etherscan-compatible explorer.

Use case: after deployment, publish the exact compiler input for each unit so
the explorer can attest that the source matches the on-chain bytecode.

Verification flow:
    1. Ask the explorer whether the address already has verified source
       (getsourcecode). If so, report already_verified and stop.
    2. ABI-encode the recorded constructor arguments.
    3. Submit the Hardhat build-info standard JSON input (verifysourcecode).
    4. Poll checkverifystatus with the returned GUID until it passes, fails
       or the poll budget runs out.

Only the read-only lookup is retried on transport errors. A submission is
never resent: explorers reject duplicates, so resending can only turn a
pending verification into a confusing failure.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import httpx
from eth_abi import encode as abi_encode
from tenacity import (
    AsyncRetrying,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)

from nero_dex_deployer.domain.enums import ServiceVerdict
from nero_dex_deployer.domain.exceptions import VerificationError
from nero_dex_deployer.domain.verification_protocol import (
    VerificationRequest,
    VerificationResponse,
)
from nero_dex_deployer.logging_config import get_logger

if TYPE_CHECKING:
    from nero_dex_deployer.infrastructure.artifacts import HardhatArtifacts

logger = get_logger(__name__)

STANDARD_JSON_FORMAT = "solidity-standard-json-input"


class _StillPending(Exception):
    """Raised while the explorer reports the submission as queued."""


class EtherscanVerificationService:
    """VerificationService speaking the Etherscan contract API."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        artifacts: HardhatArtifacts,
        client: httpx.AsyncClient | None = None,
        poll_interval: float = 5.0,
        max_polls: int = 12,
        http_timeout: float = 30.0,
    ) -> None:
        """Initialize the service.

        Args:
            api_url: Explorer API endpoint, e.g. https://api.etherscan.io/api.
            api_key: Explorer API key.
            artifacts: Source of ABIs and build-info.
            client: Optional shared httpx client (tests inject a MockTransport).
            poll_interval: Seconds between status checks.
            max_polls: Status checks before giving up on a queued submission.
            http_timeout: Per-request timeout when the service owns the client.
        """
        self._api_url = api_url
        self._api_key = api_key
        self._artifacts = artifacts
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=http_timeout)
        self._poll_interval = poll_interval
        self._max_polls = max_polls

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> EtherscanVerificationService:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def verify(self, request: VerificationRequest) -> VerificationResponse:
        """Verify one deployed contract.

        Raises:
            VerificationError: If the constructor arguments cannot be encoded.
            ArtifactNotFoundError: If the artifact or build-info is missing.
        """
        logger.info(
            "verifier.etherscan.start",
            unit=request.unit,
            address=request.address,
            contract=request.contract_name,
        )

        try:
            if await self._is_verified(request.address):
                logger.info("verifier.etherscan.already_verified", unit=request.unit)
                return VerificationResponse(
                    verdict=ServiceVerdict.ALREADY_VERIFIED,
                    message="Source already verified",
                )

            submission = self._build_submission(request)
            guid_or_response = await self._submit(request.unit, submission)
            if isinstance(guid_or_response, VerificationResponse):
                return guid_or_response
            return await self._await_result(request.unit, guid_or_response)

        except httpx.HTTPError as exc:
            logger.warning("verifier.etherscan.unreachable", unit=request.unit, error=str(exc))
            return VerificationResponse(
                verdict=ServiceVerdict.UNREACHABLE,
                message=f"Explorer unreachable: {exc}",
            )
        except ValueError as exc:
            # Non-JSON body from the explorer
            return VerificationResponse(
                verdict=ServiceVerdict.UNREACHABLE,
                message=f"Unexpected explorer response: {exc}",
            )

    # ------------------------------------------------------------------
    # Explorer calls
    # ------------------------------------------------------------------

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _is_verified(self, address: str) -> bool:
        """Return True if the explorer already holds source for the address."""
        payload = await self._get(
            {"module": "contract", "action": "getsourcecode", "address": address}
        )
        result = payload.get("result")
        if payload.get("status") != "1" or not isinstance(result, list) or not result:
            return False
        return bool(result[0].get("SourceCode"))

    async def _submit(self, unit: str, form: dict[str, str]) -> str | VerificationResponse:
        """Post the verification request. Returns the GUID or a final response."""
        response = await self._client.post(self._api_url, data={**form, "apikey": self._api_key})
        response.raise_for_status()
        payload = response.json()
        result = str(payload.get("result", ""))

        if payload.get("status") == "1":
            logger.info("verifier.etherscan.submitted", unit=unit, guid=result)
            return result
        if "already verified" in result.lower():
            return VerificationResponse(verdict=ServiceVerdict.ALREADY_VERIFIED, message=result)

        logger.info("verifier.etherscan.rejected", unit=unit, result=result)
        return VerificationResponse(verdict=ServiceVerdict.REJECTED, message=result)

    async def _await_result(self, unit: str, guid: str) -> VerificationResponse:
        """Poll checkverifystatus until the submission leaves the queue."""
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_polls),
                wait=wait_fixed(self._poll_interval),
                retry=retry_if_exception_type(_StillPending),
                reraise=True,
            ):
                with attempt:
                    response = await self._check_status(guid)
        except _StillPending:
            return VerificationResponse(
                verdict=ServiceVerdict.UNREACHABLE,
                message=f"Still pending after {self._max_polls} status checks",
                guid=guid,
            )

        logger.info("verifier.etherscan.result", unit=unit, verdict=response.verdict.value)
        return response

    async def _check_status(self, guid: str) -> VerificationResponse:
        payload = await self._get(
            {"module": "contract", "action": "checkverifystatus", "guid": guid}
        )
        result = str(payload.get("result", ""))
        lowered = result.lower()

        if "pending" in lowered:
            raise _StillPending(result)
        if "already verified" in lowered:
            return VerificationResponse(ServiceVerdict.ALREADY_VERIFIED, result, guid)
        if payload.get("status") == "1" or lowered.startswith("pass"):
            return VerificationResponse(ServiceVerdict.VERIFIED, result, guid)
        return VerificationResponse(ServiceVerdict.REJECTED, result, guid)

    async def _get(self, params: dict[str, str]) -> dict[str, Any]:
        response = await self._client.get(
            self._api_url, params={**params, "apikey": self._api_key}
        )
        response.raise_for_status()
        return response.json()

    # ------------------------------------------------------------------
    # Submission payload
    # ------------------------------------------------------------------

    def _build_submission(self, request: VerificationRequest) -> dict[str, str]:
        artifact = self._artifacts.load(request.contract_name)
        build_info = self._artifacts.build_info(request.contract_name)
        return {
            "module": "contract",
            "action": "verifysourcecode",
            "contractaddress": request.address,
            "sourceCode": json.dumps(build_info.input),
            "codeformat": STANDARD_JSON_FORMAT,
            "contractname": artifact.fully_qualified_name,
            "compilerversion": build_info.explorer_compiler_version,
            # Misspelling is part of the Etherscan API
            "constructorArguements": encode_constructor_args(
                request.unit, artifact.constructor_input_types, request.constructor_args
            ),
        }


def encode_constructor_args(unit: str, types: list[str], args: tuple[Any, ...]) -> str:
    """ABI-encode constructor arguments as bare hex (no 0x prefix).

    Raises:
        VerificationError: If the arguments don't match the constructor signature.
    """
    if len(types) != len(args):
        raise VerificationError(
            unit,
            f"Constructor takes {len(types)} arguments, record holds {len(args)}",
        )
    if not types:
        return ""
    try:
        return abi_encode(types, list(args)).hex()
    except Exception as exc:  # eth_abi raises several unrelated encoding errors
        raise VerificationError(
            unit, f"Cannot encode constructor arguments: {exc}", details={"types": types}
        ) from exc
