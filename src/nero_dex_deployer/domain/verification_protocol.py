"""Verification Service Protocol.

Defines the interface of an external source-verification service (a block
explorer) and the per-unit outcome the verification driver reports.

The domain layer has ZERO imports from httpx or any explorer SDK.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from nero_dex_deployer.domain.enums import ServiceVerdict, VerificationStatus


@dataclass(frozen=True)
class VerificationRequest:
    """Input to a verification service.

    Attributes:
        unit: Registry name of the unit.
        contract_name: Compiled artifact the address was deployed from.
        address: Deployed contract address.
        constructor_args: The exact arguments that produced the bytecode.
    """

    unit: str
    contract_name: str
    address: str
    constructor_args: tuple[Any, ...] = ()


@dataclass(frozen=True)
class VerificationResponse:
    """Raw answer from a verification service.

    Attributes:
        verdict: What the service said.
        message: Service message or error text.
        guid: Submission id, when the service issued one.
    """

    verdict: ServiceVerdict
    message: str = ""
    guid: str | None = None


@dataclass(frozen=True)
class VerificationOutcome:
    """Per-unit result of a verification run. Not persisted."""

    status: VerificationStatus
    reason: str | None = None
    guid: str | None = None

    @classmethod
    def verified(cls, guid: str | None = None) -> VerificationOutcome:
        return cls(VerificationStatus.VERIFIED, guid=guid)

    @classmethod
    def already_verified(cls) -> VerificationOutcome:
        return cls(VerificationStatus.ALREADY_VERIFIED)

    @classmethod
    def failed(cls, reason: str, guid: str | None = None) -> VerificationOutcome:
        return cls(VerificationStatus.FAILED, reason=reason, guid=guid)

    @classmethod
    def skipped(cls, reason: str = "no address recorded") -> VerificationOutcome:
        return cls(VerificationStatus.SKIPPED, reason=reason)

    @property
    def is_success(self) -> bool:
        return self.status in (VerificationStatus.VERIFIED, VerificationStatus.ALREADY_VERIFIED)

    def to_dict(self) -> dict:
        return {"status": self.status.value, "reason": self.reason, "guid": self.guid}


@runtime_checkable
class VerificationService(Protocol):
    """Protocol that all verification services must satisfy.

    Concrete implementations:
        - verifiers/etherscan.py  (Etherscan-compatible explorer API)
        - verifiers/__init__.py   (MockVerificationService)
    """

    async def verify(self, request: VerificationRequest) -> VerificationResponse:
        """Submit one deployed contract for source verification.

        Args:
            request: Address, contract name and constructor arguments.

        Returns:
            A VerificationResponse. Transport failures may be raised instead;
            the driver treats any exception as a failed outcome for the unit.
        """
        ...
