"""Verification service implementations and factory.

Two services:
    - EtherscanVerificationService:  Etherscan-compatible explorer API (httpx)
    - MockVerificationService:       Instant configurable verdicts for dry runs

The VerificationServiceFactory creates the correct service from a kind name.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from nero_dex_deployer.domain.enums import ServiceVerdict
from nero_dex_deployer.domain.verification_protocol import (
    VerificationRequest,
    VerificationResponse,
    VerificationService,
)
from nero_dex_deployer.verifiers.etherscan import EtherscanVerificationService

if TYPE_CHECKING:
    from collections.abc import Mapping


class MockVerificationService:
    """Instant mock service for dry-run verification.

    Returns a configurable verdict per unit with zero network calls.
        - verdicts: unit name -> ServiceVerdict. Units not listed get `default`.
        - messages: unit name -> message text. Optional.

    Attributes:
        requests: Every VerificationRequest received, in order.
    """

    def __init__(
        self,
        verdicts: Mapping[str, ServiceVerdict] | None = None,
        default: ServiceVerdict = ServiceVerdict.VERIFIED,
        messages: Mapping[str, str] | None = None,
    ) -> None:
        self._verdicts = dict(verdicts or {})
        self._default = default
        self._messages = dict(messages or {})
        self.requests: list[VerificationRequest] = []

    async def verify(self, request: VerificationRequest) -> VerificationResponse:
        self.requests.append(request)
        verdict = self._verdicts.get(request.unit, self._default)
        message = self._messages.get(
            request.unit, f"Mock verification: {verdict.value} (dry-run mode)"
        )
        return VerificationResponse(verdict=verdict, message=message)


class VerificationServiceFactory:
    """Factory that creates a verification service by kind.

    Usage:
        service = VerificationServiceFactory.create(
            "etherscan", api_url=url, api_key=key, artifacts=artifacts
        )

        # Dry-run mode:
        service = VerificationServiceFactory.create("mock")
    """

    _registry: dict[str, type] = {
        "etherscan": EtherscanVerificationService,
        "mock": MockVerificationService,
    }

    @classmethod
    def create(cls, kind: str, **options: Any) -> VerificationService:
        """Create a service instance.

        Args:
            kind: One of the supported kind names.
            **options: Passed to the service constructor.

        Raises:
            ValueError: If the kind is unknown or missing.
        """
        if not kind:
            raise ValueError(
                "A verification service kind is required. "
                f"Valid kinds: {list(cls._registry.keys())}"
            )

        service_class = cls._registry.get(kind)
        if service_class is None:
            raise ValueError(
                f"Unknown verification service: '{kind}'. "
                f"Valid kinds: {list(cls._registry.keys())}"
            )

        return service_class(**options)

    @classmethod
    def get_supported_kinds(cls) -> list[str]:
        """Return the list of supported service kind strings."""
        return list(cls._registry.keys())


__all__ = [
    "EtherscanVerificationService",
    "MockVerificationService",
    "VerificationServiceFactory",
    "VerificationRequest",
    "VerificationResponse",
    "VerificationService",
]
