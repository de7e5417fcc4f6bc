"""Application services — deployment and verification orchestration."""

from nero_dex_deployer.services.deployment_executor import (
    DeploymentExecutor,
    overrides_from_record,
)
from nero_dex_deployer.services.verification_driver import VerificationDriver

__all__ = ["DeploymentExecutor", "VerificationDriver", "overrides_from_record"]
