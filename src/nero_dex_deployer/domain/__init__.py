"""Domain layer — pure deployment logic with zero network dependencies."""

from nero_dex_deployer.domain.chain_protocol import (
    ChainClient,
    DeploymentRequest,
    PendingDeployment,
)
from nero_dex_deployer.domain.enums import (
    ArgumentKind,
    ServiceVerdict,
    UnitState,
    VerificationStatus,
)
from nero_dex_deployer.domain.exceptions import (
    ConfigurationError,
    ChainConnectionError,
    DependencyUnsatisfiedError,
    DeployerError,
    PersistenceError,
    TransactionError,
    VerificationError,
)
from nero_dex_deployer.domain.record import DeploymentRecord, RecordEntry
from nero_dex_deployer.domain.registry import UnitRegistry, nero_dex_registry
from nero_dex_deployer.domain.state_machine import UnitDeploymentStateMachine
from nero_dex_deployer.domain.units import (
    ConstructorArg,
    DeployableUnit,
    literal,
    override_ref,
    unit_ref,
)
from nero_dex_deployer.domain.verification_protocol import (
    VerificationOutcome,
    VerificationRequest,
    VerificationResponse,
    VerificationService,
)

__all__ = [
    "ArgumentKind",
    "ServiceVerdict",
    "UnitState",
    "VerificationStatus",
    "ChainConnectionError",
    "ConfigurationError",
    "DependencyUnsatisfiedError",
    "DeployerError",
    "PersistenceError",
    "TransactionError",
    "VerificationError",
    "ChainClient",
    "DeploymentRequest",
    "PendingDeployment",
    "DeploymentRecord",
    "RecordEntry",
    "UnitRegistry",
    "nero_dex_registry",
    "UnitDeploymentStateMachine",
    "ConstructorArg",
    "DeployableUnit",
    "literal",
    "override_ref",
    "unit_ref",
    "VerificationOutcome",
    "VerificationRequest",
    "VerificationResponse",
    "VerificationService",
]
