"""Domain exceptions for the NERO DEX deployer.

These exceptions are framework-agnostic. The CLI adapter catches
DeployerError, prints the failing unit and cause, and maps it to an exit code.
"""


class DeployerError(Exception):
    """Base exception for all deployer errors."""

    def __init__(self, message: str, code: str = "DEPLOYER_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- Configuration Errors ---


class ConfigurationError(DeployerError):
    """Raised for a bad registry, bad overrides or bad settings.

    Always detected before any transaction is sent.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="CONFIGURATION_ERROR")


class ArtifactNotFoundError(ConfigurationError):
    """Raised when a compiled contract artifact cannot be located."""

    def __init__(self, contract_name: str, artifacts_dir: str) -> None:
        super().__init__(
            message=(
                f"No compiled artifact for contract '{contract_name}' under {artifacts_dir}. "
                "Compile the contracts before deploying."
            ),
        )
        self.code = "ARTIFACT_NOT_FOUND"
        self.contract_name = contract_name


# --- Deployment Errors ---


class ChainConnectionError(DeployerError):
    """Raised when the RPC endpoint cannot be reached or answers with an error."""

    def __init__(self, endpoint: str, message: str) -> None:
        super().__init__(
            message=f"RPC endpoint {endpoint} unavailable: {message}",
            code="CHAIN_UNAVAILABLE",
        )
        self.endpoint = endpoint


class DependencyUnsatisfiedError(DeployerError):
    """Raised when a unit references an address that is not available yet."""

    def __init__(self, unit: str, dependency: str) -> None:
        super().__init__(
            message=f"Unit '{unit}' depends on '{dependency}', which is not available",
            code="DEPENDENCY_UNSATISFIED",
        )
        self.unit = unit
        self.dependency = dependency


class TransactionError(DeployerError):
    """Raised when the network rejects, reverts or never confirms a deployment."""

    def __init__(self, unit: str, message: str, tx_hash: str | None = None) -> None:
        super().__init__(
            message=f"Deployment of '{unit}' failed: {message}",
            code="TRANSACTION_ERROR",
        )
        self.unit = unit
        self.reason = message
        self.tx_hash = tx_hash


# --- Record Errors ---


class PersistenceError(DeployerError):
    """Raised when the deployment record cannot be read or written."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(
            message=f"Deployment record {path}: {message}",
            code="PERSISTENCE_ERROR",
        )
        self.path = path


class DuplicateEntryError(DeployerError):
    """Raised when a unit is appended to a record that already holds it."""

    def __init__(self, unit: str) -> None:
        super().__init__(
            message=f"Unit '{unit}' is already recorded; entries are never rewritten",
            code="DUPLICATE_ENTRY",
        )
        self.unit = unit


# --- Verification Errors ---


class VerificationError(DeployerError):
    """Raised by a verification service for a single unit.

    Never fatal to a verification run: the driver turns it into a failed outcome.
    """

    def __init__(self, unit: str, message: str, details: dict | None = None) -> None:
        super().__init__(message=message, code="VERIFICATION_ERROR")
        self.unit = unit
        self.details = details or {}
