"""Domain enumerations for the NERO DEX deployer.

These enums define the canonical states and kinds used throughout the system.
They are framework-agnostic (no web3, no httpx imports).
"""

import enum


class ArgumentKind(enum.StrEnum):
    """How a constructor argument gets its value at deployment time."""

    LITERAL = "literal"
    UNIT = "unit"  # address of another unit in the same run
    OVERRIDE = "override"  # externally supplied value


class UnitState(enum.StrEnum):
    """Lifecycle states of a single unit during a deployment run.

    Transitions are enforced by UnitDeploymentStateMachine.
    See domain/state_machine.py for the transition table.
    """

    PENDING = "PENDING"
    SUBMITTED = "SUBMITTED"
    CONFIRMED = "CONFIRMED"
    OVERRIDDEN = "OVERRIDDEN"
    FAILED = "FAILED"


class ServiceVerdict(enum.StrEnum):
    """Raw answer of an external source-verification service."""

    VERIFIED = "verified"
    ALREADY_VERIFIED = "already_verified"
    REJECTED = "rejected"
    UNREACHABLE = "unreachable"


class VerificationStatus(enum.StrEnum):
    """Per-unit outcome reported at the end of a verification run."""

    VERIFIED = "verified"
    ALREADY_VERIFIED = "already_verified"
    FAILED = "failed"
    SKIPPED = "skipped"
