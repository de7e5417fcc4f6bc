"""Unit Deployment State Machine Guard.

Uses python-statemachine to enforce the lifecycle of one unit inside a
deployment run. The executor only appends a record entry from CONFIRMED or
OVERRIDDEN, and both are final, so a unit can be recorded at most once.

Transition table:
    PENDING    -> SUBMITTED   (submit)
    PENDING    -> OVERRIDDEN  (use_override)
    PENDING    -> FAILED      (abort)
    SUBMITTED  -> CONFIRMED   (confirm)
    SUBMITTED  -> FAILED      (reject)
"""

from __future__ import annotations

from statemachine import State, StateMachine

from nero_dex_deployer.domain.enums import UnitState


class UnitDeploymentStateMachine(StateMachine):
    """State machine that guards a single unit's deployment.

    Usage:
        sm = UnitDeploymentStateMachine()
        sm.submit()
        sm.confirm()
        sm.is_recordable  # True
    """

    # --- States ---
    PENDING = State("PENDING", initial=True)
    SUBMITTED = State("SUBMITTED")
    CONFIRMED = State("CONFIRMED", final=True)
    OVERRIDDEN = State("OVERRIDDEN", final=True)
    FAILED = State("FAILED", final=True)

    # --- Events / Transitions ---
    submit = PENDING.to(SUBMITTED)
    use_override = PENDING.to(OVERRIDDEN)
    abort = PENDING.to(FAILED)

    confirm = SUBMITTED.to(CONFIRMED)
    reject = SUBMITTED.to(FAILED)

    def __init__(self, current_status: str = "PENDING") -> None:
        """Initialize the state machine at a given status.

        Args:
            current_status: A UnitState value (e.g., "SUBMITTED").
        """
        valid_values = {s.value for s in UnitState}
        if current_status not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(
                f"Unknown status '{current_status}'. Valid states: {valid}"
            )
        super().__init__(start_value=current_status)

    @property
    def status(self) -> UnitState:
        """Return the current state as a UnitState."""
        return UnitState(str(self.current_state.value))

    @property
    def is_recordable(self) -> bool:
        """Whether the unit has an address that belongs in the record."""
        return self.status in (UnitState.CONFIRMED, UnitState.OVERRIDDEN)

    def get_allowed_events(self) -> list[str]:
        """Return a list of event names that can fire from the current state."""
        # Newer python-statemachine releases humanize Event.name and keep the key in Event.id
        return [getattr(event, "id", event.name) for event in self.allowed_events]
