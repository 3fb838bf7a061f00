"""
State machine for inter-unit transfer requests

Encodes valid transitions only; persistence is the workflow's job.
"""

from typing import Dict, Set
from asset_register.data.workflows.asset_movement import MovementStatus
from asset_register.buisness.core.errors import StateError


class MovementStateMachine:
    """
    PENDING -> APPROVED | REJECTED. Both outcomes are terminal.

    Unlike an idle no-op, re-applying the current status is not allowed:
    approving an APPROVED movement is a second resolution.
    """

    PENDING = MovementStatus.PENDING
    APPROVED = MovementStatus.APPROVED
    REJECTED = MovementStatus.REJECTED

    TERMINAL_STATES = {APPROVED, REJECTED}

    TRANSITIONS: Dict[MovementStatus, Set[MovementStatus]] = {
        PENDING: {APPROVED, REJECTED},
    }

    @classmethod
    def can_transition(cls, from_status: MovementStatus, to_status: MovementStatus) -> bool:
        if from_status in cls.TERMINAL_STATES:
            return False
        return to_status in cls.TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_transition(cls, from_status: MovementStatus, to_status: MovementStatus) -> None:
        if not cls.can_transition(from_status, to_status):
            raise StateError(
                f"Transfer is already {MovementStatus(from_status).value}; cannot move to {MovementStatus(to_status).value}"
            )

    @classmethod
    def get_allowed_transitions(cls, from_status: MovementStatus) -> Set[MovementStatus]:
        if from_status in cls.TERMINAL_STATES:
            return set()
        return cls.TRANSITIONS.get(from_status, set())
