"""
State machine for asset loans

Each workflow operation names the one status it starts from and the one it
ends in. TRANSITIONS is the same graph viewed per status.
"""

from typing import Dict, Set, Tuple
from asset_register.data.workflows.asset_loan import LoanStatus
from asset_register.buisness.core.errors import StateError


class LoanStateMachine:

    PENDING = LoanStatus.PENDING
    APPROVED = LoanStatus.APPROVED
    REJECTED = LoanStatus.REJECTED
    PENDING_RETURN = LoanStatus.PENDING_RETURN
    RETURNED = LoanStatus.RETURNED
    LOST = LoanStatus.LOST

    TERMINAL_STATES = {REJECTED, RETURNED, LOST}

    # operation -> (required current status, resulting status)
    OPERATIONS: Dict[str, Tuple[LoanStatus, LoanStatus]] = {
        'approve': (PENDING, APPROVED),
        'reject': (PENDING, REJECTED),
        'submit_return': (APPROVED, PENDING_RETURN),
        'approve_return': (PENDING_RETURN, RETURNED),
        'reject_return': (PENDING_RETURN, APPROVED),
        'report_lost': (APPROVED, LOST),
    }

    TRANSITIONS: Dict[LoanStatus, Set[LoanStatus]] = {
        PENDING: {APPROVED, REJECTED},
        APPROVED: {PENDING_RETURN, LOST},
        PENDING_RETURN: {RETURNED, APPROVED},  # a rejected return puts the loan back in the borrower's hands
        # REJECTED, RETURNED and LOST are terminal
    }

    @classmethod
    def can_transition(cls, from_status: LoanStatus, to_status: LoanStatus) -> bool:
        if from_status in cls.TERMINAL_STATES:
            return False
        return to_status in cls.TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_operation(cls, operation: str, current: LoanStatus) -> Tuple[LoanStatus, LoanStatus]:
        """
        Returns:
            (from_status, to_status) for the operation

        Raises:
            StateError: if the loan is not in the operation's starting status
        """
        from_status, to_status = cls.OPERATIONS[operation]
        if current != from_status:
            raise StateError(
                f"Cannot {operation.replace('_', ' ')} a loan that is {LoanStatus(current).value}; "
                f"it must be {from_status.value}"
            )
        return from_status, to_status
