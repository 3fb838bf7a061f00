"""
LoanWorkflow - asset loan requests from request through return

PENDING -> APPROVED | REJECTED
APPROVED -> PENDING_RETURN -> RETURNED (or back to APPROVED)
APPROVED -> LOST

Every transition is a compare-and-set on the loan's current status, committed
together with the asset status change it implies.
"""

from datetime import date
from typing import List, Optional
from sqlalchemy import update
from asset_register import db
from asset_register.data.core.asset_info.asset import Asset
from asset_register.data.core.asset_info.asset_status import AssetStatus, LOANABLE_STATUSES
from asset_register.data.workflows.asset_loan import AssetLoan, LoanStatus, ReturnCondition
from asset_register.buisness.core.errors import ConflictError, NotFoundError, StateError, ValidationError
from asset_register.buisness.core.field_rules import require_length, require_not_future, require_photo
from asset_register.buisness.loans.state_machine import LoanStateMachine
from asset_register.logger import get_logger

logger = get_logger("asset_register.workflows.loans")

MAX_PURPOSE_LENGTH = 500
REASON_MIN_LENGTH = 10
REASON_MAX_LENGTH = 500
MAX_NOTES_LENGTH = 1000
LOSS_DESCRIPTION_MIN_LENGTH = 10
LOSS_DESCRIPTION_MAX_LENGTH = 1000

# Asset status after an approved return, by assessed condition
RETURN_CONDITION_STATUS = {
    ReturnCondition.GOOD: AssetStatus.AVAILABLE,
    ReturnCondition.DAMAGED: AssetStatus.IN_REPAIR,
    ReturnCondition.LOST: AssetStatus.LOST,
}


class LoanWorkflow:

    def __init__(self, registry, identity, clock, file_store):
        self.registry = registry
        self.identity = identity
        self.clock = clock
        self.file_store = file_store

    # ------------------------------------------------------------------ queries

    def get(self, loan_id: int) -> AssetLoan:
        loan = db.session.get(AssetLoan, loan_id) if loan_id is not None else None
        if loan is None:
            raise NotFoundError("Loan", loan_id)
        return loan

    def list_pending(self, unit_filter: Optional[int] = None) -> List[AssetLoan]:
        """Loans awaiting a decision, oldest first; unit_filter matches the asset's unit"""
        query = AssetLoan.query.filter(AssetLoan.status == LoanStatus.PENDING)
        if unit_filter is not None:
            query = query.join(Asset, AssetLoan.asset_id == Asset.id).filter(Asset.unit_id == unit_filter)
        return query.order_by(AssetLoan.created_at.asc(), AssetLoan.id.asc()).all()

    def history(self, asset_id: int) -> List[AssetLoan]:
        self.registry.get(asset_id)
        return (AssetLoan.query
                .filter(AssetLoan.asset_id == asset_id)
                .order_by(AssetLoan.created_at.desc(), AssetLoan.id.desc())
                .all())

    def active_loan_for(self, asset_id: int) -> Optional[AssetLoan]:
        return AssetLoan.query.filter_by(asset_id=asset_id, status=LoanStatus.APPROVED).first()

    def list_overdue(self, today: Optional[date] = None) -> List[AssetLoan]:
        today = today or self.clock.today()
        return (AssetLoan.query
                .filter(AssetLoan.status == LoanStatus.APPROVED, AssetLoan.expected_return_date < today)
                .order_by(AssetLoan.expected_return_date.asc())
                .all())

    # ---------------------------------------------------------------- commands

    def request_loan(self, asset_id: int, borrower_id: int, expected_return_date: date, purpose: str) -> AssetLoan:
        asset = self.registry.get(asset_id)
        request_date = self.clock.today()

        require_length(purpose, 'purpose', 1, MAX_PURPOSE_LENGTH)
        if expected_return_date is None:
            raise ValidationError("expected_return_date is required", field="expected_return_date")
        if expected_return_date < request_date:
            logger.warning(f"Loan of {asset.asset_tag} rejected: return date {expected_return_date} before {request_date}")
            raise ValidationError("Expected return date cannot be before the request date", field="expected_return_date")

        if asset.status not in LOANABLE_STATUSES:
            logger.warning(f"Loan of {asset.asset_tag} rejected: asset is {asset.status.value}")
            raise StateError(f"Asset {asset.asset_tag} is {asset.status.label} and cannot be loaned")

        duplicate = AssetLoan.query.filter_by(
            asset_id=asset.id, borrower_id=borrower_id, status=LoanStatus.PENDING
        ).first()
        if duplicate is not None:
            raise ConflictError(f"Borrower {borrower_id} already has a pending loan request for {asset.asset_tag}")

        loan = AssetLoan(
            asset_id=asset.id,
            borrower_id=borrower_id,
            request_date=request_date,
            expected_return_date=expected_return_date,
            purpose=purpose.strip(),
            status=LoanStatus.PENDING,
            created_by_id=self.identity.current_actor_id(),
            updated_by_id=self.identity.current_actor_id(),
        )
        try:
            db.session.add(loan)
            db.session.commit()
        except Exception:
            db.session.rollback()
            logger.error(f"Loan request for {asset.asset_tag} rolled back")
            raise

        logger.info(f"Loan {loan.id} requested: {asset.asset_tag} by {borrower_id} until {expected_return_date}")
        return loan

    def approve(self, loan_id: int, approver_id: Optional[int], approval_date: date, proof_photo_id: Optional[int]) -> AssetLoan:
        """Approve and put the asset OnLoan. Fails with StateError if another loan already took it."""
        loan = self.get(loan_id)
        from_status, to_status = LoanStateMachine.validate_operation('approve', loan.status)
        require_not_future(approval_date, self.clock, 'approval_date')
        require_photo(proof_photo_id, self.file_store, 'loan_proof_photo')

        def apply():
            self._claim(loan, from_status, to_status,
                        approved_by_id=approver_id,
                        approval_date=approval_date,
                        loan_proof_photo_id=proof_photo_id,
                        updated_by_id=approver_id)
            self.registry.update_status(loan.asset_id, AssetStatus.ON_LOAN,
                                        expected=LOANABLE_STATUSES, updated_by_id=approver_id)

        self._commit(loan, 'approve', apply)
        logger.info(f"Loan {loan.id} approved by {approver_id}; asset {loan.asset_id} is on loan")
        return loan

    def reject(self, loan_id: int, approver_id: Optional[int], approval_date: date, reason: str) -> AssetLoan:
        loan = self.get(loan_id)
        from_status, to_status = LoanStateMachine.validate_operation('reject', loan.status)
        require_not_future(approval_date, self.clock, 'approval_date')
        require_length(reason, 'rejection_reason', REASON_MIN_LENGTH, REASON_MAX_LENGTH)

        def apply():
            self._claim(loan, from_status, to_status,
                        approved_by_id=approver_id,
                        approval_date=approval_date,
                        rejection_reason=reason,
                        updated_by_id=approver_id)

        self._commit(loan, 'reject', apply)
        logger.info(f"Loan {loan.id} rejected by {approver_id}")
        return loan

    def submit_return(self, loan_id: int, borrower_id: Optional[int], return_date: date,
                      return_photo_id: Optional[int], notes: Optional[str] = None) -> AssetLoan:
        """Borrower hands the asset back; it stays OnLoan until the return is verified"""
        loan = self.get(loan_id)
        from_status, to_status = LoanStateMachine.validate_operation('submit_return', loan.status)
        require_not_future(return_date, self.clock, 'return_date')
        require_photo(return_photo_id, self.file_store, 'return_proof_photo')
        if notes is not None and len(notes) > MAX_NOTES_LENGTH:
            raise ValidationError(f"notes may not exceed {MAX_NOTES_LENGTH} characters", field="notes")

        def apply():
            self._claim(loan, from_status, to_status,
                        actual_return_date=return_date,
                        return_notes=notes or None,
                        return_condition=None,
                        return_proof_photo_id=return_photo_id,
                        updated_by_id=borrower_id)

        self._commit(loan, 'submit_return', apply)
        logger.info(f"Loan {loan.id} return submitted by {borrower_id}")
        return loan

    def approve_return(self, loan_id: int, verifier_id: Optional[int], verification_date: date,
                       condition, notes: Optional[str] = None) -> AssetLoan:
        """
        Close the loan. The asset's next status follows the assessed condition:
        good -> Available, damaged -> InRepair, lost -> Lost.
        """
        loan = self.get(loan_id)
        from_status, to_status = LoanStateMachine.validate_operation('approve_return', loan.status)
        require_not_future(verification_date, self.clock, 'verification_date')
        condition = self._parse_condition(condition)
        if notes is not None and len(notes) > MAX_NOTES_LENGTH:
            raise ValidationError(f"notes may not exceed {MAX_NOTES_LENGTH} characters", field="notes")

        return_notes = loan.return_notes or ''
        if notes:
            return_notes = f"{return_notes}\n[ADMIN ASSESSMENT] {notes}" if return_notes else f"[ADMIN ASSESSMENT] {notes}"

        def apply():
            self._claim(loan, from_status, to_status,
                        return_condition=condition,
                        return_verified_by_id=verifier_id,
                        return_verification_date=verification_date,
                        return_rejection_reason=None,
                        return_notes=return_notes or None,
                        updated_by_id=verifier_id)
            self.registry.update_status(loan.asset_id, RETURN_CONDITION_STATUS[condition],
                                        expected=[AssetStatus.ON_LOAN], updated_by_id=verifier_id)

        self._commit(loan, 'approve_return', apply)
        logger.info(f"Loan {loan.id} returned ({condition.value}), verified by {verifier_id}")
        return loan

    def reject_return(self, loan_id: int, verifier_id: Optional[int], verification_date: date, reason: str) -> AssetLoan:
        """Send the return back to the borrower; the return data is kept for reference"""
        loan = self.get(loan_id)
        from_status, to_status = LoanStateMachine.validate_operation('reject_return', loan.status)
        require_not_future(verification_date, self.clock, 'verification_date')
        require_length(reason, 'rejection_reason', REASON_MIN_LENGTH, REASON_MAX_LENGTH)

        def apply():
            self._claim(loan, from_status, to_status,
                        return_verified_by_id=verifier_id,
                        return_verification_date=verification_date,
                        return_rejection_reason=reason,
                        updated_by_id=verifier_id)

        self._commit(loan, 'reject_return', apply)
        logger.info(f"Loan {loan.id} return rejected by {verifier_id}")
        return loan

    def report_lost(self, loan_id: int, reporter_id: Optional[int], loss_date: date,
                    description: str, photo_id: Optional[int]) -> AssetLoan:
        loan = self.get(loan_id)
        LoanStateMachine.validate_operation('report_lost', loan.status)
        require_not_future(loss_date, self.clock, 'loss_date')
        require_length(description, 'loss_description', LOSS_DESCRIPTION_MIN_LENGTH, LOSS_DESCRIPTION_MAX_LENGTH)
        require_photo(photo_id, self.file_store, 'loss_proof_photo')

        self._commit(loan, 'report_lost',
                     lambda: self.mark_lost(loan, reporter_id, loss_date, description, photo_id))
        logger.info(f"Loan {loan.id} reported lost by {reporter_id}; asset {loan.asset_id} is Lost")
        return loan

    def mark_lost(self, loan: AssetLoan, actor_id: Optional[int], loss_date: date,
                  description: str, photo_id: Optional[int]) -> None:
        """
        APPROVED -> LOST and asset -> Lost, without committing.

        Shared with incident reporting, which runs it inside its own transaction.
        """
        from_status, to_status = LoanStateMachine.OPERATIONS['report_lost']
        self._claim(loan, from_status, to_status,
                    actual_return_date=loss_date,
                    return_notes=description,
                    return_condition=ReturnCondition.LOST,
                    return_proof_photo_id=photo_id,
                    updated_by_id=actor_id)
        self.registry.update_status(loan.asset_id, AssetStatus.LOST,
                                    expected=[AssetStatus.ON_LOAN], updated_by_id=actor_id)

    # ----------------------------------------------------------------- helpers

    def _claim(self, loan: AssetLoan, from_status: LoanStatus, to_status: LoanStatus, **values) -> None:
        result = db.session.execute(
            update(AssetLoan)
            .where(AssetLoan.id == loan.id, AssetLoan.status == from_status)
            .values(status=to_status, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(f"Loan {loan.id} left {from_status.value} concurrently")
            raise StateError(f"Loan {loan.id} is no longer {from_status.value}")

    def _commit(self, loan: AssetLoan, operation: str, apply) -> None:
        try:
            apply()
            db.session.commit()
        except Exception:
            db.session.rollback()
            logger.error(f"Loan {loan.id} {operation} rolled back")
            raise
        db.session.refresh(loan)

    @staticmethod
    def _parse_condition(condition) -> ReturnCondition:
        if isinstance(condition, ReturnCondition):
            return condition
        try:
            return ReturnCondition((condition or '').strip().lower())
        except ValueError:
            raise ValidationError(
                f"condition must be one of {', '.join(c.value for c in ReturnCondition)}", field="condition"
            )
