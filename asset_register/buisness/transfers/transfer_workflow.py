"""
TransferWorkflow - inter-unit asset movement requests

request -> approve | reject. Resolution is a compare-and-set on the
movement's PENDING status, executed in the same transaction as the asset's
unit reassignment.
"""

from typing import List, Optional
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from asset_register import db
from asset_register.data.workflows.asset_movement import AssetMovement, MovementStatus
from asset_register.buisness.core.errors import ConflictError, NotFoundError, StateError, ValidationError
from asset_register.buisness.transfers.state_machine import MovementStateMachine
from asset_register.logger import get_logger

logger = get_logger("asset_register.workflows.transfers")

MAX_NOTES_LENGTH = 1000
MAX_REASON_LENGTH = 1000


class TransferWorkflow:

    def __init__(self, registry, units, identity, clock):
        self.registry = registry
        self.units = units
        self.identity = identity
        self.clock = clock

    # ------------------------------------------------------------------ queries

    def get(self, movement_id: int) -> AssetMovement:
        movement = db.session.get(AssetMovement, movement_id) if movement_id is not None else None
        if movement is None:
            raise NotFoundError("Transfer", movement_id)
        return movement

    def list_pending(self, unit_filter: Optional[int] = None) -> List[AssetMovement]:
        """Pending movements, oldest request first; unit_filter matches the target unit"""
        query = AssetMovement.query.filter(AssetMovement.status == MovementStatus.PENDING)
        if unit_filter is not None:
            query = query.filter(AssetMovement.to_unit_id == unit_filter)
        return query.order_by(AssetMovement.requested_at.asc(), AssetMovement.id.asc()).all()

    def history(self, asset_id: int) -> List[AssetMovement]:
        self.registry.get(asset_id)
        return (AssetMovement.query
                .filter(AssetMovement.asset_id == asset_id)
                .order_by(AssetMovement.requested_at.desc(), AssetMovement.id.desc())
                .all())

    def has_pending(self, asset_id: int) -> bool:
        return AssetMovement.query.filter_by(asset_id=asset_id, status=MovementStatus.PENDING).first() is not None

    # ---------------------------------------------------------------- commands

    def request_transfer(self, asset_id: int, to_unit_id: int, notes: Optional[str] = None) -> AssetMovement:
        asset = self.registry.get(asset_id)
        target = self.units.get(to_unit_id)

        if asset.unit_id == target.id:
            logger.warning(f"Transfer of {asset.asset_tag} rejected: already in unit {target.id}")
            raise ValidationError("Asset is already in the target unit", field="to_unit_id")
        if not target.is_active:
            logger.warning(f"Transfer of {asset.asset_tag} rejected: unit {target.id} is inactive")
            raise ValidationError(f"Unit {target.name} is inactive", field="to_unit_id")
        if notes is not None and len(notes) > MAX_NOTES_LENGTH:
            raise ValidationError(f"Notes may not exceed {MAX_NOTES_LENGTH} characters", field="notes")

        if self.has_pending(asset.id):
            logger.warning(f"Transfer of {asset.asset_tag} rejected: a request is already pending")
            raise ConflictError(f"Asset {asset.asset_tag} already has a pending transfer")

        requester_id = self.identity.current_actor_id()
        movement = AssetMovement(
            asset_id=asset.id,
            from_unit_id=asset.unit_id,
            to_unit_id=target.id,
            status=MovementStatus.PENDING,
            requested_by_id=requester_id,
            requested_at=self.clock.now(),
            notes=notes or None,
            created_by_id=requester_id,
            updated_by_id=requester_id,
        )
        try:
            db.session.add(movement)
            db.session.commit()
        except IntegrityError:
            # A concurrent request won the partial unique index
            db.session.rollback()
            logger.warning(f"Transfer of {asset.asset_tag} lost the race to a concurrent request")
            raise ConflictError(f"Asset {asset.asset_tag} already has a pending transfer")

        logger.info(f"Transfer {movement.id} requested: {asset.asset_tag} {movement.from_unit_id} -> {target.id}")
        return movement

    def approve(self, movement_id: int, approver_id: Optional[int]) -> AssetMovement:
        """Resolve as APPROVED and move the asset to the target unit, atomically"""
        movement = self.get(movement_id)
        MovementStateMachine.validate_transition(movement.status, MovementStatus.APPROVED)

        try:
            self._claim(movement, MovementStatus.APPROVED, approver_id)
            self.registry.update_unit(movement.asset_id, movement.to_unit_id, updated_by_id=approver_id)
            db.session.commit()
        except Exception:
            db.session.rollback()
            logger.error(f"Approval of transfer {movement_id} rolled back")
            raise

        db.session.refresh(movement)
        logger.info(f"Transfer {movement.id} approved by {approver_id}: asset {movement.asset_id} now in unit {movement.to_unit_id}")
        return movement

    def reject(self, movement_id: int, approver_id: Optional[int], reason: str) -> AssetMovement:
        movement = self.get(movement_id)
        reason = (reason or '').strip()
        if not reason:
            raise ValidationError("A rejection reason is required", field="reason")
        if len(reason) > MAX_REASON_LENGTH:
            raise ValidationError(f"Rejection reason may not exceed {MAX_REASON_LENGTH} characters", field="reason")
        MovementStateMachine.validate_transition(movement.status, MovementStatus.REJECTED)

        try:
            self._claim(movement, MovementStatus.REJECTED, approver_id, rejection_reason=reason)
            db.session.commit()
        except Exception:
            db.session.rollback()
            logger.error(f"Rejection of transfer {movement_id} rolled back")
            raise

        db.session.refresh(movement)
        logger.info(f"Transfer {movement.id} rejected by {approver_id}")
        return movement

    def _claim(self, movement: AssetMovement, status: MovementStatus, approver_id: Optional[int], **values) -> None:
        """
        Compare-and-set PENDING -> status. Exactly one concurrent caller gets
        rowcount 1; everyone else gets StateError.
        """
        result = db.session.execute(
            update(AssetMovement)
            .where(AssetMovement.id == movement.id, AssetMovement.status == MovementStatus.PENDING)
            .values(
                status=status,
                validated_by_id=approver_id,
                validated_at=self.clock.now(),
                updated_by_id=approver_id,
                **values
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(f"Transfer {movement.id} was resolved concurrently")
            raise StateError(f"Transfer {movement.id} has already been resolved")
