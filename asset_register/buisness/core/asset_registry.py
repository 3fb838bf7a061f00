"""
AssetRegistry - canonical store of Asset records

All workflows read and mutate assets through this class. Mutations flush
but do not commit: the calling workflow owns the transaction, so a status
change and the request row that caused it land together or not at all.
The one exception is create_batch(), which is itself the atomic commit of
an import.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional
from sqlalchemy import update
from asset_register import db
from asset_register.data.core.asset_info.asset import Asset
from asset_register.data.core.asset_info.asset_status import AssetStatus, CREATABLE_STATUSES
from asset_register.data.core.unit import Unit
from asset_register.data.core.sequences.asset_tag_sequence import AssetTagSequence
from asset_register.buisness.core.errors import NotFoundError, StateError, ValidationError
from asset_register.buisness.core.clock import SystemClock
from asset_register.logger import get_logger

logger = get_logger("asset_register.domain.registry")


@dataclass
class AssetCandidate:
    """A validated asset row that has not been persisted yet"""
    name: str
    category: str
    unit_id: Optional[int]
    value: Decimal
    purchase_date: date
    useful_life: int
    status: AssetStatus
    row: Optional[int] = None


class AssetRegistry:

    def __init__(self, tag_prefix: str = "AST", clock=None):
        self.tag_prefix = tag_prefix
        self.clock = clock or SystemClock()

    def get(self, asset_id: int) -> Asset:
        asset = db.session.get(Asset, asset_id) if asset_id is not None else None
        if asset is None:
            raise NotFoundError("Asset", asset_id)
        return asset

    def get_by_tag(self, asset_tag: str) -> Asset:
        asset = Asset.query.filter_by(asset_tag=asset_tag).first()
        if asset is None:
            raise NotFoundError("Asset", asset_tag)
        return asset

    def list(self, unit_id: Optional[int] = None, status: Optional[AssetStatus] = None) -> List[Asset]:
        query = Asset.query
        if unit_id is not None:
            query = query.filter(Asset.unit_id == unit_id)
        if status is not None:
            query = query.filter(Asset.status == status)
        return query.order_by(Asset.id).all()

    def update_unit(self, asset_id: int, unit_id: int, updated_by_id: Optional[int] = None) -> Asset:
        asset = self.get(asset_id)
        if db.session.get(Unit, unit_id) is None:
            raise NotFoundError("Unit", unit_id)
        asset.unit_id = unit_id
        asset.updated_by_id = updated_by_id
        db.session.flush()
        logger.debug(f"Asset {asset.asset_tag} reassigned to unit {unit_id}")
        return asset

    def update_status(self, asset_id: int, status: AssetStatus, expected: Optional[Iterable[AssetStatus]] = None,
                      updated_by_id: Optional[int] = None) -> Asset:
        """
        Set an asset's status.

        When ``expected`` is given the write is a compare-and-set: it only
        applies if the stored status is one of ``expected`` at the moment of
        the UPDATE, otherwise StateError.
        """
        asset = self.get(asset_id)
        if expected is None:
            asset.status = status
            asset.updated_by_id = updated_by_id
            db.session.flush()
            return asset

        expected = list(expected)
        result = db.session.execute(
            update(Asset)
            .where(Asset.id == asset_id, Asset.status.in_(expected))
            .values(status=status, updated_by_id=updated_by_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.refresh(asset)
            raise StateError(
                f"Asset {asset.asset_tag} is {asset.status.value}; expected one of "
                f"{', '.join(s.value for s in expected)}"
            )
        db.session.refresh(asset)
        return asset

    def create_batch(self, candidates: List[AssetCandidate], created_by_id: Optional[int] = None) -> List[Asset]:
        """
        Create all candidates in one transaction, each with a fresh asset tag.

        Raises NotFoundError for an unknown unit and ValidationError for a
        non-creatable status; in either case nothing is created.
        """
        created = []
        try:
            for candidate in candidates:
                if candidate.unit_id is not None and db.session.get(Unit, candidate.unit_id) is None:
                    raise NotFoundError("Unit", candidate.unit_id)
                if candidate.status not in CREATABLE_STATUSES:
                    raise ValidationError(f"Assets cannot be created with status {candidate.status.value}", field="status")

                asset = Asset(
                    asset_tag=AssetTagSequence.next_tag(self.tag_prefix, self.clock.today()),
                    name=candidate.name,
                    category=candidate.category,
                    unit_id=candidate.unit_id,
                    value=candidate.value,
                    purchase_date=candidate.purchase_date,
                    useful_life=candidate.useful_life,
                    status=candidate.status,
                    created_by_id=created_by_id,
                    updated_by_id=created_by_id,
                )
                db.session.add(asset)
                created.append(asset)

            db.session.flush()
            db.session.commit()
        except Exception:
            db.session.rollback()
            logger.error(f"Batch creation of {len(candidates)} assets rolled back")
            raise

        logger.info(f"Created {len(created)} assets: {', '.join(a.asset_tag for a in created)}")
        return created
