"""
SaleService - selling assets and cancelling sales

A sale is recorded together with the asset's move to Sold; cancelling puts
the asset back to Available. Both asset writes are compare-and-set on the
asset status, so a sale can never overtake an approved loan.
"""

from datetime import date
from typing import List, Optional
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from asset_register import db
from asset_register.data.core.asset_info.asset import Asset
from asset_register.data.core.asset_info.asset_status import AssetStatus, SELLABLE_STATUSES
from asset_register.data.workflows.asset_sale import AssetSale, SaleStatus
from asset_register.buisness.core.errors import ConflictError, NotFoundError, StateError, ValidationError
from asset_register.buisness.core.field_rules import require_length, require_money, require_not_future
from asset_register.logger import get_logger

logger = get_logger("asset_register.workflows.sales")

MAX_NAME_LENGTH = 255
MAX_TEXT_LENGTH = 1000


class SaleService:

    def __init__(self, registry, clock, file_store):
        self.registry = registry
        self.clock = clock
        self.file_store = file_store

    # ------------------------------------------------------------------ queries

    def get(self, sale_id: int) -> AssetSale:
        sale = db.session.get(AssetSale, sale_id) if sale_id is not None else None
        if sale is None:
            raise NotFoundError("Sale", sale_id)
        return sale

    def active_sale_for(self, asset_id: int) -> Optional[AssetSale]:
        return AssetSale.query.filter_by(asset_id=asset_id, status=SaleStatus.COMPLETED).first()

    def list(self, unit_id: Optional[int] = None, status=None,
             date_from: Optional[date] = None, date_to: Optional[date] = None) -> List[AssetSale]:
        query = AssetSale.query
        if unit_id is not None:
            query = query.join(Asset, AssetSale.asset_id == Asset.id).filter(Asset.unit_id == unit_id)
        if status is not None:
            query = query.filter(AssetSale.status == self._parse_status(status))
        if date_from is not None:
            query = query.filter(AssetSale.sale_date >= date_from)
        if date_to is not None:
            query = query.filter(AssetSale.sale_date <= date_to)
        return query.order_by(AssetSale.sale_date.desc(), AssetSale.id.desc()).all()

    def list_sellable(self, unit_id: Optional[int] = None) -> List[Asset]:
        """Assets that are neither sold nor out on loan"""
        query = Asset.query.filter(Asset.status.in_(list(SELLABLE_STATUSES)))
        if unit_id is not None:
            query = query.filter(Asset.unit_id == unit_id)
        return query.order_by(Asset.name.asc(), Asset.id.asc()).all()

    # ---------------------------------------------------------------- commands

    def sell(self, asset_id: int, seller_id: Optional[int], sale_price, sale_date: date, buyer_name: str,
             reason: str, buyer_contact: Optional[str] = None, notes: Optional[str] = None,
             proof_photo_id: Optional[int] = None) -> AssetSale:
        asset = self.registry.get(asset_id)
        price = require_money(sale_price, 'sale_price')
        require_not_future(sale_date, self.clock, 'sale_date')
        require_length(buyer_name, 'buyer_name', 1, MAX_NAME_LENGTH)
        require_length(reason, 'reason', 1, MAX_TEXT_LENGTH)
        if buyer_contact is not None and len(buyer_contact) > MAX_NAME_LENGTH:
            raise ValidationError(f"buyer_contact may not exceed {MAX_NAME_LENGTH} characters", field="buyer_contact")
        if notes is not None and len(notes) > MAX_TEXT_LENGTH:
            raise ValidationError(f"notes may not exceed {MAX_TEXT_LENGTH} characters", field="notes")
        if proof_photo_id is not None and not self.file_store.exists(proof_photo_id):
            raise ValidationError("sale_proof_photo does not exist", field="sale_proof_photo")

        if self.active_sale_for(asset.id) is not None:
            logger.warning(f"Sale of {asset.asset_tag} rejected: already sold")
            raise ConflictError(f"Asset {asset.asset_tag} has already been sold")
        if asset.status not in SELLABLE_STATUSES:
            logger.warning(f"Sale of {asset.asset_tag} rejected: asset is {asset.status.value}")
            raise StateError(f"Asset {asset.asset_tag} is {asset.status.label} and cannot be sold")

        sale = AssetSale(
            asset_id=asset.id,
            sold_by_id=seller_id,
            sale_price=price,
            sale_date=sale_date,
            buyer_name=buyer_name.strip(),
            buyer_contact=(buyer_contact or '').strip() or None,
            sale_proof_photo_id=proof_photo_id,
            reason=reason,
            notes=notes or None,
            status=SaleStatus.COMPLETED,
            created_by_id=seller_id,
            updated_by_id=seller_id,
        )
        try:
            db.session.add(sale)
            self.registry.update_status(asset.id, AssetStatus.SOLD,
                                        expected=SELLABLE_STATUSES, updated_by_id=seller_id)
            db.session.commit()
        except IntegrityError:
            # A concurrent sale won the partial unique index
            db.session.rollback()
            logger.warning(f"Sale of {asset.asset_tag} lost the race to a concurrent sale")
            raise ConflictError(f"Asset {asset.asset_tag} has already been sold")
        except Exception:
            db.session.rollback()
            logger.error(f"Sale of {asset.asset_tag} rolled back")
            raise

        logger.info(f"Sale {sale.id}: {asset.asset_tag} sold by {seller_id} for {price}")
        return sale

    def cancel(self, sale_id: int, actor_id: Optional[int], reason: Optional[str] = None) -> AssetSale:
        """Void a completed sale and return the asset to Available"""
        sale = self.get(sale_id)
        if reason is not None and len(reason) > MAX_TEXT_LENGTH:
            raise ValidationError(f"reason may not exceed {MAX_TEXT_LENGTH} characters", field="reason")
        if sale.status != SaleStatus.COMPLETED:
            raise StateError(f"Sale {sale.id} is {sale.status.value} and cannot be cancelled")

        try:
            result = db.session.execute(
                update(AssetSale)
                .where(AssetSale.id == sale.id, AssetSale.status == SaleStatus.COMPLETED)
                .values(
                    status=SaleStatus.CANCELLED,
                    cancelled_by_id=actor_id,
                    cancelled_at=self.clock.now(),
                    cancellation_reason=reason or None,
                    updated_by_id=actor_id,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                logger.warning(f"Sale {sale.id} was cancelled concurrently")
                raise StateError(f"Sale {sale.id} has already been cancelled")
            self.registry.update_status(sale.asset_id, AssetStatus.AVAILABLE,
                                        expected=[AssetStatus.SOLD], updated_by_id=actor_id)
            db.session.commit()
        except Exception:
            db.session.rollback()
            logger.error(f"Cancellation of sale {sale_id} rolled back")
            raise

        db.session.refresh(sale)
        logger.info(f"Sale {sale.id} cancelled by {actor_id}; asset {sale.asset_id} is Available")
        return sale

    @staticmethod
    def _parse_status(value) -> SaleStatus:
        if isinstance(value, SaleStatus):
            return value
        for member in SaleStatus:
            if (value or '').strip().upper() == member.value:
                return member
        raise ValidationError(f"status must be one of {', '.join(s.value for s in SaleStatus)}", field="status")
