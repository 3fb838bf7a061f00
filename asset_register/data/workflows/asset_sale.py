from asset_register.data.core.user_created_base import UserCreatedBase
from asset_register import db
from enum import Enum
from sqlalchemy import text


class SaleStatus(str, Enum):
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'


class AssetSale(UserCreatedBase):
    """Disposal of an asset by sale; a cancelled sale is kept for history"""
    __tablename__ = 'asset_sales'
    __table_args__ = (
        db.Index(
            'uq_asset_sales_one_completed',
            'asset_id',
            unique=True,
            sqlite_where=text("status = 'COMPLETED'"),
            postgresql_where=text("status = 'COMPLETED'"),
        ),
    )

    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'), nullable=False, index=True)
    sold_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    sale_price = db.Column(db.Numeric(15, 2), nullable=False)
    sale_date = db.Column(db.Date, nullable=False)
    buyer_name = db.Column(db.String(255), nullable=False)
    buyer_contact = db.Column(db.String(255), nullable=True)
    sale_proof_photo_id = db.Column(db.Integer, db.ForeignKey('photos.id'), nullable=True)
    reason = db.Column(db.Text, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(
        db.Enum(SaleStatus, values_callable=lambda s: [m.value for m in s], native_enum=False, length=20),
        nullable=False,
        default=SaleStatus.COMPLETED,
    )

    cancelled_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    cancellation_reason = db.Column(db.Text, nullable=True)

    # Relationships
    asset = db.relationship('Asset')
    sold_by = db.relationship('User', foreign_keys=[sold_by_id])
    cancelled_by = db.relationship('User', foreign_keys=[cancelled_by_id])
    sale_proof_photo = db.relationship('Photo', foreign_keys=[sale_proof_photo_id])

    def __repr__(self):
        return f'<AssetSale {self.id}: asset {self.asset_id} {self.status.value}>'
