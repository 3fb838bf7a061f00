from asset_register.data.core.user_created_base import UserCreatedBase
from asset_register import db
from datetime import datetime
from enum import Enum
from sqlalchemy import text


class MovementStatus(str, Enum):
    PENDING = 'PENDING'
    APPROVED = 'APPROVED'
    REJECTED = 'REJECTED'


class AssetMovement(UserCreatedBase):
    """Inter-unit transfer request; retained for history once resolved"""
    __tablename__ = 'asset_movements'
    __table_args__ = (
        # At most one PENDING movement per asset, enforced by the database as well
        db.Index(
            'uq_asset_movements_one_pending',
            'asset_id',
            unique=True,
            sqlite_where=text("status = 'PENDING'"),
            postgresql_where=text("status = 'PENDING'"),
        ),
    )

    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'), nullable=False, index=True)
    from_unit_id = db.Column(db.Integer, db.ForeignKey('units.id'), nullable=True)
    to_unit_id = db.Column(db.Integer, db.ForeignKey('units.id'), nullable=False)
    status = db.Column(
        db.Enum(MovementStatus, values_callable=lambda s: [m.value for m in s], native_enum=False, length=20),
        nullable=False,
        default=MovementStatus.PENDING,
    )

    requested_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    requested_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    validated_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    validated_at = db.Column(db.DateTime, nullable=True)

    notes = db.Column(db.Text, nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)

    # Relationships
    asset = db.relationship('Asset')
    from_unit = db.relationship('Unit', foreign_keys=[from_unit_id])
    to_unit = db.relationship('Unit', foreign_keys=[to_unit_id])
    requested_by = db.relationship('User', foreign_keys=[requested_by_id])
    validated_by = db.relationship('User', foreign_keys=[validated_by_id])

    @property
    def is_pending(self):
        return self.status == MovementStatus.PENDING

    def __repr__(self):
        return f'<AssetMovement {self.id}: asset {self.asset_id} {self.from_unit_id}->{self.to_unit_id} {self.status.value}>'
