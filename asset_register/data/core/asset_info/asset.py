from asset_register.data.core.user_created_base import UserCreatedBase
from asset_register.data.core.asset_info.asset_status import AssetStatus
from asset_register import db


class Asset(UserCreatedBase):
    __tablename__ = 'assets'

    asset_tag = db.Column(db.String(50), unique=True, nullable=False)
    name = db.Column(db.String(100), nullable=False)
    category = db.Column(db.String(100), nullable=True)
    unit_id = db.Column(db.Integer, db.ForeignKey('units.id'), nullable=True, index=True)
    value = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    purchase_date = db.Column(db.Date, nullable=False)
    useful_life = db.Column(db.Integer, nullable=False, default=0)  # whole years
    status = db.Column(
        db.Enum(AssetStatus, values_callable=lambda statuses: [s.value for s in statuses], native_enum=False, length=20),
        nullable=False,
        default=AssetStatus.AVAILABLE,
    )

    # Relationships
    unit = db.relationship('Unit', back_populates='assets', foreign_keys=[unit_id])

    def __repr__(self):
        return f'<Asset {self.name} ({self.asset_tag})>'
