from asset_register.data.core.user_created_base import UserCreatedBase
from asset_register import db
from enum import Enum


class IncidentType(str, Enum):
    DAMAGE = 'Damage'
    LOSS = 'Loss'


class IncidentReport(UserCreatedBase):
    """Write-once damage / loss report with photo evidence"""
    __tablename__ = 'incident_reports'

    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'), nullable=False, index=True)
    reporter_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    type = db.Column(
        db.Enum(IncidentType, values_callable=lambda e: [m.value for m in e], native_enum=False, length=20),
        nullable=False,
    )
    description = db.Column(db.Text, nullable=False)
    date = db.Column(db.Date, nullable=False)
    evidence_photo_id = db.Column(db.Integer, db.ForeignKey('photos.id'), nullable=False)

    # Relationships
    asset = db.relationship('Asset')
    reporter = db.relationship('User', foreign_keys=[reporter_id])
    evidence_photo = db.relationship('Photo', foreign_keys=[evidence_photo_id])

    def __repr__(self):
        return f'<IncidentReport {self.id}: {self.type.value} asset {self.asset_id}>'
