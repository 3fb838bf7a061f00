from asset_register.data.core.user_created_base import UserCreatedBase
from asset_register import db
from enum import Enum


class LoanStatus(str, Enum):
    PENDING = 'PENDING'
    APPROVED = 'APPROVED'
    REJECTED = 'REJECTED'
    PENDING_RETURN = 'PENDING_RETURN'
    RETURNED = 'RETURNED'
    LOST = 'LOST'


class ReturnCondition(str, Enum):
    GOOD = 'good'
    DAMAGED = 'damaged'
    LOST = 'lost'


def _enum_column(enum_cls, **kwargs):
    return db.Column(
        db.Enum(enum_cls, values_callable=lambda e: [m.value for m in e], native_enum=False, length=20),
        **kwargs
    )


class AssetLoan(UserCreatedBase):
    """Loan request for an asset, from request through return"""
    __tablename__ = 'asset_loans'

    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'), nullable=False, index=True)
    borrower_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    request_date = db.Column(db.Date, nullable=False)
    expected_return_date = db.Column(db.Date, nullable=False)
    purpose = db.Column(db.Text, nullable=False)
    status = _enum_column(LoanStatus, nullable=False, default=LoanStatus.PENDING)

    # Resolution
    approved_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    approval_date = db.Column(db.Date, nullable=True)
    loan_proof_photo_id = db.Column(db.Integer, db.ForeignKey('photos.id'), nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)

    # Return
    actual_return_date = db.Column(db.Date, nullable=True)
    return_notes = db.Column(db.Text, nullable=True)
    return_proof_photo_id = db.Column(db.Integer, db.ForeignKey('photos.id'), nullable=True)
    return_condition = _enum_column(ReturnCondition, nullable=True)
    return_verified_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    return_verification_date = db.Column(db.Date, nullable=True)
    return_rejection_reason = db.Column(db.Text, nullable=True)

    # Relationships
    asset = db.relationship('Asset')
    borrower = db.relationship('User', foreign_keys=[borrower_id])
    approved_by = db.relationship('User', foreign_keys=[approved_by_id])
    return_verified_by = db.relationship('User', foreign_keys=[return_verified_by_id])
    loan_proof_photo = db.relationship('Photo', foreign_keys=[loan_proof_photo_id])
    return_proof_photo = db.relationship('Photo', foreign_keys=[return_proof_photo_id])

    def is_overdue(self, today):
        return (
            self.status == LoanStatus.APPROVED
            and self.expected_return_date is not None
            and today > self.expected_return_date
        )

    def __repr__(self):
        return f'<AssetLoan {self.id}: asset {self.asset_id} by {self.borrower_id} {self.status.value}>'
