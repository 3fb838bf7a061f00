from asset_register import db
from asset_register.buisness.core.data_insertion_mixin import DataInsertionMixin


class Unit(db.Model, DataInsertionMixin):
    """Organizational unit (department / location) that can own assets"""
    __tablename__ = 'units'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    code = db.Column(db.String(20), unique=True, nullable=True)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    assets = db.relationship('Asset', back_populates='unit', foreign_keys='Asset.unit_id')

    def __repr__(self):
        return f'<Unit {self.name}>'
