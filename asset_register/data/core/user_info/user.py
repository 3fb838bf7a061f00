from asset_register import db, login_manager
from flask_login import UserMixin
from datetime import datetime
from enum import Enum
from asset_register.buisness.core.data_insertion_mixin import DataInsertionMixin


class Role(str, Enum):
    """Closed set of roles; keys of the authorization policy table"""
    SUPER_ADMIN = 'SuperAdmin'
    ADMIN_HOLDING = 'AdminHolding'
    ADMIN_UNIT = 'AdminUnit'
    USER = 'User'
    AUDITOR = 'Auditor'


class User(UserMixin, DataInsertionMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    name = db.Column(db.String(120), nullable=True)
    role = db.Column(
        db.Enum(Role, values_callable=lambda roles: [r.value for r in roles], native_enum=False, length=20),
        nullable=False,
        default=Role.USER,
    )
    unit_id = db.Column(db.Integer, db.ForeignKey('units.id'), nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    unit = db.relationship('Unit')

    def __repr__(self):
        return f'<User {self.username}>'


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))
