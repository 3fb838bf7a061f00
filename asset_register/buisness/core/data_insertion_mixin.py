"""
Generic data insertion mixin for SQLAlchemy models
Provides from_dict / to_dict so the registry, the seeders and the HTTP layer
share one conversion between plain dictionaries and model rows.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from sqlalchemy import inspect
from asset_register import db
from asset_register.logger import get_logger

logger = get_logger("asset_register.domain.core.data_insertion")

AUDIT_FIELDS = ('created_at', 'updated_at', 'created_by_id', 'updated_by_id')


def _serialize_value(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return float(value)
    return value


class DataInsertionMixin:
    """
    Mixin that provides generic data insertion capabilities for SQLAlchemy models

    This mixin adds:
    - from_dict(): Create model instance from dictionary
    - to_dict(): Convert model instance to a JSON-safe dictionary
    - find_or_create_from_dict(): Idempotent insertion used by seeders
    """

    @classmethod
    def from_dict(cls, data_dict, user_id=None, skip_fields=None):
        """
        Create a model instance from a dictionary

        Args:
            data_dict (dict): Dictionary containing model data
            user_id (int, optional): User ID for audit fields
            skip_fields (list, optional): Fields to skip during creation

        Returns:
            Model instance (not added to the session)
        """
        skip_fields = set(skip_fields or ())

        mapper = inspect(cls)
        columns = {c.key for c in mapper.columns}

        filtered_data = {
            key: value for key, value in data_dict.items()
            if key in columns and key not in skip_fields
            and not (key in ('created_at', 'updated_at') and value is None)
        }

        instance = cls(**filtered_data)

        if user_id is not None:
            if hasattr(instance, 'created_by_id') and not instance.created_by_id:
                instance.created_by_id = user_id
            if hasattr(instance, 'updated_by_id'):
                instance.updated_by_id = user_id

        return instance

    def to_dict(self, include_audit_fields=True):
        """
        Convert model instance to dictionary

        Args:
            include_audit_fields (bool): Whether to include audit fields

        Returns:
            dict: JSON-safe dictionary representation of the model
        """
        result = {}
        mapper = inspect(self.__class__)

        for column in mapper.columns:
            if not include_audit_fields and column.key in AUDIT_FIELDS:
                continue
            result[column.key] = _serialize_value(getattr(self, column.key))

        return result

    @classmethod
    def find_or_create_from_dict(cls, data_dict, user_id=None, lookup_fields=None):
        """
        Find existing instance or create new one from dictionary (flushes, does not commit)

        Args:
            data_dict (dict): Dictionary containing model data
            user_id (int, optional): User ID for audit fields
            lookup_fields (list, optional): Fields to use for lookup (default: unique columns)

        Returns:
            tuple: (instance, created) where created is boolean
        """
        if lookup_fields is None:
            mapper = inspect(cls)
            lookup_fields = [c.key for c in mapper.columns if c.unique and c.key in data_dict]

        lookup_data = {field: data_dict[field] for field in lookup_fields if field in data_dict}
        if lookup_data:
            existing = cls.query.filter_by(**lookup_data).first()
            if existing:
                logger.debug(f"Found existing {cls.__name__}: {existing}")
                return existing, False

        instance = cls.from_dict(data_dict, user_id)
        db.session.add(instance)
        db.session.flush()
        logger.info(f"Created {cls.__name__}: {instance}")
        return instance, True
