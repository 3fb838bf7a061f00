from typing import List
from asset_register import db
from asset_register.data.core.unit import Unit
from asset_register.buisness.core.errors import NotFoundError


class UnitDirectory:
    """Read access to organizational units"""

    def get(self, unit_id: int) -> Unit:
        unit = db.session.get(Unit, unit_id) if unit_id is not None else None
        if unit is None:
            raise NotFoundError("Unit", unit_id)
        return unit

    def get_active_units(self) -> List[Unit]:
        return Unit.query.filter_by(is_active=True).order_by(Unit.name).all()

    def is_active(self, unit_id: int) -> bool:
        return bool(self.get(unit_id).is_active)
