"""
IncidentService - write-once damage and loss reports

Reports sit outside the approval state machines. A Loss report against an
asset that is out on an approved loan closes that loan as LOST.
"""

from datetime import date
from typing import List, Optional
from asset_register import db
from asset_register.data.core.asset_info.asset import Asset
from asset_register.data.workflows.incident_report import IncidentReport, IncidentType
from asset_register.buisness.core.errors import ValidationError
from asset_register.buisness.core.field_rules import require_length, require_not_future, require_photo
from asset_register.logger import get_logger

logger = get_logger("asset_register.workflows.incidents")

DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 1000


class IncidentService:

    def __init__(self, registry, loans, clock, file_store):
        self.registry = registry
        self.loans = loans
        self.clock = clock
        self.file_store = file_store

    def file_report(self, asset_id: int, reporter_id: Optional[int], type, description: str,
                    date: date, evidence_photo_id: Optional[int]) -> IncidentReport:
        asset = self.registry.get(asset_id)
        incident_type = self._parse_type(type)
        require_length(description, 'description', DESCRIPTION_MIN_LENGTH, DESCRIPTION_MAX_LENGTH)
        require_not_future(date, self.clock, 'date')
        require_photo(evidence_photo_id, self.file_store, 'evidence_photo')

        report = IncidentReport(
            asset_id=asset.id,
            reporter_id=reporter_id,
            type=incident_type,
            description=description,
            date=date,
            evidence_photo_id=evidence_photo_id,
            created_by_id=reporter_id,
            updated_by_id=reporter_id,
        )

        active_loan = self.loans.active_loan_for(asset.id) if incident_type == IncidentType.LOSS else None
        try:
            db.session.add(report)
            if active_loan is not None:
                self.loans.mark_lost(active_loan, reporter_id, date, description, evidence_photo_id)
            db.session.commit()
        except Exception:
            db.session.rollback()
            logger.error(f"Incident report for {asset.asset_tag} rolled back")
            raise

        if active_loan is not None:
            db.session.refresh(active_loan)
            logger.info(f"Loan {active_loan.id} marked LOST by incident {report.id}")
        logger.info(f"Incident {report.id} ({incident_type.value}) filed for {asset.asset_tag}")
        return report

    def list(self, unit_id: Optional[int] = None, type=None,
             date_from: Optional[date] = None, date_to: Optional[date] = None) -> List[IncidentReport]:
        query = IncidentReport.query
        if unit_id is not None:
            query = query.join(Asset, IncidentReport.asset_id == Asset.id).filter(Asset.unit_id == unit_id)
        if type is not None:
            query = query.filter(IncidentReport.type == self._parse_type(type))
        if date_from is not None:
            query = query.filter(IncidentReport.date >= date_from)
        if date_to is not None:
            query = query.filter(IncidentReport.date <= date_to)
        return query.order_by(IncidentReport.date.desc(), IncidentReport.id.desc()).all()

    @staticmethod
    def _parse_type(value) -> IncidentType:
        if isinstance(value, IncidentType):
            return value
        for member in IncidentType:
            if (value or '').strip().lower() == member.value.lower():
                return member
        raise ValidationError(f"type must be one of {', '.join(t.value for t in IncidentType)}", field="type")
