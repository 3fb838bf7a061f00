"""
ReportAggregator - per-domain rows and summaries for the export layer

Read-only. Asset rows carry depreciation evaluated at generation time; the
workflow domains are drawn straight from their history tables.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from fractions import Fraction
from typing import Any, Dict, List, Optional
from sqlalchemy import or_
from asset_register.data.core.asset_info.asset import Asset
from asset_register.data.core.asset_info.asset_status import AssetStatus
from asset_register.data.workflows.asset_movement import AssetMovement, MovementStatus
from asset_register.data.workflows.asset_loan import AssetLoan, LoanStatus
from asset_register.data.workflows.incident_report import IncidentReport, IncidentType
from asset_register.data.workflows.asset_sale import AssetSale, SaleStatus
from asset_register.buisness.core.errors import ValidationError
from asset_register.buisness.depreciation.calculator import DepreciationCalculator
from asset_register.logger import get_logger

logger = get_logger("asset_register.reports")

DOMAINS = ('assets', 'transfers', 'loans', 'incidents', 'sales')


@dataclass
class ReportFilters:
    unit_id: Optional[int] = None
    status: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ReportFilters':
        """Accepts wire values (strings) as well as typed ones"""
        data = data or {}
        unknown = set(data) - {'unit_id', 'status', 'date_from', 'date_to'}
        if unknown:
            raise ValidationError(f"Unknown report filters: {', '.join(sorted(unknown))}", field="filters")

        unit_id = data.get('unit_id')
        if unit_id not in (None, ''):
            try:
                unit_id = int(unit_id)
            except (TypeError, ValueError):
                raise ValidationError(f"unit_id must be an integer, got {unit_id!r}", field="unit_id")
        else:
            unit_id = None

        filters = cls(
            unit_id=unit_id,
            status=(data.get('status') or None),
            date_from=cls._parse_date(data.get('date_from'), 'date_from'),
            date_to=cls._parse_date(data.get('date_to'), 'date_to'),
        )
        if filters.date_from and filters.date_to and filters.date_from > filters.date_to:
            raise ValidationError("date_from cannot be after date_to", field="date_from")
        return filters

    @staticmethod
    def _parse_date(value, field_name: str) -> Optional[date]:
        if value in (None, ''):
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return datetime.strptime(str(value), '%Y-%m-%d').date()
        except ValueError:
            raise ValidationError(f"{field_name} must be YYYY-MM-DD, got {value!r}", field=field_name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'unit_id': self.unit_id,
            'status': self.status,
            'date_from': self.date_from.isoformat() if self.date_from else None,
            'date_to': self.date_to.isoformat() if self.date_to else None,
        }


@dataclass
class Report:
    domain: str
    generated_at: datetime
    filters: ReportFilters
    rows: List[Dict[str, Any]] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'domain': self.domain,
            'generated_at': self.generated_at.isoformat(),
            'filters': self.filters.to_dict(),
            'rows': self.rows,
            'summary': self.summary,
        }


def _money(amount) -> float:
    return round(float(amount), 2)


def _parse_choice(enum_cls, value, field_name='status'):
    for member in enum_cls:
        if value.strip().lower() in (member.value.lower(), member.name.lower()):
            return member
    raise ValidationError(
        f"{field_name} must be one of {', '.join(m.value for m in enum_cls)}, got {value!r}", field=field_name
    )


class ReportAggregator:

    def __init__(self, clock):
        self.clock = clock

    def build(self, domain: str, filters=None) -> Report:
        domain = (domain or '').strip().lower()
        if domain not in DOMAINS:
            raise ValidationError(f"Unknown report domain {domain!r}; expected one of {', '.join(DOMAINS)}", field="domain")
        if not isinstance(filters, ReportFilters):
            filters = ReportFilters.from_dict(filters)

        builder = getattr(self, f"_build_{domain}")
        rows, summary = builder(filters)
        logger.info(f"Built {domain} report: {len(rows)} rows")
        return Report(domain=domain, generated_at=self.clock.now(), filters=filters, rows=rows, summary=summary)

    # ---------------------------------------------------------------- assets

    def _build_assets(self, filters: ReportFilters):
        query = Asset.query
        if filters.unit_id is not None:
            query = query.filter(Asset.unit_id == filters.unit_id)
        if filters.status:
            status = AssetStatus.parse(filters.status)
            if status is None:
                raise ValidationError(f"Unknown asset status {filters.status!r}", field="status")
            query = query.filter(Asset.status == status)
        if filters.date_from:
            query = query.filter(Asset.purchase_date >= filters.date_from)
        if filters.date_to:
            query = query.filter(Asset.purchase_date <= filters.date_to)

        as_of = self.clock.today()
        rows = []
        total_value = total_current = total_depreciation = Fraction(0)
        status_counts = {status: 0 for status in AssetStatus}

        for asset in query.order_by(Asset.asset_tag).all():
            result = DepreciationCalculator.for_asset(asset, as_of)
            row = asset.to_dict(include_audit_fields=False)
            row.update({
                'unit_name': asset.unit.name if asset.unit else None,
                'status_label': asset.status.label,
                'monthly_depreciation': _money(result.monthly_depreciation),
                'accumulated_depreciation': _money(result.accumulated_depreciation),
                'current_value': _money(result.current_value),
                'depreciation_percentage': result.depreciation_percentage,
            })
            rows.append(row)

            total_value += result.value
            total_current += result.current_value
            total_depreciation += result.accumulated_depreciation
            status_counts[asset.status] += 1

        summary = {
            'as_of': as_of.isoformat(),
            'total_assets': len(rows),
            'total_value': _money(total_value),
            'total_current_value': _money(total_current),
            'total_depreciation': _money(total_depreciation),
        }
        for status, count in status_counts.items():
            summary[f"count_{status.name.lower()}"] = count
        return rows, summary

    # ------------------------------------------------------------- transfers

    def _build_transfers(self, filters: ReportFilters):
        query = AssetMovement.query
        if filters.unit_id is not None:
            query = query.filter(or_(AssetMovement.from_unit_id == filters.unit_id,
                                     AssetMovement.to_unit_id == filters.unit_id))
        if filters.status:
            query = query.filter(AssetMovement.status == _parse_choice(MovementStatus, filters.status))
        if filters.date_from:
            query = query.filter(AssetMovement.requested_at >= datetime.combine(filters.date_from, time.min))
        if filters.date_to:
            query = query.filter(AssetMovement.requested_at <= datetime.combine(filters.date_to, time.max))

        rows = []
        counts = {status: 0 for status in MovementStatus}
        for movement in query.order_by(AssetMovement.requested_at.desc(), AssetMovement.id.desc()).all():
            row = movement.to_dict(include_audit_fields=False)
            row.update({
                'asset_tag': movement.asset.asset_tag,
                'asset_name': movement.asset.name,
                'from_unit_name': movement.from_unit.name if movement.from_unit else None,
                'to_unit_name': movement.to_unit.name if movement.to_unit else None,
                'requested_by': movement.requested_by.username if movement.requested_by else None,
                'validated_by': movement.validated_by.username if movement.validated_by else None,
            })
            rows.append(row)
            counts[movement.status] += 1

        summary = {
            'total': len(rows),
            'pending': counts[MovementStatus.PENDING],
            'approved': counts[MovementStatus.APPROVED],
            'rejected': counts[MovementStatus.REJECTED],
        }
        return rows, summary

    # ----------------------------------------------------------------- loans

    def _build_loans(self, filters: ReportFilters):
        query = AssetLoan.query
        if filters.unit_id is not None:
            query = query.join(Asset, AssetLoan.asset_id == Asset.id).filter(Asset.unit_id == filters.unit_id)
        if filters.status:
            query = query.filter(AssetLoan.status == _parse_choice(LoanStatus, filters.status))
        if filters.date_from:
            query = query.filter(AssetLoan.request_date >= filters.date_from)
        if filters.date_to:
            query = query.filter(AssetLoan.request_date <= filters.date_to)

        today = self.clock.today()
        rows = []
        counts = {status: 0 for status in LoanStatus}
        overdue = 0
        for loan in query.order_by(AssetLoan.request_date.desc(), AssetLoan.id.desc()).all():
            is_overdue = loan.is_overdue(today)
            row = loan.to_dict(include_audit_fields=False)
            row.update({
                'asset_tag': loan.asset.asset_tag,
                'asset_name': loan.asset.name,
                'borrower': loan.borrower.name or loan.borrower.username,
                'is_overdue': is_overdue,
            })
            rows.append(row)
            counts[loan.status] += 1
            overdue += 1 if is_overdue else 0

        summary = {
            'total_loans': len(rows),
            'pending': counts[LoanStatus.PENDING],
            'approved': counts[LoanStatus.APPROVED],
            'rejected': counts[LoanStatus.REJECTED],
            'pending_return': counts[LoanStatus.PENDING_RETURN],
            'returned': counts[LoanStatus.RETURNED],
            'lost': counts[LoanStatus.LOST],
            'overdue': overdue,
        }
        return rows, summary

    # ------------------------------------------------------------- incidents

    def _build_incidents(self, filters: ReportFilters):
        query = IncidentReport.query
        if filters.unit_id is not None:
            query = query.join(Asset, IncidentReport.asset_id == Asset.id).filter(Asset.unit_id == filters.unit_id)
        if filters.status:
            # Incidents have no workflow status; the filter selects the report type
            query = query.filter(IncidentReport.type == _parse_choice(IncidentType, filters.status))
        if filters.date_from:
            query = query.filter(IncidentReport.date >= filters.date_from)
        if filters.date_to:
            query = query.filter(IncidentReport.date <= filters.date_to)

        rows = []
        counts = {incident_type: 0 for incident_type in IncidentType}
        for report in query.order_by(IncidentReport.date.desc(), IncidentReport.id.desc()).all():
            row = report.to_dict(include_audit_fields=False)
            row.update({
                'asset_tag': report.asset.asset_tag,
                'asset_name': report.asset.name,
                'reporter': report.reporter.username if report.reporter else None,
            })
            rows.append(row)
            counts[report.type] += 1

        summary = {
            'total': len(rows),
            'damage': counts[IncidentType.DAMAGE],
            'loss': counts[IncidentType.LOSS],
        }
        return rows, summary

    # ----------------------------------------------------------------- sales

    def _build_sales(self, filters: ReportFilters):
        query = AssetSale.query
        if filters.unit_id is not None:
            query = query.join(Asset, AssetSale.asset_id == Asset.id).filter(Asset.unit_id == filters.unit_id)
        if filters.status:
            query = query.filter(AssetSale.status == _parse_choice(SaleStatus, filters.status))
        if filters.date_from:
            query = query.filter(AssetSale.sale_date >= filters.date_from)
        if filters.date_to:
            query = query.filter(AssetSale.sale_date <= filters.date_to)

        rows = []
        counts = {status: 0 for status in SaleStatus}
        total_revenue = total_book_value = Fraction(0)
        for sale in query.order_by(AssetSale.sale_date.desc(), AssetSale.id.desc()).all():
            # Gain or loss against the book value on the day of the sale
            book_value = DepreciationCalculator.for_asset(sale.asset, sale.sale_date).current_value
            gain_loss = Fraction(sale.sale_price) - book_value
            row = sale.to_dict(include_audit_fields=False)
            row.update({
                'asset_tag': sale.asset.asset_tag,
                'asset_name': sale.asset.name,
                'sold_by': sale.sold_by.username if sale.sold_by else None,
                'book_value_at_sale': _money(book_value),
                'gain_loss': _money(gain_loss),
                'is_profit': gain_loss > 0,
            })
            rows.append(row)
            counts[sale.status] += 1
            if sale.status == SaleStatus.COMPLETED:
                total_revenue += Fraction(sale.sale_price)
                total_book_value += book_value

        summary = {
            'total': len(rows),
            'completed': counts[SaleStatus.COMPLETED],
            'cancelled': counts[SaleStatus.CANCELLED],
            'total_revenue': _money(total_revenue),
            'total_book_value': _money(total_book_value),
            'total_gain_loss': _money(total_revenue - total_book_value),
        }
        return rows, summary
