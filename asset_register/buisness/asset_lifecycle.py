"""
AssetLifecycleEngine - Domain Facade over the lifecycle workflows

Holds the injected collaborators, resolves the acting user through the
IdentityProvider, asks AuthorizationPolicy before every operation and then
delegates to the workflow that owns it. The workflows never see identity
beyond the actor ids passed to them.
"""

from datetime import date
from typing import Any, Dict, Optional
from flask import current_app
from asset_register.data.core.asset_info.asset import Asset
from asset_register.buisness.core.asset_registry import AssetRegistry
from asset_register.buisness.core.authorization import AuthorizationPolicy, Operation, Scope
from asset_register.buisness.core.clock import SystemClock
from asset_register.buisness.core.errors import AuthorizationError
from asset_register.buisness.core.file_store import LocalFileStore
from asset_register.buisness.core.identity import FlaskLoginIdentity
from asset_register.buisness.core.unit_directory import UnitDirectory
from asset_register.buisness.transfers.transfer_workflow import TransferWorkflow
from asset_register.buisness.loans.loan_workflow import LoanWorkflow
from asset_register.buisness.incidents.incident_service import IncidentService
from asset_register.buisness.sales.sale_service import SaleService
from asset_register.buisness.imports.bulk_import_validator import BulkImportValidator, ImportResult
from asset_register.buisness.depreciation.calculator import DepreciationCalculator, DepreciationResult
from asset_register.buisness.reports.report_aggregator import Report, ReportAggregator, ReportFilters
from asset_register.logger import get_logger

logger = get_logger("asset_register.domain.engine")


class AssetLifecycleEngine:
    """
    Pattern: Domain Facade

    Example:
        engine = AssetLifecycleEngine.from_app()
        movement = engine.request_transfer(asset_id=4, to_unit_id=2, notes="Moving to HQ")
        engine.approve_transfer(movement.id)
    """

    def __init__(self, identity, file_store, clock=None, registry=None, units=None, tag_prefix: str = "AST"):
        self.identity = identity
        self.clock = clock or SystemClock()
        self.file_store = file_store
        self.registry = registry or AssetRegistry(tag_prefix=tag_prefix, clock=self.clock)
        self.units = units or UnitDirectory()

        self.transfers = TransferWorkflow(self.registry, self.units, self.identity, self.clock)
        self.loans = LoanWorkflow(self.registry, self.identity, self.clock, self.file_store)
        self.incidents = IncidentService(self.registry, self.loans, self.clock, self.file_store)
        self.sales = SaleService(self.registry, self.clock, self.file_store)
        self.importer = BulkImportValidator(self.registry, self.identity)
        self.reports = ReportAggregator(self.clock)

    @classmethod
    def from_app(cls, app=None, identity=None, clock=None) -> 'AssetLifecycleEngine':
        """Build an engine from the Flask config; identity defaults to the logged-in user"""
        app = app or current_app
        return cls(
            identity=identity or FlaskLoginIdentity(),
            file_store=LocalFileStore(app.config['FILE_STORE_ROOT'], app.config['MAX_PHOTO_BYTES']),
            clock=clock,
            tag_prefix=app.config.get('ASSET_TAG_PREFIX', 'AST'),
        )

    # ----------------------------------------------------------- authorization

    def _actor(self):
        actor = self.identity.current_actor()
        if actor is None:
            raise AuthorizationError("Authentication required")
        return actor

    def _authorize(self, operation: str, unit_id: Optional[int] = None, owner_id: Optional[int] = None):
        actor = self._actor()
        try:
            AuthorizationPolicy.check(actor, operation, unit_id=unit_id, owner_id=owner_id)
        except AuthorizationError:
            logger.warning(f"Denied {operation} for {actor.username} (unit={unit_id}, owner={owner_id})")
            raise
        return actor

    def _scoped_unit(self, operation: str, unit_filter: Optional[int]) -> Optional[int]:
        """Unit-scoped viewers only ever see their own unit"""
        actor = self._actor()
        if unit_filter is None and AuthorizationPolicy.scope_for(actor.role, operation) == Scope.OWN_UNIT:
            unit_filter = actor.unit_id
        self._authorize(operation, unit_id=unit_filter)
        return unit_filter

    # --------------------------------------------------------------- transfers

    def request_transfer(self, asset_id: int, to_unit_id: int, notes: Optional[str] = None):
        asset = self.registry.get(asset_id)
        self._authorize(Operation.TRANSFER_REQUEST, unit_id=asset.unit_id)
        return self.transfers.request_transfer(asset_id, to_unit_id, notes)

    def approve_transfer(self, movement_id: int):
        movement = self.transfers.get(movement_id)
        actor = self._authorize(Operation.TRANSFER_DECIDE, unit_id=movement.to_unit_id)
        return self.transfers.approve(movement_id, actor.id)

    def reject_transfer(self, movement_id: int, reason: str):
        movement = self.transfers.get(movement_id)
        actor = self._authorize(Operation.TRANSFER_DECIDE, unit_id=movement.to_unit_id)
        return self.transfers.reject(movement_id, actor.id, reason)

    def list_pending_transfers(self, unit_filter: Optional[int] = None):
        unit_filter = self._scoped_unit(Operation.TRANSFER_VIEW, unit_filter)
        return self.transfers.list_pending(unit_filter)

    def transfer_history(self, asset_id: int):
        asset = self.registry.get(asset_id)
        self._authorize(Operation.TRANSFER_VIEW, unit_id=asset.unit_id)
        return self.transfers.history(asset_id)

    # ------------------------------------------------------------------- loans

    def request_loan(self, asset_id: int, expected_return_date: date, purpose: str, borrower_id: Optional[int] = None):
        asset = self.registry.get(asset_id)
        actor = self._authorize(Operation.LOAN_REQUEST, unit_id=asset.unit_id)
        if borrower_id is None:
            borrower_id = actor.id
        elif borrower_id != actor.id and AuthorizationPolicy.scope_for(actor.role, Operation.LOAN_REQUEST) != Scope.GLOBAL:
            raise AuthorizationError("Only global administrators may request loans for another borrower")
        return self.loans.request_loan(asset_id, borrower_id, expected_return_date, purpose)

    def approve_loan(self, loan_id: int, approval_date: date, proof_photo_id: Optional[int]):
        loan = self.loans.get(loan_id)
        actor = self._authorize(Operation.LOAN_DECIDE, unit_id=loan.asset.unit_id)
        return self.loans.approve(loan_id, actor.id, approval_date, proof_photo_id)

    def reject_loan(self, loan_id: int, approval_date: date, reason: str):
        loan = self.loans.get(loan_id)
        actor = self._authorize(Operation.LOAN_DECIDE, unit_id=loan.asset.unit_id)
        return self.loans.reject(loan_id, actor.id, approval_date, reason)

    def list_pending_loans(self, unit_filter: Optional[int] = None):
        unit_filter = self._scoped_unit(Operation.LOAN_VIEW, unit_filter)
        return self.loans.list_pending(unit_filter)

    def submit_loan_return(self, loan_id: int, return_date: date, return_photo_id: Optional[int], notes: Optional[str] = None):
        loan = self.loans.get(loan_id)
        actor = self._authorize(Operation.LOAN_RETURN, unit_id=loan.asset.unit_id, owner_id=loan.borrower_id)
        return self.loans.submit_return(loan_id, actor.id, return_date, return_photo_id, notes)

    def approve_loan_return(self, loan_id: int, verification_date: date, condition, notes: Optional[str] = None):
        loan = self.loans.get(loan_id)
        actor = self._authorize(Operation.LOAN_RETURN_DECIDE, unit_id=loan.asset.unit_id)
        return self.loans.approve_return(loan_id, actor.id, verification_date, condition, notes)

    def reject_loan_return(self, loan_id: int, verification_date: date, reason: str):
        loan = self.loans.get(loan_id)
        actor = self._authorize(Operation.LOAN_RETURN_DECIDE, unit_id=loan.asset.unit_id)
        return self.loans.reject_return(loan_id, actor.id, verification_date, reason)

    def report_loan_lost(self, loan_id: int, loss_date: date, description: str, photo_id: Optional[int]):
        loan = self.loans.get(loan_id)
        actor = self._authorize(Operation.LOAN_REPORT_LOST, unit_id=loan.asset.unit_id, owner_id=loan.borrower_id)
        return self.loans.report_lost(loan_id, actor.id, loss_date, description, photo_id)

    # ------------------------------------------------------------------- sales

    def sell_asset(self, asset_id: int, sale_price, sale_date: date, buyer_name: str, reason: str,
                   buyer_contact: Optional[str] = None, notes: Optional[str] = None,
                   proof_photo_id: Optional[int] = None):
        asset = self.registry.get(asset_id)
        actor = self._authorize(Operation.SALE_RECORD, unit_id=asset.unit_id)
        return self.sales.sell(asset_id, actor.id, sale_price, sale_date, buyer_name, reason,
                               buyer_contact=buyer_contact, notes=notes, proof_photo_id=proof_photo_id)

    def cancel_sale(self, sale_id: int, reason: Optional[str] = None):
        sale = self.sales.get(sale_id)
        actor = self._authorize(Operation.SALE_CANCEL, unit_id=sale.asset.unit_id)
        return self.sales.cancel(sale_id, actor.id, reason)

    def list_sales(self, unit_filter: Optional[int] = None, status=None):
        unit_filter = self._scoped_unit(Operation.SALE_VIEW, unit_filter)
        return self.sales.list(unit_id=unit_filter, status=status)

    def list_sellable_assets(self, unit_filter: Optional[int] = None):
        unit_filter = self._scoped_unit(Operation.SALE_VIEW, unit_filter)
        return self.sales.list_sellable(unit_filter)

    # --------------------------------------------------------------- incidents

    def file_incident(self, asset_id: int, type, description: str, date: date, evidence_photo_id: Optional[int]):
        asset = self.registry.get(asset_id)
        actor = self._authorize(Operation.INCIDENT_FILE, unit_id=asset.unit_id)
        return self.incidents.file_report(asset_id, actor.id, type, description, date, evidence_photo_id)

    # ------------------------------------------------------------------ photos

    def store_photo(self, data: bytes, filename: str, content_type: str):
        actor = self._actor()
        return self.file_store.save(data, filename, content_type, created_by_id=actor.id)

    # ------------------------------------------------------ import / reporting

    def validate_and_import(self, csv_text: str) -> ImportResult:
        self._authorize(Operation.IMPORT)
        return self.importer.validate_and_import(csv_text)

    def compute_depreciation(self, asset, as_of_date: Optional[date] = None) -> DepreciationResult:
        if not isinstance(asset, Asset):
            asset = self.registry.get(asset)
        self._authorize(Operation.REPORT_VIEW, unit_id=asset.unit_id)
        return DepreciationCalculator.for_asset(asset, as_of_date or self.clock.today())

    def depreciation_schedule(self, asset_id: int, months: Optional[int] = None):
        asset = self.registry.get(asset_id)
        self._authorize(Operation.REPORT_VIEW, unit_id=asset.unit_id)
        return DepreciationCalculator.schedule(asset.value, asset.useful_life, asset.purchase_date, months)

    def build_report(self, domain: str, filters: Optional[Dict[str, Any]] = None) -> Report:
        filters = ReportFilters.from_dict(filters) if not isinstance(filters, ReportFilters) else filters
        self._authorize(Operation.REPORT_VIEW, unit_id=filters.unit_id)
        return self.reports.build(domain, filters)
