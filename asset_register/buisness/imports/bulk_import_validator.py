"""
BulkImportValidator - all-or-nothing asset creation from comma-separated text

Grammar (kept narrow for compatibility with existing exports):
    name,category,unit_id,value,purchasedate,usefullife,status
One record per line, no quoting or escaping, fields trimmed, blank lines ignored.

Validation collects every row error before deciding; a batch with any error
creates nothing.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
from asset_register.data.core.asset_info.asset_status import AssetStatus, CREATABLE_STATUSES
from asset_register.buisness.core.asset_registry import AssetCandidate
from asset_register.buisness.core.errors import FormatError
from asset_register.buisness.core.field_rules import money_problem
from asset_register.logger import get_logger

logger = get_logger("asset_register.imports")

COLUMNS = ('name', 'category', 'unit_id', 'value', 'purchasedate', 'usefullife', 'status')
HEADER = ','.join(COLUMNS)

DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
INTEGER_PATTERN = re.compile(r'^[+-]?\d+$')


@dataclass
class RowError:
    row: int
    field: Optional[str]
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {'row': self.row, 'field': self.field, 'message': self.message}

    def __str__(self):
        if self.field:
            return f"Row {self.row} [{self.field}]: {self.message}"
        return f"Row {self.row}: {self.message}"


@dataclass
class ImportBatch:
    """Parsed candidates plus every row error found"""
    candidates: List[AssetCandidate] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def error_rows(self) -> List[int]:
        return sorted({e.row for e in self.errors})


@dataclass
class ImportResult:
    created: List[Any] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ok': self.ok,
            'created_count': len(self.created),
            'created': [
                {'id': asset.id, 'asset_tag': asset.asset_tag, 'name': asset.name}
                for asset in self.created
            ],
            'error_count': len(self.errors),
            'errors': [e.to_dict() for e in self.errors],
        }


class BulkImportValidator:

    def __init__(self, registry, identity=None):
        self.registry = registry
        self.identity = identity

    def parse(self, text: str) -> ImportBatch:
        """
        Parse and validate without touching the registry.

        Row numbers count lines from the header (header = row 1); blank lines
        keep their number but are skipped.

        Raises:
            FormatError: no header, or the header is not exactly HEADER
        """
        lines = (text or '').splitlines()
        header_index = next((i for i, line in enumerate(lines) if line.strip()), None)
        if header_index is None:
            raise FormatError(f"Import is empty; expected header {HEADER}")

        header = lines[header_index].strip().lower()
        if header != HEADER:
            logger.warning(f"Import rejected: header {header!r} does not match")
            raise FormatError(f"Invalid header; expected {HEADER}")

        batch = ImportBatch()
        data_rows = 0
        for offset, line in enumerate(lines[header_index + 1:], start=2):
            if not line.strip():
                continue
            data_rows += 1
            candidate, errors = self._parse_row(offset, line)
            if errors:
                batch.errors.extend(errors)
            else:
                batch.candidates.append(candidate)

        if data_rows == 0:
            raise FormatError("Import contains a header but no data rows")

        return batch

    def validate_and_import(self, text: str) -> ImportResult:
        """
        Parse, then create every row in one registry call, or nothing.

        Row errors come back in the result; registry failures (unknown unit,
        database errors) propagate after the registry has rolled back.
        """
        batch = self.parse(text)
        if not batch.ok:
            logger.warning(
                f"Import rejected: {len(batch.errors)} errors in rows {', '.join(map(str, batch.error_rows))}"
            )
            return ImportResult(created=[], errors=batch.errors)

        actor_id = self.identity.current_actor_id() if self.identity is not None else None
        created = self.registry.create_batch(batch.candidates, created_by_id=actor_id)
        logger.info(f"Import created {len(created)} assets")
        return ImportResult(created=created, errors=[])

    def _parse_row(self, row: int, line: str):
        fields = [value.strip() for value in line.split(',')]
        if len(fields) != len(COLUMNS):
            return None, [RowError(row, None, f"Expected {len(COLUMNS)} fields, found {len(fields)}")]

        name, category, unit_text, value_text, date_text, life_text, status_text = fields
        errors = []

        if not name:
            errors.append(RowError(row, 'name', "Name is required"))

        unit_id = None
        if unit_text:
            if INTEGER_PATTERN.match(unit_text) and int(unit_text) >= 1:
                unit_id = int(unit_text)
            else:
                errors.append(RowError(row, 'unit_id', f"Invalid unit_id {unit_text!r}; must be a positive integer or empty"))

        value, problem = self._parse_value(value_text)
        if problem:
            errors.append(RowError(row, 'value', f"Invalid value {value_text!r}; {problem}"))

        purchase_date = self._parse_date(date_text)
        if purchase_date is None:
            errors.append(RowError(row, 'purchasedate', f"Invalid purchase date {date_text!r}; expected YYYY-MM-DD"))

        useful_life = None
        if INTEGER_PATTERN.match(life_text) and int(life_text) >= 0:
            useful_life = int(life_text)
        else:
            errors.append(RowError(row, 'usefullife', f"Invalid useful life {life_text!r}; must be a whole number >= 0"))

        status = AssetStatus.parse(status_text)
        if status is None:
            errors.append(RowError(
                row, 'status',
                f"Unknown status {status_text!r}; expected one of {', '.join(s.value for s in AssetStatus)}"
            ))
        elif status not in CREATABLE_STATUSES:
            errors.append(RowError(row, 'status', f"New assets cannot start as {status.value}"))

        if errors:
            return None, errors

        return AssetCandidate(
            name=name,
            category=category,
            unit_id=unit_id,
            value=value,
            purchase_date=purchase_date,
            useful_life=useful_life,
            status=status,
            row=row,
        ), []

    @staticmethod
    def _parse_value(text: str):
        """Returns (value, None) or (None, reason); the value must fit Asset.value exactly"""
        try:
            value = Decimal(text)
        except (InvalidOperation, ValueError):
            return None, "must be a number >= 0"
        problem = money_problem(value)
        if problem:
            return None, problem
        return value, None

    @staticmethod
    def _parse_date(text: str) -> Optional[date]:
        if not DATE_PATTERN.match(text):
            return None
        try:
            return datetime.strptime(text, '%Y-%m-%d').date()
        except ValueError:
            return None
