"""
Straight-line depreciation

Pure computation over (value, useful life in years, purchase date, as-of
date). Amounts are exact fractions so accumulated + current always adds back
to the original value, and the percentage is floored, never rounded.
"""

import calendar
import math
from dataclasses import dataclass
from datetime import date
from fractions import Fraction
from typing import Any, Dict, List, Optional


def _to_fraction(value) -> Fraction:
    # Fraction(str(...)) keeps Decimal("1500.10") exact
    if isinstance(value, Fraction):
        return value
    if isinstance(value, int):
        return Fraction(value)
    return Fraction(str(value))


def _money(amount: Fraction) -> float:
    return round(float(amount), 2)


def add_months(start: date, months: int) -> date:
    """start + months, clamping the day to the end of a shorter month"""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


@dataclass
class DepreciationResult:
    value: Fraction
    useful_life: int
    purchase_date: date
    as_of: date
    elapsed_months: int
    monthly_depreciation: Fraction
    accumulated_depreciation: Fraction
    current_value: Fraction
    depreciation_percentage: int

    @property
    def total_months(self) -> int:
        return self.useful_life * 12

    @property
    def remaining_months(self) -> int:
        return max(0, self.total_months - self.elapsed_months)

    @property
    def fully_depreciated(self) -> bool:
        return self.value > 0 and self.current_value == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'value': _money(self.value),
            'useful_life': self.useful_life,
            'purchase_date': self.purchase_date.isoformat(),
            'as_of': self.as_of.isoformat(),
            'elapsed_months': self.elapsed_months,
            'remaining_months': self.remaining_months,
            'monthly_depreciation': _money(self.monthly_depreciation),
            'accumulated_depreciation': _money(self.accumulated_depreciation),
            'current_value': _money(self.current_value),
            'depreciation_percentage': self.depreciation_percentage,
            'fully_depreciated': self.fully_depreciated,
        }


@dataclass
class ScheduleEntry:
    sequence: int
    date: date
    amount: Fraction
    accumulated: Fraction
    book_value: Fraction

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sequence': self.sequence,
            'date': self.date.isoformat(),
            'amount': _money(self.amount),
            'accumulated': _money(self.accumulated),
            'book_value': _money(self.book_value),
        }


class DepreciationCalculator:

    @staticmethod
    def elapsed_months(purchase_date: date, as_of: date) -> int:
        """Whole calendar months from purchase_date to as_of, never negative"""
        months = (as_of.year - purchase_date.year) * 12 + (as_of.month - purchase_date.month)
        if as_of.day < purchase_date.day:
            months -= 1
        return max(0, months)

    @staticmethod
    def monthly_depreciation(value, useful_life: int) -> Fraction:
        if not useful_life or useful_life <= 0:
            return Fraction(0)
        return _to_fraction(value) / (useful_life * 12)

    @classmethod
    def compute(cls, value, useful_life: int, purchase_date: date, as_of: date) -> DepreciationResult:
        value = _to_fraction(value)
        useful_life = int(useful_life or 0)
        elapsed = cls.elapsed_months(purchase_date, as_of)
        monthly = cls.monthly_depreciation(value, useful_life)

        accumulated = min(max(monthly * elapsed, Fraction(0)), max(value, Fraction(0)))
        current = max(value - accumulated, Fraction(0))
        percentage = math.floor(accumulated / value * 100) if value > 0 else 0

        return DepreciationResult(
            value=value,
            useful_life=useful_life,
            purchase_date=purchase_date,
            as_of=as_of,
            elapsed_months=elapsed,
            monthly_depreciation=monthly,
            accumulated_depreciation=accumulated,
            current_value=current,
            depreciation_percentage=percentage,
        )

    @classmethod
    def for_asset(cls, asset, as_of: date) -> DepreciationResult:
        return cls.compute(asset.value, asset.useful_life, asset.purchase_date, as_of)

    @classmethod
    def schedule(cls, value, useful_life: int, purchase_date: date, months: Optional[int] = None) -> List[ScheduleEntry]:
        """
        Month-by-month plan. Entry n falls n months after purchase; the last
        entry never takes the book value below zero.
        """
        value = _to_fraction(value)
        monthly = cls.monthly_depreciation(value, useful_life)
        total = int(useful_life or 0) * 12
        if months is not None:
            total = min(total, max(0, months))

        entries = []
        accumulated = Fraction(0)
        for sequence in range(1, total + 1):
            remaining = value - accumulated
            if remaining <= 0:
                break
            amount = min(monthly, remaining)
            accumulated += amount
            entries.append(ScheduleEntry(
                sequence=sequence,
                date=add_months(purchase_date, sequence),
                amount=amount,
                accumulated=accumulated,
                book_value=value - accumulated,
            ))
        return entries
