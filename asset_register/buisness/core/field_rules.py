"""
Field rules shared by the workflows

Each rule raises ValidationError naming the offending field.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional
from asset_register.buisness.core.errors import ValidationError


def require_not_future(value: Optional[date], clock, field: str) -> date:
    if value is None:
        raise ValidationError(f"{field} is required", field=field)
    if value > clock.today():
        raise ValidationError(f"{field} cannot be in the future", field=field)
    return value


def require_length(text: Optional[str], field: str, min_length: int = 1, max_length: Optional[int] = None) -> str:
    """
    Only the length check ignores surrounding whitespace. The text is returned
    unchanged and callers store it verbatim.
    """
    length = len((text or '').strip())
    if length < min_length:
        if min_length <= 1:
            raise ValidationError(f"{field} is required", field=field)
        raise ValidationError(f"{field} must be at least {min_length} characters", field=field)
    if max_length is not None and length > max_length:
        raise ValidationError(f"{field} may not exceed {max_length} characters", field=field)
    return text


def require_photo(photo_id: Optional[int], file_store, field: str) -> int:
    if photo_id is None or not file_store.exists(photo_id):
        raise ValidationError(f"{field} is required", field=field)
    return photo_id


# Asset.value and AssetSale.sale_price are Numeric(15, 2)
MONEY_PLACES = 2
MONEY_INTEGER_DIGITS = 13
_CENT = Decimal(1).scaleb(-MONEY_PLACES)


def money_problem(value: Decimal) -> Optional[str]:
    """Why ``value`` cannot be stored exactly as money, or None when it can"""
    if not value.is_finite() or value < 0:
        return "must be a number >= 0"
    if value != 0 and value.adjusted() >= MONEY_INTEGER_DIGITS:
        return f"must have at most {MONEY_INTEGER_DIGITS} digits before the decimal point"
    if value.quantize(_CENT) != value:
        return f"must have at most {MONEY_PLACES} decimal places"
    return None


def require_money(value, field: str) -> Decimal:
    if value in (None, ''):
        raise ValidationError(f"{field} is required", field=field)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", field=field)
    problem = money_problem(amount)
    if problem:
        raise ValidationError(f"{field} {problem}", field=field)
    return amount
