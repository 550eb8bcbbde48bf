"""Price display helpers - tax application, USD/TZS conversion, season overlap"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import IntEnum
from typing import Optional, Union

from safari_pricing.core.config import settings
from safari_pricing.core.errors import PricingValidationError

Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")

# Stored codes that mean "exclusive". 4 only appears in legacy rows.
EXCLUSIVE_CODES = frozenset({2, 4})


class TaxBehavior(IntEnum):
    INCLUSIVE = 1
    EXCLUSIVE = 2

    @classmethod
    def parse(cls, value) -> "TaxBehavior":
        """Accept 'inclusive'/'exclusive', a stored integer code, or a member."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and not value.isdigit():
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise PricingValidationError(
                    f"Unknown tax behavior '{value}'", field="tax_behavior"
                )
        code = int(value)
        if code in EXCLUSIVE_CODES:
            return cls.EXCLUSIVE
        if code == cls.INCLUSIVE:
            return cls.INCLUSIVE
        raise PricingValidationError(f"Unknown tax behavior code {code}", field="tax_behavior")


def is_exclusive(code: Optional[int]) -> bool:
    return code in EXCLUSIVE_CODES


def _dec(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def default_rate() -> Decimal:
    return _dec(settings.USD_TO_TZS_RATE)


def apply_tax(amount: Number, tax_behavior: Optional[int], vat_rate: Optional[Number] = None) -> Decimal:
    """Add VAT to tax-exclusive amounts; inclusive amounts pass through."""
    amount = _dec(amount)
    if not is_exclusive(tax_behavior):
        return amount
    rate = _dec(settings.VAT_RATE if vat_rate is None else vat_rate)
    return amount * (1 + rate)


def convert_usd_to_tzs(usd: Number, rate: Optional[Number] = None) -> Decimal:
    return _dec(usd) * (default_rate() if rate is None else _dec(rate))


def convert_tzs_to_usd(tzs: Number, rate: Optional[Number] = None) -> Decimal:
    return _dec(tzs) / (default_rate() if rate is None else _dec(rate))


@dataclass
class DisplayPrice:
    usd: Decimal
    tzs: Decimal


def display_price(usd_price: Number, tzs_price: Number, rate: Optional[Number] = None) -> DisplayPrice:
    """
    Fill in the missing currency of a product price.

    0 means "not set in this currency", so a side that is 0 is derived from
    the other side; when both are set they are returned unmodified.
    """
    usd = _dec(usd_price or 0)
    tzs = _dec(tzs_price or 0)

    if usd > ZERO and tzs == ZERO:
        tzs = convert_usd_to_tzs(usd, rate)
    elif tzs > ZERO and usd == ZERO:
        usd = convert_tzs_to_usd(tzs, rate)

    return DisplayPrice(usd=usd, tzs=tzs)


def unit_price_with_tax(option, currency: str, rate: Optional[Number] = None) -> Decimal:
    """
    Unit price of a product option in `currency`, converted from the other
    currency when unset, with VAT applied per that currency's tax behavior.
    """
    usd = _dec(option.usd_price or 0)
    tzs = _dec(option.tzs_price or 0)

    if currency == "USD":
        base, tax_behavior = usd, option.usd_tax_behavior
        if base == ZERO and tzs > ZERO:
            # Converted amounts keep the tax behavior of the side they came from
            base, tax_behavior = convert_tzs_to_usd(tzs, rate), option.tzs_tax_behavior
    elif currency == "TZS":
        base, tax_behavior = tzs, option.tzs_tax_behavior
        if base == ZERO and usd > ZERO:
            base, tax_behavior = convert_usd_to_tzs(usd, rate), option.usd_tax_behavior
    else:
        raise PricingValidationError(f"Unsupported currency '{currency}'", field="currency")

    return apply_tax(base, tax_behavior)


def seasons_overlap(season_start: date, season_end: date, trip_start: date, trip_end: date) -> bool:
    """Inclusive overlap test between a season and a trip date range."""
    return trip_start <= season_end and trip_end >= season_start


def trip_duration_days(trip_start: Optional[date], trip_end: Optional[date]) -> int:
    """Whole days between trip dates, 0 when either date is missing."""
    if not trip_start or not trip_end:
        return 0
    return abs((trip_end - trip_start).days)
