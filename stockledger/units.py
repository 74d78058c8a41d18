"""
Unit-of-measure registry.

Maps unit codes to display labels and whether fractional quantities are
allowed for them.
"""
from decimal import Decimal
from typing import NamedTuple, Optional

from stockledger.error_handlers import ValidationFailed


class UnitInfo(NamedTuple):
    label: str
    allows_fraction: bool


UNITS: dict[str, UnitInfo] = {
    "adet": UnitInfo("Piece", False),
    "kg": UnitInfo("Kilogram", True),
    "lt": UnitInfo("Litre", True),
    "mt": UnitInfo("Metre", True),
    "kutu": UnitInfo("Box", False),
    "paket": UnitInfo("Pack", False),
}

DEFAULT_UNIT = "adet"


def normalize_unit(unit: Optional[str]) -> Optional[str]:
    """Return the registry code for ``unit`` (case-insensitive), or None if unknown."""
    if not unit:
        return None
    code = unit.strip().lower()
    return code if code in UNITS else None


def get_unit_label(unit: str) -> str:
    code = normalize_unit(unit)
    return UNITS[code].label if code else unit


def allows_fraction(unit: str) -> bool:
    code = normalize_unit(unit)
    return bool(code) and UNITS[code].allows_fraction


def is_whole(quantity) -> bool:
    d = Decimal(str(quantity))
    return d == d.to_integral_value()


def validate_quantity(unit: str, quantity) -> None:
    """Reject fractional quantities for units counted in whole items."""
    if not allows_fraction(unit) and not is_whole(quantity):
        raise ValidationFailed(
            f"Unit '{unit}' does not allow fractional quantities",
            details={"unit": unit, "quantity": float(quantity)}
        )
