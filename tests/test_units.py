"""Tests for the unit-of-measure registry."""
from decimal import Decimal

import pytest

from stockledger.error_handlers import ValidationFailed
from stockledger.units import (
    UNITS,
    DEFAULT_UNIT,
    normalize_unit,
    get_unit_label,
    allows_fraction,
    validate_quantity,
)


class TestUnitRegistry:
    """Tests for unit lookups."""

    def test_known_units(self):
        """Every unit the product form offers is registered."""
        assert set(UNITS) == {"adet", "kg", "lt", "mt", "kutu", "paket"}
        assert DEFAULT_UNIT == "adet"

    def test_normalize_is_case_insensitive(self):
        assert normalize_unit("KG") == "kg"
        assert normalize_unit(" Lt ") == "lt"

    def test_normalize_unknown_unit(self):
        assert normalize_unit("gallon") is None
        assert normalize_unit("") is None
        assert normalize_unit(None) is None

    def test_labels(self):
        assert get_unit_label("adet") == "Piece"
        assert get_unit_label("kg") == "Kilogram"
        # Unknown codes fall back to the raw code
        assert get_unit_label("gallon") == "gallon"

    @pytest.mark.parametrize("unit", ["kg", "lt", "mt"])
    def test_measured_units_allow_fractions(self, unit):
        assert allows_fraction(unit) is True

    @pytest.mark.parametrize("unit", ["adet", "kutu", "paket", "unknown"])
    def test_counted_units_do_not_allow_fractions(self, unit):
        assert allows_fraction(unit) is False


class TestValidateQuantity:
    """Tests for quantity/unit compatibility."""

    def test_fraction_accepted_for_kg(self):
        validate_quantity("kg", Decimal("2.5"))

    def test_whole_number_accepted_for_pieces(self):
        validate_quantity("adet", Decimal("3"))
        validate_quantity("adet", Decimal("3.000"))

    def test_fraction_rejected_for_pieces(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_quantity("adet", Decimal("2.5"))

        assert exc_info.value.status_code == 400
        assert exc_info.value.details == {"unit": "adet", "quantity": 2.5}
