"""Unit tests for unit conversion."""

from types import SimpleNamespace

import pytest

from tramboory.services.unit_converter import (
    UnitConversionError,
    conversion_factor,
    convert,
    to_base_unit,
)

SODA = SimpleNamespace(
    base_unit="l",
    alternative_units=[{"code": "caja", "name": "Caja", "conversionFactor": 7.2}],
)


def test_same_unit():
    assert conversion_factor("kg", "kg") == 1.0


def test_standard_tables():
    assert convert(2, "kg", "g") == 2000
    assert convert(500, "ml", "l") == 0.5
    assert convert(1, "gal", "l") == 3.78541


def test_product_units_win():
    assert convert(2, "caja", "l", "l", SODA.alternative_units) == 14.4
    assert convert(14.4, "l", "caja", "l", SODA.alternative_units) == 2


def test_to_base_unit():
    assert to_base_unit(3, "caja", SODA) == 21.6
    assert to_base_unit(1500, "ml", SODA) == 1.5


def test_unknown_conversion():
    with pytest.raises(UnitConversionError) as exc_info:
        convert(1, "kg", "l")
    assert exc_info.value.status_code == 400
    assert "kg" in exc_info.value.detail
