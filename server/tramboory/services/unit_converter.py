"""Unit conversion between a product's base unit, its alternative units and standard units."""

from typing import Optional

from ..core.exceptions import ValidationError

VOLUME_CONVERSIONS = {
    ("ml", "l"): 0.001,
    ("l", "ml"): 1000,
    ("l", "gal"): 0.264172,
    ("gal", "l"): 3.78541,
    ("ml", "gal"): 0.000264172,
    ("gal", "ml"): 3785.41,
}

WEIGHT_CONVERSIONS = {
    ("g", "kg"): 0.001,
    ("kg", "g"): 1000,
    ("kg", "lb"): 2.20462,
    ("lb", "kg"): 0.453592,
    ("g", "lb"): 0.00220462,
    ("lb", "g"): 453.592,
}

STANDARD_CONVERSIONS = {**VOLUME_CONVERSIONS, **WEIGHT_CONVERSIONS}


class UnitConversionError(ValidationError):
    """No conversion path exists between two units."""

    def __init__(self, from_unit: str, to_unit: str):
        super().__init__(
            detail=f"No se encontró conversión de {from_unit} a {to_unit}",
            errors={"fromUnit": from_unit, "toUnit": to_unit},
        )


def _product_factor(
    from_unit: str,
    to_unit: str,
    base_unit: Optional[str],
    alternative_units: list[dict],
) -> Optional[float]:
    factors = {unit["code"]: float(unit["conversionFactor"]) for unit in alternative_units}
    if base_unit:
        factors.setdefault(base_unit, 1.0)
    if from_unit not in factors or to_unit not in factors:
        return None
    # both expressed in base units
    return factors[from_unit] / factors[to_unit]


def conversion_factor(
    from_unit: str,
    to_unit: str,
    base_unit: Optional[str] = None,
    alternative_units: Optional[list[dict]] = None,
) -> float:
    """
    Factor that turns a quantity in ``from_unit`` into ``to_unit``.

    Product units win over the standard volume and weight tables.

    Raises:
        UnitConversionError: If no conversion is known
    """
    if from_unit == to_unit:
        return 1.0

    factor = _product_factor(from_unit, to_unit, base_unit, alternative_units or [])
    if factor is not None:
        return factor

    factor = STANDARD_CONVERSIONS.get((from_unit, to_unit))
    if factor is not None:
        return factor

    raise UnitConversionError(from_unit, to_unit)


def convert(
    quantity: float,
    from_unit: str,
    to_unit: str,
    base_unit: Optional[str] = None,
    alternative_units: Optional[list[dict]] = None,
) -> float:
    """Convert ``quantity`` and round to six decimals."""
    factor = conversion_factor(from_unit, to_unit, base_unit, alternative_units)
    return round(quantity * factor, 6)


def to_base_unit(quantity: float, unit: str, product) -> float:
    """Convert a quantity expressed in ``unit`` into the product's base unit."""
    return convert(quantity, unit, product.base_unit, product.base_unit, product.alternative_units)
