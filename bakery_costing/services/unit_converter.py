"""
Unit conversion system for the bakery costing engine.

This module provides:
- The unit table (mass, volume and count units with their conversion factors)
- Unit normalisation and domain detection
- Conversions within a domain and, given a density, between mass and volume
- Conversion display helpers

Conversion Strategy:
- Mass units convert through grams (base unit)
- Volume units convert through millilitres (base unit)
- Count units (each, slices) are their own base and never convert to anything else
- Mass <-> volume needs an ingredient density in g/ml; there is no default
"""

import math
from typing import Optional, Tuple

from bakery_costing.services.exceptions import (
    ConversionError,
    DensityRequired,
    IncompatibleUnits,
    InvalidQuantity,
    UnknownUnit,
)
from bakery_costing.utils.constants import (
    BASE_UNITS,
    COUNT_UNITS,
    DOMAIN_COUNT,
    DOMAIN_MASS,
    DOMAIN_VOLUME,
    MASS_UNITS,
    UNIT_ALIASES,
    VOLUME_UNITS,
)


# ============================================================================
# Standard Conversion Tables
# ============================================================================

# Mass conversions to grams (base unit)
MASS_TO_GRAMS = {
    "g": 1.0,
    "kg": 1000.0,
    "mg": 0.001,
    "lb": 453.59237,
    "oz": 28.349523125,
    # Size-based measures for items like eggs and onions (approximate weights)
    "large": 100.0,
    "medium": 60.0,
    "small": 30.0,
}

# Volume conversions to millilitres (base unit)
# Metric culinary measures, UK imperial where applicable
VOLUME_TO_ML = {
    "ml": 1.0,
    "l": 1000.0,
    "tsp": 5.0,
    "tbsp": 15.0,
    "cup": 250.0,
    "floz": 28.4130625,
    "pint": 568.26125,
    "quart": 1136.5225,
    "gallon": 4546.09,
    "pinch": 0.5,
    "dash": 0.25,
}

# Count units are discrete; each is its own base
COUNT_TO_ITEMS = {
    "each": 1.0,
    "slices": 1.0,
}

UNIT_DOMAINS = {
    **{unit: DOMAIN_MASS for unit in MASS_UNITS},
    **{unit: DOMAIN_VOLUME for unit in VOLUME_UNITS},
    **{unit: DOMAIN_COUNT for unit in COUNT_UNITS},
}

_FACTORS = {
    DOMAIN_MASS: MASS_TO_GRAMS,
    DOMAIN_VOLUME: VOLUME_TO_ML,
    DOMAIN_COUNT: COUNT_TO_ITEMS,
}


# ============================================================================
# Unit Detection
# ============================================================================


def normalize_unit(unit: str) -> str:
    """
    Normalise a unit token to its canonical spelling.

    Args:
        unit: Unit string (e.g., "G", " cups ", "fl oz")

    Returns:
        Canonical unit token (e.g., "g", "cup", "floz")

    Raises:
        UnknownUnit: If the token is not in the unit table
    """
    if not isinstance(unit, str):
        raise UnknownUnit(unit)

    key = unit.strip().lower()
    key = UNIT_ALIASES.get(key, key)

    if key not in UNIT_DOMAINS:
        raise UnknownUnit(unit)

    return key


def get_unit_domain(unit: str) -> str:
    """
    Determine the measurement domain of a unit.

    Args:
        unit: Unit string

    Returns:
        Domain: "mass", "volume", "count", or "unknown"
    """
    try:
        return UNIT_DOMAINS[normalize_unit(unit)]
    except UnknownUnit:
        return "unknown"


def get_base_unit(unit: str) -> str:
    """
    Get the base unit a unit converts through.

    Args:
        unit: Unit string

    Returns:
        "g" for mass units, "ml" for volume units, the unit itself for count units

    Raises:
        UnknownUnit: If the unit is not in the unit table
    """
    canonical = normalize_unit(unit)
    return BASE_UNITS.get(UNIT_DOMAINS[canonical], canonical)


def units_compatible(unit1: str, unit2: str) -> bool:
    """
    Check if two units convert into each other without a density.

    Args:
        unit1: First unit
        unit2: Second unit

    Returns:
        True if both units are known and share a base unit
    """
    try:
        return get_base_unit(unit1) == get_base_unit(unit2)
    except UnknownUnit:
        return False


# ============================================================================
# Validation
# ============================================================================


def _as_quantity(value, field_name: str = "Quantity") -> float:
    """Coerce a caller-supplied number to float, rejecting negatives and non-finite values."""
    if isinstance(value, (bool, str)) or value is None:
        raise InvalidQuantity(value, field_name)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidQuantity(value, field_name)
    if not math.isfinite(number) or number < 0:
        raise InvalidQuantity(value, field_name)
    return number


def _as_density(value) -> float:
    density = _as_quantity(value, "Density")
    if density == 0:
        raise InvalidQuantity(value, "Density")
    return density


# ============================================================================
# Conversions
# ============================================================================


def to_base(quantity: float, unit: str) -> Tuple[float, str]:
    """
    Convert a quantity to its domain's base unit.

    Args:
        quantity: Amount in `unit`
        unit: Source unit

    Returns:
        Tuple of (amount, base_unit), e.g. (1000.0, "g") for (1, "kg")
    """
    canonical = normalize_unit(unit)
    amount = _as_quantity(quantity)
    domain = UNIT_DOMAINS[canonical]
    base = BASE_UNITS.get(domain, canonical)
    return amount * _FACTORS[domain][canonical], base


def from_base(
    amount: float,
    base_unit: str,
    to_unit: str,
    density: Optional[float] = None,
) -> float:
    """
    Convert an amount expressed in a base unit to any target unit.

    Crossing between mass and volume applies `ml = g / density` or
    `g = ml * density` before the unit-level factor.

    Args:
        amount: Amount in `base_unit`
        base_unit: "g", "ml", "each" or "slices"
        to_unit: Target unit
        density: Ingredient density in g/ml, needed only to cross mass <-> volume

    Returns:
        Amount in `to_unit`

    Raises:
        IncompatibleUnits: If a count unit is involved on either side
        DensityRequired: If mass <-> volume is needed and density is None
        InvalidQuantity: If density is not a positive finite number
    """
    base = normalize_unit(base_unit)
    target = normalize_unit(to_unit)
    amount = _as_quantity(amount)

    base_domain = UNIT_DOMAINS[base]
    target_domain = UNIT_DOMAINS[target]

    if DOMAIN_COUNT in (base_domain, target_domain):
        if base == target:
            return amount
        raise IncompatibleUnits(base, target)

    if base_domain == target_domain:
        return amount / _FACTORS[target_domain][target]

    if density is None:
        raise DensityRequired(base, target)
    density = _as_density(density)

    if base_domain == DOMAIN_MASS:
        amount_ml = amount * MASS_TO_GRAMS[base] / density
        return amount_ml / VOLUME_TO_ML[target]

    amount_g = amount * VOLUME_TO_ML[base] * density
    return amount_g / MASS_TO_GRAMS[target]


def convert(
    quantity: float,
    from_unit: str,
    to_unit: str,
    density: Optional[float] = None,
) -> float:
    """
    Convert a quantity from one unit to another.

    Args:
        quantity: Finite, non-negative amount to convert
        from_unit: Source unit (e.g., "lb")
        to_unit: Target unit (e.g., "g")
        density: Optional ingredient density (g/ml) for mass <-> volume

    Returns:
        Converted quantity. Returns `quantity` unchanged when both units
        normalise to the same token.

    Raises:
        InvalidQuantity: Negative, non-finite or non-numeric quantity
        UnknownUnit: Unit not in the unit table
        IncompatibleUnits: Count unit mixed with any other unit
        DensityRequired: Mass <-> volume without a density

    Example:
        >>> convert(2, "kg", "g")
        2000.0
        >>> convert(250, "ml", "g", density=1.03)
        257.5
    """
    _as_quantity(quantity)
    source = normalize_unit(from_unit)
    target = normalize_unit(to_unit)

    if source == target:
        return quantity

    if DOMAIN_COUNT in (UNIT_DOMAINS[source], UNIT_DOMAINS[target]):
        raise IncompatibleUnits(source, target)

    amount, base = to_base(quantity, source)
    return from_base(amount, base, target, density)


def try_convert(
    quantity: float,
    from_unit: str,
    to_unit: str,
    density: Optional[float] = None,
) -> Tuple[bool, float, str]:
    """
    Convert a quantity, reporting failure instead of raising.

    Returns:
        Tuple of (success, converted_value, error_message)
        - success: True if conversion successful
        - converted_value: Result (0.0 if failed)
        - error_message: Error description (empty string if successful)
    """
    try:
        return True, convert(quantity, from_unit, to_unit, density), ""
    except ConversionError as e:
        return False, 0.0, str(e)


def format_conversion(
    value: float,
    from_unit: str,
    to_unit: str,
    precision: int = 2,
    density: Optional[float] = None,
) -> str:
    """
    Format a unit conversion for display.

    Args:
        value: Source quantity
        from_unit: Source unit
        to_unit: Target unit
        precision: Decimal places for result
        density: Optional density (g/ml) for mass <-> volume

    Returns:
        Formatted string (e.g., "1 lb = 16.00 oz")
        Returns error message if conversion fails
    """
    success, converted, error = try_convert(value, from_unit, to_unit, density)

    if not success:
        return f"Error: {error}"

    return f"{value:g} {from_unit} = {converted:.{precision}f} {to_unit}"
