"""Density Service - ingredient density resolution for mass <-> volume conversion.

Densities are grams per millilitre. An ingredient's own density always wins;
otherwise its name is looked up in a table of common baking ingredients.
When neither is available the resolver returns None and the converter raises
DensityRequired only if a mass <-> volume conversion is actually attempted.

Example Usage:
    >>> from bakery_costing.services.density_service import resolve_density
    >>> resolve_density(IngredientSnapshot(id=1, name=" Whole Milk ", ...))
    1.03
"""

import math
from typing import Optional

from bakery_costing.services.exceptions import ConversionError
from bakery_costing.services.unit_converter import get_unit_domain, to_base
from bakery_costing.utils.constants import DOMAIN_MASS, DOMAIN_VOLUME


# ============================================================================
# Common Ingredient Densities (g/ml)
# ============================================================================

INGREDIENT_DENSITIES = {
    # Baking ingredients
    "flour": 0.6,
    "plain flour": 0.6,
    "all-purpose flour": 0.6,
    "bread flour": 0.6,
    "cake flour": 0.5,
    "self-raising flour": 0.6,
    "whole wheat flour": 0.6,
    "sugar": 0.85,
    "granulated sugar": 0.85,
    "caster sugar": 0.85,
    "brown sugar": 0.8,
    "icing sugar": 0.6,
    "powdered sugar": 0.6,
    "baking powder": 0.8,
    "baking soda": 0.87,
    "bicarbonate of soda": 0.87,
    "salt": 1.2,
    "table salt": 1.2,
    "sea salt": 1.1,
    "cocoa powder": 0.4,
    "cornstarch": 0.6,
    "corn flour": 0.6,
    "coconut flour": 0.4,
    "almond flour": 0.4,
    "ground almonds": 0.4,
    # Dairy
    "milk": 1.03,
    "whole milk": 1.03,
    "skim milk": 1.03,
    "butter": 0.91,
    "margarine": 0.91,
    "cream": 1.0,
    "heavy cream": 1.0,
    "double cream": 1.0,
    "single cream": 1.0,
    "yogurt": 1.05,
    "greek yogurt": 1.05,
    "cream cheese": 1.0,
    "sour cream": 1.0,
    # Oils and fats
    "vegetable oil": 0.92,
    "olive oil": 0.92,
    "coconut oil": 0.92,
    "sunflower oil": 0.92,
    "rapeseed oil": 0.92,
    "sesame oil": 0.92,
    # Nuts and seeds
    "almonds": 0.6,
    "walnuts": 0.6,
    "pecans": 0.6,
    "hazelnuts": 0.6,
    "peanuts": 0.6,
    "cashews": 0.6,
    "pistachios": 0.6,
    "sesame seeds": 0.6,
    "poppy seeds": 0.6,
    "chia seeds": 0.6,
    "flax seeds": 0.6,
    # Spices and herbs
    "cinnamon": 0.4,
    "ginger": 0.4,
    "nutmeg": 0.4,
    "cloves": 0.4,
    "cardamom": 0.4,
    "vanilla": 0.4,
    "paprika": 0.4,
    "cumin": 0.4,
    "coriander": 0.4,
    "oregano": 0.1,
    "basil": 0.1,
    "thyme": 0.1,
    "rosemary": 0.1,
    "parsley": 0.1,
    # Syrups, spreads and liquids
    "honey": 1.4,
    "maple syrup": 1.3,
    "molasses": 1.4,
    "golden syrup": 1.4,
    "jam": 1.3,
    "jelly": 1.3,
    "peanut butter": 1.0,
    "almond butter": 1.0,
    "tahini": 1.0,
    "vinegar": 1.0,
    "balsamic vinegar": 1.0,
    "lemon juice": 1.0,
    "lime juice": 1.0,
    "orange juice": 1.0,
    "tomato paste": 1.2,
    "tomato puree": 1.0,
    "coconut milk": 1.0,
    "coconut cream": 1.0,
}


def _positive(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def get_ingredient_density(ingredient_name: Optional[str]) -> Optional[float]:
    """
    Look up a density in the common ingredient table.

    Args:
        ingredient_name: Ingredient name, matched case-insensitively after trimming

    Returns:
        Density in g/ml, or None if the name is not in the table
    """
    if not isinstance(ingredient_name, str):
        return None
    return INGREDIENT_DENSITIES.get(ingredient_name.strip().lower())


def resolve_density(ingredient) -> Optional[float]:
    """
    Resolve the density to use for an ingredient.

    Args:
        ingredient: Any object with `name` and `density_g_per_ml` attributes
            (normally an IngredientSnapshot)

    Returns:
        The ingredient's own density if present and positive, else the table
        density for its name, else None. Never raises.
    """
    override = _positive(getattr(ingredient, "density_g_per_ml", None))
    if override is not None:
        return override
    return get_ingredient_density(getattr(ingredient, "name", None))


def density_from_measurement(
    volume_value: Optional[float],
    volume_unit: Optional[str],
    weight_value: Optional[float],
    weight_unit: Optional[str],
) -> Optional[float]:
    """
    Calculate a density in g/ml from a user-friendly measurement.

    Example: "1 cup = 125 g" is (1.0, "cup", 125.0, "g") -> 0.5 g/ml.

    Args:
        volume_value: Volume amount (e.g., 1.0)
        volume_unit: Volume unit (e.g., "cup")
        weight_value: Weight amount (e.g., 125.0)
        weight_unit: Weight unit (e.g., "g")

    Returns:
        Density in grams per millilitre, or None if the measurement is
        incomplete or not a volume/weight pair.
    """
    if not all([volume_value, volume_unit, weight_value, weight_unit]):
        return None

    if get_unit_domain(volume_unit) != DOMAIN_VOLUME or get_unit_domain(weight_unit) != DOMAIN_MASS:
        return None

    try:
        ml, _ = to_base(volume_value, volume_unit)
        grams, _ = to_base(weight_value, weight_unit)
    except ConversionError:
        return None

    if ml <= 0 or grams <= 0:
        return None

    return grams / ml
