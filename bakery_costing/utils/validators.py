"""
Input validation functions for snapshot records.

This module validates ingredient and recipe records before they are turned
into engine snapshots (e.g. when loading an exported JSON file):
- Numeric validation (positive, non-negative)
- String validation (required fields, length)
- Unit validation
- Complete record validation (ingredient, recipe)

Record validators collect every problem instead of stopping at the first one,
so a bad import file can be fixed in one pass.
"""

import math
from typing import Any, Optional, Tuple

from bakery_costing.services.exceptions import UnknownUnit
from bakery_costing.services.unit_converter import normalize_unit

from .constants import (
    ERROR_INVALID_NON_NEGATIVE,
    ERROR_INVALID_NUMBER,
    ERROR_INVALID_POSITIVE,
    ERROR_INVALID_UNIT,
    ERROR_REQUIRED_FIELD,
    MAX_NAME_LENGTH,
    MAX_PRICE,
    MAX_QUANTITY,
)


def _field(data: dict, snake: str, camel: Optional[str] = None) -> Any:
    if snake in data:
        return data[snake]
    if camel is not None:
        return data.get(camel)
    return None


def _as_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, (bool, str)):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def validate_required_string(value: Optional[str], field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a string field is not empty.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is None or not isinstance(value, str) or value.strip() == "":
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    return True, ""


def validate_string_length(
    value: str, max_length: int, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that a string doesn't exceed maximum length.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value and len(value) > max_length:
        return False, f"{field_name}: Must be {max_length} characters or less"
    return True, ""


def validate_positive_number(
    value: Any, field_name: str = "Field", max_value: float = MAX_QUANTITY
) -> Tuple[bool, str]:
    """
    Validate that a value is a finite number greater than zero.

    Returns:
        Tuple of (is_valid, error_message)
    """
    number = _as_number(value)
    if number is None:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if number <= 0:
        return False, f"{field_name}: {ERROR_INVALID_POSITIVE}"
    if number > max_value:
        return False, f"{field_name}: Must be {max_value:g} or less"
    return True, ""


def validate_non_negative_number(
    value: Any, field_name: str = "Field", max_value: float = MAX_QUANTITY
) -> Tuple[bool, str]:
    """
    Validate that a value is a finite number greater than or equal to zero.

    Returns:
        Tuple of (is_valid, error_message)
    """
    number = _as_number(value)
    if number is None:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if number < 0:
        return False, f"{field_name}: {ERROR_INVALID_NON_NEGATIVE}"
    if number > max_value:
        return False, f"{field_name}: Must be {max_value:g} or less"
    return True, ""


def validate_unit(unit: Any, field_name: str = "Unit") -> Tuple[bool, str]:
    """
    Validate that a unit is in the unit table (aliases accepted).

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not unit:
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"

    try:
        normalize_unit(unit)
    except UnknownUnit:
        return False, f"{field_name}: {ERROR_INVALID_UNIT} '{unit}'"

    return True, ""


def validate_ingredient_data(data: dict) -> Tuple[bool, list]:
    """
    Validate all fields for an ingredient snapshot record.

    Args:
        data: Dictionary containing ingredient fields (snake_case or camelCase)

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []
    label = f"Ingredient {data.get('id', '?')}"

    if data.get("id") is None:
        errors.append(f"{label}: ID: {ERROR_REQUIRED_FIELD}")

    is_valid, error = validate_required_string(data.get("name"), "Name")
    if not is_valid:
        errors.append(f"{label}: {error}")
    else:
        is_valid, error = validate_string_length(data["name"], MAX_NAME_LENGTH, "Name")
        if not is_valid:
            errors.append(f"{label}: {error}")

    is_valid, error = validate_positive_number(
        _field(data, "pack_quantity", "packQuantity"), "Pack Quantity"
    )
    if not is_valid:
        errors.append(f"{label}: {error}")

    is_valid, error = validate_unit(_field(data, "pack_unit", "packUnit"), "Pack Unit")
    if not is_valid:
        errors.append(f"{label}: {error}")

    is_valid, error = validate_non_negative_number(
        _field(data, "pack_price", "packPrice"), "Pack Price", MAX_PRICE
    )
    if not is_valid:
        errors.append(f"{label}: {error}")

    density = _field(data, "density_g_per_ml", "densityGPerMl")
    if density is not None:
        is_valid, error = validate_positive_number(density, "Density")
        if not is_valid:
            errors.append(f"{label}: {error}")

    return len(errors) == 0, errors


def _validate_lines(lines: Any, ref_key: Tuple[str, str], label: str, errors: list) -> None:
    if not isinstance(lines, list):
        errors.append(f"{label}: must be a list")
        return
    for index, line in enumerate(lines, start=1):
        line_label = f"{label} line {index}"
        if not isinstance(line, dict):
            errors.append(f"{line_label}: must be an object")
            continue
        if _field(line, *ref_key) is None:
            errors.append(f"{line_label}: {ref_key[0]}: {ERROR_REQUIRED_FIELD}")
        is_valid, error = validate_non_negative_number(line.get("quantity"), "Quantity")
        if not is_valid:
            errors.append(f"{line_label}: {error}")
        is_valid, error = validate_unit(line.get("unit"), "Unit")
        if not is_valid:
            errors.append(f"{line_label}: {error}")


def validate_recipe_data(data: dict) -> Tuple[bool, list]:
    """
    Validate all fields for a recipe snapshot record, including its lines.

    Args:
        data: Dictionary containing recipe fields (snake_case or camelCase)

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []
    label = f"Recipe {data.get('id', '?')}"

    if data.get("id") is None:
        errors.append(f"{label}: ID: {ERROR_REQUIRED_FIELD}")

    is_valid, error = validate_required_string(data.get("name"), "Recipe Name")
    if not is_valid:
        errors.append(f"{label}: {error}")
    else:
        is_valid, error = validate_string_length(data["name"], MAX_NAME_LENGTH, "Recipe Name")
        if not is_valid:
            errors.append(f"{label}: {error}")

    is_valid, error = validate_positive_number(
        _field(data, "yield_quantity", "yieldQuantity"), "Yield Quantity"
    )
    if not is_valid:
        errors.append(f"{label}: {error}")

    is_valid, error = validate_unit(_field(data, "yield_unit", "yieldUnit"), "Yield Unit")
    if not is_valid:
        errors.append(f"{label}: {error}")

    item_key = ("ingredient_id", "ingredientId")
    items = _field(data, "items", "ingredients")
    if items is not None:
        _validate_lines(items, item_key, f"{label} items", errors)

    sections = data.get("sections")
    if sections is not None:
        if not isinstance(sections, list):
            errors.append(f"{label} sections: must be a list")
        else:
            for index, section in enumerate(sections, start=1):
                if not isinstance(section, dict):
                    errors.append(f"{label} section {index}: must be an object")
                    continue
                section_items = _field(section, "items", "ingredients") or []
                _validate_lines(section_items, item_key, f"{label} section {index}", errors)

    sub_recipes = _field(data, "sub_recipes", "subRecipes")
    if sub_recipes is not None:
        _validate_lines(sub_recipes, ("sub_recipe_id", "subRecipeId"), f"{label} sub-recipes", errors)

    selling_price = _field(data, "selling_price", "sellingPrice")
    if selling_price is not None:
        is_valid, error = validate_non_negative_number(selling_price, "Selling Price", MAX_PRICE)
        if not is_valid:
            errors.append(f"{label}: {error}")

    return len(errors) == 0, errors
