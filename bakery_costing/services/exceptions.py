"""Service layer exception classes for the bakery costing engine.

This module defines all custom exceptions raised by the conversion, costing,
allergen and snapshot services so callers can tell a bad unit apart from a
missing ingredient or a broken recipe graph.

Exception Hierarchy:
    ServiceError (base)
    ├── CostingError
    │   ├── ConversionError
    │   │   ├── UnknownUnit
    │   │   ├── InvalidQuantity
    │   │   ├── IncompatibleUnits
    │   │   └── DensityRequired
    │   ├── InvalidIngredient
    │   ├── InvalidRecipe
    │   ├── MissingIngredient
    │   ├── MissingSubRecipe
    │   └── CyclicRecipeGraph
    ├── RecipeNotFound
    ├── ValidationError
    └── DatabaseError
"""

from typing import Iterable, Optional


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    pass


class CostingError(ServiceError):
    """Base exception for errors raised while converting, costing or aggregating."""

    pass


# ============================================================================
# Conversion errors
# ============================================================================


class ConversionError(CostingError):
    """Raised when a quantity cannot be converted between two units."""

    pass


class UnknownUnit(ConversionError):
    """Raised when a unit token is not in the unit table.

    Example:
        >>> raise UnknownUnit("bag")
        UnknownUnit: Unknown unit: 'bag'
    """

    def __init__(self, unit):
        self.unit = unit
        super().__init__(f"Unknown unit: '{unit}'")


class InvalidQuantity(ConversionError):
    """Raised when a quantity or density is negative, non-finite or not a number."""

    def __init__(self, value, field_name: str = "Quantity"):
        self.value = value
        self.field_name = field_name
        super().__init__(f"{field_name} must be a finite non-negative number, got {value!r}")


class IncompatibleUnits(ConversionError):
    """Raised when a count unit is mixed with a mass/volume unit (or another count unit).

    Example:
        >>> raise IncompatibleUnits("each", "g")
        IncompatibleUnits: Cannot convert each to g: incompatible unit types
    """

    def __init__(self, from_unit: str, to_unit: str):
        self.from_unit = from_unit
        self.to_unit = to_unit
        super().__init__(f"Cannot convert {from_unit} to {to_unit}: incompatible unit types")


class DensityRequired(ConversionError):
    """Raised when a mass <-> volume conversion is requested without a density.

    Args:
        from_unit: Source unit
        to_unit: Target unit
        ingredient_name: Ingredient being converted, when known
    """

    def __init__(self, from_unit: str, to_unit: str, ingredient_name: Optional[str] = None):
        self.from_unit = from_unit
        self.to_unit = to_unit
        self.ingredient_name = ingredient_name
        subject = f" for ingredient '{ingredient_name}'" if ingredient_name else ""
        super().__init__(
            f"Density required to convert {from_unit} to {to_unit}{subject}"
        )


# ============================================================================
# Data integrity errors
# ============================================================================


class InvalidIngredient(CostingError):
    """Raised when an ingredient record cannot be costed (e.g. pack quantity <= 0)."""

    def __init__(self, ingredient_id, reason: str):
        self.ingredient_id = ingredient_id
        self.reason = reason
        super().__init__(f"Invalid ingredient {ingredient_id}: {reason}")


class InvalidRecipe(CostingError):
    """Raised when a recipe record cannot be rolled up (e.g. yield quantity <= 0)."""

    def __init__(self, recipe_id, reason: str):
        self.recipe_id = recipe_id
        self.reason = reason
        super().__init__(f"Invalid recipe {recipe_id}: {reason}")


class MissingIngredient(CostingError):
    """Raised when a recipe line references an ingredient absent from the snapshot."""

    def __init__(self, ingredient_id, recipe_id=None):
        self.ingredient_id = ingredient_id
        self.recipe_id = recipe_id
        where = f" (referenced by recipe {recipe_id})" if recipe_id is not None else ""
        super().__init__(f"Ingredient with ID {ingredient_id} not found{where}")


class MissingSubRecipe(CostingError):
    """Raised when a sub-recipe reference points at a recipe absent from the snapshot."""

    def __init__(self, sub_recipe_id, recipe_id=None):
        self.sub_recipe_id = sub_recipe_id
        self.recipe_id = recipe_id
        where = f" (referenced by recipe {recipe_id})" if recipe_id is not None else ""
        super().__init__(f"Sub-recipe with ID {sub_recipe_id} not found{where}")


class CyclicRecipeGraph(CostingError):
    """Raised when a recipe reaches itself through its sub-recipes.

    Args:
        path: Recipe ids from the re-entered recipe back to itself

    Example:
        >>> raise CyclicRecipeGraph([1, 2, 1])
        CyclicRecipeGraph: Sub-recipe cycle detected: 1 -> 2 -> 1
    """

    def __init__(self, path: Iterable):
        self.path = list(path)
        cycle = " -> ".join(str(recipe_id) for recipe_id in self.path)
        super().__init__(f"Sub-recipe cycle detected: {cycle}")


# ============================================================================
# Repository layer errors
# ============================================================================


class RecipeNotFound(ServiceError):
    """Raised when a recipe cannot be found by ID."""

    def __init__(self, recipe_id: int):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe with ID {recipe_id} not found")


class ValidationError(ServiceError):
    """Raised when data validation fails."""

    def __init__(self, errors: list):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
