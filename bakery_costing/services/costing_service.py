"""
Costing Service - ingredient costs and recipe cost rollups.

This service provides:
- Ingredient usage cost from pack size and pack price
- Recursive recipe cost rollup through nested sub-recipes
- Cost-per-serving and food cost percentage helpers
- Plain-text cost breakdown formatting

All functions are pure: they compute over the snapshots they are given and
never load or persist anything. Missing ingredient/sub-recipe references are
collected on the breakdown unless `strict=True`; conversion and data errors
propagate; a sub-recipe cycle always raises CyclicRecipeGraph.
"""

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Tuple

from bakery_costing.services.density_service import resolve_density
from bakery_costing.services.dto import (
    CostBreakdown,
    CostLine,
    IngredientSnapshot,
    LineError,
    RecipeSnapshot,
)
from bakery_costing.services.exceptions import (
    CyclicRecipeGraph,
    DensityRequired,
    InvalidIngredient,
    InvalidRecipe,
    MissingIngredient,
    MissingSubRecipe,
    UnknownUnit,
)
from bakery_costing.services.logging_utils import get_service_logger, log_operation
from bakery_costing.services.unit_converter import convert, normalize_unit

logger = get_service_logger(__name__)


# ============================================================================
# Validation
# ============================================================================


def _finite(value) -> Optional[float]:
    if value is None or isinstance(value, (bool, str)):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _pack_terms(ingredient: IngredientSnapshot) -> Tuple[float, float, str]:
    """Validate an ingredient's pack and return (pack_quantity, pack_price, pack_unit)."""
    pack_quantity = _finite(ingredient.pack_quantity)
    if pack_quantity is None or pack_quantity <= 0:
        raise InvalidIngredient(
            ingredient.id, f"pack quantity must be greater than zero, got {ingredient.pack_quantity!r}"
        )

    pack_price = _finite(ingredient.pack_price)
    if pack_price is None or pack_price < 0:
        raise InvalidIngredient(
            ingredient.id, f"pack price must be a non-negative number, got {ingredient.pack_price!r}"
        )

    try:
        pack_unit = normalize_unit(ingredient.pack_unit)
    except UnknownUnit:
        raise InvalidIngredient(ingredient.id, f"unknown pack unit {ingredient.pack_unit!r}")

    return pack_quantity, pack_price, pack_unit


def _yield_quantity(recipe: RecipeSnapshot) -> float:
    yield_quantity = _finite(recipe.yield_quantity)
    if yield_quantity is None or yield_quantity <= 0:
        raise InvalidRecipe(
            recipe.id, f"yield quantity must be greater than zero, got {recipe.yield_quantity!r}"
        )
    return yield_quantity


# ============================================================================
# Ingredient Cost
# ============================================================================


def cost_of(quantity: float, unit: str, ingredient: IngredientSnapshot) -> float:
    """
    Calculate the cost of using a quantity of an ingredient.

    Formula: cost = quantity_in_pack_units × (pack_price / pack_quantity)

    Args:
        quantity: Amount used
        unit: Unit of `quantity`
        ingredient: Ingredient snapshot with pack size, pack unit and pack price

    Returns:
        Cost in the ingredient's price currency

    Raises:
        InvalidIngredient: If pack quantity <= 0, pack price < 0 or pack unit unknown
        DensityRequired: If mass <-> volume is needed and no density resolves
        IncompatibleUnits: If a count unit is mixed with mass/volume

    Example:
        >>> butter = IngredientSnapshot(1, "Butter", 500, "g", 2.50, 0.911)
        >>> cost_of(250, "g", butter)
        1.25
    """
    pack_quantity, pack_price, pack_unit = _pack_terms(ingredient)

    try:
        converted = convert(quantity, unit, pack_unit, resolve_density(ingredient))
    except DensityRequired as e:
        raise DensityRequired(e.from_unit, e.to_unit, ingredient.name) from e

    return float(converted) * (pack_price / pack_quantity)


# ============================================================================
# Recipe Cost Rollup
# ============================================================================


def rollup_cost(
    recipe: RecipeSnapshot,
    ingredients_by_id: Mapping[Any, IngredientSnapshot],
    recipes_by_id: Mapping[Any, RecipeSnapshot],
    strict: bool = False,
) -> CostBreakdown:
    """
    Roll a recipe's cost up through its ingredients and nested sub-recipes.

    Args:
        recipe: Recipe to cost
        ingredients_by_id: Every ingredient the recipe graph references
        recipes_by_id: Every sub-recipe the recipe graph references
        strict: If True, a missing ingredient or sub-recipe raises instead of
            being reported on the breakdown

    Returns:
        CostBreakdown with total_cost, cost_per_output_unit, per-line costs and
        any per-line errors (including those from sub-recipes)

    Raises:
        InvalidRecipe: If any recipe reached has yield quantity <= 0, or if sub-recipes
            nest deeper than the interpreter recursion limit
        InvalidIngredient: If any ingredient reached has an invalid pack
        CyclicRecipeGraph: If a recipe reaches itself through sub-recipes
        ConversionError: If a line's units cannot be converted
        MissingIngredient / MissingSubRecipe: Only when strict=True
    """
    try:
        breakdown = _rollup(recipe, ingredients_by_id, recipes_by_id, strict, (), {})
    except RecursionError:
        raise InvalidRecipe(recipe.id, "sub-recipe nesting is too deep") from None

    if breakdown.is_complete:
        log_operation(
            logger,
            operation="rollup_cost",
            outcome="success",
            recipe_id=recipe.id,
            total_cost=breakdown.total_cost,
        )
    else:
        log_operation(
            logger,
            operation="rollup_cost",
            outcome="incomplete",
            level=logging.WARNING,
            recipe_id=recipe.id,
            total_cost=breakdown.total_cost,
            failed_lines=len(breakdown.errors),
        )
    return breakdown


def _rollup(
    recipe: RecipeSnapshot,
    ingredients_by_id: Mapping[Any, IngredientSnapshot],
    recipes_by_id: Mapping[Any, RecipeSnapshot],
    strict: bool,
    path: Tuple[Any, ...],
    memo: Dict[Any, CostBreakdown],
) -> CostBreakdown:
    if recipe.id in memo:
        return memo[recipe.id]

    path = path + (recipe.id,)
    yield_quantity = _yield_quantity(recipe)

    total_cost = 0.0
    ingredient_costs: List[CostLine] = []
    sub_recipe_costs: List[CostLine] = []
    errors: List[LineError] = []

    for item in recipe.all_items():
        ingredient = ingredients_by_id.get(item.ingredient_id)
        if ingredient is None:
            error = MissingIngredient(item.ingredient_id, recipe.id)
            if strict:
                raise error
            errors.append(LineError.from_exception(error, item.ingredient_id, recipe.id, path))
            log_operation(
                logger,
                operation="rollup_cost",
                outcome="missing_ingredient",
                level=logging.DEBUG,
                recipe_id=recipe.id,
                ingredient_id=item.ingredient_id,
            )
            continue

        cost = cost_of(item.quantity, item.unit, ingredient)
        total_cost += cost
        ingredient_costs.append(
            CostLine(
                kind="ingredient",
                ref_id=ingredient.id,
                name=ingredient.name,
                quantity=item.quantity,
                unit=item.unit,
                cost=cost,
                cost_per_unit=float(ingredient.pack_price) / float(ingredient.pack_quantity),
            )
        )

    for sub in recipe.sub_recipes:
        if sub.sub_recipe_id in path:
            start = path.index(sub.sub_recipe_id)
            raise CyclicRecipeGraph(path[start:] + (sub.sub_recipe_id,))

        sub_recipe = recipes_by_id.get(sub.sub_recipe_id)
        if sub_recipe is None:
            error = MissingSubRecipe(sub.sub_recipe_id, recipe.id)
            if strict:
                raise error
            errors.append(LineError.from_exception(error, sub.sub_recipe_id, recipe.id, path))
            log_operation(
                logger,
                operation="rollup_cost",
                outcome="missing_sub_recipe",
                level=logging.DEBUG,
                recipe_id=recipe.id,
                sub_recipe_id=sub.sub_recipe_id,
            )
            continue

        sub_breakdown = _rollup(sub_recipe, ingredients_by_id, recipes_by_id, strict, path, memo)
        quantity_in_yield_unit = convert(sub.quantity, sub.unit, sub_recipe.yield_unit)
        cost = float(quantity_in_yield_unit) * sub_breakdown.cost_per_output_unit
        total_cost += cost
        _merge_errors(errors, sub_breakdown.errors)
        sub_recipe_costs.append(
            CostLine(
                kind="sub_recipe",
                ref_id=sub_recipe.id,
                name=sub_recipe.name,
                quantity=sub.quantity,
                unit=sub.unit,
                cost=cost,
                cost_per_unit=sub_breakdown.cost_per_output_unit,
            )
        )

    cost_per_output_unit = total_cost / yield_quantity

    breakdown = CostBreakdown(
        recipe_id=recipe.id,
        recipe_name=recipe.name,
        total_cost=total_cost,
        cost_per_output_unit=cost_per_output_unit,
        yield_quantity=recipe.yield_quantity,
        yield_unit=recipe.yield_unit,
        ingredient_costs=tuple(ingredient_costs),
        sub_recipe_costs=tuple(sub_recipe_costs),
        errors=tuple(errors),
        food_cost_percentage=food_cost_percentage(cost_per_output_unit, recipe.selling_price),
    )
    memo[recipe.id] = breakdown
    return breakdown


def _merge_errors(errors: List[LineError], sub_errors: Tuple[LineError, ...]) -> None:
    # A shared sub-recipe returns the same memoised errors for every use
    seen = {(error.kind, error.ref_id, error.recipe_id) for error in errors}
    for error in sub_errors:
        key = (error.kind, error.ref_id, error.recipe_id)
        if key not in seen:
            seen.add(key)
            errors.append(error)


# ============================================================================
# Pricing Helpers
# ============================================================================


def cost_per_serving(total_cost: float, servings: float) -> Optional[float]:
    """
    Calculate the cost of one serving.

    Returns:
        total_cost / servings, or None if servings is not positive
    """
    servings = _finite(servings)
    if servings is None or servings <= 0:
        return None
    return total_cost / servings


def food_cost_percentage(cost_per_unit: float, selling_price: Optional[float]) -> Optional[float]:
    """
    Calculate food cost as a percentage of selling price.

    Args:
        cost_per_unit: Cost of one output unit
        selling_price: Price one output unit sells for

    Returns:
        (cost_per_unit / selling_price) × 100, or None if the selling price is
        missing or not positive
    """
    selling_price = _finite(selling_price)
    if selling_price is None or selling_price <= 0:
        return None
    return (cost_per_unit / selling_price) * 100


def format_cost(amount: float, currency_symbol: str = "£", precision: int = 2) -> str:
    """
    Format a cost value for display.

    Returns:
        Formatted currency string (e.g., "£12.50")
    """
    return f"{currency_symbol}{amount:.{precision}f}"


def format_cost_breakdown(breakdown: CostBreakdown, currency_symbol: str = "£") -> str:
    """
    Format a cost breakdown as plain text.

    Incomplete breakdowns end with a warnings section listing every line that
    could not be costed.
    """

    def money(amount: float) -> str:
        return format_cost(amount, currency_symbol)

    lines = [
        f"Recipe: {breakdown.recipe_name}",
        f"Yield: {breakdown.yield_quantity:g} {breakdown.yield_unit}",
        f"Total Recipe Cost: {money(breakdown.total_cost)}",
        f"Cost per {breakdown.yield_unit}: {money(breakdown.cost_per_output_unit)}",
    ]

    if breakdown.food_cost_percentage is not None:
        lines.append(f"Food Cost: {breakdown.food_cost_percentage:.1f}%")

    if breakdown.ingredient_costs:
        lines.append("")
        lines.append("Ingredient Costs:")
        for line in breakdown.ingredient_costs:
            lines.append(f"  - {line.name}: {line.quantity:g} {line.unit} = {money(line.cost)}")

    if breakdown.sub_recipe_costs:
        lines.append("")
        lines.append("Sub-Recipe Costs:")
        for line in breakdown.sub_recipe_costs:
            lines.append(f"  - {line.name}: {line.quantity:g} {line.unit} = {money(line.cost)}")

    if not breakdown.is_complete:
        lines.append("")
        lines.append("Incomplete - see warnings:")
        for error in breakdown.errors:
            lines.append(f"  ! {error.message}")

    return "\n".join(lines)
