"""
Allergen Service - allergen aggregation across a recipe's composition graph.

Ingredient allergen data arrives in more than one shape: a native list, or a
JSON-encoded string stored in a text column. `normalize_allergens` is the
only place that deals with this; everything else works with lists of labels.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Set, Tuple

from bakery_costing.services.dto import IngredientSnapshot, RecipeSnapshot
from bakery_costing.services.exceptions import (
    CyclicRecipeGraph,
    InvalidRecipe,
    MissingIngredient,
    MissingSubRecipe,
)
from bakery_costing.services.logging_utils import get_service_logger, log_operation
from bakery_costing.utils.constants import COMMON_ALLERGENS

logger = get_service_logger(__name__)


def normalize_allergens(value: Any) -> List[str]:
    """
    Normalise an allergen field to a list of labels.

    Args:
        value: A list/tuple/set of labels, a JSON-encoded list (or single JSON
            string), or None

    Returns:
        Stripped, non-empty labels in their original order. Unparsable
        strings and unexpected shapes give an empty list.

    Example:
        >>> normalize_allergens('["Gluten", " Eggs "]')
        ['Gluten', 'Eggs']
        >>> normalize_allergens("not json")
        []
    """
    if value is None:
        return []

    if isinstance(value, str):
        if not value.strip():
            return []
        try:
            value = json.loads(value)
        except ValueError:
            return []
        if isinstance(value, str):
            value = [value]

    if not isinstance(value, (list, tuple, set, frozenset)):
        return []

    labels = []
    for label in value:
        if isinstance(label, str) and label.strip():
            labels.append(label.strip())
    return labels


def collect_allergens(
    recipe: RecipeSnapshot,
    ingredients_by_id: Mapping[Any, IngredientSnapshot],
    recipes_by_id: Mapping[Any, RecipeSnapshot],
    strict: bool = False,
) -> List[str]:
    """
    Collect every allergen declared anywhere in a recipe's composition.

    Unions the allergens of every direct and sectioned ingredient, of every
    sub-recipe (recursively) and of the recipe record itself.

    Args:
        recipe: Recipe to inspect
        ingredients_by_id: Every ingredient the recipe graph references
        recipes_by_id: Every sub-recipe the recipe graph references
        strict: If True, a missing ingredient or sub-recipe raises instead of
            being skipped

    Returns:
        Sorted, de-duplicated allergen labels

    Raises:
        CyclicRecipeGraph: If a recipe reaches itself through sub-recipes
        InvalidRecipe: If sub-recipes nest deeper than the interpreter recursion limit
        MissingIngredient / MissingSubRecipe: Only when strict=True
    """
    try:
        allergens = _collect(recipe, ingredients_by_id, recipes_by_id, strict, (), {})
    except RecursionError:
        raise InvalidRecipe(recipe.id, "sub-recipe nesting is too deep") from None
    result = sorted(allergens)

    log_operation(
        logger,
        operation="collect_allergens",
        outcome="success",
        level=logging.DEBUG,
        recipe_id=recipe.id,
        allergen_count=len(result),
    )
    return result


def _collect(
    recipe: RecipeSnapshot,
    ingredients_by_id: Mapping[Any, IngredientSnapshot],
    recipes_by_id: Mapping[Any, RecipeSnapshot],
    strict: bool,
    path: Tuple[Any, ...],
    memo: Dict[Any, Set[str]],
) -> Set[str]:
    if recipe.id in memo:
        return memo[recipe.id]

    path = path + (recipe.id,)
    allergens: Set[str] = set(normalize_allergens(recipe.allergens))

    for item in recipe.all_items():
        ingredient = ingredients_by_id.get(item.ingredient_id)
        if ingredient is None:
            if strict:
                raise MissingIngredient(item.ingredient_id, recipe.id)
            log_operation(
                logger,
                operation="collect_allergens",
                outcome="missing_ingredient",
                level=logging.WARNING,
                recipe_id=recipe.id,
                ingredient_id=item.ingredient_id,
            )
            continue
        allergens.update(normalize_allergens(ingredient.allergens))

    for sub in recipe.sub_recipes:
        if sub.sub_recipe_id in path:
            start = path.index(sub.sub_recipe_id)
            raise CyclicRecipeGraph(path[start:] + (sub.sub_recipe_id,))

        sub_recipe = recipes_by_id.get(sub.sub_recipe_id)
        if sub_recipe is None:
            if strict:
                raise MissingSubRecipe(sub.sub_recipe_id, recipe.id)
            log_operation(
                logger,
                operation="collect_allergens",
                outcome="missing_sub_recipe",
                level=logging.WARNING,
                recipe_id=recipe.id,
                sub_recipe_id=sub.sub_recipe_id,
            )
            continue
        allergens.update(
            _collect(sub_recipe, ingredients_by_id, recipes_by_id, strict, path, memo)
        )

    memo[recipe.id] = allergens
    return allergens


def allergen_matrix(allergens: Iterable[str]) -> Dict[str, bool]:
    """
    Map each common allergen to whether any label mentions it.

    Matching is a case-insensitive substring test, so "Wheat gluten" marks
    Gluten and "Tree nuts" marks Nuts.

    Returns:
        Dict keyed by COMMON_ALLERGENS in their standard order
    """
    lowered = [label.lower() for label in allergens]
    return {
        allergen: any(allergen.lower() in label for label in lowered)
        for allergen in COMMON_ALLERGENS
    }
