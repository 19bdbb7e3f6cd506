"""
Snapshot Service - assembles engine snapshots from stored or exported data.

This service provides:
- Loading a recipe and everything it references from the database
- Building snapshots from an exported JSON document
- Convenience wrappers that load and then cost / collect allergens

The costing and allergen functions never touch storage themselves; this module
is the only bridge between the ORM models and the immutable snapshots.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from bakery_costing.models import Ingredient, Recipe
from bakery_costing.services.allergen_service import collect_allergens
from bakery_costing.services.costing_service import rollup_cost
from bakery_costing.services.database import session_scope
from bakery_costing.services.dto import (
    CostBreakdown,
    IngredientSnapshot,
    RecipeItemLine,
    RecipeSection,
    RecipeSnapshot,
    SubRecipeLine,
)
from bakery_costing.services.exceptions import DatabaseError, RecipeNotFound, ValidationError
from bakery_costing.services.logging_utils import get_service_logger, log_operation
from bakery_costing.utils.validators import validate_ingredient_data, validate_recipe_data

logger = get_service_logger(__name__)

IngredientMap = Dict[Any, IngredientSnapshot]
RecipeMap = Dict[Any, RecipeSnapshot]


# ============================================================================
# Model -> Snapshot
# ============================================================================


def ingredient_to_snapshot(ingredient: Ingredient) -> IngredientSnapshot:
    """Build an IngredientSnapshot from an Ingredient model."""
    return IngredientSnapshot(
        id=ingredient.id,
        name=ingredient.name,
        pack_quantity=ingredient.pack_quantity,
        pack_unit=ingredient.pack_unit,
        pack_price=ingredient.pack_price,
        density_g_per_ml=ingredient.get_density_g_per_ml(),
        allergens=ingredient.allergens,
    )


def recipe_to_snapshot(recipe: Recipe) -> RecipeSnapshot:
    """Build a RecipeSnapshot from a Recipe model and its lines."""
    direct_items = tuple(
        RecipeItemLine(item.ingredient_id, item.quantity, item.unit)
        for item in recipe.items
        if item.section_id is None
    )
    sections = tuple(
        RecipeSection(
            name=section.name,
            items=tuple(
                RecipeItemLine(item.ingredient_id, item.quantity, item.unit)
                for item in section.items
            ),
        )
        for section in recipe.sections
    )
    sub_recipes = tuple(
        SubRecipeLine(sub.sub_recipe_id, sub.quantity, sub.unit) for sub in recipe.sub_recipes
    )
    return RecipeSnapshot(
        id=recipe.id,
        name=recipe.name,
        yield_quantity=recipe.yield_quantity,
        yield_unit=recipe.yield_unit,
        items=direct_items,
        sections=sections,
        sub_recipes=sub_recipes,
        allergens=recipe.allergens,
        selling_price=recipe.selling_price,
    )


# ============================================================================
# Database Loading
# ============================================================================


def load_recipe_graph(
    recipe_id: int, session=None
) -> Tuple[RecipeSnapshot, IngredientMap, RecipeMap]:
    """
    Load a recipe and every ingredient and sub-recipe it reaches.

    Sub-recipe references are followed breadth-first with a seen-set, so a
    stored cycle is loaded once and left for the engine to report. References
    to rows that no longer exist are simply absent from the maps.

    Args:
        recipe_id: Root recipe ID
        session: Optional database session (uses session_scope if not provided)

    Returns:
        Tuple of (root RecipeSnapshot, ingredients_by_id, recipes_by_id)

    Raises:
        RecipeNotFound: If the root recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        if session is not None:
            return _load_recipe_graph_impl(recipe_id, session)
        with session_scope() as session:
            return _load_recipe_graph_impl(recipe_id, session)
    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to load recipe graph for recipe {recipe_id}", e)


def _load_recipe_graph_impl(
    recipe_id: int, session
) -> Tuple[RecipeSnapshot, IngredientMap, RecipeMap]:
    root = session.get(Recipe, recipe_id)
    if root is None:
        raise RecipeNotFound(recipe_id)

    recipes_by_id: RecipeMap = {}
    ingredient_ids = set()
    queue = [root]
    seen = {root.id}

    while queue:
        recipe = queue.pop(0)
        snapshot = recipe_to_snapshot(recipe)
        recipes_by_id[recipe.id] = snapshot
        ingredient_ids.update(item.ingredient_id for item in snapshot.all_items())

        for sub in snapshot.sub_recipes:
            if sub.sub_recipe_id in seen:
                continue
            seen.add(sub.sub_recipe_id)
            sub_recipe = session.get(Recipe, sub.sub_recipe_id)
            if sub_recipe is not None:
                queue.append(sub_recipe)

    ingredients_by_id: IngredientMap = {}
    if ingredient_ids:
        rows = session.query(Ingredient).filter(Ingredient.id.in_(ingredient_ids)).all()
        ingredients_by_id = {row.id: ingredient_to_snapshot(row) for row in rows}

    log_operation(
        logger,
        operation="load_recipe_graph",
        outcome="success",
        recipe_id=recipe_id,
        recipe_count=len(recipes_by_id),
        ingredient_count=len(ingredients_by_id),
    )
    return recipes_by_id[root.id], ingredients_by_id, recipes_by_id


def calculate_recipe_cost(recipe_id: int, strict: bool = False, session=None) -> CostBreakdown:
    """
    Load a stored recipe and roll up its cost.

    Args:
        recipe_id: Recipe ID
        strict: Passed to rollup_cost
        session: Optional database session

    Returns:
        CostBreakdown for the recipe

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
        CostingError: Any error raised by the rollup
    """
    recipe, ingredients_by_id, recipes_by_id = load_recipe_graph(recipe_id, session=session)
    return rollup_cost(recipe, ingredients_by_id, recipes_by_id, strict=strict)


def get_recipe_allergens(recipe_id: int, strict: bool = False, session=None) -> List[str]:
    """
    Load a stored recipe and collect its allergens.

    Returns:
        Sorted, de-duplicated allergen labels

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    recipe, ingredients_by_id, recipes_by_id = load_recipe_graph(recipe_id, session=session)
    return collect_allergens(recipe, ingredients_by_id, recipes_by_id, strict=strict)


# ============================================================================
# JSON Snapshots
# ============================================================================


def snapshot_from_dict(data: Dict[str, Any]) -> Tuple[IngredientMap, RecipeMap]:
    """
    Build snapshot maps from an exported document.

    Expected shape::

        {"ingredients": [{...}, ...], "recipes": [{...}, ...]}

    Records may use snake_case or camelCase keys.

    Returns:
        Tuple of (ingredients_by_id, recipes_by_id)

    Raises:
        ValidationError: Listing every malformed record or duplicate ID
    """
    if not isinstance(data, dict):
        raise ValidationError(["Snapshot document must be an object"])

    errors = []
    ingredient_records = data.get("ingredients", [])
    recipe_records = data.get("recipes", [])

    if not isinstance(ingredient_records, list):
        errors.append("ingredients: must be a list")
        ingredient_records = []
    if not isinstance(recipe_records, list):
        errors.append("recipes: must be a list")
        recipe_records = []

    ingredients_by_id: IngredientMap = {}
    for record in ingredient_records:
        if not isinstance(record, dict):
            errors.append("Ingredient records must be objects")
            continue
        is_valid, record_errors = validate_ingredient_data(record)
        if not is_valid:
            errors.extend(record_errors)
            continue
        if record["id"] in ingredients_by_id:
            errors.append(f"Ingredient {record['id']}: duplicate ID")
            continue
        ingredients_by_id[record["id"]] = IngredientSnapshot.from_dict(record)

    recipes_by_id: RecipeMap = {}
    for record in recipe_records:
        if not isinstance(record, dict):
            errors.append("Recipe records must be objects")
            continue
        is_valid, record_errors = validate_recipe_data(record)
        if not is_valid:
            errors.extend(record_errors)
            continue
        if record["id"] in recipes_by_id:
            errors.append(f"Recipe {record['id']}: duplicate ID")
            continue
        recipes_by_id[record["id"]] = RecipeSnapshot.from_dict(record)

    if errors:
        raise ValidationError(errors)

    return ingredients_by_id, recipes_by_id


def load_snapshot_file(path) -> Tuple[IngredientMap, RecipeMap]:
    """
    Read an exported JSON snapshot file.

    Args:
        path: Path to the JSON file

    Returns:
        Tuple of (ingredients_by_id, recipes_by_id)

    Raises:
        ValidationError: If the file is not valid JSON or holds malformed records
        OSError: If the file cannot be read
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError([f"{path.name}: invalid JSON ({e})"])

    ingredients_by_id, recipes_by_id = snapshot_from_dict(data)
    log_operation(
        logger,
        operation="load_snapshot_file",
        outcome="success",
        path=str(path),
        recipe_count=len(recipes_by_id),
        ingredient_count=len(ingredients_by_id),
    )
    return ingredients_by_id, recipes_by_id


def find_recipe(recipes_by_id: RecipeMap, recipe_id: Any) -> RecipeSnapshot:
    """
    Look up a recipe by ID, accepting a string form of an integer ID.

    Raises:
        RecipeNotFound: If no recipe matches
    """
    if recipe_id in recipes_by_id:
        return recipes_by_id[recipe_id]

    if isinstance(recipe_id, str):
        try:
            numeric_id = int(recipe_id)
        except ValueError:
            numeric_id = None
        if numeric_id is not None and numeric_id in recipes_by_id:
            return recipes_by_id[numeric_id]

    raise RecipeNotFound(recipe_id)
