"""
Tests for allergen aggregation.

Tests cover:
- Normalising allergen fields (lists, JSON strings, junk)
- Union across items, sections, sub-recipes and the recipe itself
- Missing references, strict mode and cycles
- Common allergen matrix
"""

import logging
import sys

import pytest

from bakery_costing.services.allergen_service import (
    allergen_matrix,
    collect_allergens,
    normalize_allergens,
)
from bakery_costing.services.dto import (
    IngredientSnapshot,
    RecipeItemLine,
    RecipeSnapshot,
    SubRecipeLine,
)
from bakery_costing.services.exceptions import (
    CyclicRecipeGraph,
    InvalidRecipe,
    MissingIngredient,
    MissingSubRecipe,
)
from bakery_costing.utils.constants import COMMON_ALLERGENS


def _recipe(recipe_id, items=(), sub_recipes=(), allergens=None):
    return RecipeSnapshot(
        id=recipe_id,
        name=f"Recipe {recipe_id}",
        yield_quantity=1,
        yield_unit="each",
        items=tuple(items),
        sub_recipes=tuple(sub_recipes),
        allergens=allergens,
    )


class TestNormalizeAllergens:
    """Test the allergen field normaliser."""

    def test_list(self):
        assert normalize_allergens(["Gluten", " Eggs "]) == ["Gluten", "Eggs"]

    def test_json_list(self):
        assert normalize_allergens('["Gluten", "Dairy"]') == ["Gluten", "Dairy"]

    def test_json_single_string(self):
        assert normalize_allergens('"Sesame"') == ["Sesame"]

    @pytest.mark.parametrize("value", [None, "", "   ", "not json", "Gluten, Dairy", "{bad", 42, {"a": 1}])
    def test_unparsable_gives_empty(self, value):
        assert normalize_allergens(value) == []

    def test_json_object_gives_empty(self):
        assert normalize_allergens('{"gluten": true}') == []

    def test_drops_blanks_and_non_strings(self):
        assert normalize_allergens(["Gluten", "", "  ", None, 3]) == ["Gluten"]

    def test_tuple_and_set(self):
        assert normalize_allergens(("Soy",)) == ["Soy"]
        assert normalize_allergens({"Fish"}) == ["Fish"]


class TestCollectAllergens:
    """Test allergen union across the composition graph."""

    def test_layer_cake(self, layer_cake, ingredients_by_id, recipes_by_id):
        allergens = collect_allergens(layer_cake, ingredients_by_id, recipes_by_id)
        assert allergens == ["Dairy", "Eggs", "Gluten", "Sulphites"]

    def test_sections_are_included(self, sponge, ingredients_by_id):
        assert collect_allergens(sponge, ingredients_by_id, {}) == ["Dairy", "Eggs", "Gluten"]

    def test_no_allergens(self, sugar):
        recipe = _recipe("syrup", items=[RecipeItemLine("sugar", 100, "g")])
        assert collect_allergens(recipe, {"sugar": sugar}, {}) == []

    def test_result_is_sorted_and_unique(self):
        a = IngredientSnapshot(id="a", name="A", pack_quantity=1, pack_unit="g", pack_price=1,
                               allergens=["Soy", "Gluten"])
        b = IngredientSnapshot(id="b", name="B", pack_quantity=1, pack_unit="g", pack_price=1,
                               allergens='["Gluten", "Celery"]')
        recipe = _recipe("r", items=[RecipeItemLine("a", 1, "g"), RecipeItemLine("b", 1, "g")])

        assert collect_allergens(recipe, {"a": a, "b": b}, {}) == ["Celery", "Gluten", "Soy"]

    def test_labels_keep_their_case(self):
        a = IngredientSnapshot(id="a", name="A", pack_quantity=1, pack_unit="g", pack_price=1,
                               allergens=["gluten"])
        recipe = _recipe("r", items=[RecipeItemLine("a", 1, "g")], allergens=["Gluten"])
        assert collect_allergens(recipe, {"a": a}, {}) == ["Gluten", "gluten"]

    def test_recipe_level_allergens(self):
        recipe = _recipe("r", allergens='["Mustard"]')
        assert collect_allergens(recipe, {}, {}) == ["Mustard"]

    def test_unparsable_ingredient_allergens_ignored(self):
        a = IngredientSnapshot(id="a", name="A", pack_quantity=1, pack_unit="g", pack_price=1,
                               allergens="nuts and more nuts")
        recipe = _recipe("r", items=[RecipeItemLine("a", 1, "g")])
        assert collect_allergens(recipe, {"a": a}, {}) == []

    def test_missing_references_skipped_with_warning(self, butter, caplog):
        recipe = _recipe(
            "r",
            items=[RecipeItemLine("butter", 1, "g"), RecipeItemLine("ghost", 1, "g")],
            sub_recipes=[SubRecipeLine("phantom", 1, "each")],
        )
        with caplog.at_level(logging.WARNING, logger="bakery_costing.services"):
            allergens = collect_allergens(recipe, {"butter": butter}, {})

        assert allergens == ["Dairy"]
        assert "collect_allergens: missing_ingredient" in caplog.text
        assert "collect_allergens: missing_sub_recipe" in caplog.text

    def test_strict_missing_ingredient(self):
        recipe = _recipe("r", items=[RecipeItemLine("ghost", 1, "g")])
        with pytest.raises(MissingIngredient):
            collect_allergens(recipe, {}, {}, strict=True)

    def test_strict_missing_sub_recipe(self):
        recipe = _recipe("r", sub_recipes=[SubRecipeLine("phantom", 1, "each")])
        with pytest.raises(MissingSubRecipe):
            collect_allergens(recipe, {}, {}, strict=True)

    def test_cycle_raises(self):
        a = _recipe("a", sub_recipes=[SubRecipeLine("b", 1, "each")])
        b = _recipe("b", sub_recipes=[SubRecipeLine("a", 1, "each")])
        with pytest.raises(CyclicRecipeGraph) as exc_info:
            collect_allergens(a, {}, {"a": a, "b": b})
        assert exc_info.value.path == ["a", "b", "a"]

    def test_nesting_beyond_recursion_limit(self):
        depth = sys.getrecursionlimit() + 100
        recipes = {
            f"r{level}": _recipe(f"r{level}", sub_recipes=[SubRecipeLine(f"r{level + 1}", 1, "each")])
            for level in range(depth)
        }
        recipes[f"r{depth}"] = _recipe(f"r{depth}")

        with pytest.raises(InvalidRecipe):
            collect_allergens(recipes["r0"], {}, recipes)

    def test_diamond_is_not_a_cycle(self, butter):
        base = _recipe("base", items=[RecipeItemLine("butter", 1, "g")])
        left = _recipe("left", sub_recipes=[SubRecipeLine("base", 1, "each")])
        right = _recipe("right", sub_recipes=[SubRecipeLine("base", 1, "each")])
        top = _recipe(
            "top", sub_recipes=[SubRecipeLine("left", 1, "each"), SubRecipeLine("right", 1, "each")]
        )
        recipes = {"base": base, "left": left, "right": right}

        assert collect_allergens(top, {"butter": butter}, recipes) == ["Dairy"]


class TestAllergenMatrix:
    """Test the common allergen checklist."""

    def test_keys_follow_common_allergens(self):
        assert list(allergen_matrix([])) == COMMON_ALLERGENS

    def test_matching_is_case_insensitive_substring(self):
        matrix = allergen_matrix(["Wheat gluten", "DAIRY"])
        assert matrix["Gluten"] is True
        assert matrix["Dairy"] is True
        assert matrix["Eggs"] is False

    def test_empty(self):
        assert not any(allergen_matrix([]).values())


class TestAllergenProperties:
    """Union and determinism guarantees."""

    def test_parent_is_superset_of_sub_recipe(self, layer_cake, sponge, ingredients_by_id, recipes_by_id):
        parent = set(collect_allergens(layer_cake, ingredients_by_id, recipes_by_id))
        child = set(collect_allergens(sponge, ingredients_by_id, recipes_by_id))
        assert parent >= child

    def test_deterministic(self, layer_cake, ingredients_by_id, recipes_by_id):
        first = collect_allergens(layer_cake, ingredients_by_id, recipes_by_id)
        second = collect_allergens(layer_cake, ingredients_by_id, recipes_by_id)
        assert first == second
