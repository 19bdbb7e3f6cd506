"""
Tests for snapshot loading from the database and from exported JSON.
"""

import json

import pytest

from bakery_costing.models import Ingredient, Recipe, RecipeItem, RecipeSection, RecipeSubRecipe
from bakery_costing.services import snapshot_service
from bakery_costing.services.exceptions import (
    CyclicRecipeGraph,
    RecipeNotFound,
    ValidationError,
)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def stored_recipes(test_db):
    """Store a sponge (with a section) used as a sub-recipe by a layer cake."""
    session = test_db()

    butter = Ingredient(name="Butter", pack_quantity=500, pack_unit="g", pack_price=2.50)
    butter.set_allergens(["Dairy"])
    flour = Ingredient(
        name="Self-Raising Flour",
        pack_quantity=1.5,
        pack_unit="kg",
        pack_price=1.20,
        allergens='["Gluten"]',
        density_volume_value=1.0,
        density_volume_unit="cup",
        density_weight_value=125.0,
        density_weight_unit="g",
    )
    eggs = Ingredient(name="Eggs", pack_quantity=6, pack_unit="each", pack_price=1.80)
    eggs.set_allergens(["Eggs"])
    session.add_all([butter, flour, eggs])
    session.flush()

    sponge = Recipe(name="Sponge", yield_quantity=800, yield_unit="g")
    session.add(sponge)
    session.flush()
    batter = RecipeSection(recipe=sponge, name="Batter", sort_order=1)
    session.add_all([
        RecipeItem(recipe=sponge, ingredient=eggs, quantity=4, unit="each", sort_order=1),
        RecipeItem(recipe=sponge, section=batter, ingredient=butter, quantity=200, unit="g"),
        RecipeItem(recipe=sponge, section=batter, ingredient=flour, quantity=1, unit="cup"),
    ])

    cake = Recipe(
        name="Layer Cake",
        yield_quantity=12,
        yield_unit="slices",
        selling_price=3.00,
        allergens='["Sulphites"]',
    )
    session.add(cake)
    session.flush()
    session.add_all([
        RecipeItem(recipe=cake, ingredient=butter, quantity=100, unit="g"),
        RecipeSubRecipe(recipe=cake, sub_recipe=sponge, quantity=400, unit="g"),
    ])
    session.commit()

    return {
        "butter": butter.id,
        "flour": flour.id,
        "eggs": eggs.id,
        "sponge": sponge.id,
        "cake": cake.id,
    }


# ============================================================================
# Database Loading Tests
# ============================================================================


class TestLoadRecipeGraph:
    """Test loading snapshots from the database."""

    def test_loads_root_and_sub_recipes(self, stored_recipes):
        recipe, ingredients_by_id, recipes_by_id = snapshot_service.load_recipe_graph(
            stored_recipes["cake"]
        )

        assert recipe.name == "Layer Cake"
        assert set(recipes_by_id) == {stored_recipes["cake"], stored_recipes["sponge"]}
        assert set(ingredients_by_id) == {
            stored_recipes["butter"],
            stored_recipes["flour"],
            stored_recipes["eggs"],
        }

    def test_sections_and_direct_items_are_separated(self, stored_recipes):
        _, _, recipes_by_id = snapshot_service.load_recipe_graph(stored_recipes["sponge"])
        sponge = recipes_by_id[stored_recipes["sponge"]]

        assert [item.ingredient_id for item in sponge.items] == [stored_recipes["eggs"]]
        assert len(sponge.sections) == 1
        assert sponge.sections[0].name == "Batter"
        assert len(sponge.sections[0].items) == 2

    def test_four_field_density_is_resolved(self, stored_recipes):
        _, ingredients_by_id, _ = snapshot_service.load_recipe_graph(stored_recipes["sponge"])
        flour = ingredients_by_id[stored_recipes["flour"]]
        assert flour.density_g_per_ml == pytest.approx(0.5)

    def test_recipe_not_found(self, test_db):
        with pytest.raises(RecipeNotFound):
            snapshot_service.load_recipe_graph(999)

    def test_stored_cycle_loads_and_rollup_reports_it(self, test_db):
        session = test_db()
        a = Recipe(name="A", yield_quantity=1, yield_unit="each")
        b = Recipe(name="B", yield_quantity=1, yield_unit="each")
        session.add_all([a, b])
        session.flush()
        session.add_all([
            RecipeSubRecipe(recipe=a, sub_recipe=b, quantity=1, unit="each"),
            RecipeSubRecipe(recipe=b, sub_recipe=a, quantity=1, unit="each"),
        ])
        session.commit()

        _, _, recipes_by_id = snapshot_service.load_recipe_graph(a.id)
        assert set(recipes_by_id) == {a.id, b.id}

        with pytest.raises(CyclicRecipeGraph):
            snapshot_service.calculate_recipe_cost(a.id)


class TestStoredRecipeCosting:
    """Test costing and allergens for stored recipes."""

    def test_calculate_recipe_cost(self, stored_recipes):
        breakdown = snapshot_service.calculate_recipe_cost(stored_recipes["cake"])

        # sponge: eggs 1.20 + butter 1.00 + flour (125 g = 0.10) = 2.30 for 800 g
        # cake: butter 0.50 + 400 g sponge 1.15
        assert breakdown.total_cost == pytest.approx(1.65)
        assert breakdown.cost_per_output_unit == pytest.approx(1.65 / 12)
        assert breakdown.is_complete

    def test_get_recipe_allergens(self, stored_recipes):
        allergens = snapshot_service.get_recipe_allergens(stored_recipes["cake"])
        assert allergens == ["Dairy", "Eggs", "Gluten", "Sulphites"]


# ============================================================================
# JSON Snapshot Tests
# ============================================================================


@pytest.fixture
def snapshot_document():
    return {
        "ingredients": [
            {"id": 1, "name": "Butter", "packQuantity": 500, "packUnit": "g", "packPrice": 2.5,
             "densityGPerMl": 0.911, "allergens": ["Dairy"]},
        ],
        "recipes": [
            {"id": 10, "name": "Shortbread", "yieldQuantity": 10, "yieldUnit": "each",
             "items": [{"ingredientId": 1, "quantity": 250, "unit": "g"}]},
        ],
    }


class TestSnapshotFromDict:
    """Test building snapshots from an exported document."""

    def test_builds_maps(self, snapshot_document):
        ingredients_by_id, recipes_by_id = snapshot_service.snapshot_from_dict(snapshot_document)

        assert ingredients_by_id[1].density_g_per_ml == pytest.approx(0.911)
        assert recipes_by_id[10].items[0].ingredient_id == 1

    def test_invalid_records_raise(self, snapshot_document):
        snapshot_document["ingredients"][0]["packQuantity"] = 0
        snapshot_document["recipes"][0]["yieldUnit"] = "trays"

        with pytest.raises(ValidationError) as exc_info:
            snapshot_service.snapshot_from_dict(snapshot_document)
        assert len(exc_info.value.errors) == 2

    def test_duplicate_ids_raise(self, snapshot_document):
        snapshot_document["recipes"].append(dict(snapshot_document["recipes"][0]))
        with pytest.raises(ValidationError) as exc_info:
            snapshot_service.snapshot_from_dict(snapshot_document)
        assert exc_info.value.errors == ["Recipe 10: duplicate ID"]

    def test_document_must_be_object(self):
        with pytest.raises(ValidationError):
            snapshot_service.snapshot_from_dict([])

    def test_empty_document(self):
        assert snapshot_service.snapshot_from_dict({}) == ({}, {})


class TestLoadSnapshotFile:
    """Test reading snapshot files."""

    def test_load_file(self, tmp_path, snapshot_document):
        path = tmp_path / "export.json"
        path.write_text(json.dumps(snapshot_document), encoding="utf-8")

        ingredients_by_id, recipes_by_id = snapshot_service.load_snapshot_file(path)
        assert list(recipes_by_id) == [10]
        assert list(ingredients_by_id) == [1]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ValidationError) as exc_info:
            snapshot_service.load_snapshot_file(path)
        assert "broken.json" in str(exc_info.value)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            snapshot_service.load_snapshot_file(tmp_path / "absent.json")


class TestFindRecipe:
    """Test recipe lookup by ID."""

    def test_string_form_of_integer_id(self, snapshot_document):
        _, recipes_by_id = snapshot_service.snapshot_from_dict(snapshot_document)
        assert snapshot_service.find_recipe(recipes_by_id, "10").name == "Shortbread"

    def test_string_ids(self):
        _, recipes_by_id = snapshot_service.snapshot_from_dict(
            {"recipes": [{"id": "abc", "name": "R", "yield_quantity": 1, "yield_unit": "each"}]}
        )
        assert snapshot_service.find_recipe(recipes_by_id, "abc").id == "abc"

    def test_not_found(self):
        with pytest.raises(RecipeNotFound):
            snapshot_service.find_recipe({}, "nope")
