"""Pytest configuration and fixtures for costing engine tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session

from bakery_costing.models.base import Base
from bakery_costing.services.database import get_session_factory
from bakery_costing.services.dto import (
    IngredientSnapshot,
    RecipeItemLine,
    RecipeSection,
    RecipeSnapshot,
    SubRecipeLine,
)
from bakery_costing.utils.config import reset_config


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the session factory to the test
    4. Drops all tables after the test completes
    """
    engine = create_engine("sqlite:///:memory:", echo=False)

    # Import models so every table is registered
    from bakery_costing.models import ingredient, recipe  # noqa: F401

    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import bakery_costing.services.database as db_module

    original_get_session_factory = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    db_module.get_session_factory = original_get_session_factory


@pytest.fixture(autouse=True)
def clean_config():
    """Reset the configuration singleton around every test."""
    reset_config()
    yield
    reset_config()


# ============================================================================
# Snapshot Fixtures
# ============================================================================


@pytest.fixture
def butter():
    """Butter: 500 g pack for 2.50, density 0.911 g/ml."""
    return IngredientSnapshot(
        id="butter",
        name="Butter",
        pack_quantity=500,
        pack_unit="g",
        pack_price=2.50,
        density_g_per_ml=0.911,
        allergens=["Dairy"],
    )


@pytest.fixture
def flour():
    """Plain flour: 1.5 kg bag for 1.20, density from the built-in table."""
    return IngredientSnapshot(
        id="flour",
        name="Flour",
        pack_quantity=1.5,
        pack_unit="kg",
        pack_price=1.20,
        allergens='["Gluten"]',
    )


@pytest.fixture
def sugar():
    """Caster sugar: 1 kg bag for 1.00, no allergens."""
    return IngredientSnapshot(
        id="sugar",
        name="Caster Sugar",
        pack_quantity=1000,
        pack_unit="g",
        pack_price=1.00,
    )


@pytest.fixture
def eggs():
    """Eggs: box of 6 for 1.80."""
    return IngredientSnapshot(
        id="eggs",
        name="Eggs",
        pack_quantity=6,
        pack_unit="each",
        pack_price=1.80,
        allergens=["Eggs"],
    )


@pytest.fixture
def ingredients_by_id(butter, flour, sugar, eggs):
    return {ing.id: ing for ing in (butter, flour, sugar, eggs)}


@pytest.fixture
def shortbread():
    """Shortbread: 250 g butter, yields 10 biscuits."""
    return RecipeSnapshot(
        id="shortbread",
        name="Shortbread",
        yield_quantity=10,
        yield_unit="each",
        items=(RecipeItemLine("butter", 250, "g"),),
    )


@pytest.fixture
def sponge():
    """Sponge cake with its ingredients split into sections, yields 800 g."""
    return RecipeSnapshot(
        id="sponge",
        name="Sponge",
        yield_quantity=800,
        yield_unit="g",
        sections=(
            RecipeSection("Batter", (
                RecipeItemLine("butter", 200, "g"),
                RecipeItemLine("sugar", 200, "g"),
                RecipeItemLine("flour", 200, "g"),
            )),
            RecipeSection("Eggs", (RecipeItemLine("eggs", 4, "each"),)),
        ),
    )


@pytest.fixture
def layer_cake(sponge):
    """Layer cake: 400 g of sponge plus buttercream butter and sugar, yields 12 slices."""
    return RecipeSnapshot(
        id="layer_cake",
        name="Layer Cake",
        yield_quantity=12,
        yield_unit="slices",
        items=(
            RecipeItemLine("butter", 100, "g"),
            RecipeItemLine("sugar", 200, "g"),
        ),
        sub_recipes=(SubRecipeLine(sponge.id, 400, "g"),),
        allergens=["Sulphites"],
        selling_price=3.00,
    )


@pytest.fixture
def recipes_by_id(shortbread, sponge, layer_cake):
    return {recipe.id: recipe for recipe in (shortbread, sponge, layer_cake)}
