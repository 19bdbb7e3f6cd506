"""
Recipe models for bakery recipes.

This module contains:
- Recipe: Main recipe model with yield, pricing and recipe-level allergens
- RecipeSection: Named group of recipe items (e.g., "Dough", "Filling")
- RecipeItem: Junction table linking recipes to ingredients with quantities
- RecipeSubRecipe: Junction table linking parent recipes to sub-recipes
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class Recipe(BaseModel):
    """
    Recipe model.

    Attributes:
        name: Recipe name (required)
        category: Recipe category (e.g., "Biscuits", "Cakes")
        yield_quantity: Amount produced by one batch
        yield_unit: Unit of yield (e.g., "each", "g")
        selling_price: Price one yield unit sells for, if sold
        allergens: JSON-encoded allergen labels declared on the recipe itself
        notes: Additional notes
    """

    __tablename__ = "recipes"

    name = Column(String(200), nullable=False, index=True)
    category = Column(String(100), nullable=True)

    yield_quantity = Column(Float, nullable=False)
    yield_unit = Column(String(20), nullable=False)

    selling_price = Column(Float, nullable=True)
    allergens = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    items = relationship(
        "RecipeItem",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeItem.sort_order",
        lazy="selectin",
    )
    sections = relationship(
        "RecipeSection",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeSection.sort_order",
        lazy="selectin",
    )
    sub_recipes = relationship(
        "RecipeSubRecipe",
        foreign_keys="RecipeSubRecipe.recipe_id",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeSubRecipe.sort_order",
        lazy="selectin",
    )
    used_in_recipes = relationship(
        "RecipeSubRecipe",
        foreign_keys="RecipeSubRecipe.sub_recipe_id",
        back_populates="sub_recipe",
        lazy="select",
    )

    __table_args__ = (Index("idx_recipe_name", "name"),)

    def __repr__(self) -> str:
        return f"Recipe(id={self.id}, name='{self.name}', yield={self.yield_quantity} {self.yield_unit})"


class RecipeSection(BaseModel):
    """
    A named group of items within a recipe.

    Attributes:
        recipe_id: Foreign key to Recipe
        name: Section title
        sort_order: Display order within the recipe
    """

    __tablename__ = "recipe_sections"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(200), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)

    recipe = relationship("Recipe", back_populates="sections")
    items = relationship(
        "RecipeItem",
        back_populates="section",
        order_by="RecipeItem.sort_order",
        lazy="selectin",
    )

    __table_args__ = (Index("idx_recipe_section_recipe", "recipe_id"),)


class RecipeItem(BaseModel):
    """
    An ingredient used in a recipe.

    Items with a section_id belong to that section; the rest are direct items.

    Attributes:
        recipe_id: Foreign key to Recipe
        section_id: Optional foreign key to RecipeSection
        ingredient_id: Foreign key to Ingredient
        quantity: Amount used
        unit: Unit of quantity (any unit convertible to the ingredient's pack unit)
        sort_order: Display order
    """

    __tablename__ = "recipe_items"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    section_id = Column(
        Integer, ForeignKey("recipe_sections.id", ondelete="CASCADE"), nullable=True
    )
    ingredient_id = Column(
        Integer, ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=False
    )

    quantity = Column(Float, nullable=False)
    unit = Column(String(20), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)

    recipe = relationship("Recipe", back_populates="items")
    section = relationship("RecipeSection", back_populates="items")
    ingredient = relationship("Ingredient", back_populates="recipe_items", lazy="joined")

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_recipe_item_quantity_non_negative"),
        Index("idx_recipe_item_recipe", "recipe_id"),
        Index("idx_recipe_item_ingredient", "ingredient_id"),
    )

    def __repr__(self) -> str:
        return (
            f"RecipeItem(recipe_id={self.recipe_id}, "
            f"ingredient_id={self.ingredient_id}, "
            f"quantity={self.quantity}, unit='{self.unit}')"
        )


class RecipeSubRecipe(BaseModel):
    """
    A quantity of another recipe's output used within a recipe.

    The quantity is expressed in any unit convertible to the sub-recipe's
    yield unit (e.g., 200 g of a sub-recipe yielding 800 g).

    Attributes:
        recipe_id: Foreign key to parent Recipe
        sub_recipe_id: Foreign key to the Recipe being used
        quantity: Amount of the sub-recipe used
        unit: Unit of quantity
        sort_order: Display order
    """

    __tablename__ = "recipe_sub_recipes"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    sub_recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="RESTRICT"), nullable=False
    )

    quantity = Column(Float, nullable=False)
    unit = Column(String(20), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)

    recipe = relationship("Recipe", foreign_keys=[recipe_id], back_populates="sub_recipes")
    sub_recipe = relationship(
        "Recipe", foreign_keys=[sub_recipe_id], back_populates="used_in_recipes"
    )

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_recipe_sub_recipe_quantity_non_negative"),
        CheckConstraint(
            "recipe_id != sub_recipe_id",
            name="ck_recipe_sub_recipe_no_self_reference",
        ),
        Index("idx_recipe_sub_recipe_recipe", "recipe_id"),
        Index("idx_recipe_sub_recipe_sub", "sub_recipe_id"),
    )

    def __repr__(self) -> str:
        return (
            f"RecipeSubRecipe(recipe_id={self.recipe_id}, "
            f"sub_recipe_id={self.sub_recipe_id}, "
            f"quantity={self.quantity}, unit='{self.unit}')"
        )
