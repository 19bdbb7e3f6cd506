"""Data Transfer Objects for the costing engine.

Snapshots are the immutable records the engine computes over: the caller (or
snapshot_service) loads ingredients and recipes once and hands them in as
`ingredients_by_id` / `recipes_by_id` maps. Results come back as a
CostBreakdown.

`from_dict` constructors accept both snake_case keys and the camelCase keys
used by exported application data (`packQuantity`, `densityGPerMl`, ...).
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present in `data`."""
    for key in keys:
        if key in data:
            return data[key]
    return default


@dataclass(frozen=True)
class IngredientSnapshot:
    """An ingredient as purchased.

    Attributes:
        id: Ingredient identifier
        name: Display name, also used for density table lookup
        pack_quantity: Amount in one pack, in `pack_unit` (must be > 0)
        pack_unit: Unit the pack is sold in (e.g., "g", "ml", "each")
        pack_price: Price of one pack
        density_g_per_ml: Optional density override
        allergens: Declared allergens, as a list or a JSON-encoded string
    """

    id: Any
    name: str
    pack_quantity: float
    pack_unit: str
    pack_price: float
    density_g_per_ml: Optional[float] = None
    allergens: Any = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IngredientSnapshot":
        return cls(
            id=data["id"],
            name=_pick(data, "name", default=""),
            pack_quantity=_pick(data, "pack_quantity", "packQuantity"),
            pack_unit=_pick(data, "pack_unit", "packUnit"),
            pack_price=_pick(data, "pack_price", "packPrice"),
            density_g_per_ml=_pick(data, "density_g_per_ml", "densityGPerMl"),
            allergens=_pick(data, "allergens"),
        )


@dataclass(frozen=True)
class RecipeItemLine:
    """One ingredient's usage within a recipe."""

    ingredient_id: Any
    quantity: float
    unit: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecipeItemLine":
        return cls(
            ingredient_id=_pick(data, "ingredient_id", "ingredientId"),
            quantity=data["quantity"],
            unit=data["unit"],
        )


@dataclass(frozen=True)
class SubRecipeLine:
    """A quantity of another recipe's output used within a recipe."""

    sub_recipe_id: Any
    quantity: float
    unit: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubRecipeLine":
        return cls(
            sub_recipe_id=_pick(data, "sub_recipe_id", "subRecipeId"),
            quantity=data["quantity"],
            unit=data["unit"],
        )


@dataclass(frozen=True)
class RecipeSection:
    """A named group of recipe items (e.g., "Dough", "Filling")."""

    name: str
    items: Tuple[RecipeItemLine, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecipeSection":
        return cls(
            name=_pick(data, "name", "title", default=""),
            items=tuple(
                RecipeItemLine.from_dict(item)
                for item in _pick(data, "items", "ingredients", default=[])
            ),
        )


@dataclass(frozen=True)
class RecipeSnapshot:
    """A recipe and its composition.

    Attributes:
        id: Recipe identifier
        name: Recipe name
        yield_quantity: Amount the recipe produces (must be > 0)
        yield_unit: Unit of the yield (e.g., "each", "g")
        items: Ingredient lines outside any section
        sections: Named sections, each with its own ingredient lines
        sub_recipes: References to other recipes' output
        allergens: Allergens declared on the recipe itself
        selling_price: Price of one output unit, when sold
    """

    id: Any
    name: str
    yield_quantity: float
    yield_unit: str
    items: Tuple[RecipeItemLine, ...] = ()
    sections: Tuple[RecipeSection, ...] = ()
    sub_recipes: Tuple[SubRecipeLine, ...] = ()
    allergens: Any = None
    selling_price: Optional[float] = None

    def all_items(self) -> List[RecipeItemLine]:
        """Direct items followed by every section's items, in order."""
        flattened = list(self.items)
        for section in self.sections:
            flattened.extend(section.items)
        return flattened

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecipeSnapshot":
        return cls(
            id=data["id"],
            name=_pick(data, "name", default=""),
            yield_quantity=_pick(data, "yield_quantity", "yieldQuantity"),
            yield_unit=_pick(data, "yield_unit", "yieldUnit"),
            items=tuple(
                RecipeItemLine.from_dict(item)
                for item in _pick(data, "items", "ingredients", default=[])
            ),
            sections=tuple(
                RecipeSection.from_dict(section) for section in _pick(data, "sections", default=[])
            ),
            sub_recipes=tuple(
                SubRecipeLine.from_dict(sub)
                for sub in _pick(data, "sub_recipes", "subRecipes", default=[])
            ),
            allergens=_pick(data, "allergens"),
            selling_price=_pick(data, "selling_price", "sellingPrice"),
        )


@dataclass(frozen=True)
class CostLine:
    """The cost contribution of one recipe line."""

    kind: str  # "ingredient" or "sub_recipe"
    ref_id: Any
    name: str
    quantity: float
    unit: str
    cost: float
    cost_per_unit: float


@dataclass(frozen=True)
class LineError:
    """A recipe line that could not be costed.

    Attributes:
        kind: Exception class name (e.g., "MissingIngredient")
        ref_id: Missing ingredient or sub-recipe id
        recipe_id: Recipe the line belongs to
        message: Human readable error
        path: Recipe ids from the top-level recipe down to `recipe_id`
    """

    kind: str
    ref_id: Any
    recipe_id: Any
    message: str
    path: Tuple[Any, ...] = ()

    @classmethod
    def from_exception(cls, error: Exception, ref_id: Any, recipe_id: Any, path=()) -> "LineError":
        return cls(
            kind=type(error).__name__,
            ref_id=ref_id,
            recipe_id=recipe_id,
            message=str(error),
            path=tuple(path),
        )


@dataclass(frozen=True)
class CostBreakdown:
    """Result of rolling up a recipe's cost.

    A breakdown with errors is incomplete: the totals only cover the lines
    that could be costed.
    """

    recipe_id: Any
    recipe_name: str
    total_cost: float
    cost_per_output_unit: float
    yield_quantity: float
    yield_unit: str
    ingredient_costs: Tuple[CostLine, ...] = ()
    sub_recipe_costs: Tuple[CostLine, ...] = ()
    errors: Tuple[LineError, ...] = field(default_factory=tuple)
    food_cost_percentage: Optional[float] = None

    @property
    def is_complete(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["is_complete"] = self.is_complete
        return result
