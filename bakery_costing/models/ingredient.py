"""
Ingredient model for purchasable ingredients.

An ingredient is costed by its pack: "Butter, 500 g for £2.50". Density can
be stored directly in g/ml or as a user-friendly measurement
("1 cup = 125 g") using the 4-field measurement.
"""

import json
from typing import List, Optional

from sqlalchemy import Column, Float, Index, String, Text
from sqlalchemy.orm import relationship

from .base import BaseModel


class Ingredient(BaseModel):
    """
    Ingredient model.

    Attributes:
        name: Ingredient name, also used for built-in density lookup
        category: Optional category (e.g., "Flour", "Dairy")
        pack_quantity: Amount in one pack, in pack_unit
        pack_unit: Unit the pack is sold in
        pack_price: Price of one pack

        density_g_per_ml: Explicit density override

        # User-friendly density measurement (4-field model):
        density_volume_value: Volume amount (e.g., 1.0)
        density_volume_unit: Volume unit (e.g., "cup")
        density_weight_value: Weight amount (e.g., 125.0)
        density_weight_unit: Weight unit (e.g., "g")

        allergens: JSON-encoded list of allergen labels
    """

    __tablename__ = "ingredients"

    name = Column(String(200), nullable=False, index=True)
    category = Column(String(100), nullable=True)

    pack_quantity = Column(Float, nullable=False)
    pack_unit = Column(String(20), nullable=False)
    pack_price = Column(Float, nullable=False, default=0.0)

    density_g_per_ml = Column(Float, nullable=True)

    density_volume_value = Column(Float, nullable=True)
    density_volume_unit = Column(String(20), nullable=True)
    density_weight_value = Column(Float, nullable=True)
    density_weight_unit = Column(String(20), nullable=True)

    # Stored as text: legacy rows hold either a JSON list or free text
    allergens = Column(Text, nullable=True)

    recipe_items = relationship("RecipeItem", back_populates="ingredient", lazy="select")

    __table_args__ = (Index("idx_ingredient_name", "name"),)

    def __repr__(self) -> str:
        return f"Ingredient(id={self.id}, name='{self.name}', pack={self.pack_quantity} {self.pack_unit})"

    def get_density_g_per_ml(self) -> Optional[float]:
        """
        Effective stored density in g/ml.

        Returns:
            density_g_per_ml when set, else the density calculated from the
            4-field measurement, else None
        """
        if self.density_g_per_ml:
            return self.density_g_per_ml

        # Local import to avoid circular dependency
        from bakery_costing.services.density_service import density_from_measurement

        return density_from_measurement(
            self.density_volume_value,
            self.density_volume_unit,
            self.density_weight_value,
            self.density_weight_unit,
        )

    def set_allergens(self, allergens: List[str]) -> None:
        """Store allergen labels as a JSON list."""
        self.allergens = json.dumps(list(allergens))

    def format_density_display(self) -> str:
        """Format density for display."""
        if self.density_volume_value and self.get_density_g_per_ml():
            return (
                f"{self.density_volume_value:g} {self.density_volume_unit} = "
                f"{self.density_weight_value:g} {self.density_weight_unit}"
            )
        density = self.get_density_g_per_ml()
        if density:
            return f"{density:g} g/ml"
        return "Not set"
