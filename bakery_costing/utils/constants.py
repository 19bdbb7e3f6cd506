"""
Constants for the bakery costing engine.

This module defines all system-wide constants including:
- Application metadata
- Unit tokens per measurement domain and their base units
- Unit aliases accepted on input
- Common allergen labels
- Validation limits and error messages
"""

from typing import Dict, List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Bakery Costing"
APP_VERSION = "0.1.0"
DATABASE_FILENAME = "bakery_costing.db"
ENV_PREFIX = "BAKERY_COSTING"

# ============================================================================
# Unit Domains
# ============================================================================

DOMAIN_MASS = "mass"
DOMAIN_VOLUME = "volume"
DOMAIN_COUNT = "count"

# Mass units
MASS_UNITS: List[str] = [
    "g",  # Gram
    "kg",  # Kilogram
    "mg",  # Milligram
    "lb",  # Pound
    "oz",  # Ounce
    "large",  # Large item (approximate)
    "medium",  # Medium item (approximate)
    "small",  # Small item (approximate)
]

# Volume units
VOLUME_UNITS: List[str] = [
    "ml",  # Millilitre
    "l",  # Litre
    "tsp",  # Teaspoon
    "tbsp",  # Tablespoon
    "cup",  # Cup
    "floz",  # Fluid ounce
    "pint",  # Pint
    "quart",  # Quart
    "gallon",  # Gallon
    "pinch",  # Pinch
    "dash",  # Dash
]

# Count/discrete units
COUNT_UNITS: List[str] = [
    "each",  # Individual items
    "slices",  # Slices
]

ALL_UNITS: List[str] = MASS_UNITS + VOLUME_UNITS + COUNT_UNITS

# Base unit per domain. Count units are their own base.
BASE_UNITS: Dict[str, str] = {
    DOMAIN_MASS: "g",
    DOMAIN_VOLUME: "ml",
}

# Alternative spellings normalised to the canonical token
UNIT_ALIASES: Dict[str, str] = {
    "gram": "g",
    "grams": "g",
    "kilogram": "kg",
    "kilograms": "kg",
    "milligram": "mg",
    "milligrams": "mg",
    "lbs": "lb",
    "pound": "lb",
    "pounds": "lb",
    "ounce": "oz",
    "ounces": "oz",
    "millilitre": "ml",
    "millilitres": "ml",
    "milliliter": "ml",
    "milliliters": "ml",
    "litre": "l",
    "litres": "l",
    "liter": "l",
    "liters": "l",
    "teaspoon": "tsp",
    "teaspoons": "tsp",
    "tablespoon": "tbsp",
    "tablespoons": "tbsp",
    "cups": "cup",
    "fl oz": "floz",
    "fl. oz": "floz",
    "pt": "pint",
    "pints": "pint",
    "qt": "quart",
    "quarts": "quart",
    "gal": "gallon",
    "gallons": "gallon",
    "ea": "each",
    "piece": "each",
    "pieces": "each",
    "pcs": "each",
    "slice": "slices",
}

# ============================================================================
# Allergens
# ============================================================================

# The 14 allergens that must be declared on UK/EU food labels
COMMON_ALLERGENS: List[str] = [
    "Gluten",
    "Dairy",
    "Eggs",
    "Nuts",
    "Peanuts",
    "Soy",
    "Fish",
    "Shellfish",
    "Sesame",
    "Mustard",
    "Celery",
    "Lupin",
    "Sulphites",
    "Molluscs",
]

# ============================================================================
# Validation Limits
# ============================================================================

MAX_NAME_LENGTH = 200
MAX_QUANTITY = 1e9
MAX_PRICE = 1e9

# ============================================================================
# Error Messages
# ============================================================================

ERROR_REQUIRED_FIELD = "This field is required"
ERROR_INVALID_NUMBER = "Must be a valid number"
ERROR_INVALID_POSITIVE = "Must be greater than zero"
ERROR_INVALID_NON_NEGATIVE = "Cannot be negative"
ERROR_INVALID_UNIT = "Invalid unit"
