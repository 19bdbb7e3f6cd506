"""Services package - costing engine and repository layer.

Architecture:
- Engine: Pure functions over immutable snapshots (no database access)
- Repository: Loads snapshots from the database or exported JSON
- Exceptions: Consistent error handling via ServiceError hierarchy

Engine Modules:
- unit_converter: Unit table and conversions between mass, volume and count
- density_service: Ingredient density resolution
- costing_service: Ingredient cost and recipe cost rollup
- allergen_service: Allergen aggregation

Repository Modules:
- database: Engine and session management
- snapshot_service: Model/JSON -> snapshot loading

Infrastructure:
- dto: Snapshot and result records
- exceptions: Custom exception classes
- logging_utils: Structured logging helpers
"""

from .allergen_service import collect_allergens
from .costing_service import cost_of, rollup_cost
from .density_service import resolve_density
from .unit_converter import convert

__all__ = [
    "collect_allergens",
    "convert",
    "cost_of",
    "resolve_density",
    "rollup_cost",
]
