"""
Costing CLI Utility

Simple command-line interface for unit conversions, recipe cost breakdowns and
allergen lists. Recipes come from the configured database, or from an
exported JSON snapshot with --snapshot.

Usage Examples:
    # Convert a quantity (density needed between mass and volume)
    python -m bakery_costing.utils.costing_cli convert 1 lb oz
    python -m bakery_costing.utils.costing_cli convert 250 ml g --density 1.03

    # Cost breakdown for a stored recipe
    python -m bakery_costing.utils.costing_cli cost 12

    # Cost breakdown from an exported snapshot, failing on missing references
    python -m bakery_costing.utils.costing_cli cost 12 --snapshot export.json --strict

    # Allergens for a recipe, including the common allergen checklist
    python -m bakery_costing.utils.costing_cli allergens 12 --snapshot export.json --matrix
"""

import argparse
import logging
import sys

from bakery_costing.services.allergen_service import allergen_matrix, collect_allergens
from bakery_costing.services.costing_service import format_cost_breakdown, rollup_cost
from bakery_costing.services.database import initialize_app_database
from bakery_costing.services.exceptions import ServiceError
from bakery_costing.services.snapshot_service import (
    calculate_recipe_cost,
    find_recipe,
    get_recipe_allergens,
    load_snapshot_file,
)
from bakery_costing.services.unit_converter import try_convert
from bakery_costing.utils.config import get_config


def convert_quantity(quantity: float, from_unit: str, to_unit: str, density=None, precision: int = 2):
    """Convert a quantity and print the result."""
    success, value, error = try_convert(quantity, from_unit, to_unit, density)

    if success:
        print(f"{quantity:g} {from_unit} = {value:.{precision}f} {to_unit}")
        return 0
    else:
        print(f"ERROR: {error}")
        return 1


def show_cost(recipe_id: str, snapshot_file: str = None, strict: bool = False, currency: str = "£"):
    """Print the cost breakdown for a recipe."""
    try:
        if snapshot_file:
            ingredients_by_id, recipes_by_id = load_snapshot_file(snapshot_file)
            recipe = find_recipe(recipes_by_id, recipe_id)
            breakdown = rollup_cost(recipe, ingredients_by_id, recipes_by_id, strict=strict)
        else:
            initialize_app_database()
            breakdown = calculate_recipe_cost(_database_id(recipe_id), strict=strict)
    except (ServiceError, OSError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1

    print(format_cost_breakdown(breakdown, currency))
    if not breakdown.is_complete:
        print()
        print("Cost breakdown incomplete - see warnings")
    return 0


def show_allergens(recipe_id: str, snapshot_file: str = None, strict: bool = False, matrix: bool = False):
    """Print the allergens for a recipe."""
    try:
        if snapshot_file:
            ingredients_by_id, recipes_by_id = load_snapshot_file(snapshot_file)
            recipe = find_recipe(recipes_by_id, recipe_id)
            allergens = collect_allergens(recipe, ingredients_by_id, recipes_by_id, strict=strict)
        else:
            initialize_app_database()
            allergens = get_recipe_allergens(_database_id(recipe_id), strict=strict)
    except (ServiceError, OSError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1

    if allergens:
        print("Allergens: " + ", ".join(allergens))
    else:
        print("Allergens: none declared")

    if matrix:
        print()
        for allergen, present in allergen_matrix(allergens).items():
            print(f"  [{'x' if present else ' '}] {allergen}")
    return 0


def _database_id(recipe_id: str) -> int:
    try:
        return int(recipe_id)
    except ValueError:
        raise ValueError(f"Recipe ID must be an integer when reading from the database: {recipe_id!r}")


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else get_config().log_level
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="bakery-costing",
        description="Unit conversion and recipe costing for bakery recipes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Convert between units:
    bakery-costing convert 2 cup ml
    bakery-costing convert 500 g cup --density 0.6

  Recipe cost breakdown:
    bakery-costing cost 12
    bakery-costing cost 12 --snapshot export.json --strict

  Recipe allergens:
    bakery-costing allergens 12 --snapshot export.json --matrix
""",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    convert_parser = subparsers.add_parser("convert", help="Convert a quantity between units")
    convert_parser.add_argument("quantity", type=float, help="Quantity to convert")
    convert_parser.add_argument("from_unit", help="Unit to convert from")
    convert_parser.add_argument("to_unit", help="Unit to convert to")
    convert_parser.add_argument(
        "--density", type=float, help="Density in g/ml, required between mass and volume"
    )
    convert_parser.add_argument(
        "--precision", type=int, default=2, help="Decimal places to show (default: 2)"
    )

    cost_parser = subparsers.add_parser("cost", help="Show a recipe cost breakdown")
    cost_parser.add_argument("recipe_id", help="Recipe ID")
    cost_parser.add_argument("--snapshot", dest="snapshot_file", help="Exported JSON snapshot file")
    cost_parser.add_argument(
        "--strict", action="store_true", help="Fail on missing ingredients or sub-recipes"
    )
    cost_parser.add_argument("--currency", default="£", help="Currency symbol (default: £)")

    allergens_parser = subparsers.add_parser("allergens", help="List a recipe's allergens")
    allergens_parser.add_argument("recipe_id", help="Recipe ID")
    allergens_parser.add_argument(
        "--snapshot", dest="snapshot_file", help="Exported JSON snapshot file"
    )
    allergens_parser.add_argument(
        "--strict", action="store_true", help="Fail on missing ingredients or sub-recipes"
    )
    allergens_parser.add_argument(
        "--matrix", action="store_true", help="Also show the common allergen checklist"
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    _configure_logging(args.verbose)

    if args.command == "convert":
        return convert_quantity(
            args.quantity, args.from_unit, args.to_unit, args.density, args.precision
        )
    elif args.command == "cost":
        return show_cost(args.recipe_id, args.snapshot_file, args.strict, args.currency)
    elif args.command == "allergens":
        return show_allergens(args.recipe_id, args.snapshot_file, args.strict, args.matrix)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
