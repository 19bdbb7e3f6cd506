"""Service layer logging utilities.

Provides structured logging functions for costing operations, so rollups,
allergen aggregation and snapshot loading all log in the same shape.

Usage:
    from bakery_costing.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    # Log a completed rollup
    log_operation(
        logger,
        operation="rollup_cost",
        outcome="success",
        recipe_id=12,
        total_cost=4.75,
    )

    # Log an incomplete rollup
    log_operation(
        logger,
        operation="rollup_cost",
        outcome="incomplete",
        level=logging.WARNING,
        recipe_id=12,
        failed_lines=2,
    )
"""

import logging
from typing import Any

LOGGER_PREFIX = "bakery_costing.services"


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger instance with the 'bakery_costing.services' prefix.

    Example:
        >>> logger = get_service_logger("bakery_costing.services.costing_service")
        >>> logger.name
        'bakery_costing.services.costing_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The context is passed via the 'extra' parameter so handlers that emit
    structured records can pick the fields up individually.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "rollup_cost", "collect_allergens")
        outcome: Outcome description (e.g., "success", "incomplete", "skipped")
        level: Log level (default: INFO). Use DEBUG for per-line logs.
        **context: Additional context fields
            Common fields:
            - recipe_id: Recipe being processed
            - ingredient_id: Ingredient of the line being costed
            - total_cost: Rolled-up cost
            - failed_lines: Number of lines that could not be costed
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
