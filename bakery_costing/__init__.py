"""Bakery Costing - unit conversion and recipe cost rollup engine."""

from bakery_costing.utils.constants import APP_VERSION

__version__ = APP_VERSION
