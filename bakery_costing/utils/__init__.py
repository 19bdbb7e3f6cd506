"""Utilities package: constants, configuration, validation and the CLI."""
