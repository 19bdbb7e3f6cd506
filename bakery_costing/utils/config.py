"""
Configuration management for the bakery costing engine.

This module handles:
- Environment selection (production, development, test)
- Database location for the snapshot repository layer
- Log level

Settings come from environment variables prefixed with BAKERY_COSTING_:
- BAKERY_COSTING_ENV: "production" (default), "development" or "test"
- BAKERY_COSTING_DATABASE_URL: SQLAlchemy URL overriding the default SQLite file
- BAKERY_COSTING_LOG_LEVEL: Logging level name (default INFO, DEBUG in development)
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import APP_NAME, APP_VERSION, DATABASE_FILENAME, ENV_PREFIX

VALID_ENVIRONMENTS = ("production", "development", "test")


class Config:
    """
    Application configuration manager.

    Handles database location and logging settings for one environment.
    """

    def __init__(self, environment: str = "production"):
        """
        Initialize configuration.

        Args:
            environment: 'production', 'development' or 'test'

        Raises:
            ValueError: If environment is not recognised
        """
        if environment not in VALID_ENVIRONMENTS:
            raise ValueError(
                f"Unknown environment '{environment}', expected one of {VALID_ENVIRONMENTS}"
            )

        self.environment = environment
        self._app_name = APP_NAME
        self._app_version = APP_VERSION

        if environment == "development":
            self._base_dir = self._get_project_data_dir()
        else:
            self._base_dir = self._get_user_data_dir()

        self._database_path = self._base_dir / DATABASE_FILENAME

    def _get_project_data_dir(self) -> Path:
        """Project data/ directory, used in development."""
        project_root = Path(__file__).parent.parent.parent
        return project_root / "data"

    def _get_user_data_dir(self) -> Path:
        """Per-user data directory, used in production."""
        return Path.home() / ".bakery_costing"

    def ensure_directories(self) -> None:
        """Create the data directory if it doesn't exist."""
        self._base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def app_name(self) -> str:
        """Application name."""
        return self._app_name

    @property
    def app_version(self) -> str:
        """Application version."""
        return self._app_version

    @property
    def database_path(self) -> Path:
        """Full path to the default SQLite database file."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        Returns:
            BAKERY_COSTING_DATABASE_URL if set, an in-memory SQLite URL in the
            test environment, otherwise the SQLite file under the data directory
        """
        override = os.environ.get(f"{ENV_PREFIX}_DATABASE_URL")
        if override:
            return override
        if self.environment == "test":
            return "sqlite:///:memory:"
        return self._file_database_url()

    def _file_database_url(self) -> str:
        # Use forward slashes for SQLite URL
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def uses_file_database(self) -> bool:
        """True when the database URL points at the default SQLite file."""
        return self.database_url == self._file_database_url()

    @property
    def log_level(self) -> int:
        """Logging level from BAKERY_COSTING_LOG_LEVEL, falling back to the environment default."""
        default = "DEBUG" if self.environment == "development" else "INFO"
        name = os.environ.get(f"{ENV_PREFIX}_LOG_LEVEL", default).upper()
        level = logging.getLevelName(name)
        return level if isinstance(level, int) else logging.INFO

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def __repr__(self) -> str:
        """String representation of config."""
        return f"Config(environment='{self.environment}', database_url='{self.database_url}')"


# Global configuration instance
_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment cannot be changed by passing
    a different environment argument.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    BAKERY_COSTING_ENV or defaults to production. Ignored if
                    singleton already exists.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get(f"{ENV_PREFIX}_ENV", "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger = logging.getLogger(__name__)
        logger.warning(
            f"get_config() called with environment='{environment}' but singleton "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing singleton."
        )

    return _config_instance


def reset_config():
    """
    Reset the global configuration instance.

    Useful for testing.
    """
    global _config_instance
    _config_instance = None
