"""Configuration dependency for FastAPI and the command-line interface."""

from __future__ import annotations

import os
from pathlib import Path

from ..config import Config
from ..constants import CONFIG_PATH

__all__ = ["ConfigDependency", "config_dependency"]


class ConfigDependency:
    """Load and cache the Rolecall configuration.

    The path defaults to ``ROLECALL_CONFIG_PATH`` if set, otherwise to the
    standard location. The file is read the first time the configuration is
    requested and again whenever the path changes, which lets the test suite
    and the command-line interface point the shared dependency at another
    file. Loading the configuration also configures logging.
    """

    def __init__(self) -> None:
        config_path = os.getenv("ROLECALL_CONFIG_PATH", CONFIG_PATH)
        self._config_path = Path(config_path)
        self._config: Config | None = None

    async def __call__(self) -> Config:
        return self.config()

    def config(self) -> Config:
        """Return the configuration, loading it if needed.

        Unlike calling the dependency, this is not async and therefore can be
        used during application construction.
        """
        if self._config is None:
            self._config = self._load()
        return self._config

    def set_config_path(self, path: Path) -> None:
        """Switch to a different configuration file and load it.

        Parameters
        ----------
        path
            Path to the new configuration file.
        """
        self._config_path = path
        self._config = self._load()

    def _load(self) -> Config:
        config = Config.from_file(self._config_path)
        config.configure_logging()
        return config


config_dependency = ConfigDependency()
"""Shared dependency returning the current Rolecall configuration."""
