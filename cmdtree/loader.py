"""
Configuration loading for the cmdtree CLI.

Finds the configuration file, deserializes it (YAML or JSON) and validates
it into an immutable Configuration.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from cmdtree.constants import CONFIG_FILE_ENV_VAR, CONFIG_FILE_NAMES
from cmdtree.exceptions import ConfigurationError
from cmdtree.models import Configuration

logger = logging.getLogger(__name__)


def find_config_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Search a directory and its parents for a configuration file.

    Args:
        start_dir: Directory to start from. Defaults to the current directory.

    Returns:
        Path to the first configuration file found, or None.
    """
    directory = (start_dir or Path.cwd()).resolve()
    for candidate_dir in [directory, *directory.parents]:
        for file_name in CONFIG_FILE_NAMES:
            candidate = candidate_dir / file_name
            if candidate.is_file():
                logger.debug(f"Found configuration file {candidate}")
                return candidate
    return None


def parse_config(text: str, source: str = "<string>", as_json: bool = False) -> Configuration:
    """
    Parse configuration text into a Configuration.

    Args:
        text: Raw YAML or JSON text.
        source: Name of the text's origin, used in error messages.
        as_json: Parse as JSON instead of YAML.

    Returns:
        The validated Configuration.

    Raises:
        ConfigurationError: If the text is not valid YAML/JSON or fails validation.
    """
    try:
        data: Any = json.loads(text) if as_json else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Invalid configuration format in '{source}': {e}")

    if data is None:
        raise ConfigurationError(f"Configuration file '{source}' is empty.")
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{source}' must contain a mapping.")

    try:
        return Configuration.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in '{source}':\n{e}")


class ConfigLoader:
    """
    Loads the Configuration once and caches it.

    Path resolution order:
    1. The explicit ``config_path``
    2. The ``CMDTREE_FILE`` environment variable
    3. The first configuration file found in ``start_dir`` or one of its parents

    Usage:
        loader = ConfigLoader()
        config = loader.load()

        loader = ConfigLoader(config_path=Path("tasks/cmdtree.yaml"))
        config = loader.load()
    """

    def __init__(self, config_path: Optional[Path] = None, start_dir: Optional[Path] = None) -> None:
        """
        Initialize ConfigLoader.

        Args:
            config_path: Direct path to the configuration file.
            start_dir: Directory to start searching from when no path is given.
        """
        self._config: Optional[Configuration] = None
        self._explicit_path = config_path
        self._start_dir = start_dir
        self._config_path: Optional[Path] = None

    @property
    def config_path(self) -> Optional[Path]:
        """Get the configuration file path, or None if none can be found."""
        if self._config_path is None:
            self._config_path = self._resolve_path()
        return self._config_path

    def _resolve_path(self) -> Optional[Path]:
        if self._explicit_path is not None:
            return self._explicit_path
        env_path = os.environ.get(CONFIG_FILE_ENV_VAR)
        if env_path:
            logger.debug(f"Using configuration file from {CONFIG_FILE_ENV_VAR}: {env_path}")
            return Path(env_path)
        return find_config_file(self._start_dir)

    def load(self) -> Configuration:
        """
        Load the configuration, reading the file only on first use.

        Returns:
            The validated Configuration.

        Raises:
            ConfigurationError: If no file is found or it cannot be read or validated.
        """
        if self._config is not None:
            return self._config

        path = self.config_path
        if path is None:
            names = ", ".join(CONFIG_FILE_NAMES)
            raise ConfigurationError(
                f"No configuration file found. Looked for {names} in this directory and its parents."
            )

        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Could not read configuration file '{path}': {e}")

        self._config = parse_config(text, source=str(path), as_json=path.suffix == ".json")
        logger.info(f"Loaded configuration from {path}")
        return self._config

    def reload(self) -> Configuration:
        """Force a re-read of the configuration file."""
        self._config = None
        self._config_path = None
        return self.load()
