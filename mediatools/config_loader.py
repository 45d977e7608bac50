"""Handles loading configuration from YAML files."""

import dataclasses
import yaml
import os
import logging
from typing import Any, Dict, Optional

from .exceptions import ConfigurationError
from .models import TranscriptionOptions

logger = logging.getLogger(__name__)

class ConfigLoader:
    """Loads configuration settings from a YAML file."""

    def load_config(self, config_path: str) -> dict:
        """
        Loads configuration from the specified YAML file path.

        Args:
            config_path: The path to the YAML configuration file.

        Returns:
            A dictionary containing the loaded configuration settings.
            An empty file yields an empty dictionary.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            ConfigurationError: If the file cannot be parsed as YAML or
                              if there are other reading errors.
        """
        logger.info(f"Attempting to load configuration from: {config_path}")
        if not os.path.exists(config_path):
            logger.error(f"Configuration file not found at path: {config_path}")
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        if not os.path.isfile(config_path):
            logger.error(f"Configuration path is not a file: {config_path}")
            raise ConfigurationError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Invalid YAML format in {config_path}: {e}") from e
        except OSError as e:
            logger.error(f"Error reading configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Could not read configuration file {config_path}: {e}") from e

        if config is None:
            config = {}
        if not isinstance(config, dict):
            logger.error(f"Configuration file {config_path} did not load as a dictionary (root object).")
            raise ConfigurationError(f"Invalid YAML structure in {config_path}. Root must be a mapping (dictionary).")
        logger.info(f"Configuration loaded successfully from {config_path}")
        return config


def options_from_config(config: Optional[Dict[str, Any]], **overrides: Any) -> TranscriptionOptions:
    """
    Builds TranscriptionOptions from the `transcription` section of a config.

    Keyword overrides that are not None take precedence over the file.

    Raises:
        ConfigurationError: If the `transcription` section is not a mapping.
    """
    section = (config or {}).get('transcription') or {}
    if not isinstance(section, dict):
        raise ConfigurationError("'transcription' section must be a mapping.")

    known = {f.name for f in dataclasses.fields(TranscriptionOptions)}
    values = {}
    for key, value in section.items():
        if key in known:
            values[key] = value
        else:
            logger.warning(f"Ignoring unknown transcription setting '{key}'")

    for key, value in overrides.items():
        if value is not None:
            logger.info(f"Overriding transcription setting '{key}' with CLI argument: {value}")
            values[key] = value
    return TranscriptionOptions(**values)
