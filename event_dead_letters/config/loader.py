"""
Configuration Loader - Load YAML configuration files
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from event_dead_letters.config.settings import DeadLettersSettings

logger = logging.getLogger(__name__)


def load_yaml_config(file_path: str) -> Dict[str, Any]:
    """
    Load YAML configuration file

    Args:
        file_path: Path to YAML file

    Returns:
        Dictionary containing configuration

    Raises:
        FileNotFoundError: If configuration file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)

        if config is None:
            logger.warning(f"Empty configuration file: {file_path}")
            return {}

        if not isinstance(config, dict):
            raise yaml.YAMLError(f"Top level of {file_path} must be a mapping")

        logger.info(f"Loaded configuration from {file_path}")
        return config

    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML file {file_path}: {e}")
        raise


def load_config(config_path: Optional[str] = None) -> DeadLettersSettings:
    """
    Load dead letter store configuration from a YAML file or environment variables

    Values from the YAML file are passed as init arguments, so they take
    precedence over environment variables for the keys they set.

    Args:
        config_path: Optional path to YAML config file. If None, uses environment variables.

    Returns:
        DeadLettersSettings: Validated configuration object

    Raises:
        FileNotFoundError: If config file specified but not found
        yaml.YAMLError: If YAML parsing fails
        ValidationError: If configuration validation fails

    Examples:
        >>> config = load_config()
        >>> config = load_config("config/dead-letters.yaml")
    """
    if config_path:
        yaml_config = load_yaml_config(config_path)
        config = DeadLettersSettings(**yaml_config)
    else:
        config = DeadLettersSettings()
        logger.info("Loaded configuration from environment variables")

    logger.debug(f"Configuration loaded, backend={config.backend}")
    return config
