"""Handles loading configuration from YAML files."""

import yaml
import os
import logging
from typing import Any, Dict, Mapping, Optional

from .exceptions import ConfigurationError
from .models import CondenseOptions

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    'output_dir': "",
    'output_suffix': "_condensed",
    'output_format': "wav",
    'vad_threshold': 0.3,
    'min_silence_duration_ms': 200,
    'speech_padding_ms': 200,
    'ffmpeg_path': None,
    'use_onnx': False,
    'log_dir': "logs",
    'log_file': "vadcondense.log",
}

class ConfigLoader:
    """Loads configuration settings from a YAML file."""

    def load_config(self, config_path: str) -> dict:
        """
        Loads configuration from the specified YAML file path.

        Args:
            config_path: The path to the YAML configuration file.

        Returns:
            The defaults updated with the file's settings.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            ConfigurationError: If the file cannot be parsed as YAML,
                              has unknown keys, or cannot be read.
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
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Invalid YAML format in {config_path}: {e}") from e
        except IOError as e:
            logger.error(f"Error reading configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Could not read configuration file {config_path}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            logger.error(f"Configuration file {config_path} did not load as a dictionary (root object).")
            raise ConfigurationError(f"Invalid YAML structure in {config_path}. Root must be a mapping (dictionary).")

        unknown = sorted(set(loaded) - set(DEFAULT_CONFIG))
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys in {config_path}: {', '.join(unknown)}")

        config = dict(DEFAULT_CONFIG)
        config.update(loaded)
        logger.info(f"Configuration loaded successfully from {config_path}")
        return config


def options_from_config(config: Mapping[str, Any], overrides: Optional[Mapping[str, Any]] = None) -> CondenseOptions:
    """
    Builds validated CondenseOptions from a config mapping.

    Args:
        config: Settings, usually from ConfigLoader.load_config or DEFAULT_CONFIG.
        overrides: Values that win over the config; None entries are ignored.

    Raises:
        ConfigurationError: If a value has the wrong type or is out of range.
    """
    merged = dict(DEFAULT_CONFIG)
    merged.update(config)
    for key, value in (overrides or {}).items():
        if value is not None:
            logger.info(f"Overriding {key} from config with CLI argument: {value}")
            merged[key] = value

    try:
        threshold = float(merged['vad_threshold'])
        min_silence = int(merged['min_silence_duration_ms'])
        padding = int(merged['speech_padding_ms'])
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid numeric detection setting: {e}") from e

    if not 0.0 <= threshold <= 1.0:
        raise ConfigurationError(f"vad_threshold must be between 0 and 1, got {threshold}")
    if min_silence < 0:
        raise ConfigurationError(f"min_silence_duration_ms must be >= 0, got {min_silence}")
    if padding < 0:
        raise ConfigurationError(f"speech_padding_ms must be >= 0, got {padding}")

    output_format = str(merged['output_format'] or "").lstrip('.')
    if not output_format:
        raise ConfigurationError("output_format cannot be empty")

    return CondenseOptions(
        output_suffix=str(merged['output_suffix'] or ""),
        output_dir=str(merged['output_dir'] or ""),
        output_format=output_format,
        vad_threshold=threshold,
        min_silence_duration_ms=min_silence,
        speech_padding_ms=padding,
    )
