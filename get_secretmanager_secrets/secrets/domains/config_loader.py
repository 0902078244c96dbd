"""Configuration loader for get-secretmanager-secrets."""
import os
import logging
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError
from .input_validators import (
    parse_boolean,
    parse_min_mask_length,
    validate_encoding,
)
from .models import (
    DEFAULT_ENCODING,
    DEFAULT_MIN_MASK_LENGTH,
    DEFAULT_UNIVERSE,
    ActionConfig,
)

logger = logging.getLogger(__name__)

INPUT_NAMES = ("universe", "secrets", "min_mask_length", "export_to_environment", "encoding")


def build_config(
    secrets: Optional[str],
    universe: Optional[str] = None,
    min_mask_length: Optional[str] = None,
    export_to_environment: Optional[str] = None,
    encoding: Optional[str] = None,
    repository: Optional[str] = None,
) -> ActionConfig:
    """
    Validate raw input strings and build the run configuration.

    Raises:
        ConfigError: If a required input is missing or a value is invalid
    """
    if not secrets or not str(secrets).strip():
        raise ConfigError("Input required and not supplied: secrets")

    encoding = (str(encoding).strip() if encoding else "") or DEFAULT_ENCODING
    validate_encoding(encoding)

    config = ActionConfig(
        secrets=str(secrets),
        universe=(str(universe).strip() if universe else "") or DEFAULT_UNIVERSE,
        min_mask_length=parse_min_mask_length(min_mask_length, DEFAULT_MIN_MASK_LENGTH),
        export_to_environment=parse_boolean(export_to_environment),
        encoding=encoding,
        repository=repository or None,
    )
    logger.debug(
        f"Using universe={config.universe} min_mask_length={config.min_mask_length} "
        f"export_to_environment={config.export_to_environment} encoding={config.encoding}"
    )
    return config


def load_config_from_inputs(runner) -> ActionConfig:
    """
    Load configuration from the action inputs exposed by the runner.

    Args:
        runner: Object providing ``get_input(name, required=False)`` and ``environ``

    Raises:
        ConfigError: If a required input is missing or a value is invalid
    """
    return build_config(
        secrets=runner.get_input("secrets", required=True),
        universe=runner.get_input("universe"),
        min_mask_length=runner.get_input("min_mask_length"),
        export_to_environment=runner.get_input("export_to_environment"),
        encoding=runner.get_input("encoding"),
        repository=runner.environ.get("GITHUB_REPOSITORY"),
    )


def _stringify(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return "\n".join(str(item) for item in value)
    return str(value)


def load_config_from_file(config_path: str, repository: Optional[str] = None) -> ActionConfig:
    """
    Load configuration from a YAML inputs file, for runs outside GitHub Actions.

    The file is a mapping with the same keys as the action inputs. ``secrets``
    may be a block string or a list of reference lines.

    Returns:
        ActionConfig built from the file

    Raises:
        ConfigError: If the file is missing, invalid, or holds invalid values
    """
    if not os.path.exists(config_path):
        raise ConfigError(f"Inputs file not found at: {config_path}")

    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML inputs at {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read inputs file at {config_path}: {e}")

    if not data:
        raise ConfigError(f"Inputs file at {config_path} is empty")

    if not isinstance(data, dict):
        raise ConfigError(f"Inputs file at {config_path} must contain a mapping of input names to values")

    unknown = sorted(set(data) - set(INPUT_NAMES))
    if unknown:
        raise ConfigError(
            f"Unknown inputs in {config_path}: {', '.join(str(k) for k in unknown)}\n"
            f"Supported inputs: {', '.join(INPUT_NAMES)}"
        )

    values: Dict[str, Optional[str]] = {name: _stringify(data.get(name)) for name in INPUT_NAMES}
    logger.info(f"Inputs loaded from {config_path}")
    return build_config(repository=repository or os.getenv("GITHUB_REPOSITORY"), **values)
