"""Input validation for action inputs."""
from typing import Optional

from .errors import ConfigError
from .gcp_client import resolve_codec

TRUE_VALUES = {"1", "t", "true"}
FALSE_VALUES = {"0", "f", "false"}


def parse_boolean(value: Optional[str], default: bool = False) -> bool:
    """
    Parse a permissive boolean input.

    Accepts ``true``/``t``/``1`` and ``false``/``f``/``0`` in any case. An
    empty value yields the default.

    Raises:
        ConfigError: If the value is not a recognised boolean
    """
    if value is None:
        return default
    normalized = str(value).strip().lower()
    if not normalized:
        return default
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ConfigError(f"invalid boolean value \"{value}\"")


def parse_min_mask_length(value: Optional[str], default: int) -> int:
    """
    Parse the minimum mask length input.

    Raises:
        ConfigError: If the value is not a non-negative integer
    """
    if value is None or not str(value).strip():
        return default
    try:
        length = int(str(value).strip())
    except ValueError:
        raise ConfigError(f"min_mask_length must be an integer, got \"{value}\"")
    if length < 0:
        raise ConfigError(f"min_mask_length must be zero or greater, got {length}")
    return length


def validate_encoding(encoding: str) -> None:
    """
    Validate the payload encoding name.

    Raises:
        ConfigError: If no codec matches the name
    """
    try:
        resolve_codec(encoding)
    except LookupError:
        raise ConfigError(
            f"unsupported encoding \"{encoding}\" (use base64, hex or a text codec such as utf8 or latin1)"
        )
