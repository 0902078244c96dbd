"""Error types raised while resolving and publishing secrets."""
from typing import Optional


class SecretsActionError(Exception):
    """Base class for every failure that should fail the step."""
    pass


class ConfigError(SecretsActionError):
    """Configuration error exception."""
    pass


class ParseError(SecretsActionError):
    """A line of the secrets input does not describe a valid reference."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class AccessError(SecretsActionError):
    """Secret Manager refused or could not serve a secret version."""

    def __init__(self, locator: str, message: str):
        self.locator = locator
        super().__init__(f"failed to access secret '{locator}': {message}")


class EntitlementDenied(SecretsActionError):
    """The subscription endpoint explicitly rejected this repository."""
    pass
