"""GitHub Actions runner primitives: inputs, masking, outputs and env exports.

Implements the workflow-command (``::add-mask::``, ``::error::``) and
file-command (``GITHUB_OUTPUT``, ``GITHUB_ENV``) protocols the runner reads.
"""
import os
import sys
import uuid
from typing import MutableMapping, Optional, TextIO

from get_secretmanager_secrets.secrets.domains.errors import ConfigError


def escape_data(value: str) -> str:
    """Escape a workflow command message."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def escape_property(value: str) -> str:
    """Escape a workflow command property value."""
    return escape_data(value).replace(":", "%3A").replace(",", "%2C")


def key_value_message(key: str, value: str) -> str:
    """
    Build a heredoc style ``key<<delimiter`` file-command entry.

    Raises:
        ValueError: If the key or value contains the generated delimiter
    """
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    if delimiter in key:
        raise ValueError(f"Unexpected input: name should not contain the delimiter \"{delimiter}\"")
    if delimiter in value:
        raise ValueError(f"Unexpected input: value should not contain the delimiter \"{delimiter}\"")
    return f"{key}<<{delimiter}\n{value}\n{delimiter}"


class GitHubActionsRunner:
    """Side-effecting calls into the hosting GitHub Actions job."""

    def __init__(self, environ: Optional[MutableMapping[str, str]] = None, stream: Optional[TextIO] = None):
        self.environ = os.environ if environ is None else environ
        self._stream = stream
        self.failed = False

    @property
    def stream(self) -> TextIO:
        return sys.stdout if self._stream is None else self._stream

    def _issue(self, command: str, message: str, **properties: str) -> None:
        props = ",".join(f"{k}={escape_property(v)}" for k, v in properties.items())
        prefix = f"::{command} {props}::" if props else f"::{command}::"
        self.stream.write(f"{prefix}{escape_data(message)}\n")
        self.stream.flush()

    def _issue_file_command(self, env_key: str, message: str) -> bool:
        path = self.environ.get(env_key)
        if not path:
            return False
        if not os.path.exists(path):
            raise FileNotFoundError(f"Unable to find environment variable file for {env_key}: {path}")
        with open(path, "a", encoding="utf-8") as f:
            f.write(f"{message}\n")
        return True

    def get_input(self, name: str, required: bool = False) -> str:
        """
        Read an action input from its ``INPUT_<NAME>`` environment variable.

        Raises:
            ConfigError: If the input is required and empty
        """
        key = f"INPUT_{name.replace(' ', '_').upper()}"
        value = self.environ.get(key, "")
        if required and not value:
            raise ConfigError(f"Input required and not supplied: {name}")
        return value.strip()

    def set_secret(self, value: str) -> None:
        """Register a literal for redaction in the job log."""
        self._issue("add-mask", value)

    def set_output(self, name: str, value: str) -> None:
        if self._issue_file_command("GITHUB_OUTPUT", key_value_message(name, value)):
            return
        self.stream.write("\n")
        self._issue("set-output", value, name=name)

    def export_variable(self, name: str, value: str) -> None:
        """Set an environment variable for this process and every later step."""
        self.environ[name] = value
        if self._issue_file_command("GITHUB_ENV", key_value_message(name, value)):
            return
        self._issue("set-env", value, name=name)

    def info(self, message: str) -> None:
        """Write a plain line to the job log."""
        self.stream.write(f"{message}\n")
        self.stream.flush()

    def error(self, message: str) -> None:
        self._issue("error", message)

    def set_failed(self, message: str) -> None:
        """Report a failure annotation; the caller is responsible for the exit code."""
        self.failed = True
        self.error(message)
