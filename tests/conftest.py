"""Shared fixtures: a recording runner and an in-memory Secret Manager client."""
import pytest

from get_secretmanager_secrets.secrets.domains.errors import AccessError


class RecordingRunner:
    """Runner double that records every side effect in call order."""

    def __init__(self, inputs=None, environ=None):
        self.inputs = inputs or {}
        self.environ = environ if environ is not None else {}
        self.events = []
        self.messages = []

    def get_input(self, name, required=False):
        return self.inputs.get(name, "")

    def info(self, message):
        self.messages.append(message)

    def set_secret(self, value):
        self.events.append(("mask", value))

    def set_output(self, name, value):
        self.events.append(("output", name, value))

    def export_variable(self, name, value):
        self.environ[name] = value
        self.events.append(("env", name, value))

    @property
    def masked(self):
        return [e[1] for e in self.events if e[0] == "mask"]

    @property
    def outputs(self):
        return {e[1]: e[2] for e in self.events if e[0] == "output"}

    @property
    def exported(self):
        return {e[1]: e[2] for e in self.events if e[0] == "env"}


class FakeSecretClient:
    """Serves values by resource name; exceptions in the map are raised."""

    def __init__(self, values):
        self.values = values
        self.calls = []

    async def access_secret(self, ref, encoding):
        self.calls.append((ref.resource_name, encoding))
        value = self.values[ref.resource_name]
        if isinstance(value, Exception):
            raise AccessError(ref.source_locator, str(value)) from value
        return value


@pytest.fixture
def runner():
    return RecordingRunner()


@pytest.fixture
def fake_client_factory():
    return FakeSecretClient
