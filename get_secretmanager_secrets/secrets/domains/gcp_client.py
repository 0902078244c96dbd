"""GCP Secret Manager client wrapper."""
import base64
import codecs
import logging
from typing import Dict, Optional

from google.api_core import exceptions as gcp_exceptions
from google.api_core.client_options import ClientOptions
from google.auth import exceptions as auth_exceptions
from google.cloud import secretmanager

from .errors import AccessError
from .models import DEFAULT_UNIVERSE, SecretReference

logger = logging.getLogger(__name__)

# Encodings that render the raw payload bytes as text instead of decoding them
BINARY_TEXT_ENCODINGS = {
    "base64": lambda data: base64.b64encode(data).decode("ascii"),
    "hex": lambda data: data.hex(),
}

# Node.js buffer encoding names without a Python codec of the same name
CODEC_ALIASES = {
    "utf16le": "utf-16-le",
    "utf-16le": "utf-16-le",
    "ucs2": "utf-16-le",
    "ucs-2": "utf-16-le",
    "binary": "latin-1",
}


def resolve_codec(encoding: str) -> str:
    """
    Map an encoding name to a Python codec name.

    Raises:
        LookupError: If the encoding is unknown
    """
    name = encoding.strip().lower()
    if name in BINARY_TEXT_ENCODINGS:
        return name
    return codecs.lookup(CODEC_ALIASES.get(name, name)).name


def decode_payload(data: bytes, encoding: str) -> str:
    """
    Turn secret payload bytes into text.

    Args:
        data: Raw payload bytes
        encoding: ``base64``, ``hex`` or a codec name (``utf8``, ``latin1``, ``utf16le``...)

    Raises:
        UnicodeDecodeError: If the bytes are not valid in the given codec
        LookupError: If the codec is unknown
    """
    codec = resolve_codec(encoding)
    render = BINARY_TEXT_ENCODINGS.get(codec)
    if render is not None:
        return render(data)
    return data.decode(codec)


def api_endpoint(universe: str, location: Optional[str] = None) -> str:
    """Secret Manager endpoint for a universe, regional when a location is set."""
    if location:
        return f"secretmanager.{location}.rep.{universe}"
    return f"secretmanager.{universe}"


class GCPSecretClient:
    """Wrapper around the async GCP Secret Manager client."""

    def __init__(self, universe: str = DEFAULT_UNIVERSE):
        self.universe = universe or DEFAULT_UNIVERSE
        self._clients: Dict[str, secretmanager.SecretManagerServiceAsyncClient] = {}

    def client_for(self, location: Optional[str] = None) -> secretmanager.SecretManagerServiceAsyncClient:
        """Lazy-initialize one client per endpoint."""
        endpoint = api_endpoint(self.universe, location)
        if endpoint not in self._clients:
            logger.debug(f"Creating Secret Manager client for {endpoint}")
            options = ClientOptions(api_endpoint=endpoint, universe_domain=self.universe)
            self._clients[endpoint] = secretmanager.SecretManagerServiceAsyncClient(client_options=options)
        return self._clients[endpoint]

    async def access_secret(self, ref: SecretReference, encoding: str) -> str:
        """
        Fetch and decode the secret version a reference points at.

        Args:
            ref: Parsed secret reference
            encoding: Text encoding used to decode the payload

        Returns:
            Secret value as string

        Raises:
            AccessError: If the fetch fails, the payload is missing or cannot be decoded
        """
        name = ref.resource_name
        try:
            client = self.client_for(ref.location)
            response = await client.access_secret_version(request={"name": name})
        except (gcp_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as e:
            raise AccessError(ref.source_locator, str(e)) from e

        payload = response.payload
        if payload is None or not payload.data:
            raise AccessError(ref.source_locator, f"secret payload for {name} is missing")

        try:
            return decode_payload(payload.data, encoding)
        except (UnicodeDecodeError, LookupError) as e:
            raise AccessError(ref.source_locator, f"cannot decode payload as {encoding}: {e}") from e

    async def close(self) -> None:
        """Close every transport opened by this wrapper."""
        for client in self._clients.values():
            await client.transport.close()
        self._clients.clear()
