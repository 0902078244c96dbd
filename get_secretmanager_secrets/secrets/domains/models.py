"""Domain models for secret resolution."""
from dataclasses import dataclass
from typing import Optional

DEFAULT_UNIVERSE = "googleapis.com"
DEFAULT_ENCODING = "utf8"
DEFAULT_MIN_MASK_LENGTH = 4


@dataclass(frozen=True)
class SecretReference:
    """One secret to fetch and the output name it is published under."""
    source_locator: str
    output_name: str
    project: str
    secret: str
    version: str = "latest"
    location: Optional[str] = None

    @property
    def resource_name(self) -> str:
        """Fully qualified Secret Manager version name."""
        if self.location:
            return (
                f"projects/{self.project}/locations/{self.location}"
                f"/secrets/{self.secret}/versions/{self.version}"
            )
        return f"projects/{self.project}/secrets/{self.secret}/versions/{self.version}"


@dataclass(frozen=True)
class ActionConfig:
    """Inputs for a single run, built once at startup."""
    secrets: str
    universe: str = DEFAULT_UNIVERSE
    min_mask_length: int = DEFAULT_MIN_MASK_LENGTH
    export_to_environment: bool = False
    encoding: str = DEFAULT_ENCODING
    repository: Optional[str] = None
