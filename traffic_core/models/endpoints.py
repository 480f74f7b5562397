"""Endpoint catalog data models."""

from dataclasses import dataclass
from enum import Enum

from ..errors import ConfigurationError

ID_PLACEHOLDER = "{id}"


class HttpMethod(str, Enum):
    """Methods a synthetic endpoint may use."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


@dataclass(frozen=True)
class EndpointAction:
    """A synthetic endpoint template."""

    method: HttpMethod
    path_template: str
    requires_body: bool = False

    @property
    def has_placeholder(self) -> bool:
        return ID_PLACEHOLDER in self.path_template

    @property
    def key(self) -> tuple[str, str]:
        """Lookup key used by phase plans."""
        return (self.method.value, self.path_template)

    def __str__(self) -> str:
        suffix = "!" if self.requires_body else ""
        return f"{self.method.value} {self.path_template}{suffix}"

    @classmethod
    def parse(cls, spec: str) -> "EndpointAction":
        """
        Parse the ``METHOD /path[!]`` notation used in configuration.

        A trailing ``!`` marks an endpoint that requires a request body.
        """
        parts = spec.strip().split()
        if len(parts) != 2:
            raise ConfigurationError(f"Invalid endpoint spec: {spec!r}")

        method_name, path = parts
        try:
            method = HttpMethod(method_name.upper())
        except ValueError:
            raise ConfigurationError(
                f"Unsupported method {method_name!r} in endpoint spec {spec!r}"
            ) from None

        requires_body = path.endswith("!")
        if requires_body:
            path = path[:-1]
        if not path.startswith("/"):
            raise ConfigurationError(f"Endpoint path must start with '/': {spec!r}")

        return cls(method=method, path_template=path, requires_body=requires_body)
