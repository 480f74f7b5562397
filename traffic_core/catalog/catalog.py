"""Endpoint catalog: fixed registry of synthetic endpoint templates."""

from typing import Iterable, Protocol

from ..errors import ConfigurationError
from ..models import ID_PLACEHOLDER, EndpointAction, HttpMethod
from ..randomness import IRandomSource, RandomSource

DEFAULT_ENDPOINTS: tuple[EndpointAction, ...] = (
    EndpointAction(HttpMethod.GET, "/api/payments/{id}"),
    EndpointAction(HttpMethod.POST, "/api/payments", requires_body=True),
    EndpointAction(HttpMethod.GET, "/api/payments"),
)

DEFAULT_TENANTS: tuple[str, ...] = ("tenant1", "tenant2", "tenant3")


class IEndpointCatalog(Protocol):
    """Read-only registry of endpoint templates."""

    @property
    def actions(self) -> tuple[EndpointAction, ...]:
        """All registered endpoints in declaration order."""
        ...

    def pick(self, rng: IRandomSource | None = None) -> EndpointAction:
        """Pick one endpoint uniformly at random."""
        ...

    def resolve(self, action: EndpointAction, resource_id: str | None) -> str:
        """Substitute the id placeholder and return the concrete URI."""
        ...


class EndpointCatalog:
    """Fixed, ordered endpoint registry. Never mutated after construction."""

    def __init__(
        self,
        actions: Iterable[EndpointAction] = DEFAULT_ENDPOINTS,
        rng: IRandomSource | None = None,
    ):
        self._actions = tuple(actions)
        if not self._actions:
            raise ConfigurationError("Endpoint catalog must not be empty")
        self._rng = rng or RandomSource()

    @property
    def actions(self) -> tuple[EndpointAction, ...]:
        return self._actions

    def __len__(self) -> int:
        return len(self._actions)

    def __iter__(self):
        return iter(self._actions)

    def pick(self, rng: IRandomSource | None = None) -> EndpointAction:
        """Pick one endpoint uniformly at random."""
        return (rng or self._rng).pick_one(self._actions)

    def resolve(self, action: EndpointAction, resource_id: str | None) -> str:
        """Substitute ``{id}`` in the template with the given identifier."""
        if not action.has_placeholder:
            return action.path_template
        if resource_id is None:
            raise ValueError(f"{action} requires an id to resolve")
        return action.path_template.replace(ID_PLACEHOLDER, resource_id)
