"""Strategy registry — resolves which check strategy handles an endpoint."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from endpoint_monitor.checks import default_strategies
from endpoint_monitor.checks.base import CheckStrategy
from endpoint_monitor.endpoints.registry import EndpointDef


class StrategyRegistry:
    """Ordered strategy list; the first strategy that accepts a kind wins.

    Two strategies claiming the same kind is not an error; registration
    order decides, deterministically.
    """

    def __init__(self, strategies: Iterable[CheckStrategy] = ()) -> None:
        self._strategies: list[CheckStrategy] = list(strategies)

    @classmethod
    def with_defaults(cls) -> StrategyRegistry:
        return cls(default_strategies())

    def register(self, strategy: CheckStrategy) -> None:
        self._strategies.append(strategy)

    def resolve(self, endpoint: EndpointDef) -> CheckStrategy | None:
        return next((s for s in self._strategies if s.can_handle(endpoint.kind)), None)

    def __iter__(self) -> Iterator[CheckStrategy]:
        return iter(self._strategies)

    def __len__(self) -> int:
        return len(self._strategies)
