"""Turn loose element references into concrete element queries.

Resolution runs an ordered chain of strategies. Each strategy either returns
a query or defers to the next one; the last strategy always answers, so
resolution never fails. The returned query is not checked against the live
page, existence is only verified when the interaction runs.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from .models import LocatorType, PageSnapshot

SELECTOR_PREFIXES = ("[", "#", ".")
_IDENTIFIER_RE = re.compile(r"[\w-]+", re.ASCII)
_TEST_ID_VALUE_RE = re.compile(r'data-testid="([^"]*)"')


class ResolverStrategy(ABC):
    """One step of the resolution chain."""

    @abstractmethod
    def resolve(self, target: str, snapshot: Optional[PageSnapshot]) -> Optional[str]:
        """Return a query for ``target`` or ``None`` to defer."""


class SelectorSyntax(ResolverStrategy):
    """Targets that already look like selectors are used verbatim."""

    def resolve(self, target: str, snapshot: Optional[PageSnapshot]) -> Optional[str]:
        if target.startswith(SELECTOR_PREFIXES) or "=" in target:
            return target
        return None


class SnapshotLookup(ResolverStrategy):
    """Match against the interactive elements of the last analysis."""

    def resolve(self, target: str, snapshot: Optional[PageSnapshot]) -> Optional[str]:
        if snapshot is None:
            return None
        needle = target.lower()
        for action in snapshot.actions:
            if needle in action.name.lower():
                return action.locator.value
            if action.locator.type is LocatorType.TEST_ID and needle in _test_id_of(
                action.locator.value
            ):
                return action.locator.value
        return None


class IdentifierQuery(ResolverStrategy):
    """Single identifier-like tokens become test id queries."""

    def resolve(self, target: str, snapshot: Optional[PageSnapshot]) -> Optional[str]:
        if _IDENTIFIER_RE.fullmatch(target):
            return f'[data-testid="{target}"]'
        return None


class TextFallback(ResolverStrategy):
    def resolve(self, target: str, snapshot: Optional[PageSnapshot]) -> Optional[str]:
        return f"text={target}"


def _test_id_of(locator_value: str) -> str:
    match = _TEST_ID_VALUE_RE.search(locator_value)
    return (match.group(1) if match else locator_value).lower()


DEFAULT_STRATEGIES: tuple[ResolverStrategy, ...] = (
    SelectorSyntax(),
    SnapshotLookup(),
    IdentifierQuery(),
    TextFallback(),
)


class TargetResolver:
    """Resolve targets with an ordered chain of strategies."""

    def __init__(self, strategies: Iterable[ResolverStrategy] = DEFAULT_STRATEGIES) -> None:
        self._strategies = list(strategies)
        if not self._strategies or not isinstance(self._strategies[-1], TextFallback):
            self._strategies.append(TextFallback())

    def resolve(self, target: str, snapshot: Optional[PageSnapshot] = None) -> str:
        for strategy in self._strategies:
            query = strategy.resolve(target, snapshot)
            if query is not None:
                return query
        raise AssertionError("TextFallback always resolves")  # pragma: no cover
