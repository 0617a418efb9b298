"""
Pattern Resolver.

Looks patterns up by name across an optional custom store and the default
store. Custom patterns shadow default patterns of the same name. Nothing
is cached: every resolution re-reads the stores, so an edited pattern
takes effect on the next request.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..domain.entities import Pattern
from ..domain.exceptions import PatternNotFoundError
from ..domain.ports import IPatternStore

logger = logging.getLogger(__name__)


class PatternResolver:
    """Resolves pattern names to Pattern objects.

    Usage:
        resolver = PatternResolver(default_store, custom_store=my_patterns)
        pattern = await resolver.resolve("summarize")
    """

    def __init__(
        self,
        default_store: IPatternStore,
        custom_store: Optional[IPatternStore] = None,
    ):
        """Initialize the resolver.

        Args:
            default_store: Store holding the stock patterns
            custom_store: Optional store whose patterns take precedence
        """
        self.default_store = default_store
        self.custom_store = custom_store

    def _stores(self) -> list[IPatternStore]:
        if self.custom_store is not None:
            return [self.custom_store, self.default_store]
        return [self.default_store]

    async def resolve(self, name: Optional[str]) -> Optional[Pattern]:
        """Resolve a pattern by name.

        Args:
            name: Pattern name; None or empty means "no pattern"

        Returns:
            The pattern, or None when no name was given

        Raises:
            PatternNotFoundError: If no store holds the pattern
        """
        if not name:
            return None

        for store in self._stores():
            content = await store.get(name)
            if content is not None:
                description = await store.get_description(name)
                logger.debug(f"Resolved pattern {name!r} from {type(store).__name__}")
                return Pattern(name=name, content=content, description=description)

        raise PatternNotFoundError(name)

    async def list_patterns(self) -> list[str]:
        """Return the sorted union of pattern names across all stores."""
        names: set[str] = set()
        for store in self._stores():
            names.update(await store.list_names())
        return sorted(names)
