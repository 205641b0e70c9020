"""
Name Resolver Module

Collision-free names for created levels and derived views.

Levels and views are resolved in separate registries, so a level name never
blocks a view name and vice versa. All comparisons are case-insensitive.
"""
from datetime import datetime
from typing import Callable, Iterable, Optional
import logging


logger = logging.getLogger(__name__)


class NameRegistry:
    """Case-insensitive set of names already in use."""

    def __init__(self, names: Iterable[str] = ()):
        self._keys = {name.casefold() for name in names}

    def __contains__(self, name: str) -> bool:
        return name.casefold() in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def add(self, name: str):
        """Mark a name as used."""
        self._keys.add(name.casefold())

    def discard(self, name: str):
        """Release a name."""
        self._keys.discard(name.casefold())


def unique_name(desired: str, registry: NameRegistry) -> str:
    """
    Return desired, or desired + " (N)" with the smallest N >= 1 not in use.

    The registry is not modified.
    """
    if desired not in registry:
        return desired
    n = 1
    while f"{desired} ({n})" in registry:
        n += 1
    return f"{desired} ({n})"


class LevelNameResolver:
    """Resolves final names for newly created levels."""

    def __init__(self, existing_names: Iterable[str]):
        self.registry = NameRegistry(existing_names)

    def resolve(self, desired: str) -> str:
        """
        Pick a free name for a level and reserve it.

        Args:
            desired: Name requested by the input row

        Returns:
            desired, or a " (N)" variant when desired is taken
        """
        name = unique_name(desired, self.registry)
        if name != desired:
            logger.info(f"Level name '{desired}' is taken, using '{name}'")
        self.registry.add(name)
        return name

    def register(self, name: str):
        """Record a name that ended up on a level without going through resolve()."""
        self.registry.add(name)


class ViewNameResolver:
    """
    Resolves names for derived floor plan views.

    The base name comes from a template ("Planta - {level}"). When it is
    taken, a timestamp suffix is added: "Planta - P1 (20240131_154500)",
    then "Planta - P1 (20240131_154500_1)", "..._2" and so on.
    """

    def __init__(
        self,
        existing_names: Iterable[str],
        template: str = "Planta - {level}",
        timestamp_format: str = "%Y%m%d_%H%M%S",
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.registry = NameRegistry(existing_names)
        self.template = template
        self.timestamp_format = timestamp_format
        self.clock = clock or datetime.now

    def base_name(self, level_name: str) -> str:
        return self.template.format(level=level_name)

    def propose(self, level_name: str) -> str:
        """Free name for a view of the given level, without reserving it."""
        base = self.base_name(level_name)
        if base not in self.registry:
            return base

        timestamp = self.clock().strftime(self.timestamp_format)
        candidate = f"{base} ({timestamp})"
        index = 1
        while candidate in self.registry:
            candidate = f"{base} ({timestamp}_{index})"
            index += 1
        return candidate

    def resolve(self, level_name: str) -> str:
        """Pick a free view name for a level and reserve it."""
        name = self.propose(level_name)
        self.registry.add(name)
        return name

    def register(self, name: str):
        self.registry.add(name)
