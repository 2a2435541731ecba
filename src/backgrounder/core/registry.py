"""Name -> implementation registries.

Handlers, reporters and tasks are all looked up by name at dispatch time.
Registration happens when a dispatch context is built (or, for tasks, at
import time); lookups of names nobody registered raise the registry's
:class:`~backgrounder.core.errors.UnknownNameError` subclass, listing what
is available.
"""

from __future__ import annotations

from typing import Generic, Iterator, TypeVar

from backgrounder.core.errors import UnknownNameError

T = TypeVar("T")


class Registry(Generic[T]):
    """Injectable name -> entry map."""

    error_class: type[UnknownNameError] = UnknownNameError

    def __init__(self) -> None:
        self._entries: dict[str, T] = {}

    def register(self, name: str, entry: T, *, replace: bool = False) -> T:
        """Register *entry* under *name* and return it.

        Registering a taken name raises ``ValueError`` unless *replace* is set.
        """
        if not name:
            raise ValueError("Registry names must be non-empty")
        if name in self._entries and not replace:
            raise ValueError(f"{self.error_class.kind.capitalize()} {name!r} is already registered")
        self._entries[name] = entry
        return entry

    def unregister(self, name: str) -> None:
        self._entries.pop(name, None)

    def get(self, name: str) -> T:
        try:
            return self._entries[name]
        except KeyError:
            raise self.error_class(name, self.names()) from None

    def has(self, name: str) -> bool:
        return name in self._entries

    def names(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
