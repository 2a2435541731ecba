"""Dispatch data model: handler specs, chains, effective config and outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from backgrounder.core.errors import MalformedHandlerSpecError


@dataclass(frozen=True)
class HandlerSpec:
    """A handler name plus the options passed to that handler."""

    name: str
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise MalformedHandlerSpecError(f"Handler name must be a non-empty string, got {self.name!r}")
        object.__setattr__(self, "options", dict(self.options or {}))

    def to_notation(self) -> Any:
        """Inverse of :func:`parse_spec`: a bare name, or ``{name: options}``."""
        if not self.options:
            return self.name
        return {self.name: dict(self.options)}


HandlerChain = tuple[HandlerSpec, ...]


def parse_spec(value: Any) -> HandlerSpec:
    """Parse one chain entry.

    Accepts ``"disk"``, ``{"message_queue": {"queue": "mail"}}`` (exactly one
    key, options may be empty/None) or an existing :class:`HandlerSpec`.
    """
    if isinstance(value, HandlerSpec):
        return value
    if isinstance(value, str):
        return HandlerSpec(value)
    if isinstance(value, Mapping):
        if len(value) != 1:
            raise MalformedHandlerSpecError(
                f"Handler options mapping must have exactly one key, got {sorted(map(str, value))}"
            )
        ((name, options),) = value.items()
        if options is not None and not isinstance(options, Mapping):
            raise MalformedHandlerSpecError(f"Options for handler {name!r} must be a mapping")
        return HandlerSpec(name, options or {})
    raise MalformedHandlerSpecError(f"Cannot read a handler from {value!r}")


def parse_chain(value: Any) -> HandlerChain:
    """Parse a handler chain: a single entry or a list of entries, in order."""
    if isinstance(value, (str, Mapping, HandlerSpec)):
        return (parse_spec(value),)
    if isinstance(value, Sequence):
        chain = tuple(parse_spec(item) for item in value)
        if not chain:
            raise MalformedHandlerSpecError("A handler chain needs at least one handler")
        return chain
    raise MalformedHandlerSpecError(f"Cannot read a handler chain from {value!r}")


@dataclass(frozen=True)
class EffectiveConfig:
    """Fully resolved handler chain and reporter for one dispatch."""

    chain: HandlerChain
    reporter: str

    @property
    def handler_names(self) -> list[str]:
        return [spec.name for spec in self.chain]


@dataclass(frozen=True)
class Outcome:
    """Result of a dispatch.

    ``handler`` is the name of the handler that accepted the capture, or
    ``None`` when none did.  ``attempted`` lists every handler tried, in order.
    """

    handler: str | None = None
    attempted: tuple[str, ...] = ()

    @property
    def accepted(self) -> bool:
        return self.handler is not None

    def __bool__(self) -> bool:
        return self.accepted


NONE_ACCEPTED = Outcome()
