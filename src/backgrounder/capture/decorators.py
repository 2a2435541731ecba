"""The ``@deferred`` decorator.

Decorating a function registers it as a task and replaces it with a wrapper
that captures the call and dispatches it instead of running it::

    @deferred
    def rebuild_search_index(shard, *, full=False):
        ...

    @deferred(handler=[{"message_queue": {"queue": "mail"}}, "disk"], reporter="log")
    def send_receipt(order_id):
        ...

    outcome = send_receipt(1234)        # Outcome, truthy if a handler took it
    send_receipt.run_now(1234)          # plain synchronous call

Positional arguments travel as the work item's args, keyword arguments as
its named values.  On a method the instance travels as the first argument.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import TYPE_CHECKING, Any, Callable, TypeVar, overload

from backgrounder.capture.tasks import default_tasks, task_name

if TYPE_CHECKING:
    from backgrounder.dispatch.context import DispatchContext

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _get_dispatcher(context: DispatchContext | None):
    """Import the dispatcher lazily; dispatch imports this package."""
    from backgrounder.dispatch.context import get_default_context
    from backgrounder.dispatch.dispatcher import Dispatcher

    return Dispatcher(context or get_default_context())


@overload
def deferred(func: F) -> F: ...
@overload
def deferred(
    *,
    handler: Any = None,
    reporter: str | None = None,
    config: str | None = None,
    name: str | None = None,
    context: DispatchContext | None = None,
) -> Callable[[F], F]: ...


def deferred(
    func: F | None = None,
    *,
    handler: Any = None,
    reporter: str | None = None,
    config: str | None = None,
    name: str | None = None,
    context: DispatchContext | None = None,
) -> F | Callable[[F], F]:
    """Run every call of the decorated function in the background.

    Parameters
    ----------
    handler:
        Handler chain for every call (overrides configuration).
    reporter:
        Reporter name for every call (overrides configuration).
    config:
        Named configuration to resolve against.
    name:
        Register the task under this name instead of ``module:qualname``.
    context:
        Dispatch context; the process-wide default if omitted.
    """
    def decorator(fn: F) -> F:
        if asyncio.iscoroutinefunction(fn):
            raise TypeError(f"@deferred cannot wrap coroutine function {fn.__qualname__}")

        ref = default_tasks.add(fn, name)

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            dispatcher = _get_dispatcher(context)
            dispatcher.context.tasks.add(fn, ref)
            logger.debug("Deferring call of %s", ref)
            return dispatcher.background(
                ref,
                args,
                kwargs,
                handler=handler,
                reporter=reporter,
                config=config,
            )

        wrapper.run_now = fn  # type: ignore[attr-defined]
        wrapper.task_name = ref  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    if func is not None:
        return decorator(func)
    return decorator  # type: ignore[return-value]


def is_deferred(func: Callable[..., Any]) -> bool:
    """True if *func* is a ``@deferred`` wrapper."""
    return callable(getattr(func, "run_now", None)) and getattr(func, "task_name", None) is not None


__all__ = ["deferred", "is_deferred", "task_name"]
