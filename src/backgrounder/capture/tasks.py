"""Task registry: turning a work item's task name back into a callable.

Tasks are registered explicitly::

    from backgrounder import task

    @task
    def send_welcome_mail(user_id, *, template="welcome"):
        ...

    @task(name="reports.rebuild")
    def rebuild_reports(day):
        ...

A task registered without an explicit name is known by its
``"module:qualname"`` reference.  Such references also resolve in a process
that never imported the module (for example the child started by the runner
handler): the module is imported and the attribute path walked.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Callable, Iterable, TypeVar, overload

from backgrounder.capture.models import Capture
from backgrounder.core.errors import UnknownTaskError
from backgrounder.core.registry import Registry

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def task_name(func: Callable[..., Any]) -> str:
    """Return the importable ``"module:qualname"`` reference of *func*."""
    return f"{func.__module__}:{func.__qualname__}"


def unwrap_task(func: Callable[..., Any]) -> Callable[..., Any]:
    """Return the function behind a ``@deferred`` wrapper, or *func* itself."""
    return getattr(func, "run_now", func)


class TaskRegistry(Registry[Callable[..., Any]]):
    """Registry of callables that work items can name."""

    error_class = UnknownTaskError

    def add(self, func: Callable[..., Any], name: str | None = None) -> str:
        """Register *func* and return the name it is known by.

        Re-adding the same function under the same name is a no-op.
        """
        func = unwrap_task(func)
        name = name or task_name(func)
        if self.has(name) and self._entries[name] is func:
            return name
        self.register(name, func, replace=True)
        return name

    def get(self, name: str) -> Callable[..., Any]:
        """Resolve *name*, importing ``"module:qualname"`` references on demand."""
        if self.has(name):
            return self._entries[name]
        if ":" in name:
            return self._import_reference(name)
        raise UnknownTaskError(name, self.names())

    def execute(self, capture: Capture) -> Any:
        """Run *capture*'s task in the current thread and return its result."""
        func = self.get(capture.task)
        logger.debug("Executing task %s (capture %s)", capture.task, capture.id)
        return func(*capture.call_args, **capture.values)

    def _import_reference(self, reference: str) -> Callable[..., Any]:
        module_path, _, qualname = reference.partition(":")
        if not module_path or not qualname or "<locals>" in qualname:
            raise UnknownTaskError(reference, self.names())
        try:
            target: Any = importlib.import_module(module_path)
        except ImportError as exc:
            logger.debug("Could not import %s for task %s: %s", module_path, reference, exc)
            raise UnknownTaskError(reference, self.names()) from exc

        for attr in qualname.split("."):
            target = getattr(target, attr, None)
            if target is None:
                raise UnknownTaskError(reference, self.names())
        if not callable(target):
            raise UnknownTaskError(reference, self.names())
        target = unwrap_task(target)
        # Importing may have registered it under this very name.
        return self._entries.get(reference, target)


def import_task_modules(modules: Iterable[str]) -> None:
    """Import *modules* so the tasks they register with @task become known.

    ``ImportError`` propagates; callers decide whether that is fatal.
    """
    for module in modules:
        importlib.import_module(module)
        logger.debug("Imported task module %s", module)


default_tasks = TaskRegistry()


@overload
def task(func: F) -> F: ...
@overload
def task(*, name: str | None = None, registry: TaskRegistry | None = None) -> Callable[[F], F]: ...


def task(
    func: F | None = None,
    *,
    name: str | None = None,
    registry: TaskRegistry | None = None,
) -> F | Callable[[F], F]:
    """Register a function as a task.  Usable bare or with options."""
    def decorator(fn: F) -> F:
        (registry if registry is not None else default_tasks).add(fn, name)
        return fn

    if func is not None:
        return decorator(func)
    return decorator  # type: ignore[return-value]
