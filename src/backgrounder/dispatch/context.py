"""Dispatch context: everything one dispatch needs, in one object.

A context bundles the settings, the task/handler/reporter registries, the
configuration resolver and the disk queue.  The process-wide default is
built lazily from ``backgrounder.toml`` in the working directory; tests and
embedding applications build their own with :func:`create_context`::

    context = create_context(tmp_path, default_handler=["test", "forget"],
                             default_reporter="test")
    background(send_mail, args=(42,), context=context)
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from backgrounder.capture.store import DiskQueue
from backgrounder.capture.tasks import TaskRegistry, default_tasks
from backgrounder.core.config import BackgroundConfig, load_config
from backgrounder.dispatch.resolver import ConfigResolver, file_source
from backgrounder.handlers import HandlerRegistry, Publisher, build_handler_registry
from backgrounder.reporters import Notifier, ReporterRegistry, build_reporter_registry


@dataclass
class DispatchContext:
    settings: BackgroundConfig
    tasks: TaskRegistry
    handlers: HandlerRegistry
    reporters: ReporterRegistry
    resolver: ConfigResolver
    queue: DiskQueue

    @property
    def environment(self) -> str:
        return self.resolver.environment


def create_context(
    project_path: Path | None = None,
    *,
    settings: BackgroundConfig | None = None,
    configurations: Mapping[str, Any] | None = None,
    environment: str | None = None,
    default_handler: Any = None,
    default_reporter: str | None = None,
    tasks: TaskRegistry | None = None,
    publisher: Publisher | None = None,
    notifier: Notifier | None = None,
) -> DispatchContext:
    """Build a fresh context.

    Parameters
    ----------
    project_path:
        Directory holding ``backgrounder.toml`` and ``.backgrounder/``.
        Defaults to the working directory.
    settings:
        Use these settings instead of loading them from *project_path*.
    configurations:
        Named configurations to use instead of the file's
        ``[configurations]`` table.
    environment:
        Force the environment used to pick named configurations.
    default_handler / default_reporter:
        Override the static defaults (lowest precedence level).
    tasks:
        Task registry; the process-wide one by default.
    publisher:
        ``publish(queue, payload)`` callable for the message_queue handler.
    notifier:
        ``notify(subject, body)`` callable for the notification reporter.
    """
    if settings is None:
        settings = load_config(project_path)
    project_path = settings.project_path
    tasks = tasks if tasks is not None else default_tasks

    source = configurations if configurations is not None else file_source(project_path)
    resolver = ConfigResolver(
        source,
        environment=environment if environment is not None else (lambda: settings.current_environment),
        default_handler=default_handler if default_handler is not None else settings.defaults.handler,
        default_reporter=default_reporter or settings.defaults.reporter,
    )
    queue = DiskQueue.from_config(settings)

    return DispatchContext(
        settings=settings,
        tasks=tasks,
        handlers=build_handler_registry(settings, tasks, queue=queue, publisher=publisher),
        reporters=build_reporter_registry(notifier=notifier),
        resolver=resolver,
        queue=queue,
    )


_default_context: DispatchContext | None = None
_default_lock = threading.Lock()


def get_default_context() -> DispatchContext:
    """Get the process-wide context, building it on first use."""
    global _default_context
    if _default_context is None:
        with _default_lock:
            if _default_context is None:
                _default_context = create_context()
    return _default_context


def set_default_context(context: DispatchContext) -> DispatchContext:
    """Install *context* as the process-wide context (e.g. at app startup)."""
    global _default_context
    with _default_lock:
        _default_context = context
    return context


def reset_default_context() -> None:
    """Forget the process-wide context (for testing)."""
    global _default_context
    with _default_lock:
        _default_context = None
