"""Background handlers: the registry and every built-in backend."""

from __future__ import annotations

from backgrounder.capture.store import DiskQueue
from backgrounder.capture.tasks import TaskRegistry
from backgrounder.core.config import BackgroundConfig
from backgrounder.core.errors import UnknownHandlerError
from backgrounder.core.registry import Registry
from backgrounder.handlers.base import Handler
from backgrounder.handlers.disk import DiskHandler
from backgrounder.handlers.forget import ForgetHandler
from backgrounder.handlers.fork import ForkHandler
from backgrounder.handlers.in_process import InProcessHandler
from backgrounder.handlers.message_queue import InMemoryBroker, MessageQueueHandler, Publisher
from backgrounder.handlers.runner import RunnerHandler
from backgrounder.handlers.test import TestHandler


class HandlerRegistry(Registry[Handler]):
    """Handlers by name."""

    error_class = UnknownHandlerError

    def add(self, handler: Handler, *, replace: bool = False) -> Handler:
        """Register *handler* under its own ``name``."""
        return self.register(handler.name, handler, replace=replace)


def build_handler_registry(
    config: BackgroundConfig,
    tasks: TaskRegistry,
    *,
    queue: DiskQueue | None = None,
    publisher: Publisher | None = None,
) -> HandlerRegistry:
    """Return a registry holding one instance of every built-in handler."""
    registry = HandlerRegistry()
    registry.add(InProcessHandler(tasks))
    registry.add(ForgetHandler())
    registry.add(ForkHandler(tasks))
    registry.add(DiskHandler(queue if queue is not None else DiskQueue.from_config(config)))
    registry.add(RunnerHandler(timeout=config.runner.timeout, imports=config.runner.imports))
    registry.add(
        MessageQueueHandler(
            publisher,
            default_queue=config.message_queue.queue,
            timeout=config.message_queue.timeout,
        )
    )
    registry.add(TestHandler())
    return registry


__all__ = [
    "DiskHandler",
    "ForgetHandler",
    "ForkHandler",
    "Handler",
    "HandlerRegistry",
    "InMemoryBroker",
    "InProcessHandler",
    "MessageQueueHandler",
    "Publisher",
    "RunnerHandler",
    "TestHandler",
    "build_handler_registry",
]
