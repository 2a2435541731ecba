"""The dispatch core: try each handler of a chain until one accepts.

Failures are a reporting concern: every handler that raises (or is not
registered) is reported and skipped.  Running out of handlers is not an
error; the caller gets the "none accepted" :class:`Outcome`.  Only problems
that make reporting impossible, an unknown reporter above all, are raised.

Usage::

    from backgrounder import background, task

    @task
    def send_invoice(invoice_id, *, copy_to=None):
        ...

    outcome = background(send_invoice, args=(17,), values={"copy_to": "ops@"},
                         handler=["message_queue", "disk"])
    if not outcome:
        ...  # nobody took it; the reporter already heard why
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from backgrounder.capture.models import Capture
from backgrounder.capture.recovery import RecoveryReport, RecoverySweep
from backgrounder.capture.serializer import make_capture
from backgrounder.core.errors import UnknownHandlerError
from backgrounder.dispatch.context import DispatchContext, get_default_context
from backgrounder.dispatch.models import NONE_ACCEPTED, EffectiveConfig, HandlerChain, Outcome, parse_chain

logger = logging.getLogger(__name__)


class Dispatcher:
    """Walks handler chains within one :class:`DispatchContext`."""

    def __init__(self, context: DispatchContext) -> None:
        self.context = context

    def dispatch(self, capture: Capture, chain: Any, reporter_name: str) -> Outcome:
        """Offer *capture* to each handler of *chain* in order.

        *chain* is a :data:`HandlerChain` or anything :func:`parse_chain`
        reads.  Raises :class:`~backgrounder.core.errors.UnknownReporterError`
        if *reporter_name* is not registered; never raises for handler
        failures.
        """
        reporter = self.context.reporters.get(reporter_name)
        specs: HandlerChain = parse_chain(chain)
        attempted: list[str] = []

        for spec in specs:
            attempted.append(spec.name)
            try:
                handler = self.context.handlers.get(spec.name)
            except UnknownHandlerError as exc:
                logger.warning("Skipping unknown handler %r for %s", spec.name, capture.task)
                reporter.report(exc)
                continue

            logger.debug("Offering %s (capture %s) to %s", capture.task, capture.id, spec.name)
            try:
                handler.handle(capture, spec.options)
            except Exception as exc:
                logger.warning("Handler %s failed for %s: %s", spec.name, capture.task, exc)
                reporter.report(exc)
                continue

            logger.info("Handler %s accepted %s (capture %s)", spec.name, capture.task, capture.id)
            return Outcome(handler=spec.name, attempted=tuple(attempted))

        logger.warning(
            "No handler accepted %s (capture %s); tried %s",
            capture.task,
            capture.id,
            ", ".join(attempted),
        )
        return Outcome(handler=NONE_ACCEPTED.handler, attempted=tuple(attempted))

    def resolve(
        self,
        *,
        handler: Any = None,
        reporter: str | None = None,
        config: str | None = None,
    ) -> EffectiveConfig:
        return self.context.resolver.resolve({"handler": handler, "reporter": reporter}, config)

    def background(
        self,
        task: str | Callable[..., Any],
        args: tuple | list = (),
        values: Mapping[str, Any] | None = None,
        owner: Any = None,
        *,
        handler: Any = None,
        reporter: str | None = None,
        config: str | None = None,
    ) -> Outcome:
        """Capture a call of *task* and dispatch it with the effective config."""
        task_ref = task if isinstance(task, str) else self.context.tasks.add(task)
        capture = make_capture(task_ref, args, dict(values or {}), owner)
        effective = self.resolve(handler=handler, reporter=reporter, config=config)
        return self.dispatch(capture, effective.chain, effective.reporter)

    def recover(
        self,
        handler: str,
        options: Mapping[str, Any] | None = None,
        *,
        reporter: str | None = None,
        directory: Any = None,
    ) -> RecoveryReport:
        """Replay the durable queue through *handler*.

        The reporter defaults to the one the effective configuration names.
        """
        reporter_name = reporter or self.resolve().reporter
        queue = self.context.queue
        if directory is not None:
            queue = queue.with_directory(directory)
        sweep = RecoverySweep(queue, self.context.handlers, self.context.reporters.get(reporter_name))
        return sweep.run(handler, options)


def _dispatcher(context: DispatchContext | None) -> Dispatcher:
    return Dispatcher(context or get_default_context())


def dispatch(
    capture: Capture,
    chain: Any,
    reporter_name: str,
    *,
    context: DispatchContext | None = None,
) -> Outcome:
    """Module-level :meth:`Dispatcher.dispatch` on *context* (default context if omitted)."""
    return _dispatcher(context).dispatch(capture, chain, reporter_name)


def background(
    task: str | Callable[..., Any],
    args: tuple | list = (),
    values: Mapping[str, Any] | None = None,
    owner: Any = None,
    *,
    handler: Any = None,
    reporter: str | None = None,
    config: str | None = None,
    context: DispatchContext | None = None,
) -> Outcome:
    """Defer a call of *task*.

    Parameters
    ----------
    task:
        A registered task name, an importable ``"module:qualname"``
        reference, or a callable (registered under its reference).
    args:
        Positional arguments for the task.
    values:
        Named values, passed to the task as keyword arguments.
    owner:
        Receiver passed as the first positional argument, method-style.
    handler:
        Handler chain for this call (highest precedence).
    reporter:
        Reporter name for this call (highest precedence).
    config:
        Name of a configuration in backgrounder.toml.

    Returns
    -------
    Outcome
        Truthy with the accepting handler's name, or falsy if none accepted.
    """
    return _dispatcher(context).background(
        task,
        args,
        values,
        owner,
        handler=handler,
        reporter=reporter,
        config=config,
    )


def recover(
    handler: str,
    options: Mapping[str, Any] | None = None,
    *,
    reporter: str | None = None,
    directory: Any = None,
    context: DispatchContext | None = None,
) -> RecoveryReport:
    """Replay the durable queue through *handler*, oldest capture first."""
    return _dispatcher(context).recover(handler, options, reporter=reporter, directory=directory)
