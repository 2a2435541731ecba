"""Dispatch: resolve a handler chain and offer work to it, in order."""

from backgrounder.dispatch.context import (
    DispatchContext,
    create_context,
    get_default_context,
    reset_default_context,
    set_default_context,
)
from backgrounder.dispatch.dispatcher import Dispatcher, background, dispatch, recover
from backgrounder.dispatch.models import (
    NONE_ACCEPTED,
    EffectiveConfig,
    HandlerChain,
    HandlerSpec,
    Outcome,
    parse_chain,
    parse_spec,
)
from backgrounder.dispatch.resolver import ConfigResolver

__all__ = [
    "NONE_ACCEPTED",
    "ConfigResolver",
    "DispatchContext",
    "Dispatcher",
    "EffectiveConfig",
    "HandlerChain",
    "HandlerSpec",
    "Outcome",
    "background",
    "create_context",
    "dispatch",
    "get_default_context",
    "parse_chain",
    "parse_spec",
    "recover",
    "reset_default_context",
    "set_default_context",
]
