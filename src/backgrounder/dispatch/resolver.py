"""Configuration resolver: call-site options -> :class:`EffectiveConfig`.

Each field (handler chain, reporter) is resolved on its own, first present
value wins:

1. the value passed at the call site;
2. ``configurations[<environment>][<configuration name>]``;
3. ``configurations["default"]``;
4. the static default.

So a call that names only a reporter still inherits the configured chain.

The named configurations are read from their source once per resolver.  A
source that fails to load is logged and treated as empty; deferring work is
best-effort and a broken config file should not take callers down with it.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Mapping

from backgrounder.core.config import read_config_file
from backgrounder.dispatch.models import EffectiveConfig, parse_chain

logger = logging.getLogger(__name__)

DEFAULT_CONFIGURATION = "default"

ConfigurationSource = Callable[[], Mapping[str, Any]]


def file_source(project_path: Path) -> ConfigurationSource:
    """Source reading the ``[configurations]`` table of backgrounder.toml."""
    def load() -> Mapping[str, Any]:
        return read_config_file(project_path).get("configurations", {})

    return load


class ConfigResolver:
    """Resolves effective handler chains and reporters."""

    def __init__(
        self,
        source: ConfigurationSource | Mapping[str, Any] | None = None,
        *,
        environment: str | Callable[[], str] = "development",
        default_handler: Any = ("in_process",),
        default_reporter: str = "stdout",
    ) -> None:
        if source is None or isinstance(source, Mapping):
            data = dict(source or {})
            self._source: ConfigurationSource = lambda: data
        else:
            self._source = source
        self._environment = environment
        self._default_chain = parse_chain(default_handler)
        self._default_reporter = default_reporter
        self._configurations: dict[str, Any] | None = None
        self._lock = threading.Lock()

    @property
    def environment(self) -> str:
        env = self._environment
        return env() if callable(env) else env

    @property
    def configurations(self) -> dict[str, Any]:
        """The named configurations, loaded on first use and cached."""
        if self._configurations is None:
            with self._lock:
                if self._configurations is None:
                    self._configurations = self._load()
        return self._configurations

    def _load(self) -> dict[str, Any]:
        try:
            data = self._source()
        except Exception as exc:
            logger.warning("Could not load background configurations, using none: %s", exc)
            return {}
        if not isinstance(data, Mapping):
            logger.warning("Background configurations must be a table, got %s", type(data).__name__)
            return {}
        return dict(data)

    def reload(self) -> None:
        """Drop the cached configurations; the next resolve reads the source again."""
        with self._lock:
            self._configurations = None

    def named(self, configuration_name: str | None) -> Mapping[str, Any]:
        """Return the entry for *configuration_name* in the current environment."""
        if not configuration_name:
            return {}
        env_table = self.configurations.get(self.environment)
        if not isinstance(env_table, Mapping):
            return {}
        entry = env_table.get(str(configuration_name))
        return entry if isinstance(entry, Mapping) else {}

    def default(self) -> Mapping[str, Any]:
        entry = self.configurations.get(DEFAULT_CONFIGURATION)
        return entry if isinstance(entry, Mapping) else {}

    def resolve(
        self,
        call_site: Mapping[str, Any] | None = None,
        configuration_name: str | None = None,
    ) -> EffectiveConfig:
        """Resolve the call-site options against the stored configuration.

        *call_site* may carry ``handler`` and/or ``reporter``; ``None`` values
        count as absent.  Malformed chains raise
        :class:`~backgrounder.core.errors.MalformedHandlerSpecError`.
        """
        call_site = call_site or {}
        levels = [call_site, self.named(configuration_name), self.default()]

        handler = _first_present("handler", levels)
        reporter = _first_present("reporter", levels)

        chain = parse_chain(handler) if handler is not None else self._default_chain
        return EffectiveConfig(
            chain=chain,
            reporter=str(reporter) if reporter is not None else self._default_reporter,
        )


def _first_present(key: str, levels: list[Mapping[str, Any]]) -> Any:
    for level in levels:
        value = level.get(key)
        if value is not None:
            return value
    return None
