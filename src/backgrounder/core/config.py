"""Configuration management for backgrounder (backgrounder.toml parsing + defaults)."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "backgrounder.toml"
STATE_DIRNAME = ".backgrounder"
ENVIRONMENT_VAR = "BACKGROUNDER_ENV"
DEFAULT_ENVIRONMENT = "development"


@dataclass
class DefaultsConfig:
    handler: Any = field(default_factory=lambda: ["in_process"])
    reporter: str = "stdout"


@dataclass
class DiskConfig:
    directory: str = f"{STATE_DIRNAME}/queue"
    encrypt: bool = False


@dataclass
class MessageQueueConfig:
    queue: str = "background"
    timeout: float = 10.0


@dataclass
class RunnerConfig:
    timeout: float = 5.0
    imports: list[str] = field(default_factory=list)


@dataclass
class RecoverConfig:
    # modules imported before a sweep so their @task names resolve
    imports: list[str] = field(default_factory=list)


@dataclass
class BackgroundConfig:
    """Complete backgrounder configuration."""

    project_path: Path = field(default_factory=Path.cwd)
    environment: str = ""
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    disk: DiskConfig = field(default_factory=DiskConfig)
    message_queue: MessageQueueConfig = field(default_factory=MessageQueueConfig)
    runner: RunnerConfig = field(default_factory=RunnerConfig)
    recover: RecoverConfig = field(default_factory=RecoverConfig)
    # environment -> configuration name -> {handler, reporter}, plus "default"
    configurations: dict[str, Any] = field(default_factory=dict)

    @property
    def current_environment(self) -> str:
        """Environment used to pick named configurations.

        ``BACKGROUNDER_ENV`` wins over the file's ``environment`` key.
        """
        return (
            os.environ.get(ENVIRONMENT_VAR, "").strip()
            or self.environment
            or DEFAULT_ENVIRONMENT
        )

    @property
    def queue_directory(self) -> Path:
        """Absolute path of the durable queue directory."""
        directory = Path(self.disk.directory)
        if not directory.is_absolute():
            directory = self.project_path / directory
        return directory


def read_config_file(project_path: Path | None = None) -> dict[str, Any]:
    """Return the raw table from backgrounder.toml, or ``{}`` if absent."""
    if project_path is None:
        project_path = Path.cwd()

    config_file = project_path / CONFIG_FILENAME
    if not config_file.exists():
        return {}

    with open(config_file, "rb") as f:
        return tomllib.load(f)


def load_config(project_path: Path | None = None) -> BackgroundConfig:
    """Load configuration from backgrounder.toml if present, otherwise return defaults.

    An unreadable or invalid file is logged and treated as absent.
    """
    if project_path is None:
        project_path = Path.cwd()
    config = BackgroundConfig(project_path=project_path)

    try:
        data = read_config_file(project_path)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("Ignoring unreadable %s: %s", project_path / CONFIG_FILENAME, exc)
        return config

    if "environment" in data:
        config.environment = str(data["environment"])

    if "defaults" in data:
        d = data["defaults"]
        if "handler" in d:
            config.defaults.handler = d["handler"]
        if "reporter" in d:
            config.defaults.reporter = d["reporter"]

    if "disk" in data:
        dk = data["disk"]
        for attr in ("directory", "encrypt"):
            if attr in dk:
                setattr(config.disk, attr, dk[attr])

    if "message_queue" in data:
        mq = data["message_queue"]
        for attr in ("queue", "timeout"):
            if attr in mq:
                setattr(config.message_queue, attr, mq[attr])

    if "runner" in data:
        r = data["runner"]
        for attr in ("timeout", "imports"):
            if attr in r:
                setattr(config.runner, attr, r[attr])

    if "recover" in data and "imports" in data["recover"]:
        config.recover.imports = list(data["recover"]["imports"])

    configurations = data.get("configurations", {})
    if isinstance(configurations, dict):
        config.configurations = configurations
    else:
        logger.warning("Ignoring non-table [configurations] in %s", CONFIG_FILENAME)

    return config
