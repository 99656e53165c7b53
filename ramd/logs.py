"""Logging to standard output and to a size-rotated file."""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from .config import TracingConfig

ENV_VAR = "RAMD_LOG"
"""Environment variable holding the log filter, e.g. ``info,ramd::p2p=debug``."""

TRACE = 5

_LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "off": logging.CRITICAL + 10,
}

_STDOUT_NAME = "ramd.stdout"
_FILE_NAME = "ramd.file"
_FORMAT = "%(asctime)s %(levelname)8s %(name)s: %(message)s"


class _EnvFilter(logging.Filter):
    """Per-target level filter; directives that cannot be parsed are ignored."""

    def __init__(self, spec: str | None) -> None:
        super().__init__()
        self._default = logging.ERROR
        self._targets: dict[str, int] = {}
        for directive in (spec or "").split(","):
            directive = directive.strip()
            if not directive:
                continue
            if "=" in directive:
                target, _, level_name = directive.partition("=")
                level = _LEVELS.get(level_name.strip().lower())
                if level is not None and target.strip():
                    self._targets[target.strip().replace("::", ".")] = level
            elif directive.lower() in _LEVELS:
                self._default = _LEVELS[directive.lower()]
            else:
                self._targets[directive.replace("::", ".")] = TRACE

    def _threshold(self, name: str) -> int:
        matches = [
            target for target in self._targets
            if name == target or name.startswith(target + ".")
        ]
        if not matches:
            return self._default
        return self._targets[max(matches, key=len)]

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self._threshold(record.name)


def init_logging(config: TracingConfig) -> logging.Logger:
    """Attach stdout and rotating-file handlers to the ``ramd`` logger once."""
    logger = logging.getLogger("ramd")
    if any(handler.get_name() in (_STDOUT_NAME, _FILE_NAME) for handler in logger.handlers):
        return logger

    logging.addLevelName(TRACE, "TRACE")
    formatter = logging.Formatter(_FORMAT)

    file_handler = RotatingFileHandler(
        os.fspath(config.path),
        maxBytes=config.max_size_bytes,
        backupCount=config.max_files,
        encoding="utf-8",
    )
    file_handler.set_name(_FILE_NAME)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.set_name(_STDOUT_NAME)

    for handler in (stdout_handler, file_handler):
        handler.setFormatter(formatter)
        handler.addFilter(_EnvFilter(os.environ.get(ENV_VAR)))
        logger.addHandler(handler)

    logger.setLevel(TRACE)
    return logger