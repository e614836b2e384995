from __future__ import annotations

import logging
import sys
from logging.config import dictConfig
from typing import TYPE_CHECKING

from twisted.python import log as twisted_log

from localhttp.settings import Settings

if TYPE_CHECKING:
    from localhttp.settings import _SettingsInputT


logger = logging.getLogger(__name__)


class TopLevelFormatter(logging.Filter):
    """Shorten the names of records from the given ``loggers`` and their
    children to the top level name, e.g. ``localhttp.core.webclient`` to
    ``localhttp``, when ``LOG_SHORT_NAMES`` is set.

    Installed on the root handler, since a filter on a logger does not apply
    to its children.
    """

    def __init__(self, loggers: list[str] | None = None):
        super().__init__()
        self.loggers: list[str] = loggers or []

    def filter(self, record: logging.LogRecord) -> bool:
        if any(record.name.startswith(logger + ".") for logger in self.loggers):
            record.name = record.name.split(".", 1)[0]
        return True


DEFAULT_LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "loggers": {
        "localhttp": {
            "level": "DEBUG",
        },
        "twisted": {
            "level": "ERROR",
        },
    },
}


def configure_logging(
    settings: Settings | _SettingsInputT = None, install_root_handler: bool = True
) -> None:
    """
    Initialize logging defaults for localhttp.

    :param settings: settings used to create and configure a handler for the
        root logger (default: None).
    :type settings: dict, :class:`~localhttp.settings.Settings` object or ``None``

    :param install_root_handler: whether to install root logging handler
        (default: True)
    :type install_root_handler: bool

    This function does:

    - Route warnings and twisted logging through Python standard logging
    - Assign DEBUG and ERROR level to localhttp and Twisted loggers
      respectively

    When ``install_root_handler`` is True (default), this function also
    creates a handler for the root logger according to given settings
    (see the ``LOG_*`` settings). A default ``Settings`` object is used
    when ``settings`` is ``None``.
    """
    if not sys.warnoptions:
        # Route warnings through python logging
        logging.captureWarnings(True)

    observer = twisted_log.PythonLoggingObserver("twisted")
    observer.start()

    dictConfig(DEFAULT_LOGGING)

    if not isinstance(settings, Settings):
        settings = Settings(settings)

    if install_root_handler:
        install_localhttp_root_handler(settings)


_localhttp_root_handler: logging.Handler | None = None


def install_localhttp_root_handler(settings: Settings) -> None:
    global _localhttp_root_handler  # noqa: PLW0603  # pylint: disable=global-statement

    _uninstall_localhttp_root_handler()
    logging.root.setLevel(logging.NOTSET)
    _localhttp_root_handler = _get_handler(settings)
    logging.root.addHandler(_localhttp_root_handler)


def _uninstall_localhttp_root_handler() -> None:
    global _localhttp_root_handler  # noqa: PLW0603  # pylint: disable=global-statement

    if (
        _localhttp_root_handler is not None
        and _localhttp_root_handler in logging.root.handlers
    ):
        logging.root.removeHandler(_localhttp_root_handler)
    _localhttp_root_handler = None


def _get_handler(settings: Settings) -> logging.Handler:
    """Return a log handler object according to settings"""
    filename = settings.get("LOG_FILE")
    handler: logging.Handler
    if filename:
        mode = "a" if settings.getbool("LOG_FILE_APPEND") else "w"
        encoding = settings.get("LOG_ENCODING")
        handler = logging.FileHandler(filename, mode=mode, encoding=encoding)
    elif settings.getbool("LOG_ENABLED"):
        handler = logging.StreamHandler()
    else:
        handler = logging.NullHandler()

    formatter = logging.Formatter(
        fmt=settings.get("LOG_FORMAT"), datefmt=settings.get("LOG_DATEFORMAT")
    )
    handler.setFormatter(formatter)
    handler.setLevel(settings.get("LOG_LEVEL"))
    if settings.getbool("LOG_SHORT_NAMES"):
        handler.addFilter(TopLevelFormatter(["localhttp"]))
    return handler


def log_reactor_info() -> None:
    from twisted.internet import reactor

    logger.debug("Using reactor: %s.%s", reactor.__module__, reactor.__class__.__name__)
