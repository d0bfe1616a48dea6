"""Logging utilities for deploy hooks.

Every record is written as one ``[YYYY-mm-dd HH:MM:SS] LEVEL: message``
line, appended to the shared log file and echoed to stdout. The log file
is best effort: if it cannot be opened the hook keeps running with
terminal output only, and write errors are handled by `logging` itself
rather than raised into the hook.

"""
import logging
import sys
from typing import Optional
from typing import TextIO

from certbot_deploy._internal import constants

logger = logging.getLogger(__name__)


def setup(log_file: Optional[str], level: int = constants.DEFAULT_LOGGING_LEVEL,
          stream: Optional[TextIO] = None) -> list[logging.Handler]:
    """Configure the root logger for one hook invocation.

    :param str log_file: path of the shared log file, or None to disable it
    :param int level: terminal logging level
    :param stream: terminal stream, defaults to stdout

    :returns: the handlers added to the root logger
    :rtype: list

    """
    formatter = logging.Formatter(constants.LOG_FMT, datefmt=constants.LOG_DATE_FMT)

    stream_handler = logging.StreamHandler(sys.stdout if stream is None else stream)
    stream_handler.setFormatter(formatter)
    stream_handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(min(level, constants.DEFAULT_LOGGING_LEVEL))
    root_logger.addHandler(stream_handler)
    handlers: list[logging.Handler] = [stream_handler]

    if log_file:
        file_handler = setup_log_file_handler(log_file, formatter)
        if file_handler is not None:
            root_logger.addHandler(file_handler)
            handlers.append(file_handler)
    return handlers


def setup_log_file_handler(log_file: str,
                           formatter: logging.Formatter) -> Optional[logging.Handler]:
    """Open the shared log file in append mode.

    :returns: the handler, or None if the file cannot be opened
    :rtype: logging.Handler or None

    """
    try:
        handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    except OSError as error:
        logger.warning("Unable to open log file %s, logging to terminal only: %s",
                       log_file, error)
        return None
    handler.setLevel(min(logging.getLogger().level, constants.DEFAULT_LOGGING_LEVEL))
    handler.setFormatter(formatter)
    return handler


def level_from_flags(verbose_count: int, quiet: bool) -> int:
    """Terminal level requested by ``-v``/``-q``."""
    if quiet:
        return constants.QUIET_LOGGING_LEVEL
    return max(constants.DEFAULT_LOGGING_LEVEL - verbose_count * 10, logging.DEBUG)


def teardown(handlers: list[logging.Handler]) -> None:
    """Flush and detach the handlers installed by `setup`."""
    root_logger = logging.getLogger()
    for handler in handlers:
        root_logger.removeHandler(handler)
        handler.close()
