"""
Logging for ScriptLens.

Two loguru sinks:
- console on stderr, off in machine mode because stdout carries JSON
- rotating file under ~/.scriptlens/logs, opt-in

Environment:
    SCRIPTLENS_MACHINE_MODE=1   suppress the console sink
    SCRIPTLENS_FILE_LOGGING=1   enable the file sink
    SCRIPTLENS_LOG_LEVEL=DEBUG  console level when the caller passes none
"""

import os
import sys
from typing import List, Optional

from loguru import logger

MACHINE_MODE_ENV = "SCRIPTLENS_MACHINE_MODE"
FILE_LOGGING_ENV = "SCRIPTLENS_FILE_LOGGING"
LOG_LEVEL_ENV = "SCRIPTLENS_LOG_LEVEL"

LOG_FILE_NAME = "scriptlens.log"

# Resolutions are short; the console shows where a message came from, not when
CONSOLE_FORMAT = "<level>{level: <7}</level> <cyan>{name}:{line}</cyan> {message}"
# The identity worker runs in a child process, so the file log records the pid
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <7} | pid {process} | {name}:{function}:{line} | {message}"

_handler_ids: List[int] = []
_configured = False


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


def setup_logging(
    level: Optional[str] = None,
    suppress_console: Optional[bool] = None,
    enable_file_logging: Optional[bool] = None,
) -> None:
    """
    (Re)configure the ScriptLens sinks.

    The import-time call reads the environment only. Later calls with any
    explicit argument replace the sinks, which is how the CLI applies
    --human and --verbose after import.

    Args:
        level: Console level. Defaults to $SCRIPTLENS_LOG_LEVEL, then INFO.
        suppress_console: Drop the console sink. None reads $SCRIPTLENS_MACHINE_MODE.
        enable_file_logging: Add the file sink. None reads $SCRIPTLENS_FILE_LOGGING.
    """
    global _configured

    if _configured and level is None and suppress_console is None and enable_file_logging is None:
        return

    if not _configured:
        # loguru ships with its own stderr sink
        logger.remove()
        _configured = True
    while _handler_ids:
        logger.remove(_handler_ids.pop())

    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    if suppress_console is None:
        suppress_console = _env_flag(MACHINE_MODE_ENV)
    if enable_file_logging is None:
        enable_file_logging = _env_flag(FILE_LOGGING_ENV)

    if not suppress_console:
        _handler_ids.append(logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True))

    if enable_file_logging:
        from scriptlens.paths import get_paths

        log_dir = get_paths().logs_dir
        log_dir.mkdir(parents=True, exist_ok=True)
        _handler_ids.append(
            logger.add(
                log_dir / LOG_FILE_NAME,
                level="DEBUG",
                format=FILE_FORMAT,
                rotation="5 MB",
                retention=3,
                catch=True,
            )
        )


setup_logging()
