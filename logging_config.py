"""
Logging setup for VolleyQueue.

Engine, model and service modules only call logging.getLogger(__name__);
setup_logging() decides where those records end up.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from config import PATHS

FILE_FORMAT = '%(asctime)s %(levelname)-8s %(name)s [%(filename)s:%(lineno)d] %(message)s'
CONSOLE_FORMAT = '%(levelname)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _session_log_file(log_dir: Path) -> Path:
    """One log file per application start, named after the start time."""
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f'volleyqueue_{datetime.now():%Y%m%d_%H%M%S}.log'


def setup_logging(
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
) -> logging.Logger:
    """
    Install handlers on the root logger, replacing any installed before.

    Args:
        log_dir: Where the session log file goes (PATHS.log_dir if omitted)
        level: Minimum level for both handlers
        log_to_file: Write the detailed session log file
        log_to_console: Echo short messages to stdout

    Returns:
        The root logger
    """
    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handlers: list[logging.Handler] = []
    if log_to_file:
        file_handler = logging.FileHandler(_session_log_file(log_dir or PATHS.log_dir),
                                           encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        handlers.append(file_handler)
    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        handlers.append(console_handler)

    for handler in handlers:
        handler.setLevel(level)
        root.addHandler(handler)

    # SQL echo stays off unless asked for through create_db_engine(echo=True)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

    return root
