"""
Logging setup

Shared console/file logging for the service.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

# ANSI colour codes


class Colors:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    CYAN = '\033[96m'
    MAGENTA = '\033[95m'


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name"""

    FORMATS = {
        logging.DEBUG: f"{Colors.CYAN}%(levelname)-8s{Colors.RESET} | %(asctime)s | %(name)s | %(message)s",
        logging.INFO: f"{Colors.GREEN}%(levelname)-8s{Colors.RESET} | %(asctime)s | %(name)s | %(message)s",
        logging.WARNING: f"{Colors.YELLOW}%(levelname)-8s{Colors.RESET} | %(asctime)s | %(name)s | %(message)s",
        logging.ERROR: f"{Colors.RED}%(levelname)-8s{Colors.RESET} | %(asctime)s | %(name)s | %(message)s",
        logging.CRITICAL: f"{Colors.MAGENTA}{Colors.BOLD}%(levelname)-8s{Colors.RESET} | %(asctime)s | %(name)s | %(message)s",
    }

    def format(self, record):
        log_fmt = self.FORMATS.get(record.levelno)
        formatter = logging.Formatter(log_fmt, datefmt='%Y-%m-%d %H:%M:%S')
        return formatter.format(record)


def setup_logger(
    name: str,
    level: int = logging.INFO,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure and return a named logger

    Args:
        name: logger name
        level: log level
        log_file: optional path of a log file

    Returns:
        the configured Logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # handlers are attached once per logger
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter())
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_formatter = logging.Formatter(
            '%(levelname)-8s | %(asctime)s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger


# predefined loggers
app_logger = setup_logger('app', level=logging.INFO)
api_logger = setup_logger('api', level=logging.INFO)
db_logger = setup_logger('database', level=logging.WARNING)
verification_logger = setup_logger('verification', level=logging.INFO)
