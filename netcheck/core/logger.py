"""
Logging configuration for NetCheck.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from .config import LoggingConfig

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Chatty in DEBUG, nothing NetCheck needs
QUIET_LOGGERS = ('urllib3', 'influxdb_client')


def setup_logging(config: LoggingConfig, level: int = logging.INFO) -> None:
    """Log to stdout, and also to a rotating file when one is configured."""
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handlers = [logging.StreamHandler(sys.stdout)]
    file_handler = _rotating_file_handler(config)
    if file_handler is not None:
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logging.getLogger('netcheck').setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _rotating_file_handler(config: LoggingConfig) -> Optional[logging.Handler]:
    if not config.file:
        return None

    try:
        log_path = Path(config.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        return logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=config.max_size * 1024 * 1024,  # MB
            backupCount=config.backup_count
        )
    except OSError as e:
        logging.warning(f"Failed to setup file logging for {config.file}: {e}")
        return None
