"""Logging configuration utilities."""

import logging
import sys
from pathlib import Path


def setup_logging(log_dir: Path = None, level: int = logging.INFO) -> Path:
    """Configure logging with file and console handlers."""
    # Create formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear any existing handlers
    root_logger.handlers = []

    # Console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_dir = Path(log_dir) if log_dir is not None else Path('logs')
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / 'lottery.log'

    # Append to lottery.log
    file_handler = logging.FileHandler(log_file, mode='a')
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # Optuna logs every trial at INFO
    logging.getLogger('optuna').setLevel(logging.WARNING)
    return log_file
