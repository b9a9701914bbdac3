"""
Logging configuration for the torque slideshow helper and widgets
"""

import logging
import logging.handlers
import os
from datetime import datetime


def setup_logger(name='torque', log_dir='logs', level=logging.INFO, suffix=None, replace_handlers=False):
    """
    Set up a logger with file and console handlers

    The display process logs to torque_<date>.log. The helper process
    passes suffix='helper' and logs to torque_helper_<date>.log so the two
    processes never rotate the same file.

    Args:
        name: Logger name
        log_dir: Directory for log files
        level: Logging level (int or level name such as "DEBUG")
        suffix: Optional part added to the log file name
        replace_handlers: Close and drop existing handlers first, e.g. the
            ones a forked child inherits from its parent

    Returns:
        Configured logger instance
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if replace_handlers:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    # Avoid duplicate handlers if logger already exists
    if logger.handlers:
        return logger

    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(processName)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    prefix = f'torque_{suffix}' if suffix else 'torque'
    log_file = os.path.join(log_dir, f'{prefix}_{datetime.now().strftime("%Y%m%d")}.log')
    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(file_formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(console_formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger


def get_logger(module_name):
    """Get a logger for a specific module"""
    return logging.getLogger(f'torque.{module_name}')
