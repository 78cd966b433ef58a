"""
Centralized logging configuration for the Harmonic Pattern Scanner.
This provides a consistent logging setup across all project components.
"""

import os
import sys
import logging
import logging.handlers
from typing import Dict, Optional

# Define log levels dictionary for easy reference
LOG_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}

# Default format string for log messages
DEFAULT_LOG_FORMAT = "%(asctime)s - [%(levelname)s] - %(name)s - %(message)s"

# Global configuration
logs_directory = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'logs')
default_log_file = os.path.join(logs_directory, 'harmonic_scanner.log')

# Global log handler registry to avoid duplicates
_log_handlers = {}


def get_file_handler(
    log_file: str,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    log_format: str = DEFAULT_LOG_FORMAT
) -> logging.Handler:
    """Return the rotating handler for log_file, creating it on first use."""
    if log_file not in _log_handlers:
        os.makedirs(os.path.dirname(log_file), exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count
        )
        file_handler.setFormatter(logging.Formatter(log_format))
        _log_handlers[log_file] = file_handler

    return _log_handlers[log_file]


def attach_file_handler(logger: logging.Logger, log_file: str) -> logging.Handler:
    """Attach the shared handler for log_file to logger unless it is already there."""
    file_handler = get_file_handler(log_file)
    if file_handler not in logger.handlers:
        logger.addHandler(file_handler)
    return file_handler


def configure_logging(
    level: str = 'INFO',
    component: Optional[str] = None,
    log_file: Optional[str] = None,
    console: bool = True,
    file_logging: bool = False,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
    log_format: str = DEFAULT_LOG_FORMAT
) -> logging.Logger:
    """
    Configure logging for a specific component.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        component: Component name (used as logger name, None for the root logger)
        log_file: Path to log file (defaults to logs/component_name.log)
        console: Whether to log to console
        file_logging: Whether to log to file
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup log files to keep
        log_format: Format string for log messages

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(component)

    # Skip if already configured with handlers
    if logger.handlers:
        return logger

    logger.setLevel(LOG_LEVELS.get(level.upper(), logging.INFO))

    if log_file is None and component is not None:
        log_file = os.path.join(logs_directory, f"{component.lower().replace('.', '_')}.log")
    elif log_file is None:
        log_file = default_log_file

    formatter = logging.Formatter(log_format)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if file_logging:
        try:
            logger.addHandler(get_file_handler(log_file, max_bytes, backup_count, log_format))
        except OSError as e:
            # If file logging fails, log to stderr as fallback
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)
            logger.error(f"Failed to set up file logging: {e}")

    # Component loggers write through their own handlers
    if component is not None:
        logger.propagate = False

    return logger


def configure_root_logger(level: str = 'INFO',
                          file_logging: bool = False,
                          log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger for the command line application.

    Args:
        level: Logging level for the root logger
        file_logging: Whether to also write to a log file
        log_file: Log file path (defaults to logs/harmonic_scanner.log)

    Returns:
        Root logger
    """
    root_logger = configure_logging(
        level=level,
        component=None,
        log_file=log_file or default_log_file,
        console=True,
        file_logging=file_logging
    )
    # The root logger may already carry handlers from an earlier setup
    if file_logging:
        attach_file_handler(root_logger, log_file or default_log_file)

    # Install exception hook to log unhandled exceptions
    def exception_handler(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        root_logger.critical("Unhandled exception", exc_info=(exc_type, exc_value, exc_traceback))
        sys.__excepthook__(exc_type, exc_value, exc_traceback)

    sys.excepthook = exception_handler
    return root_logger


def log_exception(logger: logging.Logger, exception: Exception, message: str = "An error occurred:"):
    """
    Log an exception with full traceback information.

    Args:
        logger: Logger instance
        exception: Exception to log
        message: Message to prefix the exception
    """
    logger.error(f"{message} {str(exception)}")
    logger.debug("Exception traceback:", exc_info=True)


def set_log_level(component: Optional[str] = None, level: str = 'INFO'):
    """
    Set the log level for a specific component or the root logger.

    Args:
        component: Component name (None for root logger)
        level: Logging level
    """
    logger = logging.getLogger(component) if component else logging.getLogger()
    logger.setLevel(LOG_LEVELS.get(level.upper(), logging.INFO))


class LogManager:
    """Manager class for handling component loggers across the application."""

    def __init__(self, default_level: str = 'INFO', file_logging: bool = False,
                 log_file: Optional[str] = None):
        self.loggers = {}
        self.default_level = default_level
        self.file_logging = file_logging
        self.log_file = log_file

    def get_logger(self, component: str, level: Optional[str] = None) -> logging.Logger:
        """
        Get a logger for a specific component.

        Args:
            component: Component name
            level: Logging level (uses default if None)

        Returns:
            Logger instance
        """
        if component not in self.loggers:
            self.loggers[component] = configure_logging(
                level=level or self.default_level,
                component=component,
                log_file=self.log_file,
                file_logging=self.file_logging
            )

        return self.loggers[component]

    def set_default_level(self, level: str):
        if level.upper() in LOG_LEVELS:
            self.default_level = level.upper()

    def set_all_levels(self, level: str):
        """
        Set the log level for all existing loggers.

        Args:
            level: New log level
        """
        level_value = LOG_LEVELS.get(level.upper(), logging.INFO)

        for logger in self.loggers.values():
            logger.setLevel(level_value)

        logging.getLogger().setLevel(level_value)

    def get_component_loggers(self) -> Dict[str, logging.Logger]:
        return dict(self.loggers)

    def enable_file_logging(self, log_file: Optional[str] = None) -> str:
        """
        Write every component logger, existing and future, to one log file.

        Component loggers are usually created at import time, before the
        configuration is read, so their file handlers are attached here.

        Args:
            log_file: Log file path (defaults to logs/harmonic_scanner.log)

        Returns:
            Path of the log file
        """
        self.file_logging = True
        self.log_file = log_file or default_log_file

        for logger in self.loggers.values():
            attach_file_handler(logger, self.log_file)

        return self.log_file

    def disable_file_logging(self):
        """Detach the shared file handler from all component loggers."""
        if self.file_logging and self.log_file in _log_handlers:
            file_handler = _log_handlers[self.log_file]
            for logger in self.loggers.values():
                logger.removeHandler(file_handler)

        self.file_logging = False
        self.log_file = None


# Create a global log manager instance
log_manager = LogManager()


def get_component_logger(component: str, level: Optional[str] = None) -> logging.Logger:
    """Get a logger for a specific component using the global log manager."""
    return log_manager.get_logger(component, level)
