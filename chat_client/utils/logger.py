"""
Client logging module.

This module handles client-side logging functionality.
"""

import logging
import sys

from chat_common.constants import LOGGER_NAME


class ClientLogger:
    """Client logging class."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger(LOGGER_NAME)
        self.logger.setLevel(log_level)

        # Remove existing handlers
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)

        formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        console_handler.setFormatter(formatter)

        self.logger.addHandler(console_handler)

    def set_level(self, level):
        """Change the level of the logger and its handlers."""
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())
            if not isinstance(level, int):
                raise ValueError(f"Unknown log level: {level}")
        self.logger.setLevel(level)
        for handler in self.logger.handlers:
            handler.setLevel(level)

    def info(self, message: str):
        """Log info message."""
        self.logger.info(message)

    def error(self, message: str):
        """Log error message."""
        self.logger.error(message)

    def warning(self, message: str):
        """Log warning message."""
        self.logger.warning(message)

    def debug(self, message: str):
        """Log debug message."""
        self.logger.debug(message)

    def log_connection(self, url: str, success: bool):
        """Log connection attempt."""
        status = "Connected" if success else "Failed to connect"
        self.info(f"{status} to {url}")

    def log_disconnect(self, url: str, reason: str = ""):
        """Log end of the socket session."""
        if reason:
            self.info(f"Disconnected from {url}: {reason}")
        else:
            self.info(f"Disconnected from {url}")

    def log_join(self, username: str, confirmed: bool):
        """Log join request or confirmation."""
        if confirmed:
            self.info(f"Joined as '{username}'")
        else:
            self.info(f"Requesting join as '{username}'")

    def log_join_rejected(self, reason: str):
        """Log server-rejected join."""
        self.warning(f"Join rejected: {reason}")

    def log_message_sent(self, seq: int, text: str, has_image: bool, reply_to: str = None):
        """Log chat message sent."""
        details = []
        if has_image:
            details.append("image")
        if reply_to:
            details.append(f"reply to {reply_to}")
        suffix = f" ({', '.join(details)})" if details else ""
        self.info(f"Chat sent #{seq}: {text!r}{suffix}")

    def log_error(self, operation: str, error: Exception):
        """Log error with operation context."""
        self.error(f"Error in {operation}: {error}")


# Global logger instance
logger = ClientLogger()
