"""
Client configuration module.

This module handles client-side configuration settings.
"""

import os

from chat_common.constants import (
    DEFAULT_HOST, DEFAULT_PORT, DEFAULT_PATH, CONNECT_TIMEOUT,
    SETTINGS_ORGANIZATION, SETTINGS_APPLICATION,
    IMAGE_MAX_WIDTH, REPLY_DRAG_THRESHOLD, DEFAULT_LOG_LEVEL
)


class ClientConfig:
    """Client configuration class."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, path: str = DEFAULT_PATH):
        self.host = host
        self.port = port
        self.path = path if path.startswith('/') else f"/{path}"

        # Connection settings
        self.connect_timeout = CONNECT_TIMEOUT

        # Persisted identity
        self.settings_organization = SETTINGS_ORGANIZATION
        self.settings_application = SETTINGS_APPLICATION

        # UI settings
        self.image_max_width = IMAGE_MAX_WIDTH
        self.reply_drag_threshold = REPLY_DRAG_THRESHOLD

        self.log_level = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ=None) -> "ClientConfig":
        """Build a config from SERVER_IP / SERVER_PORT / SERVER_PATH."""
        environ = os.environ if environ is None else environ
        port = environ.get('SERVER_PORT', str(DEFAULT_PORT))
        if not port.isdigit():
            raise ValueError(f"SERVER_PORT must be a number, got {port!r}")
        return cls(
            host=environ.get('SERVER_IP', DEFAULT_HOST),
            port=int(port),
            path=environ.get('SERVER_PATH', DEFAULT_PATH)
        )

    @property
    def ws_url(self) -> str:
        """WebSocket URL of the chat server."""
        return f"ws://{self.host}:{self.port}{self.path}"

    def get_connection_info(self):
        """Get connection information."""
        return {
            'host': self.host,
            'port': self.port,
            'path': self.path,
            'url': self.ws_url
        }
