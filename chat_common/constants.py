"""
Shared constants for the socket chat client.

This module contains the constants used by the protocol, session and UI layers.
"""

# Network Configuration
DEFAULT_HOST = 'localhost'
DEFAULT_PORT = 3000
DEFAULT_PATH = '/'
CONNECT_TIMEOUT = 10  # seconds
CLOSE_TIMEOUT = 1  # seconds to wait for the closing handshake

# Persisted identity
SETTINGS_ORGANIZATION = 'socket-chat'
SETTINGS_APPLICATION = 'chat-client'
USERNAME_SETTINGS_KEY = 'chatUser'

# Reply gesture
REPLY_DRAG_THRESHOLD = 100  # pixels, rightward only

# Rendering
IMAGE_MAX_WIDTH = 320  # pixels
DEFAULT_IMAGE_MIME = 'application/octet-stream'

# Logging
LOGGER_NAME = 'chat_client'
DEFAULT_LOG_LEVEL = 'INFO'


# Message Types
class MessageTypes:
    # Client to Server
    JOIN = 'join'
    MESSAGE = 'message'

    # Server to Client
    JOINED = 'joined'
    ERROR = 'error'
    INIT = 'init'
    NEW = 'new'
