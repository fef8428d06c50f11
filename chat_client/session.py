"""
Client session state.

Holds the per-connection state that the chat window and controller share:
the confirmed username, the connection state and the active reply draft.
The username survives restarts through ``UsernameStore``.
"""

from enum import Enum
from typing import Optional

from PyQt6.QtCore import QSettings

from chat_common.constants import USERNAME_SETTINGS_KEY
from chat_common.protocol_definitions import ReplyRef


class ConnectionState(Enum):
    CONNECTING = 'connecting'
    OPEN = 'open'
    JOINED = 'joined'
    CLOSED = 'closed'


class UsernameStore:
    """Persisted last confirmed username, backed by QSettings."""

    def __init__(self, settings: QSettings, key: str = USERNAME_SETTINGS_KEY):
        self.settings = settings
        self.key = key

    def load(self) -> Optional[str]:
        value = self.settings.value(self.key, None)
        if isinstance(value, str) and value:
            return value
        return None

    def save(self, username: str):
        self.settings.setValue(self.key, username)
        self.settings.sync()

    def clear(self):
        self.settings.remove(self.key)
        self.settings.sync()


class ClientSession:
    """State of one socket session, created on connect and reset on disconnect."""

    def __init__(self, store: UsernameStore):
        self.store = store
        self.username: Optional[str] = store.load()
        self.state = ConnectionState.CONNECTING
        self.reply_draft: Optional[ReplyRef] = None

    @property
    def is_joined(self) -> bool:
        return self.state == ConnectionState.JOINED

    @property
    def is_open(self) -> bool:
        return self.state in (ConnectionState.OPEN, ConnectionState.JOINED)

    def mark_open(self):
        self.state = ConnectionState.OPEN

    def confirm_join(self, username: str):
        """Accept the server-confirmed name and persist it."""
        self.username = username
        self.store.save(username)
        self.state = ConnectionState.JOINED

    def reject_join(self):
        """Forget the current identity after a rejected join."""
        self.username = None
        self.store.clear()
        if self.state == ConnectionState.JOINED:
            self.state = ConnectionState.OPEN

    def is_mine(self, user: str) -> bool:
        return self.username is not None and user == self.username

    def set_reply_draft(self, user: str, text: str) -> ReplyRef:
        self.reply_draft = ReplyRef(user=user, text=text)
        return self.reply_draft

    def take_reply_draft(self) -> Optional[ReplyRef]:
        """Return the active draft and clear it."""
        draft, self.reply_draft = self.reply_draft, None
        return draft

    def clear_reply_draft(self):
        self.reply_draft = None

    def close(self):
        self.state = ConnectionState.CLOSED
        self.reply_draft = None
