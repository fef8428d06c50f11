"""
Chat client module.

This module handles the client-side chat logic: the join handshake, dispatch
of server events to the view, reply drafting and validation of outgoing
messages. It holds no Qt objects so it can be driven directly in tests.

The view is any object providing::

    show_username(name, locked)   reset_username()      show_error(message)
    append_message(message, is_mine)                    show_system_message(text)
    show_reply_preview(reply)     hide_reply_preview()  clear_composer()

The transport provides ``send_message(dict)`` for fire-and-forget frames and
``submit(coroutine)`` to schedule work on the network loop.
"""

from typing import Optional

from chat_common.constants import MessageTypes
from chat_common.protocol_definitions import ServerEvent, create_join_message
from chat_client.chat.composer import MessageComposer
from chat_client.session import ClientSession
from chat_client.utils.logger import logger


class ChatClient:
    """Client-side chat functionality."""

    def __init__(self, session: ClientSession, view, composer: Optional[MessageComposer] = None):
        self.session = session
        self.view = view
        self.composer = composer
        self.transport = None

    def set_transport(self, transport, composer: Optional[MessageComposer] = None):
        """Set the transport (and optionally the composer) used for sending."""
        self.transport = transport
        if composer is not None:
            self.composer = composer

    # ------------------------------------------------------------------
    # Handshake
    # ------------------------------------------------------------------

    def on_connected(self):
        """Socket is open: auto-join with the stored name if there is one."""
        self.session.mark_open()
        if self.session.username:
            self.view.show_username(self.session.username, locked=True)
            self.request_join(self.session.username)

    def on_username_committed(self, text: str) -> bool:
        """Username field lost focus or was confirmed."""
        user = text.strip()
        if not user or not self.session.is_open or self.session.is_joined:
            return False
        return self.request_join(user)

    def request_join(self, user: str) -> bool:
        if not self.transport:
            logger.error("Not connected to server, cannot join")
            return False
        logger.log_join(user, confirmed=False)
        self.transport.send_message(create_join_message(user))
        return True

    def on_disconnected(self, reason: str = ""):
        """Connection closed; the session is over until restart."""
        self.session.close()
        self.view.hide_reply_preview()
        message = "Disconnected from server"
        if reason:
            message = f"{message} ({reason})"
        self.view.show_system_message(message)

    # ------------------------------------------------------------------
    # Server events
    # ------------------------------------------------------------------

    def handle_event(self, event: ServerEvent):
        """Handle different types of server events."""
        if event.type == MessageTypes.ERROR:
            self._handle_error(event)
        elif event.type == MessageTypes.JOINED:
            self._handle_joined(event)
        elif event.type in (MessageTypes.INIT, MessageTypes.NEW):
            for message in event.messages:
                self.view.append_message(message, self.session.is_mine(message.user))
        else:
            logger.debug(f"Ignoring server event of type {event.type!r}")

    def _handle_error(self, event: ServerEvent):
        logger.log_join_rejected(event.error)
        self.view.show_error(event.error)
        self.session.reject_join()
        self.view.reset_username()

    def _handle_joined(self, event: ServerEvent):
        self.session.confirm_join(event.user)
        logger.log_join(event.user, confirmed=True)
        self.view.show_username(event.user, locked=True)

    # ------------------------------------------------------------------
    # Reply drafting
    # ------------------------------------------------------------------

    def set_reply_draft(self, user: str, text: str):
        """Target a message for reply, replacing any active draft."""
        reply = self.session.set_reply_draft(user, text)
        self.view.show_reply_preview(reply)

    def cancel_reply(self):
        self.session.clear_reply_draft()
        self.view.hide_reply_preview()

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def send_message(self, username: str, text: str, image_path: Optional[str] = None) -> bool:
        """Validate the composer inputs and schedule the send.

        Returns False (and leaves the inputs untouched) when there is nothing
        to send or no open connection.
        """
        user = username.strip()
        text = text.strip()
        if not user or (not text and not image_path):
            return False

        if not self.session.is_open or not self.transport or not self.composer:
            logger.warning("Not connected to server, message not sent")
            return False

        reply = self.session.take_reply_draft()
        draft = self.composer.create_draft(user, text, image_path=image_path, reply_to=reply)
        self.transport.submit(self.composer.transmit(draft))

        self.view.clear_composer()
        self.view.hide_reply_preview()
        return True
