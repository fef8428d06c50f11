"""
Protocol definitions for the socket chat client.

This module defines the message structures exchanged with the chat server and
the helpers that build client messages and validate server events. Every frame
on the wire is a single JSON object with a top-level ``type`` field.
"""

import json
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List, Union

from chat_common.constants import MessageTypes


class ProtocolError(ValueError):
    """Raised when a server frame cannot be decoded into a known event."""


@dataclass(frozen=True)
class ReplyRef:
    """Denormalized copy of the message being replied to."""
    user: str
    text: str

    def to_dict(self) -> Dict[str, str]:
        return {"user": self.user, "text": self.text}

    @classmethod
    def from_dict(cls, data: Any) -> "ReplyRef":
        if not isinstance(data, dict) or not isinstance(data.get("user"), str):
            raise ProtocolError(f"Invalid replyTo reference: {data!r}")
        text = data.get("text")
        return cls(user=data["user"], text=text if isinstance(text, str) else "")


@dataclass(frozen=True)
class ChatMessage:
    """Chat message structure as delivered by the server."""
    user: str
    text: str = ""
    image: Optional[str] = None
    time: Optional[Union[str, int, float]] = None
    reply_to: Optional[ReplyRef] = None

    @classmethod
    def from_dict(cls, data: Any) -> "ChatMessage":
        """Build a message from its wire form, tolerating missing optional fields."""
        if not isinstance(data, dict):
            raise ProtocolError(f"Message must be an object, got {type(data).__name__}")
        user = data.get("user")
        if not isinstance(user, str):
            raise ProtocolError(f"Message has no sender: {data!r}")

        text = data.get("text")
        image = data.get("image")
        time = data.get("time")
        if isinstance(time, bool) or not isinstance(time, (str, int, float)):
            time = None
        reply = data.get("replyTo")

        return cls(
            user=user,
            text=text if isinstance(text, str) else "",
            image=image if isinstance(image, str) and image else None,
            time=time,
            reply_to=ReplyRef.from_dict(reply) if reply else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"user": self.user, "text": self.text}
        if self.time is not None:
            data["time"] = self.time
        if self.image:
            data["image"] = self.image
        if self.reply_to:
            data["replyTo"] = self.reply_to.to_dict()
        return data


@dataclass
class ServerEvent:
    """A decoded server-to-client frame.

    ``messages`` holds the history for ``init`` and the single delivered
    message for ``new``; ``error`` carries the rejection text.
    """
    type: str
    user: Optional[str] = None
    error: Optional[str] = None
    messages: List[ChatMessage] = field(default_factory=list)


def create_join_message(user: str) -> Dict[str, Any]:
    """Create a join request."""
    return {
        "type": MessageTypes.JOIN,
        "user": user
    }


def create_chat_message(user: str, text: str, time: str,
                        image: Optional[str] = None,
                        reply_to: Optional[ReplyRef] = None) -> Dict[str, Any]:
    """Create an outgoing chat message."""
    message = {
        "type": MessageTypes.MESSAGE,
        "user": user,
        "text": text,
        "time": time
    }
    if reply_to is not None:
        message["replyTo"] = reply_to.to_dict()
    if image is not None:
        message["image"] = image
    return message


def encode_message(message: Dict[str, Any]) -> str:
    """Serialize a message dict into a text frame."""
    return json.dumps(message)


def parse_server_event(data: Union[str, bytes]) -> ServerEvent:
    """Decode one server frame.

    Raises:
        ProtocolError: if the frame is not JSON, not an object, or a known
            event type is missing its payload.
    """
    if isinstance(data, bytes):
        data = data.decode('utf-8')
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"Frame is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise ProtocolError("Frame must be a JSON object")

    msg_type = payload.get("type")
    if not isinstance(msg_type, str):
        raise ProtocolError("Frame has no type")

    if msg_type == MessageTypes.JOINED:
        user = payload.get("user")
        if not isinstance(user, str) or not user:
            raise ProtocolError("joined event without user")
        return ServerEvent(type=msg_type, user=user)

    if msg_type == MessageTypes.ERROR:
        message = payload.get("message")
        return ServerEvent(type=msg_type, error=str(message) if message is not None else "")

    if msg_type == MessageTypes.INIT:
        messages = payload.get("messages")
        if not isinstance(messages, list):
            raise ProtocolError("init event without message list")
        return ServerEvent(type=msg_type,
                           messages=[ChatMessage.from_dict(m) for m in messages])

    if msg_type == MessageTypes.NEW:
        return ServerEvent(type=msg_type,
                           messages=[ChatMessage.from_dict(payload.get("message"))])

    return ServerEvent(type=msg_type)
