"""
Outgoing message composition.

A send is captured as an ``OutgoingDraft`` in the GUI thread and then handed
to ``MessageComposer.transmit`` on the network loop, which reads the optional
image, builds the payload and writes it to the socket as one step.

Sends are serialized: the composer holds a lock around read-and-transmit, so
a text-only send issued while an image is still being read goes out after it.
"""

import asyncio
import base64
import itertools
import mimetypes
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional

from chat_common.constants import DEFAULT_IMAGE_MIME
from chat_common.protocol_definitions import ReplyRef, create_chat_message
from chat_client.utils.logger import logger


SendCallable = Callable[[Dict[str, Any]], Awaitable[bool]]


@dataclass(frozen=True)
class OutgoingDraft:
    """Snapshot of the composer inputs at the moment Send was pressed."""
    seq: int
    user: str
    text: str
    time: str
    image_path: Optional[str] = None
    reply_to: Optional[ReplyRef] = None


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC time with millisecond precision and a ``Z`` suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def read_image_data_uri(path: str) -> str:
    """Read a file and inline it as a base64 data URI."""
    file_path = Path(path)
    mime, _ = mimetypes.guess_type(file_path.name)
    encoded = base64.b64encode(file_path.read_bytes()).decode('ascii')
    return f"data:{mime or DEFAULT_IMAGE_MIME};base64,{encoded}"


class MessageComposer:
    """Builds and transmits outgoing chat messages in submission order."""

    def __init__(self, send: SendCallable):
        self._send = send
        self._lock = None  # created on the loop that runs transmit
        self._counter = itertools.count(1)

    def create_draft(self, user: str, text: str, image_path: Optional[str] = None,
                     reply_to: Optional[ReplyRef] = None) -> OutgoingDraft:
        return OutgoingDraft(
            seq=next(self._counter),
            user=user,
            text=text,
            time=utc_timestamp(),
            image_path=image_path,
            reply_to=reply_to
        )

    async def transmit(self, draft: OutgoingDraft) -> bool:
        """Read the image (if any), build the payload and send it."""
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            image = None
            if draft.image_path:
                try:
                    image = await asyncio.to_thread(read_image_data_uri, draft.image_path)
                except OSError as e:
                    logger.log_error(f"reading image for message #{draft.seq}", e)
                    return False

            payload = create_chat_message(draft.user, draft.text, draft.time,
                                          image=image, reply_to=draft.reply_to)
            sent = await self._send(payload)
            if sent:
                logger.log_message_sent(draft.seq, draft.text, image is not None,
                                        draft.reply_to.user if draft.reply_to else None)
            return sent
