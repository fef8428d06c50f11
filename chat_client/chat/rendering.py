"""
Message rendering.

Turns ``ChatMessage`` records into the rich-text HTML shown in the chat view.
All user-supplied strings pass through ``escape_html`` before they are
inserted; images are only accepted as ``data:image/...`` URIs.
"""

import base64
import binascii
import re
from datetime import datetime
from typing import Optional, Union

from chat_common.constants import IMAGE_MAX_WIDTH
from chat_common.protocol_definitions import ChatMessage, ReplyRef
from chat_client.utils.logger import logger

# Seconds with a fractional part of any length
_ISO_FRACTION = re.compile(r"([T ]\d{2}:\d{2}:\d{2})\.(\d+)")


def escape_html(unsafe: str) -> str:
    """Escape the five HTML-significant characters."""
    return (unsafe
            .replace("&", "&amp;")
            .replace("<", "&lt;")
            .replace(">", "&gt;")
            .replace('"', "&quot;")
            .replace("'", "&#039;"))


def format_ampm(moment: datetime) -> str:
    """Format a time as ``h:MM AM`` / ``h:MM PM``."""
    hours = moment.hour
    ampm = "PM" if hours >= 12 else "AM"
    hours = hours % 12 or 12
    return f"{hours}:{moment.minute:02d} {ampm}"


def message_time(value: Optional[Union[str, int, float]], now: Optional[datetime] = None) -> datetime:
    """Resolve a wire timestamp to local time, falling back to ``now``."""
    fallback = now or datetime.now()
    if value is None or value == "":
        return fallback

    try:
        if isinstance(value, (int, float)):
            # Epoch milliseconds
            return datetime.fromtimestamp(value / 1000)
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        text = _ISO_FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text)
        parsed = datetime.fromisoformat(text)
    except (ValueError, OverflowError, OSError) as e:
        logger.warning(f"Unparsable message time {value!r}: {e}")
        return fallback

    if parsed.tzinfo is not None:
        return parsed.astimezone().replace(tzinfo=None)
    return parsed


def is_image_data_uri(src: Optional[str]) -> bool:
    return bool(src) and src.startswith("data:image/")


def decode_data_uri(uri: str) -> bytes:
    """Return the payload bytes of a base64 data URI."""
    header, sep, data = uri.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("Not a base64 data URI")
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


def render_reply_preview_html(reply: ReplyRef) -> str:
    """Inner HTML of the reply-context line."""
    return f"Replying to <strong>{escape_html(reply.user)}</strong>: {escape_html(reply.text)}"


def render_message_html(message: ChatMessage, is_mine: bool, include_image: bool = True,
                        image_max_width: int = IMAGE_MAX_WIDTH,
                        now: Optional[datetime] = None) -> str:
    """Render one message bubble as HTML.

    The image is left out when ``include_image`` is false so callers that
    draw it natively (the Qt bubble) don't embed the data URI twice.
    """
    css_class = "me" if is_mine else "them"
    formatted_time = format_ampm(message_time(message.time, now))
    safe_text = escape_html(message.text) if message.text else ""

    content = ""

    if message.reply_to:
        content += (f'<div class="reply-preview" style="color: #7F8C8D;">'
                    f'<em>{render_reply_preview_html(message.reply_to)}</em></div>')

    content += f"<strong>{escape_html(message.user)}</strong>: {safe_text}"

    if include_image and message.image:
        if is_image_data_uri(message.image):
            content += (f'<br><img src="{escape_html(message.image)}" '
                        f'style="max-width: {image_max_width}px; border-radius: 8px; margin-top: 5px;" />')
        else:
            logger.warning(f"Dropped non data-URI image from {message.user!r}")

    content += f'<div class="timestamp" style="color: #95A5A6; font-size: 8pt;">{formatted_time}</div>'

    return f'<div class="message {css_class}">{content}</div>'
