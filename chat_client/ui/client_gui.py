#!/usr/bin/env python3
"""
Client GUI - PyQt6 Chat Window

This module wires the chat controller to a desktop window.
Features:
- Username field with join handshake (locked once joined)
- Message list with inline images and reply context
- Drag a message right to reply to it
- Text/image composer (Enter sends, Shift+Enter for newline)
- WebSocket networking on a background QThread
"""

import sys
import asyncio
import threading
from pathlib import Path
from typing import Optional

from PyQt6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QFrame,
    QLabel, QPushButton, QLineEdit, QPlainTextEdit, QScrollArea, QFileDialog,
    QMessageBox, QSizePolicy
)
from PyQt6.QtCore import Qt, QThread, QSettings, pyqtSignal
from PyQt6.QtGui import QPixmap, QCursor

import websockets
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from chat_common.constants import CLOSE_TIMEOUT
from chat_common.protocol_definitions import (
    ChatMessage, ReplyRef, ProtocolError, encode_message, parse_server_event
)
from chat_client.chat.chat_client import ChatClient
from chat_client.chat.composer import MessageComposer
from chat_client.chat.gestures import DragTracker
from chat_client.chat.rendering import (
    decode_data_uri, is_image_data_uri, render_message_html, render_reply_preview_html
)
from chat_client.session import ClientSession, UsernameStore
from chat_client.utils.config import ClientConfig
from chat_client.utils.logger import logger


# ============================================================================
# MESSAGE LIST
# ============================================================================

class MessageBubble(QFrame):
    """One rendered message; drag it right to reply to it."""

    reply_requested = pyqtSignal(str, str)  # user, text

    def __init__(self, message: ChatMessage, is_mine: bool, image_max_width: int, drag_threshold: int):
        super().__init__()
        self.message = message
        self.is_mine = is_mine
        self.image_max_width = image_max_width
        self.drag = DragTracker(threshold=drag_threshold)
        self.image_label = None
        self.setup_ui()

    def setup_ui(self):
        """Setup the bubble layout."""
        self.setObjectName("me" if self.is_mine else "them")
        self.setCursor(QCursor(Qt.CursorShape.OpenHandCursor))
        self.setMaximumWidth(self.image_max_width + 80)
        self.setSizePolicy(QSizePolicy.Policy.Maximum, QSizePolicy.Policy.Preferred)
        self.setStyleSheet("""
            QFrame#me {
                background-color: #2E86C1;
                border-radius: 8px;
            }
            QFrame#them {
                background-color: #34495E;
                border-radius: 8px;
            }
            QLabel {
                background-color: transparent;
                color: #ECF0F1;
            }
        """)

        layout = QVBoxLayout()
        layout.setContentsMargins(8, 6, 8, 6)
        layout.setSpacing(4)

        # The image is drawn natively below, so keep it out of the HTML
        self.body_label = QLabel()
        self.body_label.setTextFormat(Qt.TextFormat.RichText)
        self.body_label.setWordWrap(True)
        self.body_label.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)
        self.body_label.setText(render_message_html(self.message, self.is_mine, include_image=False))
        layout.addWidget(self.body_label)

        pixmap = self._load_image()
        if pixmap is not None:
            self.image_label = QLabel()
            self.image_label.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)
            self.image_label.setPixmap(pixmap)
            layout.insertWidget(1, self.image_label)

        self.setLayout(layout)

    def _load_image(self) -> Optional[QPixmap]:
        if not self.message.image:
            return None
        if not is_image_data_uri(self.message.image):
            logger.warning(f"Dropped non data-URI image from {self.message.user!r}")
            return None
        try:
            data = decode_data_uri(self.message.image)
        except ValueError as e:
            logger.log_error("decoding message image", e)
            return None

        pixmap = QPixmap()
        if not pixmap.loadFromData(data):
            logger.warning(f"Unreadable image from {self.message.user!r}")
            return None
        if pixmap.width() > self.image_max_width:
            pixmap = pixmap.scaledToWidth(self.image_max_width, Qt.TransformationMode.SmoothTransformation)
        return pixmap

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self.drag.start(event.globalPosition().x())
            self.setCursor(QCursor(Qt.CursorShape.ClosedHandCursor))
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        self.drag.move(event.globalPosition().x())
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self.setCursor(QCursor(Qt.CursorShape.OpenHandCursor))
            if self.drag.finish(event.globalPosition().x()):
                self.reply_requested.emit(self.message.user, self.message.text)
        super().mouseReleaseEvent(event)


class ReplyPreview(QFrame):
    """Dismissible 'Replying to ...' banner above the composer."""

    cancelled = pyqtSignal()

    def __init__(self):
        super().__init__()
        self.setup_ui()
        self.setVisible(False)

    def setup_ui(self):
        self.setStyleSheet("""
            QFrame {
                background-color: #F1F1F1;
                border-left: 4px solid #AAAAAA;
            }
            QLabel {
                color: #2C3E50;
                font-size: 10pt;
                font-style: italic;
                border: none;
            }
        """)
        layout = QHBoxLayout()
        layout.setContentsMargins(5, 5, 5, 5)

        self.text_label = QLabel()
        self.text_label.setTextFormat(Qt.TextFormat.RichText)
        self.text_label.setWordWrap(True)
        layout.addWidget(self.text_label, stretch=1)

        self.cancel_btn = QPushButton("✕")
        self.cancel_btn.setToolTip("Cancel reply")
        self.cancel_btn.setMaximumWidth(30)
        self.cancel_btn.clicked.connect(self._on_cancel_clicked)
        layout.addWidget(self.cancel_btn)

        self.setLayout(layout)

    def _on_cancel_clicked(self):
        self.cancelled.emit()

    def show_reply(self, reply: ReplyRef):
        self.text_label.setText(render_reply_preview_html(reply))
        self.setVisible(True)

    def clear(self):
        self.text_label.clear()
        self.setVisible(False)


class ComposeEdit(QPlainTextEdit):
    """Message editor: Enter submits, Shift+Enter inserts a newline."""

    submit_requested = pyqtSignal()

    def keyPressEvent(self, event):
        if (event.key() in (Qt.Key.Key_Return, Qt.Key.Key_Enter)
                and not event.modifiers() & Qt.KeyboardModifier.ShiftModifier):
            event.accept()
            self.submit_requested.emit()
            return
        super().keyPressEvent(event)


# ============================================================================
# MAIN WINDOW
# ============================================================================

class ChatWindow(QMainWindow):
    """Main application window; acts as the view of ``ChatClient``."""

    def __init__(self, config: ClientConfig, settings: Optional[QSettings] = None):
        super().__init__()
        self.config = config
        if settings is None:
            settings = QSettings(config.settings_organization, config.settings_application)
        self.settings = settings
        self.session = ClientSession(UsernameStore(self.settings))
        self.chat_client = ChatClient(self.session, self)
        self.network_thread = None
        self.selected_image: Optional[str] = None
        self.bubbles = []
        self._follow_new_content = True

        self.setup_ui()
        self.setup_connections()

    def setup_ui(self):
        """Setup the main window UI."""
        self.setWindowTitle("Chat")
        self.setGeometry(100, 100, 520, 720)

        central_widget = QWidget()
        self.setCentralWidget(central_widget)

        main_layout = QVBoxLayout()
        main_layout.setSpacing(5)
        main_layout.setContentsMargins(10, 10, 10, 10)

        # Username
        self.username_input = QLineEdit()
        self.username_input.setPlaceholderText("Enter your name...")
        main_layout.addWidget(self.username_input)

        # Message list
        self.message_container = QWidget()
        self.message_layout = QVBoxLayout()
        self.message_layout.setSpacing(6)
        self.message_layout.addStretch()
        self.message_container.setLayout(self.message_layout)

        self.scroll_area = QScrollArea()
        self.scroll_area.setWidgetResizable(True)
        self.scroll_area.setWidget(self.message_container)
        main_layout.addWidget(self.scroll_area, stretch=1)

        # Reply preview sits directly above the input
        self.reply_preview = ReplyPreview()
        main_layout.addWidget(self.reply_preview)

        input_layout = QHBoxLayout()

        self.message_input = ComposeEdit()
        self.message_input.setPlaceholderText("Type a message...")
        self.message_input.setMaximumHeight(70)
        input_layout.addWidget(self.message_input, stretch=1)

        self.image_btn = QPushButton("📎")
        self.image_btn.setToolTip("Attach image")
        self.image_btn.setMaximumWidth(40)
        input_layout.addWidget(self.image_btn)

        self.send_btn = QPushButton("Send")
        input_layout.addWidget(self.send_btn)

        main_layout.addLayout(input_layout)

        self.image_label = QLabel()
        self.image_label.setStyleSheet("color: #7F8C8D; font-size: 9pt;")
        main_layout.addWidget(self.image_label)

        central_widget.setLayout(main_layout)

    def setup_connections(self):
        """Setup signal-slot connections."""
        self.username_input.editingFinished.connect(self.on_username_committed)
        self.send_btn.clicked.connect(self.on_send_message)
        self.message_input.submit_requested.connect(self.on_send_message)
        self.image_btn.clicked.connect(self.on_select_image)
        self.reply_preview.cancelled.connect(self.chat_client.cancel_reply)
        scrollbar = self.scroll_area.verticalScrollBar()
        scrollbar.rangeChanged.connect(self._on_scroll_range_changed)
        scrollbar.actionTriggered.connect(self._on_user_scrolled)

    # ========================================================================
    # CONNECTION & NETWORKING
    # ========================================================================

    def connect_to_server(self):
        """Start the network thread for the configured server."""
        logger.info(f"Connecting to {self.config.ws_url}...")
        self.setWindowTitle("Chat - Connecting...")

        self.network_thread = NetworkThread(self.config.ws_url, self.config.connect_timeout)
        composer = MessageComposer(self.network_thread.send_message_async)
        self.chat_client.set_transport(self.network_thread, composer)

        self.network_thread.connected.connect(self.on_connected)
        self.network_thread.event_received.connect(self.chat_client.handle_event)
        self.network_thread.disconnected.connect(self.on_disconnected)
        self.network_thread.start()

    def on_connected(self):
        self.setWindowTitle("Chat")
        self.chat_client.on_connected()

    def on_disconnected(self, reason: str):
        self.setWindowTitle("Chat (Disconnected)")
        self.chat_client.on_disconnected(reason)

    # ========================================================================
    # VIEW INTERFACE
    # ========================================================================

    def show_username(self, name: str, locked: bool):
        self.username_input.setText(name)
        self.username_input.setEnabled(not locked)

    def reset_username(self):
        self.username_input.setEnabled(True)
        self.username_input.clear()

    def show_error(self, message: str):
        QMessageBox.warning(self, "Chat", message)

    def append_message(self, message: ChatMessage, is_mine: bool):
        bubble = MessageBubble(message, is_mine, self.config.image_max_width,
                               self.config.reply_drag_threshold)
        bubble.reply_requested.connect(self.chat_client.set_reply_draft)
        alignment = Qt.AlignmentFlag.AlignRight if is_mine else Qt.AlignmentFlag.AlignLeft
        self.message_layout.addWidget(bubble, alignment=alignment)
        self.bubbles.append(bubble)
        self._scroll_to_bottom()

    def show_system_message(self, text: str):
        label = QLabel(text)
        label.setStyleSheet("color: #95A5A6; font-style: italic;")
        label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.message_layout.addWidget(label)
        self._scroll_to_bottom()

    def show_reply_preview(self, reply: ReplyRef):
        self.reply_preview.show_reply(reply)

    def hide_reply_preview(self):
        self.reply_preview.clear()

    def clear_composer(self):
        self.message_input.clear()
        self.selected_image = None
        self.image_label.clear()

    # ========================================================================
    # SLOTS
    # ========================================================================

    def on_username_committed(self):
        self.chat_client.on_username_committed(self.username_input.text())

    def on_send_message(self):
        self.chat_client.send_message(
            self.username_input.text(),
            self.message_input.toPlainText(),
            self.selected_image
        )

    def on_select_image(self):
        file_path, _ = QFileDialog.getOpenFileName(
            self, "Select image", "", "Images (*.png *.jpg *.jpeg *.gif *.bmp *.webp);;All Files (*)"
        )
        if file_path:
            self.selected_image = file_path
            self.image_label.setText(f"Attached: {Path(file_path).name}")

    def _scroll_to_bottom(self):
        self._follow_new_content = True
        scrollbar = self.scroll_area.verticalScrollBar()
        scrollbar.setValue(scrollbar.maximum())

    def _on_scroll_range_changed(self, _minimum: int, maximum: int):
        # Layout grows after the widget is added; follow it to the newest message
        if self._follow_new_content:
            self.scroll_area.verticalScrollBar().setValue(maximum)

    def _on_user_scrolled(self, _action: int):
        self._follow_new_content = False

    def closeEvent(self, event):
        """Stop networking when the window closes."""
        if self.network_thread:
            self.network_thread.stop()
            self.network_thread.wait(2000)
        super().closeEvent(event)


# ============================================================================
# NETWORK THREAD
# ============================================================================

class NetworkThread(QThread):
    """Thread running the WebSocket connection on its own asyncio loop."""

    connected = pyqtSignal()
    event_received = pyqtSignal(object)  # ServerEvent
    disconnected = pyqtSignal(str)  # reason

    def __init__(self, url: str, timeout: float = 10.0):
        super().__init__()
        self.url = url
        self.timeout = timeout
        self.websocket = None
        self.loop = None
        self.loop_ready = threading.Event()
        self._main_task = None
        self._stop_requested = threading.Event()

    def run(self):
        """Run network loop."""
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)
        self._main_task = self.loop.create_task(self._connect_and_listen())
        self.loop_ready.set()
        if self._stop_requested.is_set():
            self._main_task.cancel()
        try:
            self.loop.run_until_complete(self._main_task)
        except asyncio.CancelledError:
            logger.info("Network thread stopped before connecting")
        finally:
            self._drain_loop()
            self.loop.close()

    def _drain_loop(self):
        """Cancel sends still scheduled on the loop and wait for them to unwind."""
        pending = asyncio.all_tasks(self.loop)
        for task in pending:
            task.cancel()
        if pending:
            self.loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        self.loop.run_until_complete(self.loop.shutdown_asyncgens())
        self.loop.run_until_complete(self.loop.shutdown_default_executor())

    async def _connect_and_listen(self):
        """Connect to server and listen for events until the socket closes."""
        reason = ""
        try:
            self.websocket = await asyncio.wait_for(
                websockets.connect(self.url, max_size=None, close_timeout=CLOSE_TIMEOUT),
                timeout=self.timeout
            )
            logger.log_connection(self.url, True)
            self.connected.emit()

            async for frame in self.websocket:
                self.event_received.emit(parse_server_event(frame))

        except ProtocolError as e:
            logger.log_error("decoding server event", e)
            reason = "malformed server payload"
        except asyncio.TimeoutError:
            logger.log_connection(self.url, False)
            reason = f"no answer within {self.timeout:g} seconds"
        except ConnectionClosed as e:
            logger.log_error("connection", e)
            reason = "connection lost"
        except (InvalidURI, InvalidHandshake, OSError) as e:
            logger.log_connection(self.url, False)
            logger.log_error("connection", e)
            reason = str(e)
        except asyncio.CancelledError:
            # stop() cancels this task; the worker ends here
            reason = "closed by client"
        finally:
            if self.websocket is not None:
                await self.websocket.close()
                self.websocket = None
            logger.log_disconnect(self.url, reason)
            self.disconnected.emit(reason)

    async def send_message_async(self, message: dict) -> bool:
        """Send message asynchronously."""
        if self.websocket is None:
            logger.warning("Not connected to server, message dropped")
            return False
        try:
            await self.websocket.send(encode_message(message))
            return True
        except ConnectionClosed as e:
            logger.log_error("sending message", e)
            return False

    def submit(self, coro):
        """Schedule a coroutine on the network loop from the GUI thread."""
        if not self.loop_ready.wait(timeout=5.0) or self.loop is None or self.loop.is_closed():
            logger.warning("Network loop not running, dropping scheduled work")
            coro.close()
            return None
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def send_message(self, message: dict):
        """Send message from main thread."""
        return self.submit(self.send_message_async(message))

    def stop(self):
        """Cancel the connection task, whether still connecting or listening."""
        self._stop_requested.set()
        if not self.loop_ready.is_set():
            return
        try:
            self.loop.call_soon_threadsafe(self._main_task.cancel)
        except RuntimeError:
            # Loop already closed: the worker has finished on its own
            logger.debug("Network loop already closed")


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

def run_gui(config: ClientConfig) -> int:
    """Create the application and window, connect, and run the event loop."""
    app = QApplication.instance() or QApplication(sys.argv)
    app.setOrganizationName(config.settings_organization)
    app.setApplicationName(config.settings_application)

    window = ChatWindow(config)
    window.show()
    window.connect_to_server()

    return app.exec()


def main():
    """Main entry point."""
    config = ClientConfig.from_env()
    sys.exit(run_gui(config))


if __name__ == "__main__":
    main()
