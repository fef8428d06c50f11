#!/usr/bin/env python3
"""
Unit tests for NetworkThread in client_gui.py

Runs the worker against local servers:
- malformed frames and server-side closes end the session
- refused and unanswered connections report a reason
- stop() ends the worker while it is still connecting
"""

import os
import asyncio
import socket
import unittest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import websockets
from PyQt6.QtWidgets import QApplication

from chat_client.ui.client_gui import NetworkThread


def free_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class NetworkTestCase(unittest.IsolatedAsyncioTestCase):

    @classmethod
    def setUpClass(cls):
        """Create QApplication once for all tests."""
        if not QApplication.instance():
            cls.app = QApplication([])
        else:
            cls.app = QApplication.instance()

    def make_thread(self, url, timeout=5.0):
        thread = NetworkThread(url, timeout)
        self.connects = []
        self.events = []
        self.reasons = []
        thread.connected.connect(lambda: self.connects.append(True))
        thread.event_received.connect(self.events.append)
        thread.disconnected.connect(self.reasons.append)
        self.addCleanup(thread.deleteLater)
        return thread


class TestListening(NetworkTestCase):
    """Sessions against a local WebSocket server."""

    async def run_against(self, handler):
        async with websockets.serve(handler, "127.0.0.1", 0) as server:
            port = server.sockets[0].getsockname()[1]
            thread = self.make_thread(f"ws://127.0.0.1:{port}/")
            await asyncio.wait_for(thread._connect_and_listen(), timeout=5)
        return thread

    async def test_malformed_frame_ends_session(self):
        async def handler(websocket):
            await websocket.send("not json")
            await websocket.wait_closed()

        thread = await self.run_against(handler)

        self.assertEqual(self.connects, [True])
        self.assertEqual(self.reasons, ["malformed server payload"])
        self.assertIsNone(thread.websocket)

    async def test_server_close_ends_session(self):
        async def handler(websocket):
            await websocket.send('{"type": "init", "messages": [{"user": "bob", "text": "hi"}]}')

        await self.run_against(handler)

        self.assertEqual(len(self.events), 1)
        self.assertEqual(self.events[0].messages[0].text, "hi")
        self.assertEqual(self.reasons, [""])


class TestConnectFailures(NetworkTestCase):
    """Connections that never open."""

    async def test_refused_connection_reports_reason(self):
        thread = self.make_thread(f"ws://127.0.0.1:{free_port()}/")

        await asyncio.wait_for(thread._connect_and_listen(), timeout=5)

        self.assertEqual(self.connects, [])
        self.assertEqual(len(self.reasons), 1)
        self.assertTrue(self.reasons[0])

    async def test_unanswered_handshake_times_out(self):
        writers = []

        async def hold(reader, writer):
            writers.append(writer)
            await reader.read()

        server = await asyncio.start_server(hold, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        thread = self.make_thread(f"ws://127.0.0.1:{port}/", timeout=0.2)

        try:
            await asyncio.wait_for(thread._connect_and_listen(), timeout=5)
        finally:
            for writer in writers:
                writer.close()
            server.close()

        self.assertEqual(self.connects, [])
        self.assertEqual(self.reasons, ["no answer within 0.2 seconds"])

    async def test_send_without_socket_fails(self):
        thread = self.make_thread("ws://127.0.0.1:1/")
        self.assertFalse(await thread.send_message_async({"type": "join", "user": "bob"}))


class TestStop(NetworkTestCase):
    """stop() while the handshake is still pending."""

    def setUp(self):
        # Accepts TCP connections but never answers the WebSocket handshake
        self.listener = socket.socket()
        self.listener.bind(("127.0.0.1", 0))
        self.listener.listen(1)
        self.url = f"ws://127.0.0.1:{self.listener.getsockname()[1]}/"

    def tearDown(self):
        self.listener.close()

    async def test_stop_cancels_pending_connect(self):
        thread = self.make_thread(self.url, timeout=30)
        thread.loop = asyncio.get_running_loop()
        thread._main_task = asyncio.create_task(thread._connect_and_listen())
        thread.loop_ready.set()
        await asyncio.sleep(0.1)

        thread.stop()
        await asyncio.wait_for(thread._main_task, timeout=2)

        self.assertEqual(self.connects, [])
        self.assertEqual(self.reasons, ["closed by client"])

    async def test_stopped_thread_finishes_and_cancels_pending_sends(self):
        thread = self.make_thread(self.url, timeout=30)
        thread.start()
        pending = thread.submit(asyncio.sleep(60))
        self.assertIsNotNone(pending)

        thread.stop()

        self.assertTrue(await asyncio.to_thread(thread.wait, 3000))
        self.assertTrue(pending.cancelled())
        self.assertTrue(thread.loop.is_closed())


if __name__ == '__main__':
    unittest.main()
