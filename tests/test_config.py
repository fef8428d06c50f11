#!/usr/bin/env python3
"""
Unit tests for client configuration and command-line handling.
"""

import logging
import unittest
from argparse import Namespace
from unittest.mock import patch

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from chat_client.utils.config import ClientConfig
from chat_client.utils.logger import ClientLogger
from main_client import build_config


class TestClientConfig(unittest.TestCase):
    """Test cases for ClientConfig."""

    def test_defaults(self):
        config = ClientConfig()
        self.assertEqual(config.ws_url, "ws://localhost:3000/")
        self.assertEqual(config.reply_drag_threshold, 100)

    def test_path_gets_leading_slash(self):
        self.assertEqual(ClientConfig("chat.local", 8080, "ws").ws_url, "ws://chat.local:8080/ws")

    def test_from_env(self):
        config = ClientConfig.from_env({"SERVER_IP": "10.0.0.5", "SERVER_PORT": "9001", "SERVER_PATH": "/room"})
        self.assertEqual(config.get_connection_info(), {
            "host": "10.0.0.5", "port": 9001, "path": "/room", "url": "ws://10.0.0.5:9001/room"
        })

    def test_from_env_defaults(self):
        self.assertEqual(ClientConfig.from_env({}).ws_url, "ws://localhost:3000/")

    def test_from_env_rejects_bad_port(self):
        with self.assertRaises(ValueError):
            ClientConfig.from_env({"SERVER_PORT": "http"})


class TestBuildConfig(unittest.TestCase):
    """Command-line flags override the environment."""

    def test_flags_override_environment(self):
        args = Namespace(server_ip="example.org", port=4000, path="chat", log_level="DEBUG")
        with patch.dict("os.environ", {"SERVER_IP": "10.0.0.5", "SERVER_PORT": "9001"}):
            config = build_config(args)

        self.assertEqual(config.ws_url, "ws://example.org:4000/chat")
        self.assertEqual(config.log_level, "DEBUG")

    def test_environment_used_without_flags(self):
        args = Namespace(server_ip=None, port=None, path=None, log_level="INFO")
        with patch.dict("os.environ", {"SERVER_IP": "10.0.0.5", "SERVER_PORT": "9001"}):
            config = build_config(args)

        self.assertEqual(config.ws_url, "ws://10.0.0.5:9001/")


class TestClientLogger(unittest.TestCase):
    """Test cases for ClientLogger level handling."""

    def setUp(self):
        self.client_logger = ClientLogger()

    def tearDown(self):
        self.client_logger.set_level(logging.INFO)

    def test_set_level_by_name(self):
        self.client_logger.set_level("debug")
        self.assertEqual(self.client_logger.logger.level, logging.DEBUG)
        self.assertTrue(all(h.level == logging.DEBUG for h in self.client_logger.logger.handlers))

    def test_unknown_level_rejected(self):
        with self.assertRaises(ValueError):
            self.client_logger.set_level("chatty")

    def test_join_rejection_logged_as_warning(self):
        with self.assertLogs("chat_client", level="WARNING") as captured:
            self.client_logger.log_join_rejected("name taken")
        self.assertIn("Join rejected: name taken", captured.output[0])


if __name__ == '__main__':
    unittest.main()
