#!/usr/bin/env python3
"""
Socket Chat Client - Main Entry Point

Desktop chat client that joins a chat room over a WebSocket:
- Join handshake with a remembered username
- Live message list with images and reply context
- Text/image sending with drag-to-reply

Usage:
    python main_client.py [--server-ip HOST] [--port PORT] [--path PATH]

Environment variables SERVER_IP, SERVER_PORT and SERVER_PATH provide the
defaults; command-line flags override them.
"""

import sys
import os
import argparse

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def build_config(args):
    """Merge environment defaults with command-line overrides."""
    from chat_client.utils.config import ClientConfig

    config = ClientConfig.from_env()
    if args.server_ip:
        config.host = args.server_ip
    if args.port:
        config.port = args.port
    if args.path:
        config.path = args.path if args.path.startswith('/') else f"/{args.path}"
    config.log_level = args.log_level
    return config


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Socket Chat Client')
    parser.add_argument('--server-ip', type=str, default=None,
                        help='Chat server host (default: $SERVER_IP or localhost)')
    parser.add_argument('--port', type=int, default=None,
                        help='Chat server port (default: $SERVER_PORT or 3000)')
    parser.add_argument('--path', type=str, default=None,
                        help='WebSocket path on the server (default: $SERVER_PATH or /)')
    parser.add_argument('--log-level', type=str, default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (default: INFO)')

    args = parser.parse_args(argv)

    try:
        from chat_client.ui.client_gui import run_gui
    except ImportError:
        print("[ERROR] PyQt6 not installed. Install with: pip install PyQt6")
        sys.exit(1)

    from chat_client.utils.logger import logger

    config = build_config(args)
    logger.set_level(config.log_level)
    logger.info(f"Server: {config.get_connection_info()['url']}")

    sys.exit(run_gui(config))


if __name__ == "__main__":
    main()
