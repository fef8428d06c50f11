"""
Client package for the socket chat client.

This package contains all client-side functionality including:
- Session state and persisted identity
- Chat handshake, rendering and sending
- User interface
- Configuration and utilities
"""
