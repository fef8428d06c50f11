"""
Chat module for client-side messaging functionality.

Handles:
- Join handshake and server event dispatch
- Message rendering and HTML escaping
- Drag-to-reply gesture tracking
- Outgoing message composition
"""
