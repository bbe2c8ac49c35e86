"""
                Restaurant QR Ordering System

Async backend for table-side QR ordering: customers order from their
table, the kitchen follows orders live over a WebSocket, and admins
manage the menu and read sales analytics.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
