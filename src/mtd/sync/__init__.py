"""
MTD sync -- merging replicas and moving them over the network.

The engine (``mtd.sync.engine``) merges a client list into a server
list. The network layer (``mtd.sync.network``) carries full lists
between processes, encrypted with the shared password
(``mtd.sync.crypt``).
"""

from .engine import SyncList

__all__ = ["SyncList"]
