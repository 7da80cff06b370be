"""
Remote database backends.

Provides the hosted Firebase Realtime Database backend and an
in-memory backend with the same semantics.
"""

from .base import RemoteStore, Subscription
from .firebase import FirebaseRealtimeStore
from .memory import InMemoryRemoteStore

__all__ = [
    "RemoteStore",
    "Subscription",
    "FirebaseRealtimeStore",
    "InMemoryRemoteStore",
]
