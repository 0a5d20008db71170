"""Search daemon control channel."""

from searchsync.backend.memory import BackendCall, InMemoryBackend
from searchsync.backend.protocol import SearchBackend

__all__ = [
    "BackendCall",
    "InMemoryBackend",
    "SearchBackend",
]
