"""
The store module holds configuration and run results in a key-value store.

- `Backend` is the raw key-value interface, with `ConsulBackend` for a real
  Consul agent and `InMemoryBackend` for tests.
- `Namespace` is a typed accessor for the keys under one prefix, such as a
  job's `jobconfig/zealot/<name>/`.
- `ResourceLock` guards a namespace against concurrent runs.
"""

from .store import Backend
from .consul import ConsulBackend
from .in_memory import InMemoryBackend
from .namespace import Namespace
from .lock import ResourceLock

__all__ = [
    "Backend",
    "ConsulBackend",
    "InMemoryBackend",
    "Namespace",
    "ResourceLock",
]
