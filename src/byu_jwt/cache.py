"""
Per-instance cache shared by the discovery client and the key resolver.
"""

import time
from typing import Any, Dict, Hashable, Optional, Tuple


class InstanceCache:
    """
    Holds values for the lifetime of the owning verifier.

    Entries never expire unless ``ttl`` is given. A disabled cache stores
    nothing, so every lookup misses.
    """

    def __init__(self, enabled: bool = True, ttl: Optional[float] = None):
        self.enabled = enabled
        self.ttl = ttl
        # {key: (value, timestamp)}
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}

    def get(self, key: Hashable) -> Tuple[bool, Any]:
        """Returns (hit, value)"""
        if not self.enabled or key not in self._entries:
            return (False, None)

        value, timestamp = self._entries[key]
        if self.ttl is not None and time.time() - timestamp >= self.ttl:
            del self._entries[key]  # Expired, remove it
            return (False, None)
        return (True, value)

    def set(self, key: Hashable, value: Any) -> None:
        if self.enabled:
            self._entries[key] = (value, time.time())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
