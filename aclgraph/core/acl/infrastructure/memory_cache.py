"""
In-Memory ACL Cache
===================

Process-local ACL cache indexed by object identity and by internal id.
"""

import logging
import threading

from aclgraph.core.acl.domain.model import Acl, ObjectIdentity

logger = logging.getLogger(__name__)


class InMemoryAclCache:
    """
    Dictionary-backed ``AclCachePort``.

    A lock guards both indexes so a ``put`` is never observed half applied.
    Concurrent writers of the same ACL race and the last one wins.
    """

    def __init__(self):
        self._by_identity: dict[ObjectIdentity, Acl] = {}
        self._by_internal_id: dict[str, Acl] = {}
        self._lock = threading.Lock()
        self._stats = {"hits": 0, "misses": 0, "puts": 0}

    async def get_by_identity(self, object_identity: ObjectIdentity) -> Acl | None:
        with self._lock:
            return self._record(self._by_identity.get(object_identity))

    async def get_by_internal_id(self, internal_id: str) -> Acl | None:
        with self._lock:
            return self._record(self._by_internal_id.get(internal_id))

    async def put(self, acl: Acl) -> None:
        if not isinstance(acl, Acl):
            raise TypeError(f"Only resolved Acl objects can be cached, got {type(acl).__name__}")

        with self._lock:
            self._by_identity[acl.object_identity] = acl
            self._by_internal_id[acl.internal_id] = acl
            self._stats["puts"] += 1

    async def evict_by_identity(self, object_identity: ObjectIdentity) -> None:
        with self._lock:
            acl = self._by_identity.pop(object_identity, None)
            if acl is not None:
                self._by_internal_id.pop(acl.internal_id, None)

    async def evict_by_internal_id(self, internal_id: str) -> None:
        with self._lock:
            acl = self._by_internal_id.pop(internal_id, None)
            if acl is not None:
                self._by_identity.pop(acl.object_identity, None)

    async def clear(self) -> None:
        with self._lock:
            self._by_identity.clear()
            self._by_internal_id.clear()
        logger.info("ACL cache cleared")

    def _record(self, acl: Acl | None) -> Acl | None:
        self._stats["hits" if acl is not None else "misses"] += 1
        return acl

    def __len__(self) -> int:
        return len(self._by_internal_id)

    def get_stats(self) -> dict[str, int]:
        """Get cache statistics."""
        with self._lock:
            return {**self._stats, "size": len(self._by_internal_id)}
