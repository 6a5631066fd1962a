from typing import Protocol

from aclgraph.core.acl.domain.model import Acl, ObjectIdentity


class AclCachePort(Protocol):
    """
    Cache of fully resolved ACLs, addressable by object identity and by
    internal id. Holds at most one authoritative value per key; concurrent
    writers race and the last one wins.
    """

    async def get_by_identity(self, object_identity: ObjectIdentity) -> Acl | None: ...

    async def get_by_internal_id(self, internal_id: str) -> Acl | None: ...

    async def put(self, acl: Acl) -> None: ...

    async def evict_by_identity(self, object_identity: ObjectIdentity) -> None: ...

    async def evict_by_internal_id(self, internal_id: str) -> None: ...

    async def clear(self) -> None: ...


_acl_cache: AclCachePort | None = None


def set_acl_cache(cache: AclCachePort | None) -> None:
    global _acl_cache
    _acl_cache = cache


def get_acl_cache() -> AclCachePort:
    if _acl_cache is None:
        raise RuntimeError("ACL cache not configured. Call set_acl_cache() at startup.")
    return _acl_cache
