from aclgraph.core.acl.domain.ports.acl_cache import (
    AclCachePort,
    get_acl_cache,
    set_acl_cache,
)
from aclgraph.core.acl.domain.ports.acl_store import (
    AclStorePort,
    get_acl_store,
    set_acl_store,
)

__all__ = [
    "AclCachePort",
    "AclStorePort",
    "get_acl_cache",
    "get_acl_store",
    "set_acl_cache",
    "set_acl_store",
]
