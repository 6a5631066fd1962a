"""
Redis ACL Cache
===============

Shared ACL cache for multi-process deployments.

Each ACL is stored twice, under its object identity and under its internal
id, as JSON with the whole parent chain embedded. Both keys get the same TTL.
Redis failures propagate to the caller; a lookup never proceeds on a
cache error.
"""

import json
import logging
from dataclasses import dataclass

from aclgraph.core.acl.domain.model import Acl, ObjectIdentity
from aclgraph.core.acl.domain.permissions import DefaultPermissionFactory, PermissionFactory
from aclgraph.core.acl.infrastructure.acl_codec import acl_from_dict, acl_to_dict

logger = logging.getLogger(__name__)


def _get_redis():
    """Get redis module with lazy loading."""
    try:
        import redis.asyncio as redis

        return redis
    except ImportError as e:
        raise ImportError(
            "redis package is required. Install with: pip install redis>=5.0.0"
        ) from e


@dataclass
class RedisAclCacheConfig:
    """Redis ACL cache configuration."""

    redis_url: str = "redis://localhost:6379/0"
    ttl_seconds: int = 3600
    key_prefix: str = "acl_cache"


class RedisAclCache:
    """
    Redis-backed ``AclCachePort``.

    Usage:
        cache = RedisAclCache(RedisAclCacheConfig(redis_url=...))
        acl = await cache.get_by_identity(ObjectIdentity("Document", 42))
    """

    def __init__(
        self,
        config: RedisAclCacheConfig | None = None,
        permission_factory: PermissionFactory | None = None,
        client=None,
    ):
        self.config = config or RedisAclCacheConfig()
        self.permission_factory = permission_factory or DefaultPermissionFactory()
        self._client = client
        self._stats = {"hits": 0, "misses": 0}

    async def _get_client(self):
        """Get or create Redis client."""
        if self._client is None:
            redis = _get_redis()
            self._client = redis.from_url(
                self.config.redis_url,
                decode_responses=True,
            )
        return self._client

    def _identity_key(self, object_identity: ObjectIdentity) -> str:
        return self._oid_key(object_identity.type, object_identity.identifier)

    def _oid_key(self, type_: str, identifier: int) -> str:
        return f"{self.config.key_prefix}:oid:{type_}:{identifier}"

    def _internal_id_key(self, internal_id: str) -> str:
        return f"{self.config.key_prefix}:id:{internal_id}"

    async def _load(self, key: str) -> Acl | None:
        client = await self._get_client()
        data = await client.get(key)
        if not data:
            self._stats["misses"] += 1
            return None

        self._stats["hits"] += 1
        return acl_from_dict(json.loads(data), self.permission_factory)

    async def get_by_identity(self, object_identity: ObjectIdentity) -> Acl | None:
        return await self._load(self._identity_key(object_identity))

    async def get_by_internal_id(self, internal_id: str) -> Acl | None:
        return await self._load(self._internal_id_key(internal_id))

    async def put(self, acl: Acl) -> None:
        if not isinstance(acl, Acl):
            raise TypeError(f"Only resolved Acl objects can be cached, got {type(acl).__name__}")

        client = await self._get_client()
        data = json.dumps(acl_to_dict(acl))
        ttl = self.config.ttl_seconds

        async with client.pipeline(transaction=True) as pipe:
            pipe.setex(self._identity_key(acl.object_identity), ttl, data)
            pipe.setex(self._internal_id_key(acl.internal_id), ttl, data)
            await pipe.execute()

        logger.debug("Cached ACL %s for %s", acl.internal_id, acl.object_identity)

    async def _load_raw(self, key: str) -> dict | None:
        """Read a stored payload without decoding it or touching the stats."""
        client = await self._get_client()
        data = await client.get(key)
        return json.loads(data) if data else None

    async def evict_by_identity(self, object_identity: ObjectIdentity) -> None:
        identity_key = self._identity_key(object_identity)
        keys = [identity_key]
        stored = await self._load_raw(identity_key)
        if stored is not None:
            keys.append(self._internal_id_key(stored["id"]))
        client = await self._get_client()
        await client.delete(*keys)

    async def evict_by_internal_id(self, internal_id: str) -> None:
        internal_id_key = self._internal_id_key(internal_id)
        keys = [internal_id_key]
        stored = await self._load_raw(internal_id_key)
        if stored is not None:
            oid = stored["object_identity"]
            keys.append(self._oid_key(oid["type"], oid["identifier"]))
        client = await self._get_client()
        await client.delete(*keys)

    async def clear(self) -> None:
        """Delete every key under the configured prefix."""
        client = await self._get_client()
        deleted = 0
        async for key in client.scan_iter(match=f"{self.config.key_prefix}:*"):
            deleted += await client.delete(key)
        logger.info("Cleared %d ACL cache keys", deleted)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def get_stats(self) -> dict[str, int]:
        """Get cache statistics."""
        return dict(self._stats)
