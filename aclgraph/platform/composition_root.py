"""
Composition Root
=================

The single place where all dependencies are wired together.
This is the only module that imports from both aclgraph.api.config and aclgraph.core.

Infrastructure adapters are created here and injected into application services.
"""

import logging
from functools import lru_cache

from aclgraph.core.acl.application.lookup_strategy import AclLookupStrategy
from aclgraph.core.acl.application.query_builder import AclQueryTemplates
from aclgraph.core.acl.application.service import AclService
from aclgraph.core.acl.domain.permissions import DefaultPermissionFactory, PermissionFactory
from aclgraph.core.acl.domain.ports.acl_cache import AclCachePort, set_acl_cache
from aclgraph.core.acl.domain.ports.acl_store import AclStorePort, set_acl_store
from aclgraph.core.acl.infrastructure.memory_cache import InMemoryAclCache
from aclgraph.core.acl.infrastructure.neo4j_client import Neo4jClient
from aclgraph.core.acl.infrastructure.redis_cache import RedisAclCache, RedisAclCacheConfig
from aclgraph.core.observability.logging import configure_logging
from aclgraph.shared.kernel.settings import AclLookupSettingsProtocol, SettingsProtocol

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Settings Provider
# -----------------------------------------------------------------------------

_settings: SettingsProtocol | None = None


def configure_settings(settings: SettingsProtocol) -> None:
    """
    Configure the global settings instance.

    Called at startup to inject the settings. This is the only way settings
    should be provided to core modules.
    """
    global _settings
    _settings = settings

    # Also configure shared kernel runtime (used by infrastructure adapters)
    from aclgraph.shared.kernel.runtime import configure_settings as runtime_configure

    runtime_configure(settings)


def get_settings() -> SettingsProtocol:
    """
    Get the configured settings instance.

    Raises:
        RuntimeError: If settings have not been configured.
    """
    if _settings is None:
        raise RuntimeError(
            "Settings not configured. Call configure_settings() at application startup."
        )
    return _settings


@lru_cache
def get_settings_lazy() -> SettingsProtocol:
    """Settings accessor that auto-configures from aclgraph.api.config if not set."""
    if _settings is None:
        from aclgraph.api.config import get_settings as load_settings

        configure_settings(load_settings())
    return _settings


# -----------------------------------------------------------------------------
# Factories
# -----------------------------------------------------------------------------


def build_query_templates(acl_settings: AclLookupSettingsProtocol) -> AclQueryTemplates:
    """Apply configured query fragment overrides to the default templates."""
    overrides = {
        name: getattr(acl_settings, name)
        for name in (
            "match_clause",
            "return_clause",
            "order_by_clause",
            "identity_where_clause",
            "internal_id_where_clause",
        )
        if getattr(acl_settings, name, None) is not None
    }
    return AclQueryTemplates(**overrides)


def build_acl_cache(
    settings: SettingsProtocol,
    permission_factory: PermissionFactory | None = None,
) -> AclCachePort:
    backend = settings.acl.cache_backend
    if backend == "redis":
        return RedisAclCache(
            RedisAclCacheConfig(
                redis_url=settings.db.redis_url,
                ttl_seconds=settings.acl.cache_ttl_seconds,
                key_prefix=settings.acl.cache_key_prefix,
            ),
            permission_factory=permission_factory,
        )
    if backend == "memory":
        return InMemoryAclCache()
    raise ValueError(f"Unknown ACL cache backend: {backend}")


def build_lookup_strategy(
    settings: SettingsProtocol,
    store: AclStorePort,
    cache: AclCachePort,
    permission_factory: PermissionFactory | None = None,
) -> AclLookupStrategy:
    return AclLookupStrategy(
        store,
        cache,
        permission_factory=permission_factory,
        batch_size=settings.acl.batch_size,
        templates=build_query_templates(settings.acl),
    )


# -----------------------------------------------------------------------------
# Platform Registry (Lifecycle-Managed Clients)
# -----------------------------------------------------------------------------


class PlatformRegistry:
    """
    Holds singleton client instances with explicit lifecycle management.

    Usage:
        await platform.initialize()  # At startup
        acls = await platform.acl_service.read_acls_by_id(oids, sids)
        await platform.shutdown()    # At shutdown
    """

    def __init__(self):
        self._neo4j_client: Neo4jClient | None = None
        self._acl_cache: AclCachePort | None = None
        self._acl_service: AclService | None = None
        self._initialized = False

    async def initialize(self, settings: SettingsProtocol | None = None) -> None:
        """Initialize all managed clients."""
        if self._initialized:
            return

        settings = settings or get_settings_lazy()
        configure_logging(log_level=settings.log_level)

        if settings.tracing_enabled:
            from aclgraph.core.observability import tracer as infra_tracer
            from aclgraph.shared.kernel.observability import set_trace_span

            infra_tracer.setup_tracer(settings.app_name)
            set_trace_span(infra_tracer.trace_span)

        self._neo4j_client = Neo4jClient(
            uri=settings.db.neo4j_uri,
            user=settings.db.neo4j_user,
            password=settings.db.neo4j_password,
            database=settings.db.neo4j_database,
        )
        await self._neo4j_client.connect()
        set_acl_store(self._neo4j_client)

        permission_factory = DefaultPermissionFactory()
        self._acl_cache = build_acl_cache(settings, permission_factory)
        set_acl_cache(self._acl_cache)

        strategy = build_lookup_strategy(
            settings, self._neo4j_client, self._acl_cache, permission_factory
        )
        self._acl_service = AclService(strategy)

        self._initialized = True
        logger.info("Platform registry initialized (cache backend: %s)", settings.acl.cache_backend)

    async def shutdown(self) -> None:
        """Close all managed clients."""
        if self._neo4j_client:
            try:
                await self._neo4j_client.close()
            except Exception as e:
                logger.warning(f"Error closing Neo4j: {e}")
            self._neo4j_client = None
            set_acl_store(None)

        if self._acl_cache:
            if isinstance(self._acl_cache, RedisAclCache):
                try:
                    await self._acl_cache.close()
                except Exception as e:
                    logger.warning(f"Error closing Redis: {e}")
            self._acl_cache = None
            set_acl_cache(None)

        from aclgraph.shared.kernel.observability import set_trace_span

        set_trace_span(None)

        self._acl_service = None
        self._initialized = False
        logger.info("Platform registry shutdown complete")

    @property
    def acl_service(self) -> AclService:
        if self._acl_service is None:
            raise RuntimeError("Platform not initialized. Call initialize() first.")
        return self._acl_service


platform = PlatformRegistry()
