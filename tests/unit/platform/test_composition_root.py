from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from aclgraph.core.acl.application.query_builder import DEFAULT_MATCH_CLAUSE
from aclgraph.core.acl.domain.ports.acl_cache import get_acl_cache
from aclgraph.core.acl.domain.ports.acl_store import get_acl_store
from aclgraph.core.acl.infrastructure.memory_cache import InMemoryAclCache
from aclgraph.core.acl.infrastructure.redis_cache import RedisAclCache
from aclgraph.platform import composition_root
from aclgraph.platform.composition_root import (
    PlatformRegistry,
    build_acl_cache,
    build_lookup_strategy,
    build_query_templates,
)


def _acl_settings(**overrides):
    values = {
        "batch_size": 10,
        "cache_backend": "memory",
        "cache_ttl_seconds": 120,
        "cache_key_prefix": "acl",
        "match_clause": None,
        "return_clause": None,
        "order_by_clause": None,
        "identity_where_clause": None,
        "internal_id_where_clause": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _settings(**acl_overrides):
    return SimpleNamespace(
        app_name="aclgraph-test",
        log_level="INFO",
        tracing_enabled=False,
        db=SimpleNamespace(
            neo4j_uri="bolt://graph:7687",
            neo4j_user="neo4j",
            neo4j_password="secret",
            neo4j_database=None,
            redis_url="redis://cache:6379/1",
        ),
        acl=_acl_settings(**acl_overrides),
    )


def test_query_templates_keep_defaults_when_unset():
    templates = build_query_templates(_acl_settings())

    assert templates.match_clause == DEFAULT_MATCH_CLAUSE


def test_query_templates_apply_overrides():
    templates = build_query_templates(_acl_settings(match_clause="MATCH (acl:Policy)"))

    assert templates.match_clause == "MATCH (acl:Policy)"


def test_memory_cache_backend():
    assert isinstance(build_acl_cache(_settings()), InMemoryAclCache)


def test_redis_cache_backend():
    cache = build_acl_cache(_settings(cache_backend="redis"))

    assert isinstance(cache, RedisAclCache)
    assert cache.config.redis_url == "redis://cache:6379/1"
    assert cache.config.ttl_seconds == 120
    assert cache.config.key_prefix == "acl"


def test_unknown_cache_backend_rejected():
    with pytest.raises(ValueError):
        build_acl_cache(_settings(cache_backend="memcached"))


def test_lookup_strategy_uses_configured_batch_size():
    store = AsyncMock()
    strategy = build_lookup_strategy(_settings(), store, InMemoryAclCache())

    assert strategy.batch_size == 10


def test_settings_must_be_configured():
    with pytest.raises(RuntimeError):
        composition_root.get_settings()


@pytest.mark.asyncio
async def test_platform_lifecycle_registers_ports():
    registry = PlatformRegistry()

    with patch.object(composition_root.Neo4jClient, "connect", new=AsyncMock()), patch.object(
        composition_root.Neo4jClient, "close", new=AsyncMock()
    ), patch.object(composition_root, "configure_logging") as configure_logging:
        await registry.initialize(_settings())

        assert isinstance(get_acl_store(), composition_root.Neo4jClient)
        assert isinstance(get_acl_cache(), InMemoryAclCache)
        assert registry.acl_service is not None
        configure_logging.assert_called_once_with(log_level="INFO")

        await registry.shutdown()

    with pytest.raises(RuntimeError):
        registry.acl_service
    with pytest.raises(RuntimeError):
        get_acl_store()
