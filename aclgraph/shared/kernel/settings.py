"""
Settings Protocol
=================

Defines the settings interface that core/application layers depend on.
Infrastructure provides the implementation (``aclgraph.api.config``).
"""

from typing import Protocol


class DatabaseSettingsProtocol(Protocol):
    """Protocol for backing store and cache connection settings."""

    neo4j_uri: str
    neo4j_user: str
    neo4j_password: str
    neo4j_database: str | None
    redis_url: str


class AclLookupSettingsProtocol(Protocol):
    """Protocol for ACL lookup tuning and schema customization."""

    batch_size: int
    cache_backend: str
    cache_ttl_seconds: int
    cache_key_prefix: str
    match_clause: str | None
    return_clause: str | None
    order_by_clause: str | None
    identity_where_clause: str | None
    internal_id_where_clause: str | None


class SettingsProtocol(Protocol):
    """
    Protocol defining the settings interface used by core/application layers.

    This allows core to depend on an abstraction rather than aclgraph.api.config directly.
    """

    app_name: str
    log_level: str
    tracing_enabled: bool

    db: DatabaseSettingsProtocol
    acl: AclLookupSettingsProtocol
