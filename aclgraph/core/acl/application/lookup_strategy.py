"""
ACL Lookup Strategy
===================

Public entry point for batched ACL lookups.

Requested identities are served from the cache where possible; the rest are
queued and flushed to the store in batches of at most ``batch_size``
top-level identities. Every ACL a batch loads, ancestors included, is written
through to the cache.
"""

import logging
from collections.abc import Iterable, Sequence

from aclgraph.core.acl.application.assembler import TreeAssembler
from aclgraph.core.acl.application.query_builder import AclQueryTemplates
from aclgraph.core.acl.application.resolver import HierarchicalResolver
from aclgraph.core.acl.application.row_materializer import RowMaterializer
from aclgraph.core.acl.domain.exceptions import CacheConsistencyError, InvalidLookupArgumentError
from aclgraph.core.acl.domain.model import Acl, ObjectIdentity, Sid, WorkingMap
from aclgraph.core.acl.domain.permissions import PermissionFactory
from aclgraph.core.acl.domain.ports.acl_cache import AclCachePort
from aclgraph.core.acl.domain.ports.acl_store import AclStorePort
from aclgraph.shared.kernel.observability import trace_span

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50


class AclLookupStrategy:
    """
    Resolves ACLs for object identities against the graph store.

    Holds no per-call state: the working map and assembler live inside each
    batch, so one instance can serve concurrent lookups as long as the cache
    tolerates concurrent get/put.

    Usage:
        strategy = AclLookupStrategy(neo4j_client, cache)
        acls = await strategy.read_acls_by_id(
            [ObjectIdentity("Document", 42)], [PrincipalSid("alice")]
        )
    """

    def __init__(
        self,
        store: AclStorePort,
        cache: AclCachePort,
        permission_factory: PermissionFactory | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        templates: AclQueryTemplates | None = None,
    ):
        if store is None:
            raise InvalidLookupArgumentError("ACL store required")
        if cache is None:
            raise InvalidLookupArgumentError("ACL cache required")

        self.store = store
        self.cache = cache
        self.batch_size = batch_size
        self.materializer = RowMaterializer(permission_factory)
        self.resolver = HierarchicalResolver(store, cache, self.materializer, templates)

    @property
    def permission_factory(self) -> PermissionFactory:
        return self.materializer.permission_factory

    @property
    def templates(self) -> AclQueryTemplates:
        return self.resolver.templates

    @trace_span("AclLookupStrategy.read_acls_by_id")
    async def read_acls_by_id(
        self,
        identities: Sequence[ObjectIdentity],
        sids: Iterable[Sid] | None = None,
    ) -> dict[ObjectIdentity, Acl]:
        """
        Look up the ACLs of ``identities``.

        Args:
            identities: Object identities to resolve, in request order. Duplicates are allowed.
            sids: Security identities the caller will evaluate against. Only used
                to check that cached ACLs were not loaded for a narrower set.

        Returns:
            Fully resolved ACLs keyed by every requested identity that has one.
            Identities with no ACL in the store are absent.

        Raises:
            InvalidLookupArgumentError: Empty input or batch size below 1.
            CacheConsistencyError: A cached ACL does not cover ``sids``.
            MalformedRowError: The store returned an undecodable row.
        """
        if self.batch_size < 1:
            raise InvalidLookupArgumentError("Batch size must be >= 1")
        identities = list(identities or ())
        if not identities:
            raise InvalidLookupArgumentError("Objects to lookup required")
        for oid in identities:
            if not isinstance(oid, ObjectIdentity):
                raise InvalidLookupArgumentError(f"Expected ObjectIdentity, got {oid!r}")
        sids = list(sids or ())

        result: dict[ObjectIdentity, Acl] = {}
        pending: dict[ObjectIdentity, None] = {}
        last = len(identities) - 1

        for index, oid in enumerate(identities):
            if oid not in result and oid not in pending:
                cached = await self.cache.get_by_identity(oid)
                if cached is None:
                    pending[oid] = None
                elif cached.is_sid_loaded(sids):
                    result[oid] = cached
                else:
                    logger.error("Cached ACL for %s does not cover requested SIDs", oid)
                    raise CacheConsistencyError(oid)

            if pending and (len(pending) >= self.batch_size or index == last):
                batch = list(pending)
                pending.clear()
                loaded = await self._lookup_batch(batch, sids)
                for requested in batch:
                    if requested in loaded:
                        result[requested] = loaded[requested]

        return result

    async def _lookup_batch(
        self,
        batch: list[ObjectIdentity],
        sids: list[Sid],
    ) -> dict[ObjectIdentity, Acl]:
        acls: WorkingMap = {}
        await self.resolver.resolve(batch, sids, acls)
        loaded = TreeAssembler(acls).assemble()

        for acl in loaded.values():
            await self.cache.put(acl)

        logger.debug(
            "Loaded %d ACLs (%d requested) from store", len(loaded), len(batch)
        )
        return loaded
