"""
Hierarchical Resolver
=====================

Loads ACLs level by level until every parent reference is either in the
working map or known to the cache.

Level 0 fetches the requested object identities in one round trip. Each
following level fetches, again in one round trip, every parent id the
previous level referenced but could not satisfy from the working map or the
cache. The number of round trips is therefore bounded by the depth of the
deepest uncached inheritance chain, never by the number of objects.

A round trip's rows are fully collected before the next query is issued, so
no store cursor is ever held open across levels.
"""

import logging
from collections.abc import Iterable, Sequence

from aclgraph.core.acl.application.query_builder import (
    AclQueryTemplates,
    build_identity_query,
    build_internal_id_query,
)
from aclgraph.core.acl.application.row_materializer import PARENT_OBJECT, RowMaterializer
from aclgraph.core.acl.domain.model import ObjectIdentity, Sid, WorkingMap
from aclgraph.core.acl.domain.ports.acl_cache import AclCachePort
from aclgraph.core.acl.domain.ports.acl_store import AclStorePort

logger = logging.getLogger(__name__)


class HierarchicalResolver:
    def __init__(
        self,
        store: AclStorePort,
        cache: AclCachePort,
        materializer: RowMaterializer,
        templates: AclQueryTemplates | None = None,
    ):
        self.store = store
        self.cache = cache
        self.materializer = materializer
        self.templates = templates or AclQueryTemplates()

    async def resolve(
        self,
        identities: Iterable[ObjectIdentity],
        sids: Sequence[Sid] | None,
        acls: WorkingMap,
    ) -> WorkingMap:
        """
        Load ``identities`` and their whole parent chains into ``acls``.

        On return every parent reference in ``acls`` points at an id that is
        itself a key of ``acls``, unless the store does not hold that parent.
        """
        unresolved = await self.resolve_identities(identities, sids, acls)

        level = 1
        while unresolved:
            unresolved = await self.resolve_internal_ids(unresolved, sids, acls, level=level)
            level += 1

        return acls

    async def resolve_identities(
        self,
        identities: Iterable[ObjectIdentity],
        sids: Sequence[Sid] | None,
        acls: WorkingMap,
    ) -> list[str]:
        """One round trip for top-level identities. Returns unresolved parent ids."""
        query, params = build_identity_query(self.templates, identities)
        return await self._round_trip(query, params, sids, acls, level=0)

    async def resolve_internal_ids(
        self,
        internal_ids: Iterable[str],
        sids: Sequence[Sid] | None,
        acls: WorkingMap,
        level: int = 1,
    ) -> list[str]:
        """One round trip for parent ACLs by internal id. Returns unresolved parent ids."""
        query, params = build_internal_id_query(self.templates, internal_ids)
        return await self._round_trip(query, params, sids, acls, level=level)

    async def _round_trip(
        self,
        query: str,
        params: dict,
        sids: Sequence[Sid] | None,
        acls: WorkingMap,
        level: int,
    ) -> list[str]:
        rows = await self.store.execute_read(query, params)
        logger.debug(
            "ACL lookup level %d: %d params, %d rows", level, len(params), len(rows)
        )

        referenced: dict[str, None] = {}
        for row in rows:
            self.materializer.materialize(row, acls)
            parent_id = row.get(PARENT_OBJECT)
            if parent_id is not None:
                referenced[str(parent_id)] = None

        unresolved: list[str] = []
        for parent_id in referenced:
            if parent_id in acls:
                continue

            cached = await self.cache.get_by_internal_id(parent_id)
            if cached is not None and cached.is_sid_loaded(sids):
                # Cached parents are trusted as-is; they are not re-checked against the store
                acls[parent_id] = cached
            else:
                unresolved.append(parent_id)

        return unresolved
