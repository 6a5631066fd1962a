"""
ACL Service
===========

Read-side facade over the lookup strategy for authorization code that
expects every requested object to have an ACL.
"""

import logging
from collections.abc import Iterable, Sequence

from aclgraph.core.acl.application.lookup_strategy import AclLookupStrategy
from aclgraph.core.acl.domain.exceptions import AclNotFoundError
from aclgraph.core.acl.domain.model import Acl, ObjectIdentity, Sid

logger = logging.getLogger(__name__)


class AclService:
    def __init__(self, lookup_strategy: AclLookupStrategy):
        self.lookup_strategy = lookup_strategy

    async def read_acl_by_id(
        self,
        object_identity: ObjectIdentity,
        sids: Iterable[Sid] | None = None,
    ) -> Acl:
        """Read one ACL, raising ``AclNotFoundError`` if the object has none."""
        acls = await self.read_acls_by_id([object_identity], sids)
        return acls[object_identity]

    async def read_acls_by_id(
        self,
        object_identities: Sequence[ObjectIdentity],
        sids: Iterable[Sid] | None = None,
        *,
        strict: bool = True,
    ) -> dict[ObjectIdentity, Acl]:
        """
        Read ACLs for several objects.

        Args:
            object_identities: Objects to look up.
            sids: Security identities the result will be evaluated against.
            strict: When True, every requested object must have an ACL.

        Raises:
            AclNotFoundError: ``strict`` and at least one object has no ACL.
        """
        acls = await self.lookup_strategy.read_acls_by_id(object_identities, sids)

        if strict:
            missing = list(dict.fromkeys(oid for oid in object_identities if oid not in acls))
            if missing:
                logger.info("No ACL found for %d of %d objects", len(missing), len(object_identities))
                raise AclNotFoundError(missing)

        return acls
