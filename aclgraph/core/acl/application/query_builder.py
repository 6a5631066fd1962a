"""
ACL Query Builder
=================

Builds the batched Cypher lookups. Every requested key becomes one predicate
block, all blocks are OR'd into a single query, and each block binds its own
numbered parameters (``aclId1``, ``aclId2``, ...).

The lookup algorithm never inspects the query text; it only relies on the
row aliases produced by the return clause (see ``row_materializer``).
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from aclgraph.core.acl.domain.exceptions import InvalidLookupArgumentError
from aclgraph.core.acl.domain.model import ObjectIdentity

DEFAULT_MATCH_CLAUSE = (
    "MATCH (owner:SidNode)<-[:OWNED_BY]-(acl:AclNode)-[:SECURES]->(class:ClassNode) "
    "OPTIONAL MATCH (acl)<-[:COMPOSES]-(ace:AceNode)-[:AUTHORIZES]->(sid:SidNode) "
    "WITH acl, ace, owner, sid, class WHERE ( "
)
DEFAULT_RETURN_CLAUSE = (
    " ) RETURN owner.principal AS aclPrincipal, owner.sid AS aclSid, "
    "acl.objectIdIdentity AS objectIdIdentity, ace.aceOrder AS aceOrder, acl.id AS aclId, "
    "acl.parentObject AS parentObject, acl.entriesInheriting AS entriesInheriting, "
    "ace.id AS aceId, ace.mask AS mask, ace.granting AS granting, "
    "ace.auditSuccess AS auditSuccess, ace.auditFailure AS auditFailure, "
    "sid.principal AS acePrincipal, sid.sid AS aceSid, class.className AS className "
)
DEFAULT_IDENTITY_WHERE_CLAUSE = (
    " (acl.objectIdIdentity = $objectIdIdentity{index} AND class.className = $className{index}) "
)
DEFAULT_INTERNAL_ID_WHERE_CLAUSE = " (acl.id = $aclId{index}) "
DEFAULT_ORDER_BY_CLAUSE = " ORDER BY acl.objectIdIdentity ASC, ace.aceOrder ASC"


@dataclass(frozen=True)
class AclQueryTemplates:
    """
    Overridable query fragments.

    The where clauses must contain an ``{index}`` placeholder; it is replaced
    with the 1-based position of the key in the batch.
    """

    match_clause: str = DEFAULT_MATCH_CLAUSE
    return_clause: str = DEFAULT_RETURN_CLAUSE
    order_by_clause: str = DEFAULT_ORDER_BY_CLAUSE
    identity_where_clause: str = DEFAULT_IDENTITY_WHERE_CLAUSE
    internal_id_where_clause: str = DEFAULT_INTERNAL_ID_WHERE_CLAUSE

    def __post_init__(self):
        for name in ("identity_where_clause", "internal_id_where_clause"):
            if "{index}" not in getattr(self, name):
                raise ValueError(f"{name} must contain an '{{index}}' placeholder")


def _assemble(templates: AclQueryTemplates, where_clause: str, count: int) -> str:
    blocks = " OR ".join(where_clause.replace("{index}", str(i)) for i in range(1, count + 1))
    return templates.match_clause + blocks + templates.return_clause + templates.order_by_clause


def build_identity_query(
    templates: AclQueryTemplates,
    identities: Iterable[ObjectIdentity],
) -> tuple[str, dict[str, Any]]:
    """Query for the ACLs securing the given object identities."""
    identities = list(identities)
    if not identities:
        raise InvalidLookupArgumentError("Must provide identities to lookup")

    params: dict[str, Any] = {}
    for index, oid in enumerate(identities, start=1):
        params[f"objectIdIdentity{index}"] = oid.identifier
        params[f"className{index}"] = oid.type

    return _assemble(templates, templates.identity_where_clause, len(identities)), params


def build_internal_id_query(
    templates: AclQueryTemplates,
    internal_ids: Iterable[str],
) -> tuple[str, dict[str, Any]]:
    """Query for ACLs by their internal ids (used to follow parent references)."""
    internal_ids = list(internal_ids)
    if not internal_ids:
        raise InvalidLookupArgumentError("Items to find now required")

    params = {f"aclId{index}": acl_id for index, acl_id in enumerate(internal_ids, start=1)}
    return _assemble(templates, templates.internal_id_where_clause, len(internal_ids)), params
