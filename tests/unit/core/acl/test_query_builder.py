import pytest

from aclgraph.core.acl.application.query_builder import (
    AclQueryTemplates,
    build_identity_query,
    build_internal_id_query,
)
from aclgraph.core.acl.domain.exceptions import InvalidLookupArgumentError
from aclgraph.core.acl.domain.model import ObjectIdentity


def test_identity_query_numbers_one_block_per_identity():
    templates = AclQueryTemplates()
    query, params = build_identity_query(
        templates, [ObjectIdentity("Document", 42), ObjectIdentity("Folder", 7)]
    )

    assert params == {
        "objectIdIdentity1": 42,
        "className1": "Document",
        "objectIdIdentity2": 7,
        "className2": "Folder",
    }
    assert "$objectIdIdentity1" in query and "$className2" in query
    assert query.count(" OR ") == 1
    assert query.startswith(templates.match_clause)
    assert query.endswith(templates.order_by_clause)


def test_internal_id_query():
    query, params = build_internal_id_query(AclQueryTemplates(), ["a", "b", "c"])

    assert params == {"aclId1": "a", "aclId2": "b", "aclId3": "c"}
    assert "$aclId3" in query
    assert query.count(" OR ") == 2


def test_custom_fragments():
    templates = AclQueryTemplates(
        match_clause="MATCH (acl:Acl) WHERE (",
        return_clause=") RETURN acl",
        order_by_clause="",
        internal_id_where_clause="acl.key = $aclId{index}",
    )
    query, _ = build_internal_id_query(templates, ["x", "y"])
    assert query == "MATCH (acl:Acl) WHERE (acl.key = $aclId1 OR acl.key = $aclId2) RETURN acl"


def test_where_clause_with_map_literal():
    templates = AclQueryTemplates(
        match_clause="MATCH (acl:Acl) WHERE (",
        return_clause=") RETURN acl",
        order_by_clause="",
        internal_id_where_clause="acl.meta = {key: $aclId{index}}",
    )
    query, _ = build_internal_id_query(templates, ["x", "y"])
    assert query == (
        "MATCH (acl:Acl) WHERE (acl.meta = {key: $aclId1} OR acl.meta = {key: $aclId2}) RETURN acl"
    )


def test_where_clause_requires_index_placeholder():
    with pytest.raises(ValueError):
        AclQueryTemplates(internal_id_where_clause="acl.id = $aclId")


def test_empty_input_rejected():
    with pytest.raises(InvalidLookupArgumentError):
        build_identity_query(AclQueryTemplates(), [])
    with pytest.raises(InvalidLookupArgumentError):
        build_internal_id_query(AclQueryTemplates(), [])
