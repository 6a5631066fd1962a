"""
Unit tests for folding lookup rows into partial ACLs.

Tests cover:
- ACL creation with and without a parent reference
- Entry ordering and repeated rows
- ACLs with no entries
- Malformed rows
"""

import pytest
from acl_fakes import StoredAce, StoredAcl, make_row

from aclgraph.core.acl.application.row_materializer import ROW_FIELDS, RowMaterializer
from aclgraph.core.acl.domain.exceptions import MalformedRowError
from aclgraph.core.acl.domain.model import (
    Acl,
    GrantedAuthoritySid,
    ObjectIdentity,
    ParentMarker,
    PartialAcl,
    PrincipalSid,
)
from aclgraph.core.acl.domain.permissions import BasePermission


@pytest.fixture
def materializer():
    return RowMaterializer()


def test_first_row_creates_acl(materializer):
    acls = {}
    stored = StoredAcl("acl-1", "Document", 42, owner="alice")

    acl = materializer.materialize(make_row(stored, StoredAce("ace-1", mask=1, sid="bob")), acls)

    assert acls == {"acl-1": acl}
    assert isinstance(acl, PartialAcl)
    assert acl.object_identity == ObjectIdentity("Document", 42)
    assert acl.owner == PrincipalSid("alice")
    assert acl.parent is None
    entry = acl.entries[0]
    assert entry.permission == BasePermission.READ
    assert entry.granting is True
    assert entry.recipient == PrincipalSid("bob")
    assert entry.acl is acl


def test_parent_reference_becomes_marker(materializer):
    acls = {}
    acl = materializer.materialize(make_row(StoredAcl("child", "Document", 1, parent="root")), acls)
    assert acl.parent == ParentMarker("root")


def test_authority_owner_and_recipient(materializer):
    stored = StoredAcl("acl-1", "Document", 1, owner="ROLE_ADMIN", owner_principal=False)
    ace = StoredAce("ace-1", sid="ROLE_USER", principal=False)

    acl = materializer.materialize(make_row(stored, ace), {})

    assert acl.owner == GrantedAuthoritySid("ROLE_ADMIN")
    assert acl.entries[0].recipient == GrantedAuthoritySid("ROLE_USER")


def test_acl_without_entries_is_kept(materializer):
    acls = {}
    acl = materializer.materialize(make_row(StoredAcl("empty", "Document", 3)), acls)
    assert acls["empty"] is acl
    assert acl.entries == []


def test_entries_follow_row_order(materializer):
    stored = StoredAcl("acl-1", "Document", 42)
    acls = {}
    for ace in (StoredAce("e1", order=0), StoredAce("e2", mask=2, order=1)):
        materializer.materialize(make_row(stored, ace), acls)

    assert [e.internal_id for e in acls["acl-1"].entries] == ["e1", "e2"]
    assert [e.order for e in acls["acl-1"].entries] == [0, 1]


def test_repeated_row_yields_one_entry(materializer):
    stored = StoredAcl("acl-1", "Document", 42)
    row = make_row(stored, StoredAce("e1"))
    acls = {}

    materializer.materialize(row, acls)
    materializer.materialize(dict(row), acls)

    assert len(acls["acl-1"].entries) == 1


def test_string_encoded_values(materializer):
    row = make_row(StoredAcl("acl-1", "Document", 42), StoredAce("e1"))
    row.update(
        {
            "objectIdIdentity": "42",
            "entriesInheriting": "FALSE",
            "aclPrincipal": "true",
            "mask": "8",
            "granting": "false",
            "aceOrder": "3",
        }
    )

    acl = materializer.materialize(row, {})

    assert acl.object_identity == ObjectIdentity("Document", 42)
    assert acl.entries_inheriting is False
    assert acl.entries[0].permission == BasePermission.DELETE
    assert acl.entries[0].granting is False
    assert acl.entries[0].order == 3


def test_missing_order_defaults_to_position(materializer):
    stored = StoredAcl("acl-1", "Document", 42)
    acls = {}
    for ace_id in ("e1", "e2"):
        row = make_row(stored, StoredAce(ace_id))
        row["aceOrder"] = None
        materializer.materialize(row, acls)

    assert [e.order for e in acls["acl-1"].entries] == [0, 1]


def test_resolved_acl_in_map_is_not_touched(materializer):
    cached = Acl("acl-1", ObjectIdentity("Document", 42), PrincipalSid("alice"))
    acls = {"acl-1": cached}

    result = materializer.materialize(make_row(StoredAcl("acl-1", "Document", 42), StoredAce("e1")), acls)

    assert result is cached
    assert acls["acl-1"].entries == ()


@pytest.mark.parametrize(
    "field, value",
    [
        ("aclId", None),
        ("className", None),
        ("objectIdIdentity", "forty-two"),
        ("entriesInheriting", "maybe"),
        ("aclPrincipal", None),
        ("mask", "x"),
        ("mask", 1 << 20),
        ("granting", None),
        ("aceSid", ""),
    ],
)
def test_malformed_values(materializer, field, value):
    row = make_row(StoredAcl("acl-1", "Document", 42), StoredAce("e1"))
    row[field] = value

    with pytest.raises(MalformedRowError) as exc_info:
        materializer.materialize(row, {})
    assert exc_info.value.field == field


def test_missing_field(materializer):
    row = make_row(StoredAcl("acl-1", "Document", 42))
    del row["aclSid"]

    with pytest.raises(MalformedRowError) as exc_info:
        materializer.materialize(row, {})
    assert exc_info.value.field == "aclSid"


@pytest.mark.parametrize("field", ROW_FIELDS)
def test_absent_column_is_fatal_even_when_nullable(materializer, field):
    row = make_row(StoredAcl("child", "Document", 1, parent="root"), StoredAce("e1"))
    del row[field]
    acls = {}

    with pytest.raises(MalformedRowError) as exc_info:
        materializer.materialize(row, acls)
    assert exc_info.value.field == field
    assert acls == {}


def test_absent_parent_column_does_not_drop_parent(materializer):
    row = make_row(StoredAcl("child", "Document", 1, parent="root"))
    del row["parentObject"]

    with pytest.raises(MalformedRowError) as exc_info:
        materializer.materialize(row, {})
    assert exc_info.value.reason == "missing"
