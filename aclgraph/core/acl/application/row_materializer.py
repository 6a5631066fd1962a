"""
Row Materializer
================

Folds flat lookup rows into ``PartialAcl`` objects in the working map.

Each row describes one ACL and at most one of its entries. Rows for the same
ACL arrive consecutively, ordered by entry order, so appending preserves the
evaluation precedence the store defines. An ACL with no entries produces a
single row whose entry columns are all null.
"""

import logging
from collections.abc import Mapping
from typing import Any

from aclgraph.core.acl.domain.exceptions import MalformedRowError
from aclgraph.core.acl.domain.model import (
    AccessControlEntry,
    Acl,
    ObjectIdentity,
    ParentMarker,
    PartialAcl,
    Sid,
    WorkingMap,
)
from aclgraph.core.acl.domain.permissions import DefaultPermissionFactory, PermissionFactory

logger = logging.getLogger(__name__)

# Row aliases produced by the lookup query's return clause
ACL_PRINCIPAL = "aclPrincipal"
ACL_SID = "aclSid"
CLASS_NAME = "className"
OBJECT_ID_IDENTITY = "objectIdIdentity"
ACL_ID = "aclId"
PARENT_OBJECT = "parentObject"
ENTRIES_INHERITING = "entriesInheriting"
ACE_ID = "aceId"
ACE_ORDER = "aceOrder"
MASK = "mask"
GRANTING = "granting"
AUDIT_SUCCESS = "auditSuccess"
AUDIT_FAILURE = "auditFailure"
ACE_PRINCIPAL = "acePrincipal"
ACE_SID = "aceSid"

ROW_FIELDS = (
    ACL_PRINCIPAL,
    ACL_SID,
    CLASS_NAME,
    OBJECT_ID_IDENTITY,
    ACL_ID,
    PARENT_OBJECT,
    ENTRIES_INHERITING,
    ACE_ID,
    ACE_ORDER,
    MASK,
    GRANTING,
    AUDIT_SUCCESS,
    AUDIT_FAILURE,
    ACE_PRINCIPAL,
    ACE_SID,
)


def _required(row: Mapping[str, Any], field: str) -> Any:
    if field not in row:
        raise MalformedRowError(field, dict(row), "missing")
    value = row[field]
    if value is None:
        raise MalformedRowError(field, dict(row), "null")
    return value


def _as_str(row: Mapping[str, Any], field: str) -> str:
    value = str(_required(row, field))
    if not value:
        raise MalformedRowError(field, dict(row), "empty")
    return value


def _as_bool(row: Mapping[str, Any], field: str) -> bool:
    value = _required(row, field)
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise MalformedRowError(field, dict(row), f"not a boolean: {value!r}")


def _as_int(row: Mapping[str, Any], field: str) -> int:
    value = _required(row, field)
    if isinstance(value, bool):
        raise MalformedRowError(field, dict(row), f"not an integer: {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value))
    except ValueError:
        raise MalformedRowError(field, dict(row), f"not an integer: {value!r}") from None


def _as_sid(row: Mapping[str, Any], flag_field: str, name_field: str) -> Sid:
    is_principal = _as_bool(row, flag_field)
    name = _as_str(row, name_field)
    return Sid.from_flag(is_principal, name)


class RowMaterializer:
    """Converts lookup rows into partially linked ACLs."""

    def __init__(self, permission_factory: PermissionFactory | None = None):
        self.permission_factory = permission_factory or DefaultPermissionFactory()

    def materialize(self, row: Mapping[str, Any], acls: WorkingMap) -> PartialAcl | Acl:
        """
        Fold one row into ``acls``.

        Creates the ACL on first sight (with a ``ParentMarker`` when the row
        names a parent) and appends the row's entry, if any, unless an entry
        with the same id was already folded in.

        Returns:
            The ACL the row belongs to.

        Raises:
            MalformedRowError: If any column is absent from the row (nullable
                columns must still be present) or a required value is undecodable.
        """
        for field in ROW_FIELDS:
            if field not in row:
                raise MalformedRowError(field, dict(row), "missing")

        acl_id = _as_str(row, ACL_ID)
        acl = acls.get(acl_id)

        if acl is None:
            acl = self._new_acl(acl_id, row)
            acls[acl_id] = acl
        elif isinstance(acl, Acl):
            # Already resolved from cache; rows cannot add anything to it
            return acl

        if row.get(ACE_ID) is not None:
            entry = self._new_entry(row, acl)
            if not acl.add_entry(entry):
                logger.debug("Skipping repeated entry %s for ACL %s", entry.internal_id, acl_id)

        return acl

    def _new_acl(self, acl_id: str, row: Mapping[str, Any]) -> PartialAcl:
        object_identity = ObjectIdentity(
            _as_str(row, CLASS_NAME),
            _as_int(row, OBJECT_ID_IDENTITY),
        )

        parent = None
        parent_id = row.get(PARENT_OBJECT)
        if parent_id is not None:
            parent = ParentMarker(str(parent_id))

        return PartialAcl(
            internal_id=acl_id,
            object_identity=object_identity,
            owner=_as_sid(row, ACL_PRINCIPAL, ACL_SID),
            entries_inheriting=_as_bool(row, ENTRIES_INHERITING),
            parent=parent,
        )

    def _new_entry(self, row: Mapping[str, Any], acl: PartialAcl) -> AccessControlEntry:
        mask = _as_int(row, MASK)
        try:
            permission = self.permission_factory.build_from_mask(mask)
        except ValueError as e:
            raise MalformedRowError(MASK, dict(row), str(e)) from e

        order = row.get(ACE_ORDER)
        return AccessControlEntry(
            internal_id=_as_str(row, ACE_ID),
            permission=permission,
            granting=_as_bool(row, GRANTING),
            recipient=_as_sid(row, ACE_PRINCIPAL, ACE_SID),
            audit_success=_as_bool(row, AUDIT_SUCCESS),
            audit_failure=_as_bool(row, AUDIT_FAILURE),
            order=_as_int(row, ACE_ORDER) if order is not None else len(acl.entries),
            acl=acl,
        )
