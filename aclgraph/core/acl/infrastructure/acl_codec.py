"""
ACL Codec
=========

JSON-safe encoding of fully resolved ACLs, parent chain included, for
out-of-process caches.
"""

from typing import Any

from aclgraph.core.acl.domain.model import AccessControlEntry, Acl, ObjectIdentity, Sid
from aclgraph.core.acl.domain.permissions import PermissionFactory


def _sid_to_dict(sid: Sid) -> dict[str, Any]:
    return {"principal": sid.is_principal, "name": sid.name}


def _sid_from_dict(data: dict[str, Any]) -> Sid:
    return Sid.from_flag(data["principal"], data["name"])


def acl_to_dict(acl: Acl) -> dict[str, Any]:
    return {
        "id": acl.internal_id,
        "object_identity": {
            "type": acl.object_identity.type,
            "identifier": acl.object_identity.identifier,
        },
        "owner": _sid_to_dict(acl.owner),
        "entries_inheriting": acl.entries_inheriting,
        "parent": acl_to_dict(acl.parent) if acl.parent is not None else None,
        "entries": [
            {
                "id": entry.internal_id,
                "mask": entry.mask,
                "granting": entry.granting,
                "audit_success": entry.audit_success,
                "audit_failure": entry.audit_failure,
                "order": entry.order,
                "recipient": _sid_to_dict(entry.recipient),
            }
            for entry in acl.entries
        ],
        "loaded_sids": (
            [_sid_to_dict(sid) for sid in acl.loaded_sids] if acl.loaded_sids is not None else None
        ),
    }


def acl_from_dict(data: dict[str, Any], permission_factory: PermissionFactory) -> Acl:
    parent_data = data.get("parent")
    parent = acl_from_dict(parent_data, permission_factory) if parent_data else None

    entries = [
        AccessControlEntry(
            internal_id=entry["id"],
            permission=permission_factory.build_from_mask(entry["mask"]),
            granting=entry["granting"],
            recipient=_sid_from_dict(entry["recipient"]),
            audit_success=entry["audit_success"],
            audit_failure=entry["audit_failure"],
            order=entry["order"],
        )
        for entry in data["entries"]
    ]

    loaded_sids = data.get("loaded_sids")
    return Acl(
        internal_id=data["id"],
        object_identity=ObjectIdentity(
            data["object_identity"]["type"], data["object_identity"]["identifier"]
        ),
        owner=_sid_from_dict(data["owner"]),
        entries_inheriting=data["entries_inheriting"],
        parent=parent,
        entries=entries,
        loaded_sids=[_sid_from_dict(s) for s in loaded_sids] if loaded_sids is not None else None,
    )
