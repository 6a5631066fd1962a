"""
ACL Domain Model
================

Value types for secured objects, security identities, ACLs and their entries.

``Acl`` and ``AccessControlEntry`` are immutable. An ``Acl`` receives its final
parent and entry list at construction and binds every entry's back-reference
to itself there, so assembly never has to patch an object after the fact.

``PartialAcl`` and ``ParentMarker`` only exist inside a single lookup call,
while rows are still being folded into ACLs and parents are still being
fetched. Neither is ever handed to a caller or a cache.
"""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from aclgraph.core.acl.domain.exceptions import InvalidLookupArgumentError
from aclgraph.core.acl.domain.permissions import Permission


@dataclass(frozen=True)
class ObjectIdentity:
    """Names a secured domain object by type and numeric identifier."""

    type: str
    identifier: int

    def __post_init__(self):
        if not isinstance(self.type, str) or not self.type:
            raise InvalidLookupArgumentError("ObjectIdentity type required")
        if isinstance(self.identifier, bool) or not isinstance(self.identifier, int):
            raise InvalidLookupArgumentError(
                f"ObjectIdentity identifier must be an int, got {self.identifier!r}"
            )

    def __str__(self) -> str:
        return f"{self.type}[{self.identifier}]"


class Sid(ABC):
    """A security identity: either a principal or a granted authority."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The principal name or authority string."""

    @property
    def is_principal(self) -> bool:
        return isinstance(self, PrincipalSid)

    @staticmethod
    def from_flag(is_principal: bool, name: str) -> Sid:
        if is_principal:
            return PrincipalSid(name)
        return GrantedAuthoritySid(name)


@dataclass(frozen=True)
class PrincipalSid(Sid):
    principal: str

    def __post_init__(self):
        if not self.principal:
            raise ValueError("Principal required")

    @property
    def name(self) -> str:
        return self.principal

    def __str__(self) -> str:
        return f"PrincipalSid[{self.principal}]"


@dataclass(frozen=True)
class GrantedAuthoritySid(Sid):
    authority: str

    def __post_init__(self):
        if not self.authority:
            raise ValueError("Granted authority required")

    @property
    def name(self) -> str:
        return self.authority

    def __str__(self) -> str:
        return f"GrantedAuthoritySid[{self.authority}]"


@dataclass(frozen=True)
class AccessControlEntry:
    """
    One grant or deny record within an ACL.

    ``acl`` points back at the owning ACL. It is left out of equality, hashing
    and repr so comparing entries never walks back up into the ACL graph.
    """

    internal_id: str
    permission: Permission
    granting: bool
    recipient: Sid
    audit_success: bool = False
    audit_failure: bool = False
    order: int = 0
    acl: Acl | PartialAcl | None = field(default=None, compare=False, repr=False)

    @property
    def mask(self) -> int:
        return self.permission.mask

    def bound_to(self, acl: Acl) -> AccessControlEntry:
        return dataclasses.replace(self, acl=acl)


@dataclass(frozen=True)
class ParentMarker:
    """Stand-in for a parent ACL that is known by id but not fetched yet."""

    internal_id: str


class Acl:
    """A fully resolved access control list."""

    __slots__ = (
        "_internal_id",
        "_object_identity",
        "_owner",
        "_entries_inheriting",
        "_parent",
        "_entries",
        "_loaded_sids",
    )

    def __init__(
        self,
        internal_id: str,
        object_identity: ObjectIdentity,
        owner: Sid,
        entries_inheriting: bool = True,
        parent: Acl | None = None,
        entries: Iterable[AccessControlEntry] = (),
        loaded_sids: Sequence[Sid] | None = None,
    ):
        if parent is not None and not isinstance(parent, Acl):
            raise TypeError(f"Parent must be a resolved Acl, got {type(parent).__name__}")

        self._internal_id = internal_id
        self._object_identity = object_identity
        self._owner = owner
        self._entries_inheriting = entries_inheriting
        self._parent = parent
        self._loaded_sids = tuple(loaded_sids) if loaded_sids is not None else None

        seen: set[str] = set()
        bound = []
        for entry in entries:
            if entry.internal_id in seen:
                raise ValueError(
                    f"Duplicate entry '{entry.internal_id}' in ACL '{internal_id}'"
                )
            seen.add(entry.internal_id)
            bound.append(entry.bound_to(self))
        self._entries = tuple(bound)

    @property
    def internal_id(self) -> str:
        return self._internal_id

    @property
    def object_identity(self) -> ObjectIdentity:
        return self._object_identity

    @property
    def owner(self) -> Sid:
        return self._owner

    @property
    def entries_inheriting(self) -> bool:
        return self._entries_inheriting

    @property
    def parent(self) -> Acl | None:
        return self._parent

    @property
    def entries(self) -> tuple[AccessControlEntry, ...]:
        return self._entries

    @property
    def loaded_sids(self) -> tuple[Sid, ...] | None:
        return self._loaded_sids

    def is_sid_loaded(self, sids: Iterable[Sid] | None) -> bool:
        """True when this ACL was loaded for (at least) every given Sid."""
        if self._loaded_sids is None or not sids:
            return True
        return all(sid in self._loaded_sids for sid in sids)

    def ancestors(self) -> list[Acl]:
        chain = []
        current = self._parent
        while current is not None:
            chain.append(current)
            current = current.parent
        return chain

    def _key(self) -> tuple:
        return (
            self._internal_id,
            self._object_identity,
            self._owner,
            self._entries_inheriting,
            self._parent,
            self._entries,
            self._loaded_sids,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Acl):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash((self._internal_id, self._object_identity))

    def __repr__(self) -> str:
        parent_id = self._parent.internal_id if self._parent is not None else None
        return (
            f"Acl(internal_id={self._internal_id!r}, object_identity={self._object_identity}, "
            f"owner={self._owner}, entries_inheriting={self._entries_inheriting}, "
            f"parent={parent_id!r}, entries={list(self._entries)!r})"
        )


@dataclass
class PartialAcl:
    """An ACL folded together from store rows, with its parent possibly unresolved."""

    internal_id: str
    object_identity: ObjectIdentity
    owner: Sid
    entries_inheriting: bool
    parent: ParentMarker | Acl | None = None
    entries: list[AccessControlEntry] = field(default_factory=list)

    def add_entry(self, entry: AccessControlEntry) -> bool:
        """Append ``entry`` unless one with the same internal id is already present."""
        if any(existing.internal_id == entry.internal_id for existing in self.entries):
            return False
        self.entries.append(entry)
        return True


WorkingMap = dict[str, PartialAcl | Acl]
