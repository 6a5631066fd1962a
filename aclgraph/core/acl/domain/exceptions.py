"""
ACL Lookup Errors
=================

Every failure aborts the whole lookup call. No partial result map is ever
returned to the caller.
"""

from typing import Any


class AclLookupError(Exception):
    """Base class for ACL lookup failures."""


class InvalidLookupArgumentError(AclLookupError, ValueError):
    """Rejected input (empty identity list, batch size below 1, bad identity)."""


class CacheConsistencyError(AclLookupError):
    """A cached ACL does not cover the requested security identities."""

    def __init__(self, object_identity: Any, message: str | None = None):
        self.object_identity = object_identity
        msg = message or (
            f"SID-filtered ACL for {object_identity} found in cache, but lookups never "
            "filter by SID. Was something added to the cache manually?"
        )
        super().__init__(msg)


class MalformedRowError(AclLookupError):
    """A store row is missing a required field or holds an undecodable value."""

    def __init__(self, field: str, row: dict[str, Any], reason: str):
        self.field = field
        self.row = row
        self.reason = reason
        super().__init__(f"Malformed ACL row, field '{field}': {reason}")


class MissingWorkingMapEntryError(AclLookupError):
    """Tree assembly referenced an internal id that was never materialized."""

    def __init__(self, internal_id: str):
        self.internal_id = internal_id
        super().__init__(f"No ACL materialized for internal id '{internal_id}'")


class ParentCycleError(AclLookupError):
    """The parent chain of an ACL loops back on itself."""

    def __init__(self, chain: list[str]):
        self.chain = chain
        super().__init__(f"ACL parent cycle detected: {' -> '.join(chain)}")


class AclNotFoundError(AclLookupError):
    """One or more requested object identities have no ACL in the store."""

    def __init__(self, missing: list[Any]):
        self.missing = missing
        names = ", ".join(str(oid) for oid in missing)
        super().__init__(f"Unable to find ACL information for: {names}")
