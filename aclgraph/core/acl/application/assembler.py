"""
Tree Assembler
==============

Turns the working map of ``PartialAcl`` objects into immutable ``Acl``
objects whose parents are real, fully resolved ACLs.

Parents are finalized before their children, and each internal id is
finalized exactly once, so siblings that share a parent share the same
parent object.
"""

from aclgraph.core.acl.domain.exceptions import MissingWorkingMapEntryError, ParentCycleError
from aclgraph.core.acl.domain.model import Acl, ObjectIdentity, ParentMarker, WorkingMap


class TreeAssembler:
    """Finalizes one working map. Create a new assembler per lookup batch."""

    def __init__(self, acls: WorkingMap):
        self._acls = acls
        self._finalized: dict[str, Acl] = {}
        self._in_progress: list[str] = []

    def convert(self, internal_id: str) -> Acl:
        """
        Return the finalized ACL for ``internal_id``, finalizing its parent
        chain first.

        Raises:
            MissingWorkingMapEntryError: If the id (or an ancestor) was never loaded.
            ParentCycleError: If the parent chain loops.
        """
        done = self._finalized.get(internal_id)
        if done is not None:
            return done

        source = self._acls.get(internal_id)
        if source is None:
            raise MissingWorkingMapEntryError(internal_id)

        if isinstance(source, Acl):
            # Came from the cache already finalized
            self._finalized[internal_id] = source
            return source

        if internal_id in self._in_progress:
            start = self._in_progress.index(internal_id)
            raise ParentCycleError(self._in_progress[start:] + [internal_id])

        self._in_progress.append(internal_id)
        try:
            parent = source.parent
            if isinstance(parent, ParentMarker):
                parent = self.convert(parent.internal_id)

            acl = Acl(
                internal_id=source.internal_id,
                object_identity=source.object_identity,
                owner=source.owner,
                entries_inheriting=source.entries_inheriting,
                parent=parent,
                entries=source.entries,
            )
        finally:
            self._in_progress.pop()

        self._finalized[internal_id] = acl
        return acl

    def assemble(self) -> dict[ObjectIdentity, Acl]:
        """Finalize every ACL in the working map, keyed by object identity."""
        result: dict[ObjectIdentity, Acl] = {}
        for internal_id in self._acls:
            acl = self.convert(internal_id)
            result[acl.object_identity] = acl
        return result
