"""
Permissions
===========

Bitmask permissions stored on each access control entry, and the factory
that decodes a stored mask back into a ``Permission``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

MASK_BITS = 32
RESERVED_OFF = "."


@dataclass(frozen=True, eq=False)
class Permission:
    """A permission identified by its bit mask.

    Two permissions are equal when their masks are equal, whatever their codes.
    """

    mask: int
    code: str = "*"

    def _code_for_bit(self, bit: int) -> str:
        return self.code

    @property
    def pattern(self) -> str:
        """32 character rendering, most significant bit first."""
        chars = []
        for position in reversed(range(MASK_BITS)):
            bit = 1 << position
            chars.append(self._code_for_bit(bit) if self.mask & bit else RESERVED_OFF)
        return "".join(chars)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Permission):
            return NotImplemented
        return self.mask == other.mask

    def __hash__(self) -> int:
        return hash(self.mask)

    def __str__(self) -> str:
        return f"{type(self).__name__}[{self.pattern}={self.mask}]"


class BasePermission:
    READ = Permission(1, "R")
    WRITE = Permission(1 << 1, "W")
    CREATE = Permission(1 << 2, "C")
    DELETE = Permission(1 << 3, "D")
    ADMINISTRATION = Permission(1 << 4, "A")

    @classmethod
    def named(cls) -> dict[str, Permission]:
        return {
            "READ": cls.READ,
            "WRITE": cls.WRITE,
            "CREATE": cls.CREATE,
            "DELETE": cls.DELETE,
            "ADMINISTRATION": cls.ADMINISTRATION,
        }


@dataclass(frozen=True, eq=False)
class CumulativePermission(Permission):
    """Several permissions combined into one mask."""

    parts: tuple[Permission, ...] = ()

    def _code_for_bit(self, bit: int) -> str:
        for part in self.parts:
            if part.mask & bit:
                return part.code
        return self.code

    def set(self, permission: Permission) -> CumulativePermission:
        parts = tuple(p for p in self.parts if p.mask != permission.mask) + (permission,)
        return CumulativePermission(self.mask | permission.mask, self.code, parts)

    def clear(self, permission: Permission) -> CumulativePermission:
        parts = tuple(p for p in self.parts if not (p.mask & permission.mask))
        return CumulativePermission(self.mask & ~permission.mask, self.code, parts)


class PermissionFactory(Protocol):
    def build_from_mask(self, mask: int) -> Permission: ...

    def build_from_name(self, name: str) -> Permission: ...


class DefaultPermissionFactory:
    """
    Decodes masks against a registry of single-bit permissions.

    A mask matching a registered permission returns that permission. A mask
    combining several registered bits returns a ``CumulativePermission``.
    Bits with no registered permission are rejected with ``ValueError``.
    """

    def __init__(self, permissions: dict[str, Permission] | None = None):
        self._by_mask: dict[int, Permission] = {}
        self._by_name: dict[str, Permission] = {}
        for name, permission in (permissions or BasePermission.named()).items():
            self.register(permission, name)

    def register(self, permission: Permission, name: str) -> None:
        if not name:
            raise ValueError("Permission name required")
        if permission.mask in self._by_mask:
            raise ValueError(f"An existing permission already provides mask {permission.mask}")
        if name in self._by_name:
            raise ValueError(f"An existing permission already provides name '{name}'")
        self._by_mask[permission.mask] = permission
        self._by_name[name] = permission

    def build_from_mask(self, mask: int) -> Permission:
        if mask < 0 or mask >= 1 << MASK_BITS:
            raise ValueError(f"Mask {mask} is outside the {MASK_BITS}-bit range")

        if mask in self._by_mask:
            return self._by_mask[mask]

        permission = CumulativePermission(0)
        for position in range(MASK_BITS):
            bit = 1 << position
            if not mask & bit:
                continue
            registered = self._by_mask.get(bit)
            if registered is None:
                raise ValueError(f"Mask bit {bit} does not have a corresponding registered permission")
            permission = permission.set(registered)
        return permission

    def build_from_name(self, name: str) -> Permission:
        try:
            return self._by_name[name]
        except KeyError:
            raise ValueError(f"Unknown permission '{name}'") from None
