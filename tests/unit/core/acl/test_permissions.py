import pytest

from aclgraph.core.acl.domain.permissions import (
    BasePermission,
    CumulativePermission,
    DefaultPermissionFactory,
    Permission,
)


def test_single_bit_masks_return_registered_permission():
    factory = DefaultPermissionFactory()
    assert factory.build_from_mask(1) is BasePermission.READ
    assert factory.build_from_mask(16) is BasePermission.ADMINISTRATION


def test_combined_mask_returns_cumulative_permission():
    permission = DefaultPermissionFactory().build_from_mask(1 | 8)

    assert isinstance(permission, CumulativePermission)
    assert permission.mask == 9
    assert permission.pattern.endswith("D..R")


def test_unregistered_bit_rejected():
    with pytest.raises(ValueError):
        DefaultPermissionFactory().build_from_mask(1 << 20)


def test_out_of_range_mask_rejected():
    factory = DefaultPermissionFactory()
    with pytest.raises(ValueError):
        factory.build_from_mask(-1)
    with pytest.raises(ValueError):
        factory.build_from_mask(1 << 32)


def test_build_from_name():
    factory = DefaultPermissionFactory()
    assert factory.build_from_name("WRITE") is BasePermission.WRITE
    with pytest.raises(ValueError):
        factory.build_from_name("EXECUTE")


def test_register_custom_permission():
    factory = DefaultPermissionFactory()
    approve = Permission(1 << 5, "P")
    factory.register(approve, "APPROVE")

    assert factory.build_from_mask(32) is approve
    with pytest.raises(ValueError):
        factory.register(Permission(1 << 5, "X"), "OTHER")
    with pytest.raises(ValueError):
        factory.register(Permission(1 << 6, "X"), "APPROVE")


def test_equality_by_mask():
    assert Permission(1, "R") == Permission(1, "*")
    assert CumulativePermission(0).set(BasePermission.READ) == BasePermission.READ
    assert hash(Permission(2)) == hash(BasePermission.WRITE)


def test_cumulative_clear():
    permission = CumulativePermission(0).set(BasePermission.READ).set(BasePermission.WRITE)
    cleared = permission.clear(BasePermission.READ)
    assert cleared.mask == 2
    assert cleared.pattern.endswith("W.")
