from typing import Any, Protocol


class AclStorePort(Protocol):
    """Runs one read-only graph query and returns every row before returning."""

    async def execute_read(
        self,
        query: str,
        parameters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]: ...


_acl_store: AclStorePort | None = None


def set_acl_store(store: AclStorePort | None) -> None:
    global _acl_store
    _acl_store = store


def get_acl_store() -> AclStorePort:
    if _acl_store is None:
        raise RuntimeError("ACL store not configured. Call set_acl_store() at startup.")
    return _acl_store
