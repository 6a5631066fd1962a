import pytest


@pytest.fixture(autouse=True)
def cleanup_application_state():
    """
    Reset module-level registries between tests so no port, tracer or
    settings instance leaks from one test into the next.
    """
    yield

    from aclgraph.core.acl.domain.ports.acl_cache import set_acl_cache
    from aclgraph.core.acl.domain.ports.acl_store import set_acl_store
    from aclgraph.shared.kernel.observability import set_trace_span
    from aclgraph.shared.kernel.runtime import _reset_for_tests

    set_acl_store(None)
    set_acl_cache(None)
    set_trace_span(None)
    _reset_for_tests()

    import aclgraph.platform.composition_root as root

    root._settings = None
    root.get_settings_lazy.cache_clear()
    root.platform._neo4j_client = None
    root.platform._acl_cache = None
    root.platform._acl_service = None
    root.platform._initialized = False
