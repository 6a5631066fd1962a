from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from aclgraph.core.acl.infrastructure.neo4j_client import Neo4jClient
from aclgraph.shared.kernel.runtime import configure_settings


class _Result:
    def __init__(self, rows):
        self._rows = rows

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for row in self._rows:
            yield SimpleNamespace(data=lambda row=row: dict(row))


def _driver(session):
    driver = MagicMock()
    driver.verify_connectivity = AsyncMock()
    driver.close = AsyncMock()
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    driver.session = MagicMock(return_value=context)
    return driver


@pytest.mark.asyncio
async def test_execute_read_uses_read_transaction_on_configured_database():
    session = MagicMock()
    session.execute_read = AsyncMock(return_value=[{"aclId": "acl-1"}])
    driver = _driver(session)
    client = Neo4jClient("bolt://graph:7687", "neo4j", "secret", database="acls")

    with patch(
        "aclgraph.core.acl.infrastructure.neo4j_client.AsyncGraphDatabase.driver",
        return_value=driver,
    ):
        rows = await client.execute_read("MATCH (n) RETURN n", {"aclId1": "acl-1"})

    assert rows == [{"aclId": "acl-1"}]
    driver.verify_connectivity.assert_awaited_once()
    driver.session.assert_called_once_with(database="acls")
    args = session.execute_read.call_args.args
    assert args[1:] == ("MATCH (n) RETURN n", {"aclId1": "acl-1"})


@pytest.mark.asyncio
async def test_execute_tx_collects_every_record():
    tx = MagicMock()
    tx.run = AsyncMock(return_value=_Result([{"aceId": "e1"}, {"aceId": "e2"}]))
    client = Neo4jClient("bolt://graph:7687", "neo4j", "secret")

    rows = await client._execute_tx(tx, "RETURN 1")

    tx.run.assert_awaited_once_with("RETURN 1", {})
    assert rows == [{"aceId": "e1"}, {"aceId": "e2"}]


@pytest.mark.asyncio
async def test_transaction_errors_propagate():
    session = MagicMock()
    session.execute_read = AsyncMock(side_effect=RuntimeError("connection reset"))
    client = Neo4jClient("bolt://graph:7687", "neo4j", "secret")
    client._driver = _driver(session)

    with pytest.raises(RuntimeError, match="connection reset"):
        await client.execute_read("RETURN 1")


@pytest.mark.asyncio
async def test_close_releases_driver():
    client = Neo4jClient("bolt://graph:7687", "neo4j", "secret")
    driver = _driver(MagicMock())
    client._driver = driver

    await client.close()

    driver.close.assert_awaited_once()
    assert client._driver is None


def test_missing_arguments_read_from_settings():
    configure_settings(
        SimpleNamespace(
            db=SimpleNamespace(
                neo4j_uri="bolt://configured:7687",
                neo4j_user="reader",
                neo4j_password="pw",
                neo4j_database="acls",
            )
        )
    )

    client = Neo4jClient()

    assert (client.uri, client.user, client.password, client.database) == (
        "bolt://configured:7687",
        "reader",
        "pw",
        "acls",
    )
