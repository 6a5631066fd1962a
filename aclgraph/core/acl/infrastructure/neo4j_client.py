import logging
from typing import Any

from neo4j import AsyncDriver, AsyncGraphDatabase, AsyncManagedTransaction, basic_auth

from aclgraph.shared.kernel.observability import trace_span
from aclgraph.shared.kernel.runtime import get_settings

logger = logging.getLogger(__name__)


class Neo4jClient:
    """
    Async read-only client for the Neo4j ACL graph.
    Handles connection pooling and read transactions.
    """

    _driver: AsyncDriver | None = None

    def __init__(
        self,
        uri: str | None = None,
        user: str | None = None,
        password: str | None = None,
        database: str | None = None,
    ):
        """
        Initialize Neo4j client.

        Args:
            uri: Neo4j connection URI. If None, reads from the configured settings.
            user: Neo4j username. If None, reads from the configured settings.
            password: Neo4j password. If None, reads from the configured settings.
            database: Target database. None uses the server default.
        """
        if uri is None or user is None or password is None:
            settings = get_settings()
            uri = uri or settings.db.neo4j_uri
            user = user or settings.db.neo4j_user
            password = password if password is not None else settings.db.neo4j_password
            database = database or settings.db.neo4j_database

        self.uri = uri
        self.user = user
        self.password = password
        self.database = database
        self._driver = None

    async def connect(self):
        """Establish connection to Neo4j."""
        if not self._driver:
            try:
                self._driver = AsyncGraphDatabase.driver(
                    self.uri,
                    auth=basic_auth(self.user, self.password)
                )
                await self._driver.verify_connectivity()
                logger.info("Connected to Neo4j at %s", self.uri)
            except Exception as e:
                logger.error("Failed to connect to Neo4j: %s", str(e))
                raise

    async def close(self):
        """Close the Neo4j driver connection."""
        if self._driver:
            await self._driver.close()
            self._driver = None
            logger.info("Neo4j connection closed")

    async def get_driver(self) -> AsyncDriver:
        """Get or create the driver instance."""
        if not self._driver:
            await self.connect()
        return self._driver

    @trace_span("Neo4j.execute_read")
    async def execute_read(self, query: str, parameters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """
        Execute a read-only transaction.

        The result is consumed completely inside the transaction, so the
        session is released before the caller can issue another query.

        Args:
            query: Cypher query string
            parameters: Query parameters

        Returns:
            List of records as dictionaries
        """
        driver = await self.get_driver()

        async with driver.session(database=self.database) as session:
            try:
                return await session.execute_read(self._execute_tx, query, parameters)
            except Exception as e:
                logger.error("Read transaction failed: %s", str(e))
                raise

    async def _execute_tx(
        self,
        tx: AsyncManagedTransaction,
        query: str,
        parameters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Helper to run transaction and collect results."""
        result = await tx.run(query, parameters or {})
        return [record.data() async for record in result]
