"""Azure Cosmos DB client for chunk and upload storage."""

import uuid
from typing import Any, Dict, Optional

from azure.cosmos.aio import CosmosClient
from azure.cosmos.aio._container import ContainerProxy
from azure.cosmos.aio._database import DatabaseProxy
from azure.cosmos.exceptions import CosmosResourceNotFoundError


class CosmosDBClient:
    """Async Cosmos DB client with connection management.

    Uses the NoSQL API. One client holds a single account connection and any
    number of containers inside one database; containers are registered with
    their partition key path and created on connect if missing.
    Supports async context manager pattern for proper resource cleanup.
    """

    def __init__(
        self,
        connection_string: str,
        database_name: str,
        containers: Dict[str, str],
    ):
        """Initialize the Cosmos DB client.

        Args:
            connection_string: Cosmos DB account connection string
                ("AccountEndpoint=...;AccountKey=...;")
            database_name: Name of the database to use
            containers: Mapping of container name to partition key path
        """
        self._connection_string = connection_string
        self._database_name = database_name
        self._container_specs = dict(containers)

        self._client: Optional[CosmosClient] = None
        self._database: Optional[DatabaseProxy] = None
        self._containers: Dict[str, ContainerProxy] = {}

    async def connect(self) -> None:
        """Establish connection and ensure database/containers exist."""
        self._client = CosmosClient.from_connection_string(self._connection_string)
        await self._client.__aenter__()

        # Get or create database
        try:
            self._database = self._client.get_database_client(self._database_name)
            # Verify database exists by reading it
            await self._database.read()
        except CosmosResourceNotFoundError:
            self._database = await self._client.create_database(self._database_name)

        # Get or create containers
        for container_name, partition_key_path in self._container_specs.items():
            try:
                container = self._database.get_container_client(container_name)
                # Verify container exists by reading it
                await container.read()
            except CosmosResourceNotFoundError:
                container = await self._database.create_container(
                    id=container_name,
                    partition_key={"paths": [partition_key_path], "kind": "Hash"},
                )
            self._containers[container_name] = container

    async def close(self) -> None:
        """Close the Cosmos DB connection."""
        if self._client:
            await self._client.close()
            self._client = None
            self._database = None
            self._containers = {}

    async def __aenter__(self) -> "CosmosDBClient":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        """Async context manager exit with cleanup."""
        await self.close()
        return False

    def _container(self, container_name: str) -> ContainerProxy:
        container = self._containers.get(container_name)
        if container is None:
            raise RuntimeError(
                f"CosmosDB container '{container_name}' not available. Call connect() first."
            )
        return container

    async def ping(self) -> None:
        """Read the database properties; raises if the account is unreachable."""
        if self._database is None:
            raise RuntimeError("CosmosDB client not connected. Call connect() first.")
        await self._database.read()

    async def upsert_item(self, container_name: str, item: dict[str, Any]) -> dict[str, Any]:
        """Insert or update an item in a container.

        Args:
            container_name: Target container.
            item: Dictionary containing the item data. Must include 'id' field
                  or one will be generated. Must include the partition key field.

        Returns:
            The upserted item with any system-generated fields.

        Raises:
            RuntimeError: If client is not connected.
        """
        container = self._container(container_name)

        # Ensure item has an id
        if "id" not in item:
            item["id"] = str(uuid.uuid4())

        result = await container.upsert_item(body=item)
        return dict(result)

    async def query_items(
        self,
        container_name: str,
        query: str,
        parameters: Optional[list[dict[str, Any]]] = None,
        partition_key: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Query items from a container.

        Args:
            container_name: Container to query.
            query: SQL query string
            parameters: Optional query parameters as list of {"name": "@param", "value": value}
            partition_key: Optional partition key to scope the query

        Returns:
            List of matching items.
        """
        container = self._container(container_name)

        query_options = {}
        if partition_key is not None:
            query_options["partition_key"] = partition_key

        items = []
        async for item in container.query_items(
            query=query,
            parameters=parameters,
            **query_options,
        ):
            items.append(dict(item))

        return items

    async def delete_item(self, container_name: str, item_id: str, partition_key: str) -> None:
        """Delete an item by id and partition key.

        Raises:
            CosmosResourceNotFoundError: If item not found.
        """
        container = self._container(container_name)
        await container.delete_item(item=item_id, partition_key=partition_key)
