"""GraphQL Analytics client.

The engine's only I/O boundary is the ``QueryExecutor`` protocol:
``await executor.execute(query, variables)`` returns the decoded JSON
payload (``data`` and optional ``errors``) and raises on transport failure.
``GraphQLClient`` implements it over httpx; tests substitute in-memory fakes.
"""

import logging
from collections.abc import Mapping
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

GRAPHQL_ENDPOINT = "https://api.cloudflare.com/client/v4/graphql"


class QueryTransportError(Exception):
    """The query could not be delivered or its response could not be read."""


class GraphQLQueryError(Exception):
    """The backend answered but reported errors for the query."""

    def __init__(self, messages: list[str]):
        self.messages = messages
        super().__init__(", ".join(messages) or "GraphQL query failed")


class GraphQLErrorDetail(BaseModel):
    message: str = "Unknown error"
    path: list[str | int] | None = None


class GraphQLResponse(BaseModel):
    """Decoded GraphQL response envelope."""

    data: dict[str, Any] | None = None
    errors: list[GraphQLErrorDetail] | None = Field(default=None)

    def raise_for_errors(self) -> None:
        if self.errors:
            raise GraphQLQueryError([error.message for error in self.errors])


class QueryExecutor(Protocol):
    """Anything that can run a GraphQL query and return the raw payload."""

    async def execute(self, query: str, variables: Mapping[str, Any]) -> dict[str, Any]: ...


class GraphQLClient:
    """httpx-backed GraphQL Analytics client.

    Usage:
        async with GraphQLClient(api_token) as client:
            payload = await client.execute(query, {"accountTag": account_id})
    """

    def __init__(
        self,
        api_token: str,
        *,
        endpoint: str = GRAPHQL_ENDPOINT,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._endpoint = endpoint
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def execute(self, query: str, variables: Mapping[str, Any]) -> dict[str, Any]:
        """POST a query and return the decoded payload.

        Raises:
            QueryTransportError: Network failure, non-2xx status or invalid JSON
        """
        try:
            response = await self._client.post(
                self._endpoint,
                json={"query": query, "variables": dict(variables)},
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise QueryTransportError(f"GraphQL request failed: {e}") from e

        if not response.is_success:
            raise QueryTransportError(
                f"GraphQL request failed: {response.status_code} {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise QueryTransportError(f"GraphQL response was not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise QueryTransportError("GraphQL response was not a JSON object")
        return payload

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "GraphQLClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


# =============================================================================
# DATASET DISCOVERY
# =============================================================================

INTROSPECTION_QUERY = """
query DatasetDiscovery {
  __schema {
    types {
      name
      fields {
        name
      }
    }
  }
}
"""

VIEWER_TYPES = ("AccountsViewer", "ZonesViewer")


async def discover_datasets(executor: QueryExecutor) -> dict[str, list[str]]:
    """List the datasets available per viewer type via schema introspection.

    Returns:
        Mapping of viewer type name to sorted dataset names

    Raises:
        QueryTransportError: Transport failure
        GraphQLQueryError: Introspection rejected by the backend
    """
    response = GraphQLResponse.model_validate(await executor.execute(INTROSPECTION_QUERY, {}))
    response.raise_for_errors()

    types = (response.data or {}).get("__schema", {}).get("types") or []
    datasets: dict[str, list[str]] = {}
    for type_info in types:
        if type_info.get("name") in VIEWER_TYPES:
            fields = type_info.get("fields") or []
            datasets[type_info["name"]] = sorted(field["name"] for field in fields)

    logger.info(
        "Discovered datasets: %s",
        ", ".join(f"{name}={len(names)}" for name, names in datasets.items()),
    )
    return datasets
