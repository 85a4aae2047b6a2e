"""Photo catalog API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class CatalogClient(Protocol):
    """Interface for the external photo-info lookup."""

    async def get_photo_info(self, photo_id: str) -> dict[str, object]:
        """Return the raw photo record, including its size to price map."""


@dataclass
class HttpxCatalogClient(CatalogClient):
    """HTTPX-backed catalog client."""

    base_url: str
    http_client: httpx.AsyncClient
    api_key: str | None = None

    @classmethod
    def create(cls, base_url: str, api_key: str | None = None) -> "HttpxCatalogClient":
        """Create a catalog client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            api_key=api_key,
        )

    async def get_photo_info(self, photo_id: str) -> dict[str, object]:
        """Fetch one photo record."""
        headers = {"x-api-key": self.api_key} if self.api_key else None
        response = await self.http_client.post(
            f"{self.base_url}/photo_info",
            json={"id": photo_id},
            headers=headers,
            timeout=10,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
