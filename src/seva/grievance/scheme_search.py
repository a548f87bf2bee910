"""Search over the government scheme portal (myscheme.gov.in)."""

from typing import Any, Dict, Optional

import httpx

from seva.core.config import Settings
from seva.core.exceptions import SchemeSearchError
from seva.core.logger import get_logger

logger = get_logger(__name__)

SCHEME_SITE = "myscheme.gov.in"


class SchemeSearchClient:
    """Client of the scheme search service.

    The service receives a query restricted to the scheme portal and returns the matching
    pages, including their ``pageContent``.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        max_results: int = 5,
    ) -> None:
        self.endpoint = endpoint
        self.max_results = max_results
        self._api_key = api_key
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(
        cls, settings: Settings, http_client: Optional[httpx.AsyncClient] = None
    ) -> "SchemeSearchClient":
        settings.require("scheme_search_url")
        return cls(
            endpoint=settings.scheme_search_url,  # type: ignore[arg-type]
            api_key=settings.scheme_search_api_key,
            http_client=http_client,
            timeout=settings.http_timeout,
        )

    async def search(self, query: str) -> Dict[str, Any]:
        """Search the scheme portal.

        Args:
            query: Search query.

        Returns:
            The search response, ``{"success": True, "results": [...]}``.

        Raises:
            SchemeSearchError: If the service is unreachable or answers with an error.
        """
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
        payload = {"query": query, "site": SCHEME_SITE, "max_results": self.max_results}

        try:
            response = await self._http.post(self.endpoint, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise SchemeSearchError(f"Scheme search request failed: {exc}") from exc

        if response.is_error:
            raise SchemeSearchError(
                f"Scheme search failed with status {response.status_code}", status_code=response.status_code
            )

        body = response.json()
        results = body.get("results", []) if isinstance(body, dict) else body
        logger.debug(f"Scheme search for {query!r} returned {len(results)} result(s).")
        return {"success": True, "results": results}

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()
