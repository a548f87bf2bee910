"""HTTP client for the grievance redress (GRM) backend."""

from typing import Any, Dict, Optional

import httpx

from seva.core.config import Settings
from seva.core.exceptions import GrievanceApiError
from seva.core.logger import get_logger

logger = get_logger(__name__)


class GrmClient:
    """
    Client for the GRM backend: grievance classification and grievance creation.

    Every request carries the bearer token; a non-2xx answer raises
    :class:`GrievanceApiError` with the backend's ``message`` when it sends one, and so
    does a request that never got an answer.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        user_id: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL of the backend, without trailing slash.
            token: Bearer token.
            user_id: Account grievances are filed for.
            http_client: Shared client; a private one is created (and owned) when None.
            timeout: Request timeout in seconds for the private client.
        """
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self._token = token
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings, http_client: Optional[httpx.AsyncClient] = None) -> "GrmClient":
        settings.require("grm_api_url")
        return cls(
            base_url=settings.grm_api_url,  # type: ignore[arg-type]
            token=settings.grm_api_token,
            user_id=settings.user_id,
            http_client=http_client,
            timeout=settings.http_timeout,
        )

    async def classify(self, grievance_text: str) -> Any:
        """Ask the backend for the department, category and subcategory of a grievance."""
        return await self._post("/category", {"grievance_text": grievance_text}, "Failed to classify grievance")

    async def create_grievance(
        self,
        title: str,
        description: str,
        category: str,
        cpgrams_category: str,
        priority: str,
    ) -> Any:
        """File a grievance for the configured user."""
        payload = {
            "title": title,
            "description": description,
            "user_id": self.user_id,
            "category": category,
            "priority": priority,
            "cpgrams_category": cpgrams_category,
        }
        return await self._post("/grievances", payload, "Failed to submit grievance")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _post(self, path: str, payload: Dict[str, Any], default_error: str) -> Any:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        logger.debug(f"POST {self.base_url}{path}")
        try:
            response = await self._http.post(f"{self.base_url}{path}", json=payload, headers=headers)
        except httpx.HTTPError as exc:
            logger.error(f"GRM backend request to {path} failed: {exc}")
            raise GrievanceApiError(f"{default_error}: {exc}") from exc

        if response.is_error:
            message = self._error_message(response) or default_error
            logger.error(f"GRM backend answered {response.status_code} for {path}: {message}")
            raise GrievanceApiError(message, status_code=response.status_code)
        return response.json()

    @staticmethod
    def _error_message(response: httpx.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            return body["message"]
        return None
