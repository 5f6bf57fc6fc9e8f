"""
Blueprint persistence client.

The authoritative copy of every blueprint lives in an external REST service.
This module exposes the two operations the relay needs from it:

- append a point to a blueprint
- fetch the full blueprint, unwrapped from the service's response envelope

No call is retried here: a duplicated append would duplicate the point.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)


class BlueprintStoreException(Exception):
    """Raised when the persistence service cannot complete a request"""
    pass


class BlueprintStore(ABC):
    """Abstract interface for blueprint persistence."""

    @property
    @abstractmethod
    def kind(self) -> str:
        """Backend identifier (e.g., 'http', 'memory')."""
        pass

    @abstractmethod
    async def append_point(self, author: str, name: str, point: Dict[str, float]) -> None:
        """
        Add a point to a blueprint's point sequence.

        Raises:
            BlueprintStoreException: on network, timeout or remote rejection
        """
        pass

    @abstractmethod
    async def fetch_blueprint(self, author: str, name: str) -> Optional[Any]:
        """
        Fetch the current blueprint.

        Returns:
            The blueprint payload, or None if the service has no data for it

        Raises:
            BlueprintStoreException: on network, timeout or HTTP error
        """
        pass

    async def close(self) -> None:
        """Release any held resources."""
        pass


def blueprint_path(author: str, name: str) -> str:
    """Build the REST path for a blueprint, escaping both segments."""
    return f"/api/v1/blueprints/{quote(author, safe='')}/{quote(name, safe='')}"


def unwrap_envelope(body: Any) -> Optional[Any]:
    """
    Extract the payload from a `{status, message, data, timestamp}` envelope.

    A missing or null `data` field means the blueprint does not exist yet.
    """
    if not isinstance(body, dict):
        return None
    return body.get("data")


def _describe_error(exc: Exception) -> str:
    """Prefer the remote envelope's message over the transport's own."""
    response = getattr(exc, "response", None)
    if response is not None:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
    return str(exc) or exc.__class__.__name__


class HttpBlueprintStore(BlueprintStore):
    """
    Blueprint store backed by the blueprints REST API.

    Holds a single httpx.AsyncClient for the process lifetime; it is created on
    first use unless one is injected (tests pass a client with a MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    @property
    def kind(self) -> str:
        return "http"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def append_point(self, author: str, name: str, point: Dict[str, float]) -> None:
        url = f"{blueprint_path(author, name)}/points"
        try:
            response = await self._get_client().put(url, json=point)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise BlueprintStoreException(_describe_error(e)) from e

    async def fetch_blueprint(self, author: str, name: str) -> Optional[Any]:
        url = blueprint_path(author, name)
        try:
            response = await self._get_client().get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise BlueprintStoreException(_describe_error(e)) from e

        try:
            body = response.json()
        except ValueError as e:
            raise BlueprintStoreException(f"Invalid JSON from blueprints API: {e}") from e
        return unwrap_envelope(body)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Blueprints API client closed")
