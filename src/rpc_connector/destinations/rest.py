"""Generic JSON REST destination."""

import asyncio
from typing import Any, Collection, Dict, Optional, Set
from urllib.parse import quote

import aiohttp

from .base import (
    BaseDestination,
    RateLimitError,
    AuthenticationError,
    APIConnectionError,
    AmbiguousWriteError,
)
from ..config.schema import DestinationConfig
from ..schema.models import DestinationField, DestinationObject, Operation
from ..utils.logging import log_async_execution_time


class RestDestination(BaseDestination):
    """Destination reached through a conventional JSON REST API.

    Resources are addressed as ``{base_url}/{object}`` and
    ``{base_url}/{object}/{identifier}``:

    - ``GET`` on a record checks existence (404 means absent)
    - ``POST`` on the collection inserts
    - ``PATCH`` on a record updates
    - ``PUT`` on a record upserts
    """

    def __init__(
        self,
        definition: DestinationConfig,
        base_url: str,
        api_key: str = "",
        timeout_seconds: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
        max_concurrent_lookups: int = 10,
        **kwargs
    ):
        """Initialize REST destination.

        Args:
            definition: Objects, fields and operations the API exposes
            base_url: Base API URL
            api_key: Bearer token sent with every request
            timeout_seconds: Per-request timeout
            session: Optional pre-built client session
            max_concurrent_lookups: Parallel existence checks per batch
            **kwargs: Additional configuration parameters
        """
        super().__init__(definition, **kwargs)

        if not base_url:
            raise ValueError("base_url is required for the REST destination")

        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.session = session
        self._owns_session = session is None
        self.max_concurrent_lookups = max_concurrent_lookups

        self.logger.info(
            "REST destination initialized",
            base_url=self.base_url,
            timeout_seconds=timeout_seconds
        )

    async def __aenter__(self):
        """Async context manager entry."""
        self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        if self.session and self._owns_session and not self.session.closed:
            await self.session.close()

    @log_async_execution_time
    async def test_connection(self) -> None:
        try:
            async with self._get_session().get(self.base_url, headers=self._headers()) as response:
                self._raise_for_status(response, await response.text())
        except aiohttp.ClientError as e:
            raise APIConnectionError(f"Network error: {e}")
        except asyncio.TimeoutError:
            raise APIConnectionError("Timed out connecting to destination")

    async def find_existing(
        self,
        obj: DestinationObject,
        identifier_field: DestinationField,
        identifiers: Collection[Any]
    ) -> Set[Any]:
        identifiers = list(identifiers)
        semaphore = asyncio.Semaphore(self.max_concurrent_lookups)

        async def lookup(identifier):
            async with semaphore:
                return await self._exists(obj, identifier)

        found = await asyncio.gather(*(lookup(identifier) for identifier in identifiers))
        return {identifier for identifier, exists in zip(identifiers, found) if exists}

    async def write_record(
        self,
        obj: DestinationObject,
        operation: Operation,
        identifier_field: DestinationField,
        identifier: Any,
        payload: Dict[str, Any]
    ) -> bool:
        if operation == Operation.INSERT:
            method, url = "POST", self._collection_url(obj)
        elif operation == Operation.UPDATE:
            method, url = "PATCH", self._record_url(obj, identifier)
        else:
            method, url = "PUT", self._record_url(obj, identifier)

        try:
            async with self._get_session().request(
                method, url, json=payload, headers=self._headers()
            ) as response:
                body = await response.text()
                self._raise_for_status(response, body)
                return 200 <= response.status < 300
        except aiohttp.ClientConnectorError as e:
            # Nothing reached the destination
            raise APIConnectionError(f"Network error: {e}")
        except aiohttp.ClientError as e:
            raise AmbiguousWriteError(f"Write outcome unknown: {e}")
        except asyncio.TimeoutError:
            raise AmbiguousWriteError("Timed out waiting for the destination to confirm the write")

    async def _exists(self, obj: DestinationObject, identifier: Any) -> bool:
        try:
            async with self._get_session().get(
                self._record_url(obj, identifier), headers=self._headers()
            ) as response:
                if response.status == 404:
                    return False
                self._raise_for_status(response, await response.text())
                return True
        except aiohttp.ClientError as e:
            raise APIConnectionError(f"Network error: {e}")
        except asyncio.TimeoutError:
            raise APIConnectionError("Timed out checking record existence")

    def _raise_for_status(self, response: aiohttp.ClientResponse, body: str) -> None:
        status = response.status
        if status in (401, 403):
            raise AuthenticationError(f"Destination rejected credentials ({status})")
        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                "Destination rate limit exceeded",
                int(retry_after) if retry_after and retry_after.isdigit() else None
            )
        if status >= 400:
            raise APIConnectionError(f"Destination request failed: {status} - {body[:200]}")

    def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self.session

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _collection_url(self, obj: DestinationObject) -> str:
        return f"{self.base_url}/{quote(obj.api_name, safe='')}"

    def _record_url(self, obj: DestinationObject, identifier: Any) -> str:
        return f"{self._collection_url(obj)}/{quote(str(identifier), safe='')}"
