# document store speaking the json-server REST dialect over aiohttp
import asyncio
from typing import Any, Dict, List, Optional

import aiohttp

from storefront.db.port import Document, SortOrder
from storefront.utils.errors import NotFoundError, TransportError
from storefront.utils.logger import get_logger

_logger = get_logger(__name__)


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class RestDocumentStore:
    """
    DocumentStore for a json-server style API.

    One ClientSession is created lazily and reused for every request.
    Failures are never retried: they surface as TransportError (or
    NotFoundError for a 404 on a single record) and are logged here once.
    """

    def __init__(self, base_url: str, timeout: Optional[float] = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Document] = None,
        params: Optional[Dict[str, str]] = None,
        missing: Optional[tuple] = None,
    ):
        """Perform one request and return the decoded JSON body.

        ``missing`` is a (collection, id) pair; when given, a 404 becomes a
        NotFoundError instead of a TransportError.
        """
        url = f"{self.base_url}{endpoint}"
        session = await self.get_session()
        try:
            async with session.request(method, url, json=data, params=params) as response:
                if response.status == 404 and missing is not None:
                    raise NotFoundError(*missing)
                if response.status >= 400:
                    error_text = await response.text()
                    _logger.error(f"API error {response.status} for {method} {url}: {error_text}")
                    raise TransportError(
                        f"{method} {url} failed with status {response.status}",
                        response.status,
                    )
                if response.content_type != "application/json":
                    return None
                return await response.json()
        except asyncio.TimeoutError as e:
            _logger.error(f"Timeout: no response within {self.timeout}s for {method} {url}")
            raise TransportError(f"Timeout calling {url}", 504) from e
        except aiohttp.ClientConnectorError as e:
            _logger.error(f"Connection error: cannot connect to {url}")
            raise TransportError(f"Cannot connect to {url}") from e
        except aiohttp.ClientError as e:
            _logger.error(f"Client error for {url}: {type(e).__name__}: {e}")
            raise TransportError(f"{type(e).__name__} calling {url}: {e}") from e

    def _expect_document(self, body, method: str, endpoint: str) -> Document:
        if not isinstance(body, dict) or not body:
            _logger.error(f"{method} {self.base_url}{endpoint} returned no JSON document")
            raise TransportError(f"{method} {endpoint} returned no JSON document")
        return body

    async def create(self, collection: str, doc: Document) -> Document:
        endpoint = f"/{collection}"
        body = await self._request("POST", endpoint, data=doc)
        return self._expect_document(body, "POST", endpoint)

    async def get(self, collection: str, doc_id: str) -> Document:
        endpoint = f"/{collection}/{doc_id}"
        body = await self._request("GET", endpoint, missing=(collection, doc_id))
        return self._expect_document(body, "GET", endpoint)

    async def update(self, collection: str, doc_id: str, doc: Document) -> Document:
        body = {**doc, "id": doc_id}
        result = await self._request(
            "PUT", f"/{collection}/{doc_id}", data=body, missing=(collection, doc_id)
        )
        return result if result is not None else body

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._request(
            "DELETE", f"/{collection}/{doc_id}", missing=(collection, doc_id)
        )

    async def list(
        self,
        collection: str,
        where: Optional[Dict[str, Any]] = None,
        sort: Optional[str] = None,
        order: SortOrder = "asc",
    ) -> List[Document]:
        params = {field: _query_value(value) for field, value in (where or {}).items()}
        if sort:
            params["_sort"] = sort
            params["_order"] = order
        return await self._request("GET", f"/{collection}", params=params or None) or []
