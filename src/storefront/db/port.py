from typing import Any, Dict, List, Literal, Optional, Protocol

Document = Dict[str, Any]
SortOrder = Literal["asc", "desc"]


class DocumentStore(Protocol):
    """
    Generic per-collection document storage the stores are written against.

    Implementations assign ``id`` on create and raise NotFoundError for
    unknown ids and TransportError when the backend itself fails.
    """

    async def create(self, collection: str, doc: Document) -> Document: ...

    async def get(self, collection: str, doc_id: str) -> Document: ...

    async def update(self, collection: str, doc_id: str, doc: Document) -> Document: ...

    async def delete(self, collection: str, doc_id: str) -> None: ...

    async def list(
        self,
        collection: str,
        where: Optional[Dict[str, Any]] = None,
        sort: Optional[str] = None,
        order: SortOrder = "asc",
    ) -> List[Document]: ...

    async def close(self) -> None: ...
