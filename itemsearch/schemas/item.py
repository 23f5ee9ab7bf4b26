"""Item document schema - what gets stored in and read back from the index."""

from typing import Any

from pydantic import BaseModel, Field


class Item(BaseModel):
    id: int
    title: str
    category: str
    brand: str
    price: float = Field(ge=0)
    image_url: str | None = None

    def to_document(self) -> dict[str, Any]:
        """Index payload. The Elasticsearch document id is ``str(self.id)``."""
        return self.model_dump(mode="json")

    @property
    def document_id(self) -> str:
        return str(self.id)


class BulkFailure(BaseModel):
    id: str
    reason: str


class BulkIndexResponse(BaseModel):
    indexed: int
    failed: list[BulkFailure] = []


class ImportResponse(BaseModel):
    task_id: str
    submitted: int
