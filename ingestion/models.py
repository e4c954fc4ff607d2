from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field


class SourceDocument(BaseModel):
    """Plain text of one uploaded file, as produced by a DocumentExtractor."""
    text: str
    filename: str = Field(..., min_length=1)
    metadata: dict[str, Any] = Field(default_factory=dict)


class IngestRequest(BaseModel):
    documents: list[SourceDocument] = Field(default_factory=list)


class IngestionResult(BaseModel):
    success: bool = True
    records_inserted: int = 0
    files: list[str] = Field(default_factory=list)
    manifest_error: Optional[str] = None


class DeleteResult(BaseModel):
    filename: str
    records_deleted: int = 0
    manifest_removed: bool = False


class FileManifestEntry(BaseModel):
    user: str
    filename: str
    uploaded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
