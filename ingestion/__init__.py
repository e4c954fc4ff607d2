"""
Ingestion component: uploaded text to user-scoped document chunks.
"""

__version__ = "1.0.0"

from .config import IngestionConfig
from .extractor import DocumentExtractor, PlainTextExtractor
from .manifest import FileManifestStore
from .models import (
    DeleteResult,
    FileManifestEntry,
    IngestionResult,
    IngestRequest,
    SourceDocument,
)
from .service import IngestionService

__all__ = [
    "__version__",
    "IngestionConfig",
    "IngestionService",
    "FileManifestStore",
    "DocumentExtractor",
    "PlainTextExtractor",
    "SourceDocument",
    "IngestRequest",
    "IngestionResult",
    "DeleteResult",
    "FileManifestEntry",
]
