"""
Ingestion Service - uploaded documents to searchable chunks

Steps, strictly in this order:
1. Tag each document with {source: filename, user: user_id}
2. Split each document; every chunk gets a copy of the tags
3. Embed and append all chunks to the "documents" collection
4. Upsert one manifest row per filename

The manifest and the vector store are two independent writes. If step 4
fails after step 3 succeeded, the vectors stay and the failure is reported
on the result instead of being retried.

Usage:
    service = IngestionService(store, FileManifestStore("data/manifest.json"))
    result = service.ingest("u1", [SourceDocument(text="...", filename="report.pdf")])
    service.delete_file("u1", "report.pdf")
"""

import logging
import time
from typing import Optional

from chunking import TextChunker
from core.auth import require_user
from core.exceptions import StorageFailure, ValidationFailure
from vector_store.models import DOCUMENTS, SOURCE_KEY, USER_KEY
from vector_store.store import VectorStore

from .config import IngestionConfig
from .manifest import FileManifestStore
from .models import DeleteResult, FileManifestEntry, IngestionResult, SourceDocument

logger = logging.getLogger(__name__)


class IngestionService:
    def __init__(
        self,
        store: VectorStore,
        manifest: FileManifestStore,
        config: Optional[IngestionConfig] = None,
        chunker: Optional[TextChunker] = None,
    ):
        self.config = config or IngestionConfig()
        self.store = store
        self.manifest = manifest
        self.chunker = chunker or TextChunker(self.config.chunking)

    def ingest(self, user_id: Optional[str], documents: list[SourceDocument]) -> IngestionResult:
        """
        Chunk, embed and store documents for a user.

        Returns:
            IngestionResult with the number of stored chunks.

        Raises:
            AuthRequired: No user.
            ValidationFailure: Empty document set or a document without text.
            EmbeddingFailure / StorageFailure: From the vector store; nothing
                is recorded in the manifest in that case.
        """
        user_id = require_user(user_id)
        if not documents:
            raise ValidationFailure("No documents to ingest", field="documents")

        start = time.time()

        # Step 1 + 2: tag and split
        chunks = []
        filenames: list[str] = []
        for document in documents:
            filename = document.filename.strip()
            if not filename:
                raise ValidationFailure("Every document needs a filename", field="filename")

            metadata = {**document.metadata, SOURCE_KEY: filename, USER_KEY: user_id}
            document_chunks = self.chunker.split_document(document.text, metadata)
            if not document_chunks:
                raise ValidationFailure(f"Document '{filename}' contains no text", field="text")

            chunks.extend(document_chunks)
            if filename not in filenames:
                filenames.append(filename)

        logger.info(f"Split {len(documents)} document(s) into {len(chunks)} chunks for user {user_id}")

        # Snapshot the chunks being replaced; they are dropped only after
        # the new ones are stored.
        previous: dict[str, list[str]] = {}
        if self.config.replace_existing:
            for filename in filenames:
                previous[filename] = self.store.record_ids(
                    DOCUMENTS, {SOURCE_KEY: filename, USER_KEY: user_id}
                )

        # Step 3: embed + store
        inserted = self.store.add(DOCUMENTS, chunks)

        for filename, record_ids in previous.items():
            removed = self.store.delete_ids(DOCUMENTS, record_ids)
            if removed:
                logger.info(f"Replaced {removed} previous chunks of '{filename}'")

        # Step 4: manifest (best effort)
        manifest_error = None
        try:
            self.manifest.upsert(
                FileManifestEntry(user=user_id, filename=filename) for filename in filenames
            )
        except StorageFailure as e:
            manifest_error = e.public_message
            logger.warning(f"Stored {inserted} chunks but the file manifest was not updated: {e}")

        logger.info(f"Ingested {inserted} chunks from {filenames} in {time.time() - start:.2f}s")
        return IngestionResult(
            success=True,
            records_inserted=inserted,
            files=filenames,
            manifest_error=manifest_error,
        )

    def delete_file(self, user_id: Optional[str], filename: str) -> DeleteResult:
        """
        Remove a file's manifest row and every chunk stored for it.

        The two removals are independent; a failure in the second leaves
        the first in place.
        """
        user_id = require_user(user_id)
        if not filename or not filename.strip():
            raise ValidationFailure("Filename must not be empty", field="filename")
        filename = filename.strip()

        manifest_removed = self.manifest.remove(user_id, filename)
        deleted = self.store.delete(DOCUMENTS, {SOURCE_KEY: filename, USER_KEY: user_id})

        logger.info(f"Deleted '{filename}' for user {user_id}: {deleted} chunks")
        return DeleteResult(
            filename=filename,
            records_deleted=deleted,
            manifest_removed=manifest_removed,
        )

    def list_files(self, user_id: Optional[str]) -> list[FileManifestEntry]:
        user_id = require_user(user_id)
        return self.manifest.list_files(user_id)
