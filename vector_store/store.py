"""
Vector Store - ChromaDB-backed record storage with exact similarity search

Manages the two logical collections of the assistant:
- documents: chunks of uploaded files
- messages: past chat turns, used as long-term semantic memory

Design:
- ChromaDB (PersistentClient, or EphemeralClient for tests) persists
  embeddings, texts and flat metadata
- Ranking is an exact cosine scan in numpy over every record that matches
  the metadata filter; Chroma's approximate index is never used for ranking
- Ties (score difference below SCORE_EPSILON) go to the earlier insertion,
  tracked with a store-wide sequence number kept in the metadata
- Append-only: add never overwrites, delete removes by metadata predicate

Usage:
    from vector_store import VectorStore, StoreConfig, DOCUMENTS

    store = VectorStore(embedder, StoreConfig())
    store.add(DOCUMENTS, [{"text": "...", "metadata": {"source": "a.pdf", "user": "u1"}}])
    hits = store.similarity_search(DOCUMENTS, "question", k=4, where={"user": "u1"})
"""

import json
import logging
import threading
import uuid
from collections.abc import Mapping
from functools import cmp_to_key
from typing import Any, Iterable, Optional

import chromadb
import numpy as np
from pydantic import ValidationError

from core.exceptions import EmbeddingFailure, StorageFailure, ValidationFailure

from .embedder import EmbeddingProvider
from .models import USER_KEY, RecordInput, SearchResult, StoreConfig

logger = logging.getLogger(__name__)

SEQUENCE_KEY = "record_seq"
SCORE_EPSILON = 1e-9

_SCALAR_TYPES = (str, int, float, bool)


class VectorStore:
    """
    Per-collection vector storage with user-scoped similarity search.

    All public methods are safe to call from several threads at once.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        config: Optional[StoreConfig] = None,
        chroma_client: Optional[chromadb.ClientAPI] = None,
    ):
        """
        Initialize the vector store.

        Args:
            embedder: Provider used for record texts and queries.
            config: Store configuration. Uses defaults if not provided.
            chroma_client: Optional pre-created ChromaDB client (for testing).
        """
        self.config = config or StoreConfig()
        self._embedder = embedder

        try:
            if chroma_client is not None:
                self._client = chroma_client
            elif self.config.in_memory:
                self._client = chromadb.EphemeralClient()
            else:
                self._client = chromadb.PersistentClient(path=self.config.persist_directory)

            self._collections = {
                name: self._client.get_or_create_collection(
                    name=self.config.physical_name(name),
                    metadata={"hnsw:space": "cosine"},
                )
                for name in self.config.collections
            }
        except Exception as e:
            raise StorageFailure("open", e) from e

        self._seq_lock = threading.Lock()
        self._next_seq = self._load_next_sequence()

    @property
    def embedder(self) -> EmbeddingProvider:
        """Access the underlying embedder."""
        return self._embedder

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def add(self, collection: str, records: Iterable[Any]) -> int:
        """
        Embed and append records to a collection.

        Records may be RecordInput objects, mappings with "text" and
        "metadata", or any object exposing .text and .metadata (e.g. Chunk).
        Either every record is embedded or nothing is written.

        Returns:
            Number of records stored.

        Raises:
            ValidationFailure: Unknown collection, empty text or missing user.
            EmbeddingFailure: The provider could not embed the texts.
            StorageFailure: ChromaDB rejected the write.
        """
        target = self._get_collection(collection)
        inputs = [self._coerce_record(item) for item in records]
        if not inputs:
            return 0

        texts = [record.text for record in inputs]
        embeddings = self._embed_texts(texts)

        first_seq = self._reserve_sequence(len(inputs))
        ids = [uuid.uuid4().hex for _ in inputs]
        metadatas = [
            {**self._flatten_metadata(record.metadata), SEQUENCE_KEY: first_seq + offset}
            for offset, record in enumerate(inputs)
        ]

        batch_size = self.config.batch_size
        try:
            for start in range(0, len(ids), batch_size):
                end = start + batch_size
                target.add(
                    ids=ids[start:end],
                    embeddings=embeddings[start:end],
                    documents=texts[start:end],
                    metadatas=metadatas[start:end],
                )
        except Exception as e:
            raise StorageFailure("add", e) from e

        logger.debug(f"Stored {len(ids)} records in '{collection}'")
        return len(ids)

    def similarity_search(
        self,
        collection: str,
        query: str,
        k: int = 4,
        where: Optional[dict[str, Any]] = None,
    ) -> list[SearchResult]:
        """
        Rank the records matching the filter by cosine similarity to query.

        Args:
            collection: Logical collection name.
            query: Text to compare against.
            k: Maximum number of results.
            where: Equality predicate over metadata, e.g. {"user": "u1"}.

        Returns:
            Up to k SearchResults, best first; earlier insertions win ties.
        """
        target = self._get_collection(collection)
        if k < 1:
            raise ValidationFailure(f"k must be at least 1, got {k}", field="k")
        if not query or not query.strip():
            raise ValidationFailure("Search query must not be empty", field="query")

        query_vector = np.asarray(self._embed_texts([query])[0], dtype=np.float64)

        raw = self._fetch(target, where, include=["embeddings", "documents", "metadatas"])
        ids = raw["ids"]
        if len(ids) == 0:
            return []

        matrix = np.asarray(raw["embeddings"], dtype=np.float64)
        if matrix.ndim != 2 or matrix.shape[1] != query_vector.shape[0]:
            raise EmbeddingFailure(
                f"Query embedding has {query_vector.shape[0]} dimensions, "
                f"stored records have {matrix.shape[-1]}"
            )

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query_vector)
        dots = matrix @ query_vector
        scores = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

        metadatas = raw["metadatas"]
        sequences = [int(meta.get(SEQUENCE_KEY, 0)) for meta in metadatas]

        def compare(a: int, b: int) -> int:
            if abs(scores[a] - scores[b]) >= SCORE_EPSILON:
                return -1 if scores[a] > scores[b] else 1
            return (sequences[a] > sequences[b]) - (sequences[a] < sequences[b])

        order = sorted(range(len(ids)), key=cmp_to_key(compare))[:k]

        return [
            SearchResult(
                record_id=ids[i],
                text=raw["documents"][i],
                metadata=self._public_metadata(metadatas[i]),
                score=float(scores[i]),
                sequence=sequences[i],
            )
            for i in order
        ]

    def delete(self, collection: str, where: dict[str, Any]) -> int:
        """
        Delete every record in collection that matches the filter.

        Returns:
            Number of records deleted (0 if none matched).

        Raises:
            ValidationFailure: Empty filter.
        """
        target = self._get_collection(collection)
        if not where:
            raise ValidationFailure("Refusing to delete without a filter", field="where")

        deleted = self.delete_ids(collection, self.record_ids(collection, where))
        if deleted:
            logger.debug(f"Deleted {deleted} records from '{collection}' where {where}")
        return deleted

    def record_ids(self, collection: str, where: dict[str, Any]) -> list[str]:
        """Return the ids of every record in collection that matches the filter."""
        target = self._get_collection(collection)
        if not where:
            raise ValidationFailure("Empty filter", field="where")
        return list(self._fetch(target, where, include=[])["ids"])

    def delete_ids(self, collection: str, record_ids: Iterable[str]) -> int:
        """
        Delete records by id.

        Used to drop a known snapshot of records, e.g. the previous chunks
        of a file once its replacement has been stored.
        """
        target = self._get_collection(collection)
        record_ids = list(record_ids)
        if not record_ids:
            return 0

        try:
            target.delete(ids=record_ids)
        except Exception as e:
            raise StorageFailure("delete", e) from e
        return len(record_ids)

    def count(self, collection: str, where: Optional[dict[str, Any]] = None) -> int:
        """Return the number of records in collection (optionally filtered)."""
        target = self._get_collection(collection)
        if not where:
            try:
                return target.count()
            except Exception as e:
                raise StorageFailure("count", e) from e
        return len(self._fetch(target, where, include=[])["ids"])

    def health_check(self) -> dict:
        """
        Check the health of the store and its embedder.

        Returns:
            Dict with ChromaDB status, record counts and embedder status.
        """
        result: dict[str, Any] = {"chromadb_ok": True}
        try:
            result["records"] = {name: self.count(name) for name in self._collections}
        except StorageFailure as e:
            result["chromadb_ok"] = False
            result["error"] = str(e)

        embedder_health = getattr(self._embedder, "health_check", None)
        if callable(embedder_health):
            result.update(embedder_health())
        else:
            result["healthy"] = result["chromadb_ok"]
        result["healthy"] = bool(result.get("healthy")) and result["chromadb_ok"]
        return result

    # -------------------------------------------------------------------------
    # Internal methods
    # -------------------------------------------------------------------------

    def _get_collection(self, collection: str):
        try:
            return self._collections[collection]
        except KeyError:
            raise ValidationFailure(
                f"Unknown collection '{collection}'. Known: {sorted(self._collections)}",
                field="collection",
            ) from None

    def _embed_texts(self, texts: list[str]) -> list[list[float]]:
        try:
            embeddings = self._embedder.embed_batch(texts)
        except EmbeddingFailure:
            raise
        except Exception as e:
            raise EmbeddingFailure("Embedding provider raised an unexpected error", original_error=e) from e

        if len(embeddings) != len(texts) or any(len(vector) == 0 for vector in embeddings):
            raise EmbeddingFailure(
                f"Embedding provider returned {len(embeddings)} vectors for {len(texts)} texts"
            )
        return [list(vector) for vector in embeddings]

    def _fetch(self, target, where: Optional[dict[str, Any]], include: list[str]) -> dict:
        params: dict[str, Any] = {"include": include}
        clause = self._build_where(where)
        if clause:
            params["where"] = clause
        try:
            return target.get(**params)
        except Exception as e:
            raise StorageFailure("get", e) from e

    def _reserve_sequence(self, count: int) -> int:
        with self._seq_lock:
            first = self._next_seq
            self._next_seq += count
        return first

    def _load_next_sequence(self) -> int:
        highest = -1
        for target in self._collections.values():
            raw = self._fetch(target, None, include=["metadatas"])
            for meta in raw["metadatas"] or []:
                if meta and SEQUENCE_KEY in meta:
                    highest = max(highest, int(meta[SEQUENCE_KEY]))
        return highest + 1

    @staticmethod
    def _coerce_record(item: Any) -> RecordInput:
        try:
            if isinstance(item, RecordInput):
                record = item
            elif isinstance(item, Mapping):
                record = RecordInput.model_validate(dict(item))
            else:
                record = RecordInput(text=item.text, metadata=dict(item.metadata))
        except (ValidationError, AttributeError) as e:
            raise ValidationFailure(f"Invalid record: {e}", field="records") from e

        if not record.text.strip():
            raise ValidationFailure("Record text must not be blank", field="text")
        user = record.metadata.get(USER_KEY)
        if user is None or not str(user).strip():
            raise ValidationFailure("Every record needs a non-empty 'user' tag", field=USER_KEY)
        return record

    @staticmethod
    def _build_where(where: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
        if not where:
            return None
        clauses = []
        for key, value in where.items():
            if not isinstance(value, _SCALAR_TYPES):
                raise ValidationFailure(
                    f"Filter value for '{key}' must be a string, number or bool",
                    field="where",
                )
            clauses.append({key: value})
        if len(clauses) == 1:
            return clauses[0]
        return {"$and": clauses}

    @staticmethod
    def _flatten_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
        """
        Flatten metadata for ChromaDB storage.

        ChromaDB only supports flat scalar values. Lists become
        comma-separated strings, dicts become JSON, None values are dropped.
        """
        flat: dict[str, Any] = {}
        for key, value in metadata.items():
            if value is None or key == SEQUENCE_KEY:
                continue
            if isinstance(value, list):
                flat[key] = ",".join(str(item) for item in value)
            elif isinstance(value, dict):
                flat[key] = json.dumps(value, ensure_ascii=False)
            elif isinstance(value, _SCALAR_TYPES):
                flat[key] = value
            else:
                flat[key] = str(value)
        return flat

    @staticmethod
    def _public_metadata(metadata: Optional[dict[str, Any]]) -> dict[str, Any]:
        return {k: v for k, v in (metadata or {}).items() if k != SEQUENCE_KEY}
