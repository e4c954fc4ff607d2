"""Tests for ingestion.service: IngestionService."""

import pytest
from unittest.mock import MagicMock

from chunking.models import ChunkingConfig
from core.exceptions import AuthRequired, EmbeddingFailure, StorageFailure, ValidationFailure
from ingestion.config import IngestionConfig
from ingestion.models import SourceDocument
from ingestion.service import IngestionService
from vector_store.models import DOCUMENTS
from vector_store.store import VectorStore


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

REPORT = "Revenue grew 10%. Profit grew 5%."


def _service(store, manifest, **config) -> IngestionService:
    config.setdefault("chunking", ChunkingConfig(chunk_size=20))
    return IngestionService(store, manifest, IngestionConfig(manifest_path="", **config))


@pytest.fixture
def service(store, manifest):
    return _service(store, manifest)


class BrokenManifest:
    def upsert(self, entries):
        raise StorageFailure("manifest.write", OSError("read-only file system"))


# ---------------------------------------------------------------------------
# Ingest
# ---------------------------------------------------------------------------

class TestIngest:
    def test_chunks_stored_with_tags(self, service, store):
        result = service.ingest("u1", [SourceDocument(text=REPORT, filename="report.pdf")])

        assert result.success is True
        assert result.records_inserted == 2
        assert result.files == ["report.pdf"]
        assert result.manifest_error is None

        hits = store.similarity_search(DOCUMENTS, "profit", k=10, where={"user": "u1"})
        assert sorted(h.text for h in hits) == ["Profit grew 5%.", "Revenue grew 10%."]
        assert all(h.metadata == {"source": "report.pdf", "user": "u1"} for h in hits)

    def test_manifest_row_per_file(self, service, manifest):
        service.ingest("u1", [
            SourceDocument(text=REPORT, filename="a.txt"),
            SourceDocument(text=REPORT, filename="b.txt"),
        ])
        assert sorted(e.filename for e in manifest.list_files("u1")) == ["a.txt", "b.txt"]

    def test_document_metadata_kept(self, service, store):
        service.ingest("u1", [SourceDocument(text="Notes.", filename="n.txt", metadata={"lang": "en"})])
        hit = store.similarity_search(DOCUMENTS, "notes", k=1, where={"user": "u1"})[0]
        assert hit.metadata["lang"] == "en"

    def test_tags_override_document_metadata(self, service, store):
        service.ingest("u1", [SourceDocument(
            text="Notes.", filename="n.txt", metadata={"user": "u2", "source": "fake.txt"},
        )])
        assert store.count(DOCUMENTS, {"user": "u2"}) == 0
        assert store.count(DOCUMENTS, {"user": "u1", "source": "n.txt"}) == 1

    @pytest.mark.parametrize("user_id", [None, "", "  "])
    def test_requires_user(self, user_id, manifest):
        store = MagicMock(spec=VectorStore)
        service = _service(store, manifest)

        with pytest.raises(AuthRequired):
            service.ingest(user_id, [SourceDocument(text=REPORT, filename="a.txt")])
        store.add.assert_not_called()

    def test_empty_document_list(self, service):
        with pytest.raises(ValidationFailure, match="No documents"):
            service.ingest("u1", [])

    def test_document_without_text(self, service, store):
        with pytest.raises(ValidationFailure, match="contains no text"):
            service.ingest("u1", [
                SourceDocument(text=REPORT, filename="good.txt"),
                SourceDocument(text="   \n ", filename="empty.txt"),
            ])
        assert store.count(DOCUMENTS) == 0

    def test_blank_filename(self, service):
        with pytest.raises(ValidationFailure, match="filename"):
            service.ingest("u1", [SourceDocument(text=REPORT, filename="   ")])

    def test_embedding_failure_leaves_no_trace(self, manifest):
        store = MagicMock(spec=VectorStore)
        store.add.side_effect = EmbeddingFailure("provider down")
        service = _service(store, manifest)

        with pytest.raises(EmbeddingFailure):
            service.ingest("u1", [SourceDocument(text=REPORT, filename="a.txt")])
        assert manifest.list_files("u1") == []

    def test_manifest_failure_reported(self, store):
        service = _service(store, BrokenManifest())

        result = service.ingest("u1", [SourceDocument(text=REPORT, filename="a.txt")])

        assert result.records_inserted == 2
        assert result.manifest_error is not None
        assert store.count(DOCUMENTS, {"user": "u1"}) == 2


class TestReingest:
    def test_duplicates_by_default(self, service, store, manifest):
        document = SourceDocument(text=REPORT, filename="a.txt")
        service.ingest("u1", [document])
        service.ingest("u1", [document])

        assert store.count(DOCUMENTS, {"user": "u1"}) == 4
        assert len(manifest.list_files("u1")) == 1

    def test_replace_existing(self, store, manifest):
        service = _service(store, manifest, replace_existing=True)
        service.ingest("u1", [SourceDocument(text=REPORT, filename="a.txt")])
        service.ingest("u1", [SourceDocument(text="Only one sentence.", filename="a.txt")])

        hits = store.similarity_search(DOCUMENTS, "sentence", k=10, where={"user": "u1"})
        assert [h.text for h in hits] == ["Only one sentence."]

    def test_failed_replacement_keeps_previous_chunks(self, store, manifest, embedder, monkeypatch):
        service = _service(store, manifest, replace_existing=True)
        service.ingest("u1", [SourceDocument(text=REPORT, filename="a.txt")])

        def unavailable(texts):
            raise EmbeddingFailure("provider down")

        monkeypatch.setattr(embedder, "embed_batch", unavailable)
        with pytest.raises(EmbeddingFailure):
            service.ingest("u1", [SourceDocument(text="Only one sentence.", filename="a.txt")])

        assert store.count(DOCUMENTS, {"user": "u1", "source": "a.txt"}) == 2
        assert [e.filename for e in manifest.list_files("u1")] == ["a.txt"]

    def test_replacement_stored_before_old_chunks_removed(self, manifest):
        store = MagicMock(spec=VectorStore)
        store.record_ids.return_value = ["old-1", "old-2"]
        store.add.return_value = 2
        service = _service(store, manifest, replace_existing=True)

        service.ingest("u1", [SourceDocument(text=REPORT, filename="a.txt")])

        calls = [name for name, _, _ in store.method_calls]
        assert calls == ["record_ids", "add", "delete_ids"]
        store.delete_ids.assert_called_once_with(DOCUMENTS, ["old-1", "old-2"])

    def test_replace_only_touches_own_files(self, store, manifest):
        service = _service(store, manifest, replace_existing=True)
        service.ingest("u2", [SourceDocument(text=REPORT, filename="a.txt")])
        service.ingest("u1", [SourceDocument(text=REPORT, filename="a.txt")])

        assert store.count(DOCUMENTS, {"user": "u2"}) == 2


# ---------------------------------------------------------------------------
# Delete / list
# ---------------------------------------------------------------------------

class TestDeleteFile:
    def test_removes_chunks_and_manifest_row(self, service, store, manifest):
        service.ingest("u1", [
            SourceDocument(text=REPORT, filename="a.txt"),
            SourceDocument(text="Other file.", filename="b.txt"),
        ])

        result = service.delete_file("u1", "a.txt")

        assert result.records_deleted == 2
        assert result.manifest_removed is True
        assert store.count(DOCUMENTS, {"user": "u1", "source": "a.txt"}) == 0
        assert store.count(DOCUMENTS, {"user": "u1", "source": "b.txt"}) == 1
        assert [e.filename for e in manifest.list_files("u1")] == ["b.txt"]

    def test_deleted_file_never_retrieved(self, service, store):
        service.ingest("u1", [SourceDocument(text=REPORT, filename="a.txt")])
        service.delete_file("u1", "a.txt")

        hits = store.similarity_search(DOCUMENTS, "Revenue grew", k=10, where={"user": "u1"})
        assert all(h.source != "a.txt" for h in hits)

    def test_same_filename_other_user_kept(self, service, store):
        service.ingest("u1", [SourceDocument(text=REPORT, filename="a.txt")])
        service.ingest("u2", [SourceDocument(text=REPORT, filename="a.txt")])

        service.delete_file("u1", "a.txt")

        assert store.count(DOCUMENTS, {"user": "u2", "source": "a.txt"}) == 2

    def test_unknown_file(self, service):
        result = service.delete_file("u1", "missing.txt")
        assert result.records_deleted == 0
        assert result.manifest_removed is False

    def test_requires_user(self, service):
        with pytest.raises(AuthRequired):
            service.delete_file(None, "a.txt")

    def test_blank_filename(self, service):
        with pytest.raises(ValidationFailure):
            service.delete_file("u1", " ")


class TestListFiles:
    def test_lists_own_files(self, service):
        service.ingest("u1", [SourceDocument(text=REPORT, filename="a.txt")])
        service.ingest("u2", [SourceDocument(text=REPORT, filename="b.txt")])

        assert [e.filename for e in service.list_files("u1")] == ["a.txt"]

    def test_requires_user(self, service):
        with pytest.raises(AuthRequired):
            service.list_files("")
