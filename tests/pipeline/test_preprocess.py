"""Tests for the batch preprocessing task."""

import json
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from docembed.errors import DocumentSchemaError, EncodeError, InputFileError
from docembed.schemas.document import Document
from docembed.tasks.preprocess_documents import encode_documents, run


class TestEncodeDocuments:
    def test_preserves_order_and_fields(self, fake_encoder):
        docs = [Document(id=5, text="b"), Document(id=2, text="a")]
        records = encode_documents(docs, fake_encoder)
        assert [(r.id, r.text) for r in records] == [(5, "b"), (2, "a")]
        assert all(len(r.embedding) == 768 for r in records)
        assert fake_encoder.calls == ["b", "a"]

    def test_progress_every_hundred(self, fake_encoder):
        docs = [Document(id=i, text=f"doc {i}") for i in range(250)]
        with capture_logs() as logs:
            encode_documents(docs, fake_encoder)
        progress = [e for e in logs if e["event"] == "processing_document"]
        assert [e["index"] for e in progress] == [0, 100, 200]
        assert all(e["total"] == 250 for e in progress)

    def test_progress_disabled(self, fake_encoder):
        with capture_logs() as logs:
            encode_documents([Document(id=1, text="a")], fake_encoder, progress_interval=0)
        assert not logs

    def test_first_failure_aborts(self, make_encoder):
        encoder = make_encoder(fail_on="bad")
        docs = [Document(id=1, text="ok"), Document(id=2, text="bad"), Document(id=3, text="never")]
        with pytest.raises(EncodeError):
            encode_documents(docs, encoder)
        assert encoder.calls == ["ok", "bad"]

    def test_deterministic(self, fake_encoder):
        docs = [Document(id=1, text="same"), Document(id=2, text="same")]
        first, second = encode_documents(docs, fake_encoder)
        assert first.embedding == second.embedding


class TestRun:
    def test_writes_all_records(self, settings, write_input, sample_documents, fake_encoder):
        write_input(sample_documents)
        records = run(settings, encoder_factory=lambda s: fake_encoder)

        assert len(records) == len(sample_documents)
        output = json.loads(Path(settings.OUTPUT_PATH).read_text(encoding="utf-8"))
        assert [o["id"] for o in output] == [d["id"] for d in sample_documents]
        assert [o["text"] for o in output] == [d["text"] for d in sample_documents]
        assert all(len(o["embedding"]) == 768 for o in output)
        assert fake_encoder.closed

    def test_completion_logged(self, settings, write_input, fake_encoder):
        write_input([{"id": 1, "text": "hello"}])
        with capture_logs() as logs:
            run(settings, encoder_factory=lambda s: fake_encoder)
        done = next(e for e in logs if e["event"] == "preprocess_complete")
        assert done["count"] == 1
        assert done["output_path"] == settings.OUTPUT_PATH

    def test_missing_input_skips_model_load(self, settings):
        loaded = []
        with pytest.raises(InputFileError):
            run(settings, encoder_factory=loaded.append)
        assert loaded == []
        assert not Path(settings.OUTPUT_PATH).exists()

    def test_schema_error_writes_nothing(self, settings, write_input, fake_encoder):
        write_input([{"id": 1, "text": "a"}, {"id": 2}])
        with pytest.raises(DocumentSchemaError):
            run(settings, encoder_factory=lambda s: fake_encoder)
        assert not Path(settings.OUTPUT_PATH).exists()

    def test_encode_failure_writes_nothing_and_closes(self, settings, write_input, make_encoder):
        encoder = make_encoder(fail_on="b")
        write_input([{"id": 1, "text": "a"}, {"id": 2, "text": "b"}])
        with pytest.raises(EncodeError):
            run(settings, encoder_factory=lambda s: encoder)
        assert encoder.closed
        assert not Path(settings.OUTPUT_PATH).exists()

    def test_factory_receives_settings(self, settings, write_input, fake_encoder):
        write_input([])
        seen = []

        def factory(s):
            seen.append(s)
            return fake_encoder

        assert run(settings, encoder_factory=factory) == []
        assert seen == [settings]
