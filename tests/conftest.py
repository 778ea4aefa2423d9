"""Shared test fixtures for all test modules."""

from __future__ import annotations

import hashlib
import json

import pytest
import structlog

from docembed.config import Settings
from docembed.errors import EncodeError
from docembed.services.encoder import TextEncoder


class FakeEncoder(TextEncoder):
    """Deterministic hash-derived vectors; records every call."""

    def __init__(self, dim: int = 768, fail_on: str | None = None):
        self.dim = dim
        self.fail_on = fail_on
        self.calls: list[str] = []
        self.closed = False

    @property
    def embedding_dim(self) -> int:
        return self.dim

    def encode(self, text: str) -> list[float]:
        self.calls.append(text)
        if text == self.fail_on:
            raise EncodeError("Failed to encode batch")
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [digest[i % len(digest)] / 255.0 for i in range(self.dim)]

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def fake_encoder() -> FakeEncoder:
    return FakeEncoder()


@pytest.fixture
def sample_documents() -> list[dict]:
    return [
        {"id": 1, "text": "hello"},
        {"id": 2, "text": "Vector search ranks documents by cosine similarity."},
        {"id": 7, "text": "Café, naïve, 東京"},
    ]


@pytest.fixture
def write_input(tmp_path):
    """Write a Python object as the input JSON file and return its path."""

    def _write(data, name: str = "documents.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        INPUT_PATH=str(tmp_path / "documents.json"),
        OUTPUT_PATH=str(tmp_path / "preprocessed_documents.json"),
        MODEL_PATH=str(tmp_path / "bge-base-en-v1.5-f32.gguf"),
    )


@pytest.fixture
def make_encoder():
    """Factory for FakeEncoder with custom dim / failure text."""
    return FakeEncoder
