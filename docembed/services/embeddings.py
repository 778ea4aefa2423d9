"""Sentence-BERT embeddings backend.

Same contract as the GGUF encoder, backed by a Hugging Face checkpoint
(default BAAI/bge-base-en-v1.5). Selected with ENCODER_BACKEND=sentence-transformers.

Vectors are not normalized here, but checkpoints whose pipeline ends in a
Normalize module (bge-* does) still return unit-length vectors, unlike the
raw pooled output of the GGUF backend.
"""

from __future__ import annotations

import numpy as np
import structlog
from sentence_transformers import SentenceTransformer

from docembed.errors import EmbeddingUnavailableError, EncodeError, ModelLoadError, TokenizeError
from docembed.services.encoder import EXPECTED_EMBEDDING_DIM, TextEncoder

logger = structlog.get_logger()

MODEL_NAME = "BAAI/bge-base-en-v1.5"


class SentenceTransformerEncoder(TextEncoder):
    def __init__(self, model_name: str = MODEL_NAME, expected_dim: int = EXPECTED_EMBEDDING_DIM):
        self.model_name = model_name
        try:
            self._model: SentenceTransformer | None = SentenceTransformer(model_name)
        except (OSError, ValueError) as e:
            raise ModelLoadError(f"Failed to load model from: {model_name}: {e}") from e

        self._dim = self._model.get_sentence_embedding_dimension()
        logger.info("model_loaded", model_name=model_name, n_embd=self._dim)

        if self._dim != expected_dim:
            logger.warning("unexpected_embedding_dim", expected=expected_dim, actual=self._dim)

    @property
    def embedding_dim(self) -> int:
        return self._dim

    def encode(self, text: str) -> list[float]:
        """Encode a single text into an embedding vector."""
        if self._model is None:
            raise EncodeError("Encoder is closed")

        n_tokens = len(self._model.tokenizer(text)["input_ids"])
        if n_tokens <= 0:
            raise TokenizeError("Failed to tokenize text: no tokens produced")
        if n_tokens > self._model.max_seq_length:
            raise EncodeError(
                f"Text is {n_tokens} tokens, exceeds context window of {self._model.max_seq_length}"
            )

        try:
            vec = self._model.encode(
                text, show_progress_bar=False, convert_to_numpy=True, normalize_embeddings=False
            )
        except RuntimeError as e:
            raise EncodeError(f"Failed to encode batch: {e}") from e

        vec = np.asarray(vec, dtype=np.float32)
        if vec.ndim != 1 or vec.shape[0] != self._dim:
            raise EmbeddingUnavailableError(
                f"Failed to get embeddings: got shape {vec.shape}, expected ({self._dim},)"
            )
        return vec.tolist()

    def close(self) -> None:
        self._model = None
