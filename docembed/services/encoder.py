"""GGUF encoder wrapper over llama.cpp (llama-cpp-python).

Owns one model + execution context for the lifetime of a run. The model is
opened in embedding mode with a fixed context window; encode() tokenizes a
text, runs a single forward pass and returns the pooled sequence embedding.

Release order is context first, then model (handled by Llama.close()).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

import llama_cpp
import structlog

from docembed.errors import (
    ContextCreationError,
    EmbeddingUnavailableError,
    EncodeError,
    ModelLoadError,
    TokenizeError,
)

logger = structlog.get_logger()

EXPECTED_EMBEDDING_DIM = 768
DEFAULT_CONTEXT_SIZE = 512
DEFAULT_BATCH_SIZE = 512


class TextEncoder(ABC):
    """One text in, one fixed-size vector out."""

    @property
    @abstractmethod
    def embedding_dim(self) -> int: ...

    @abstractmethod
    def encode(self, text: str) -> list[float]: ...

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class GGUFEncoder(TextEncoder):
    """BGE-style encoder loaded from a GGUF file."""

    def __init__(
        self,
        model_path: str | Path,
        n_ctx: int = DEFAULT_CONTEXT_SIZE,
        n_batch: int = DEFAULT_BATCH_SIZE,
        expected_dim: int = EXPECTED_EMBEDDING_DIM,
    ):
        self.model_path = str(model_path)
        self.n_ctx = n_ctx
        self.n_batch = n_batch
        self._llm: llama_cpp.Llama | None = None

        if not Path(self.model_path).is_file():
            raise ModelLoadError(f"Failed to load model from: {self.model_path} (file not found)")

        try:
            self._llm = llama_cpp.Llama(
                model_path=self.model_path,
                embedding=True,
                n_ctx=n_ctx,
                n_batch=n_batch,
                n_ubatch=n_batch,
                verbose=False,
            )
        except (ValueError, RuntimeError, OSError) as e:
            # llama-cpp-python reports both failures as ValueError
            if "failed to create llama_context" in str(e).lower():
                raise ContextCreationError(
                    f"Failed to create context for model {self.model_path}: {e}"
                ) from e
            raise ModelLoadError(f"Failed to load model from: {self.model_path}: {e}") from e

        try:
            self._n_embd = self._llm.n_embd()
            logger.info("model_loaded", model_path=self.model_path, n_embd=self._n_embd)

            if self._n_embd != expected_dim:
                logger.warning(
                    "unexpected_embedding_dim",
                    expected=expected_dim,
                    actual=self._n_embd,
                )

            if not llama_cpp.llama_model_has_encoder(self._llm.model):
                logger.warning("model_not_encoder", model_path=self.model_path)
        except Exception:
            self.close()
            raise

    @property
    def embedding_dim(self) -> int:
        return self._n_embd

    def _require_llm(self) -> llama_cpp.Llama:
        if self._llm is None:
            raise EncodeError("Encoder is closed")
        return self._llm

    def tokenize(self, text: str) -> list[int]:
        """Token ids for text, special and boundary tokens included."""
        llm = self._require_llm()
        try:
            return llm.tokenize(text.encode("utf-8"), add_bos=True, special=True)
        except (RuntimeError, UnicodeError) as e:
            raise TokenizeError(f"Failed to tokenize text: {e}") from e

    def count_tokens(self, text: str) -> int:
        return len(self.tokenize(text))

    def _forward(self, tokens: list[int]) -> list[float]:
        """One decode over tokens as sequence 0; returns the pooled embedding."""
        llm = self._require_llm()
        ctx = llm._ctx

        ctx.kv_cache_clear()
        llm._batch.reset()
        llm._batch.add_sequence(tokens, 0, False)
        try:
            ctx.decode(llm._batch)
        except RuntimeError as e:
            raise EncodeError(f"Failed to encode batch: {e}") from e
        finally:
            llm._batch.reset()

        # NULL unless the model has a pooling type
        embd = llama_cpp.llama_get_embeddings_seq(ctx.ctx, 0)
        if not embd:
            raise EmbeddingUnavailableError("Failed to get embeddings: no pooled sequence embedding")

        embedding = [float(x) for x in embd[: self._n_embd]]
        if len(embedding) != self._n_embd:
            raise EmbeddingUnavailableError(
                f"Failed to get embeddings: got {len(embedding)} values, expected {self._n_embd}"
            )
        return embedding

    def encode(self, text: str) -> list[float]:
        """Encode a single text into an n_embd-dim embedding vector.

        The forward pass runs over exactly the tokens produced by tokenize().

        Raises:
            TokenizeError: tokenization failed or produced no tokens.
            EncodeError: input does not fit the context window or the
                forward pass failed.
            EmbeddingUnavailableError: no pooled embedding for the sequence.
        """
        tokens = self.tokenize(text)
        if len(tokens) <= 0:
            raise TokenizeError("Failed to tokenize text: no tokens produced")
        limit = min(self.n_ctx, self.n_batch)
        if len(tokens) > limit:
            raise EncodeError(
                f"Text is {len(tokens)} tokens, exceeds context window of {limit}"
            )

        return self._forward(tokens)

    def close(self) -> None:
        llm, self._llm = self._llm, None
        if llm is not None:
            llm.close()


def build_encoder(settings) -> TextEncoder:
    """Construct the encoder selected by settings.ENCODER_BACKEND."""
    backend = settings.ENCODER_BACKEND.lower().replace("_", "-")

    if backend == "gguf":
        return GGUFEncoder(
            settings.MODEL_PATH,
            n_ctx=settings.CONTEXT_SIZE,
            n_batch=settings.BATCH_SIZE,
            expected_dim=settings.EXPECTED_EMBEDDING_DIM,
        )

    if backend == "sentence-transformers":
        from docembed.services.embeddings import SentenceTransformerEncoder

        return SentenceTransformerEncoder(
            settings.SENTENCE_TRANSFORMER_MODEL,
            expected_dim=settings.EXPECTED_EMBEDDING_DIM,
        )

    raise ModelLoadError(f"Unknown encoder backend: {settings.ENCODER_BACKEND}")
