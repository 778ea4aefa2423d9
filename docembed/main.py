"""CLI: embed documents.json into preprocessed_documents.json.

Usage:
    docembed [--input documents.json] [--output preprocessed_documents.json]
             [--model bge-base-en-v1.5-f32.gguf] [--backend gguf]

Exit status is 0 on success, 1 on any failure.
"""

from __future__ import annotations

import argparse

import structlog

from docembed.config import Settings
from docembed.errors import PreprocessError
from docembed.logging_config import configure_logging
from docembed.tasks.preprocess_documents import run

logger = structlog.get_logger()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Encode JSON documents into embedding vectors")
    parser.add_argument("--input", help="Input JSON array of {id, text}")
    parser.add_argument("--output", help="Output JSON path")
    parser.add_argument("--model", help="GGUF model file (or model name for sentence-transformers)")
    parser.add_argument("--backend", choices=["gguf", "sentence-transformers"], help="Encoder backend")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.input:
        overrides["INPUT_PATH"] = args.input
    if args.output:
        overrides["OUTPUT_PATH"] = args.output
    if args.backend:
        overrides["ENCODER_BACKEND"] = args.backend
    if args.model:
        backend = args.backend or Settings().ENCODER_BACKEND
        key = "MODEL_PATH" if backend == "gguf" else "SENTENCE_TRANSFORMER_MODEL"
        overrides[key] = args.model
    return Settings(**overrides)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = build_settings(args)
    configure_logging(settings.LOG_LEVEL)

    try:
        run(settings)
    except PreprocessError as e:
        logger.error("preprocess_failed", error_type=type(e).__name__, error=str(e))
        return 1
    except Exception as e:
        logger.error("unhandled_exception", error_type=type(e).__name__, error=str(e))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
