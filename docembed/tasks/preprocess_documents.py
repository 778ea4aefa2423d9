"""Batch task: encode every input document and write the results.

Linear and all-or-nothing: load documents, load the model, encode each
document in order, write the output array. Any failure propagates and
nothing is written.
"""

from __future__ import annotations

from typing import Callable

import structlog

from docembed.config import Settings
from docembed.schemas.document import Document, OutputRecord
from docembed.services.documents import load_documents, write_records
from docembed.services.encoder import TextEncoder, build_encoder

logger = structlog.get_logger()

PROGRESS_INTERVAL = 100


def encode_documents(
    documents: list[Document],
    encoder: TextEncoder,
    progress_interval: int = PROGRESS_INTERVAL,
) -> list[OutputRecord]:
    """Encode documents one at a time, preserving input order."""
    total = len(documents)
    records = []

    for i, doc in enumerate(documents):
        if progress_interval > 0 and i % progress_interval == 0:
            logger.info("processing_document", index=i, total=total)

        embedding = encoder.encode(doc.text)
        records.append(OutputRecord(id=doc.id, text=doc.text, embedding=embedding))

    return records


def run(
    settings: Settings,
    encoder_factory: Callable[[Settings], TextEncoder] | None = None,
) -> list[OutputRecord]:
    """Run one preprocessing pass using the paths and encoder from settings.

    Returns:
        The records written to settings.OUTPUT_PATH.
    """
    logger.info("loading_documents", input_path=settings.INPUT_PATH)
    documents = load_documents(settings.INPUT_PATH)
    logger.info("documents_found", count=len(documents))

    factory = encoder_factory or build_encoder
    logger.info("loading_model", backend=settings.ENCODER_BACKEND)
    with factory(settings) as encoder:
        records = encode_documents(documents, encoder, settings.PROGRESS_INTERVAL)

    logger.info("writing_results", output_path=settings.OUTPUT_PATH)
    write_records(settings.OUTPUT_PATH, records)

    logger.info(
        "preprocess_complete",
        count=len(records),
        output_path=settings.OUTPUT_PATH,
    )
    return records
