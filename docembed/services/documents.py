"""Document file I/O: read the input array, write the output array."""

from __future__ import annotations

import json
from pathlib import Path

import structlog
from pydantic import ValidationError

from docembed.errors import DocumentSchemaError, InputFileError, OutputFileError
from docembed.schemas.document import Document, OutputRecord

logger = structlog.get_logger()


def load_documents(path: str | Path) -> list[Document]:
    """Read and validate a JSON array of {id, text} documents.

    Args:
        path: Input file path.

    Returns:
        Documents in file order.

    Raises:
        InputFileError: file cannot be opened.
        DocumentSchemaError: malformed JSON, non-array top level, or an
            element missing an integer id / string text.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise DocumentSchemaError(f"{path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise InputFileError(f"Could not open {path}: {e.strerror or e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise DocumentSchemaError(f"{path} is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise DocumentSchemaError(f"{path} must contain a JSON array, got {type(data).__name__}")

    documents = []
    for i, item in enumerate(data):
        try:
            documents.append(Document.model_validate(item))
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) or "document" for err in e.errors())
            raise DocumentSchemaError(f"Document at index {i} is invalid ({fields})") from e

    return documents


def write_records(path: str | Path, records: list[OutputRecord]) -> None:
    """Write output records as a JSON array, 2-space indent."""
    path = Path(path)
    payload = json.dumps(
        [record.model_dump() for record in records],
        indent=2,
        ensure_ascii=False,
    )
    try:
        path.write_text(payload, encoding="utf-8")
    except OSError as e:
        raise OutputFileError(f"Could not open {path} for writing: {e.strerror or e}") from e
