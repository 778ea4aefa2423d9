"""docembed: batch-encode JSON documents into embedding vectors."""

__version__ = "0.1.0"
