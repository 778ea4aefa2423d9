from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Files
    MODEL_PATH: str = "bge-base-en-v1.5-f32.gguf"
    INPUT_PATH: str = "documents.json"
    OUTPUT_PATH: str = "preprocessed_documents.json"

    # Encoder
    ENCODER_BACKEND: str = "gguf"  # gguf | sentence-transformers
    SENTENCE_TRANSFORMER_MODEL: str = "BAAI/bge-base-en-v1.5"
    EXPECTED_EMBEDDING_DIM: int = 768
    CONTEXT_SIZE: int = 512
    BATCH_SIZE: int = 512

    # Run
    PROGRESS_INTERVAL: int = 100
    LOG_LEVEL: str = "INFO"

