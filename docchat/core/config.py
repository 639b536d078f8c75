"""Runtime configuration and environment loading."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from docchat.core.errors import ConfigurationError
from docchat.core.prompts import FALLBACK_ANSWER

_SETTINGS: "Settings | None" = None

VECTOR_BACKENDS = {"pinecone", "memory"}


def reset_settings() -> None:
    """Reset cached settings. Call after changing environment variables."""
    global _SETTINGS
    _SETTINGS = None


@dataclass(frozen=True)
class Settings:
    openai_api_key: str
    openrouter_api_key: str
    jwt_secret: str
    vector_backend: str = "pinecone"
    pinecone_api_key: str | None = None
    pinecone_index: str | None = None
    pinecone_host: str | None = None
    pinecone_namespace: str = "documents"
    embedding_model: str = "text-embedding-3-small"
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_model: str = "meta-llama/llama-3.2-3b-instruct:free"
    chunk_size: int = 1000
    chunk_overlap: int = 200
    retrieval_top_k: int = 4
    max_upload_bytes: int = 10 * 1024 * 1024
    max_concurrent_extractions: int = 1
    extraction_timeout: float = 120.0
    embedding_timeout: float = 30.0
    index_timeout: float = 20.0
    generation_timeout: float = 60.0
    retry_attempts: int = 3
    fallback_answer: str = FALLBACK_ANSWER
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ConfigurationError("CHUNK_SIZE must be positive.")
        if not 0 <= self.chunk_overlap < self.chunk_size:
            raise ConfigurationError(
                f"CHUNK_OVERLAP ({self.chunk_overlap}) must be >= 0 and smaller than "
                f"CHUNK_SIZE ({self.chunk_size})."
            )
        if self.retrieval_top_k <= 0:
            raise ConfigurationError("RETRIEVAL_TOP_K must be positive.")
        if self.max_concurrent_extractions <= 0:
            raise ConfigurationError("MAX_CONCURRENT_EXTRACTIONS must be positive.")
        if self.retry_attempts <= 0:
            raise ConfigurationError("RETRY_ATTEMPTS must be positive.")
        if self.vector_backend not in VECTOR_BACKENDS:
            valid = ", ".join(sorted(VECTOR_BACKENDS))
            raise ConfigurationError(
                f"Invalid VECTOR_BACKEND '{self.vector_backend}'. Must be one of: {valid}"
            )
        if self.vector_backend == "pinecone" and not (
            self.pinecone_api_key and self.pinecone_index
        ):
            raise ConfigurationError(
                "PINECONE_API_KEY and PINECONE_INDEX are required when VECTOR_BACKEND is 'pinecone'."
            )


def load_env_file(path: str, *, override: bool = False) -> None:
    """Load key=value pairs from a .env-style file into os.environ.

    Keeps existing env values unless override=True.
    """
    env_path = Path(path)
    if not env_path.exists():
        return

    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip("'").strip('"')
        if not override and key in os.environ:
            continue
        os.environ[key] = value


def _required_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ConfigurationError(f"Missing required environment variable: {name}")
    return value


def _optional_env(name: str, default: str) -> str:
    return os.getenv(name, default).strip() or default


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'.") from exc


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'.") from exc


def get_settings() -> Settings:
    """Load settings from docchat.env and environment variables."""
    global _SETTINGS
    if _SETTINGS is not None:
        return _SETTINGS

    env_file = os.getenv("DOCCHAT_ENV_FILE", "docchat.env")
    load_env_file(env_file)

    _SETTINGS = Settings(
        openai_api_key=_required_env("OPENAI_API_KEY"),
        openrouter_api_key=_required_env("OPENROUTER_API_KEY"),
        jwt_secret=_required_env("JWT_SECRET"),
        vector_backend=_optional_env("VECTOR_BACKEND", "pinecone").lower(),
        pinecone_api_key=os.getenv("PINECONE_API_KEY", "").strip() or None,
        pinecone_index=os.getenv("PINECONE_INDEX", "").strip() or None,
        pinecone_host=os.getenv("PINECONE_HOST", "").strip() or None,
        pinecone_namespace=_optional_env("PINECONE_NAMESPACE", "documents"),
        embedding_model=_optional_env("EMBEDDING_MODEL", "text-embedding-3-small"),
        openrouter_base_url=_optional_env("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"),
        openrouter_model=_optional_env(
            "OPENROUTER_MODEL", "meta-llama/llama-3.2-3b-instruct:free"
        ),
        chunk_size=_int_env("CHUNK_SIZE", 1000),
        chunk_overlap=_int_env("CHUNK_OVERLAP", 200),
        retrieval_top_k=_int_env("RETRIEVAL_TOP_K", 4),
        max_upload_bytes=_int_env("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
        max_concurrent_extractions=_int_env("MAX_CONCURRENT_EXTRACTIONS", 1),
        extraction_timeout=_float_env("EXTRACTION_TIMEOUT", 120.0),
        embedding_timeout=_float_env("EMBEDDING_TIMEOUT", 30.0),
        index_timeout=_float_env("INDEX_TIMEOUT", 20.0),
        generation_timeout=_float_env("GENERATION_TIMEOUT", 60.0),
        retry_attempts=_int_env("RETRY_ATTEMPTS", 3),
        fallback_answer=_optional_env("FALLBACK_ANSWER", FALLBACK_ANSWER),
        log_level=_optional_env("LOG_LEVEL", "INFO").upper(),
    )
    return _SETTINGS


def get_pinecone_host(settings: Settings) -> str | None:
    """Resolve Pinecone host for the configured index.

    A per-index ``PINECONE_HOST_<INDEX>`` variable wins over ``PINECONE_HOST``.
    Returns None when neither is set so the client can look the host up by name.
    """
    if not settings.pinecone_index:
        return settings.pinecone_host
    env_key = f"PINECONE_HOST_{settings.pinecone_index.upper().replace('-', '_')}"
    per_index = os.getenv(env_key, "").strip()
    return per_index or settings.pinecone_host
