"""Temporary storage for uploaded documents during ingestion."""

from __future__ import annotations

import re
import shutil
import tempfile
from pathlib import Path

UPLOADS_DIR = Path(tempfile.gettempdir()) / "docchat-uploads"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: str) -> str:
    """Reduce a client filename to a single safe path component."""
    name = Path(filename.replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or "upload.pdf"


def save_upload(
    job_id: str, data: bytes, filename: str, *, base_dir: Path = UPLOADS_DIR
) -> str:
    """Write upload bytes to {base_dir}/{job_id}/{filename}.

    Args:
        job_id: Unique ingestion identifier
        data: Raw file contents
        filename: Original filename (sanitized before use)
        base_dir: Root directory for upload artifacts

    Returns:
        Absolute path to the saved file
    """
    job_dir = base_dir / job_id
    job_dir.mkdir(parents=True, exist_ok=True)

    file_path = job_dir / safe_filename(filename)
    file_path.write_bytes(data)
    return str(file_path)


def cleanup_job_files(job_id: str, *, base_dir: Path = UPLOADS_DIR) -> None:
    """Remove the job's upload directory. Missing directories are ignored."""
    job_dir = base_dir / job_id
    if job_dir.exists():
        shutil.rmtree(job_dir)
