from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional

from assistant.errors import UploadError


logger = logging.getLogger("pnwer.uploads")

DEFAULT_TOPIC = "general"
CHUNK_SIZE = 1024 * 1024


@dataclass
class StoredFile:
    name: str
    stored_as: str
    topic: str
    path: str
    size: int

    def to_response(self) -> dict:
        return {"name": self.name, "storedAs": self.stored_as, "topic": self.topic}


def first_value(value: Any) -> Any:
    """Collapse a form value that may arrive as a list into a single value."""
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def normalize_topic(value: Any) -> str:
    topic = first_value(value)
    if isinstance(topic, str) and topic:
        return topic
    return DEFAULT_TOPIC


def ensure_upload_dir(upload_dir: str) -> str:
    os.makedirs(upload_dir, exist_ok=True)
    return upload_dir


def _stored_name(original: str) -> str:
    _, ext = os.path.splitext(os.path.basename(original or ""))
    return f"{uuid.uuid4().hex}{ext}"


def save_upload(
    stream: BinaryIO,
    filename: Optional[str],
    topic: str,
    *,
    upload_dir: str,
    max_bytes: int,
) -> StoredFile:
    """Copy ``stream`` into ``upload_dir`` under a random name keeping the extension.

    Raises UploadError when the file grows past ``max_bytes``; the partial
    file is removed.
    """
    ensure_upload_dir(upload_dir)
    stored_as = _stored_name(filename or "")
    path = os.path.join(upload_dir, stored_as)

    size = 0
    try:
        with open(path, "wb") as out:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    raise UploadError(
                        f"File exceeds the {max_bytes} byte limit"
                    )
                out.write(chunk)
    except (UploadError, OSError) as exc:
        if os.path.exists(path):
            os.remove(path)
        if isinstance(exc, UploadError):
            raise
        raise UploadError(f"Could not store upload: {exc}") from exc

    logger.info("File saved: %s -> %s [topic: %s]", filename, path, topic)
    return StoredFile(
        name=filename or "",
        stored_as=stored_as,
        topic=topic,
        path=path,
        size=size,
    )
