from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Optional

from shared.protocol.errors import NotFoundError, StoreFullError
from shared.utils.common import sha256_hex, utc_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlobRecord:
    image_id: str
    data: bytes
    sha256: str
    stored_at: float = field(default_factory=utc_timestamp)

    @property
    def size(self) -> int:
        return len(self.data)


class InMemoryBlobStore:
    """
    Thread-safe mapping from image id to encrypted bytes.

    Every operation holds one coarse lock for the duration of a single dict
    access. Records are replaced as whole objects, so a reader observes either
    the previous complete blob or the new one. `max_total_bytes` caps the sum of
    stored payload sizes; None or 0 means unbounded.
    """

    def __init__(self, max_total_bytes: Optional[int] = None) -> None:
        self.max_total_bytes = max_total_bytes or None
        self._records: Dict[str, BlobRecord] = {}
        self._total_bytes = 0
        self._lock = threading.Lock()

    def put(self, image_id: str, data: bytes) -> BlobRecord:
        """Insert or replace the blob stored under `image_id` (last write wins)."""
        try:
            blob = data if isinstance(data, bytes) else bytes(data)
            record = BlobRecord(image_id=image_id, data=blob, sha256=sha256_hex(blob))
        except MemoryError as exc:
            raise StoreFullError(message=f"Out of memory storing {image_id!r}") from exc

        with self._lock:
            previous = self._records.get(image_id)
            freed = previous.size if previous else 0
            projected = self._total_bytes - freed + record.size
            if self.max_total_bytes is not None and projected > self.max_total_bytes:
                raise StoreFullError(
                    message=f"Storing {record.size} bytes for {image_id!r} exceeds capacity of {self.max_total_bytes}"
                )
            self._records[image_id] = record
            self._total_bytes = projected
        logger.debug("Stored %s (%s bytes, sha256=%s)", image_id, record.size, record.sha256)
        return record

    def get(self, image_id: str) -> bytes:
        """Return the current bytes for `image_id`; raises NotFoundError if absent."""
        record = self.get_record(image_id)
        if record is None:
            raise NotFoundError(message=f"Image {image_id!r} not found")
        return record.data

    def get_record(self, image_id: str) -> Optional[BlobRecord]:
        with self._lock:
            return self._records.get(image_id)

    @property
    def total_bytes(self) -> int:
        with self._lock:
            return self._total_bytes

    def __contains__(self, image_id: object) -> bool:
        with self._lock:
            return image_id in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
