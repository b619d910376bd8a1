from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from server.storage import InMemoryBlobStore
from shared.protocol import messages, validator
from shared.protocol.messages import Message, StorePayload

if TYPE_CHECKING:
    from server.core.connection import ConnectionContext

logger = logging.getLogger(__name__)


class BlobService:
    """Serves fetch and store requests against the blob store."""

    def __init__(self, store: InMemoryBlobStore) -> None:
        self.store = store

    async def handle_fetch(self, message: Message, ctx: "ConnectionContext") -> Message:
        image_id = validator.decode_image_id(message.payload)
        data = self.store.get(image_id)
        logger.info("Serving image %r (%s bytes) to %s", image_id, len(data), ctx.peername)
        return messages.data_response(data)

    async def handle_store(self, message: Message, ctx: "ConnectionContext") -> Message:
        body = StorePayload.from_bytes(message.payload)
        image_id = validator.validate_image_id(body.image_id)
        record = self.store.put(image_id, body.data)
        logger.info("Received and stored encrypted image %r (%s bytes) from %s", image_id, record.size, ctx.peername)
        return messages.acknowledge(image_id)
