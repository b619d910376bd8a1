from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from server.config import SERVER_CONFIG, load_server_config
from server.core import CommandRouter, ConnectionManager, SocketServer
from server.services import BlobService
from server.storage import InMemoryBlobStore
from shared.protocol.commands import MsgType, commands_in_group


def create_server(config: Dict[str, Any], store: Optional[InMemoryBlobStore] = None) -> SocketServer:
    """Wire store, handlers and listener together from a config mapping."""
    if store is None:
        store = InMemoryBlobStore(config["max_store_bytes"])
    blob_service = BlobService(store)

    router = CommandRouter()
    router.register(MsgType.DATA_REQUEST, blob_service.handle_fetch)
    router.register(MsgType.STORE_REQUEST, blob_service.handle_store)
    router.ensure_complete(commands_in_group("request"))

    return SocketServer(
        config["host"],
        config["port"],
        router,
        ConnectionManager(config["max_connections"]),
        max_payload_size=config["max_payload_size"],
        request_timeout=config["request_timeout"],
        read_chunk_size=config["read_chunk_size"],
    )


async def run_server() -> None:
    load_server_config()
    logging.basicConfig(level=SERVER_CONFIG["log_level"])

    server = create_server(SERVER_CONFIG)
    await server.start()
    try:
        await asyncio.Event().wait()  # keep running
    finally:
        await server.stop()


def main() -> None:
    try:
        asyncio.run(run_server())
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Server interrupted, shutting down")


if __name__ == "__main__":
    main()
