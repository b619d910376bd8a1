from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from client.config import CLIENT_CONFIG, load_config
from client.core import BlobClient, NetworkError
from shared.protocol.errors import ProtocolError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Push or fetch encrypted images over the relay protocol.")
    parser.add_argument("--host", help="server host (default from CLIENT_SERVER_HOST)")
    parser.add_argument("--port", type=int, help="server port (default from CLIENT_SERVER_PORT)")
    sub = parser.add_subparsers(dest="command", required=True)

    fetch = sub.add_parser("fetch", help="retrieve an encrypted image by id")
    fetch.add_argument("image_id")
    fetch.add_argument("-o", "--output", type=Path, help="file to write (default <image_id>.enc)")

    store = sub.add_parser("store", help="push an encrypted image file under an id")
    store.add_argument("image_id")
    store.add_argument("file", type=Path)
    return parser


async def run_client(args: argparse.Namespace) -> None:
    client = BlobClient(args.host, args.port)
    if args.command == "fetch":
        data = await client.fetch(args.image_id)
        print(f"Received {len(data)} bytes of encrypted image.")
        output = args.output or Path(f"{args.image_id}.enc")
        output.write_bytes(data)
    else:
        data = args.file.read_bytes()
        await client.store(args.image_id, data)
        print(f"Stored {len(data)} bytes as {args.image_id!r}.")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    load_config()
    logging.basicConfig(level=CLIENT_CONFIG["log_level"])
    try:
        asyncio.run(run_client(args))
    except (ProtocolError, NetworkError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
