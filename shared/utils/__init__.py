from .common import format_peer, sha256_hex, utc_timestamp

__all__ = ["utc_timestamp", "sha256_hex", "format_peer"]
