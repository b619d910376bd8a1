from .network import BlobClient, NetworkError, parse_address, send_request

__all__ = ["BlobClient", "NetworkError", "parse_address", "send_request"]
