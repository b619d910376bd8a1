from .memory import BlobRecord, InMemoryBlobStore

__all__ = ["BlobRecord", "InMemoryBlobStore"]
