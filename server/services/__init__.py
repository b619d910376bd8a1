from .blob_service import BlobService

__all__ = ["BlobService"]
