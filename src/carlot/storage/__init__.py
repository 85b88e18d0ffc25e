from .blobs import BlobStore, LocalBlobStore, sanitize_filename

__all__ = ["BlobStore", "LocalBlobStore", "sanitize_filename"]
