"""Source file storage."""

from docqa.boundary.storage.file_store import FileStore

__all__ = ["FileStore"]
