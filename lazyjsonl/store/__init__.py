"""Line-store backends and their contract."""

from .file_store import FileLineStore
from .types import IndexingStatus, LineOffset, LineStore

__all__ = ["FileLineStore", "IndexingStatus", "LineOffset", "LineStore"]
