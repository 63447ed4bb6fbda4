"""
Local preview handles for selected image files.

A handle stands in for the browser object URL the form renders thumbnails
from. The manager owns the preview bytes until the handle is released.
"""

import uuid
from typing import Dict, List, Optional

from core.logging import LoggerMixin
from models.image_item import PreviewHandle, RawFile


class PreviewResourceManager(LoggerMixin):
    """Mints and releases preview handles for one draft session."""

    URL_SCHEME = "preview"

    def __init__(self):
        self._live: Dict[str, RawFile] = {}
        self._released_count = 0

    @property
    def outstanding(self) -> int:
        """Number of handles acquired and not yet released."""
        return len(self._live)

    @property
    def released_count(self) -> int:
        return self._released_count

    def acquire(self, file: RawFile) -> PreviewHandle:
        handle_id = uuid.uuid4().hex
        self._live[handle_id] = file
        self.logger.debug(f"Acquired preview {handle_id} for {file.filename}")
        return PreviewHandle(handle_id=handle_id, url=f"{self.URL_SCHEME}://{handle_id}")

    def is_live(self, handle: PreviewHandle) -> bool:
        return handle.is_local and handle.handle_id in self._live

    def source(self, handle: PreviewHandle) -> Optional[RawFile]:
        return self._live.get(handle.handle_id) if handle.is_local else None

    def read(self, handle: PreviewHandle) -> Optional[bytes]:
        """Thumbnail bytes for a live local handle, None otherwise."""
        file = self.source(handle)
        return file.content if file else None

    def release(self, handle: Optional[PreviewHandle]) -> bool:
        """
        Release a handle. Safe on released, unknown or remote handles.

        Returns:
            True if this call freed the handle
        """
        if handle is None or not handle.is_local:
            return False
        if self._live.pop(handle.handle_id, None) is None:
            return False
        self._released_count += 1
        self.logger.debug(f"Released preview {handle.handle_id}")
        return True

    def release_all(self) -> int:
        """Release every outstanding handle; returns how many were freed."""
        handle_ids: List[str] = list(self._live)
        for handle_id in handle_ids:
            self.release(PreviewHandle(handle_id=handle_id, url=f"{self.URL_SCHEME}://{handle_id}"))
        if handle_ids:
            self.logger.info(f"Released {len(handle_ids)} outstanding previews")
        return len(handle_ids)
