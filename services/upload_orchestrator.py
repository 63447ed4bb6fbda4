"""
Sequential upload of draft images.

Admitted items are queued by ``local_id`` and consumed by a single worker
task, so at most one item is ever UPLOADING and transitions are observed in
admission order. A failed item ends in ERROR and the worker moves on.
"""

import asyncio
from dataclasses import replace
from typing import Callable, Iterable, List, Optional

from core.exceptions import UploadException
from core.logging import LoggerMixin
from models.draft import Draft
from models.image_item import ImageItem, ImageStatus, PreviewHandle, advance
from services.notification_service import NotificationCenter
from services.object_store_gateway import ObjectStoreGateway
from services.preview_manager import PreviewResourceManager

TransitionListener = Callable[[ImageItem], None]


class UploadOrchestrator(LoggerMixin):
    """Single-consumer upload queue bound to one draft."""

    def __init__(
        self,
        draft: Draft,
        gateway: ObjectStoreGateway,
        notifications: NotificationCenter,
        previews: Optional[PreviewResourceManager] = None,
        release_preview_on_upload: bool = False,
    ):
        self._draft = draft
        self._gateway = gateway
        self._notifications = notifications
        self._previews = previews
        self._release_preview_on_upload = release_preview_on_upload
        self._queue: "asyncio.Queue[str]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._listeners: List[TransitionListener] = []
        self._current: Optional[str] = None

    @property
    def current(self) -> Optional[str]:
        """local_id of the item whose upload is in flight."""
        return self._current

    @property
    def queued(self) -> int:
        return self._queue.qsize()

    @property
    def idle(self) -> bool:
        return self._current is None and self._queue.empty()

    def subscribe(self, listener: TransitionListener) -> None:
        """Call ``listener`` with every item version this orchestrator writes."""
        self._listeners.append(listener)

    def enqueue(self, local_ids: Iterable[str]) -> None:
        """Queue a batch of PENDING items behind anything already waiting."""
        batch = list(local_ids)
        for local_id in batch:
            self._queue.put_nowait(local_id)
        if batch:
            self.logger.info(f"Queued {len(batch)} image(s) for upload ({self._queue.qsize()} waiting)")
            self._ensure_worker()

    async def drain(self) -> None:
        """Wait until every queued item has reached a terminal state or was skipped."""
        await self._queue.join()

    async def close(self) -> None:
        """Stop the worker. An upload already sent to the store is not recalled."""
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        self._current = None

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            local_id = await self._queue.get()
            self._current = local_id
            try:
                await self._process(local_id)
            except Exception as e:
                self.logger.error(f"Upload worker failed on image {local_id}: {e}", exc_info=True)
            finally:
                self._current = None
                self._queue.task_done()

    def _publish(self, item: ImageItem) -> ImageItem:
        self._draft.items.replace(item)
        for listener in self._listeners:
            try:
                listener(item)
            except Exception as e:
                # The collection already holds the new version
                self.logger.error(f"Transition listener failed for image {item.local_id}: {e}", exc_info=True)
        return item

    async def _process(self, local_id: str) -> None:
        item = self._draft.items.get(local_id)
        if item is None:
            self.logger.info(f"Image {local_id} was removed before its upload started")
            return
        if item.status is not ImageStatus.PENDING:
            self.logger.warning(f"Skipping image {local_id} in status {item.status.value}")
            return

        source = item.source_file
        uploading = self._publish(advance(item, ImageStatus.UPLOADING))

        try:
            receipt = await self._gateway.upload(source)
            if not receipt.location:
                raise UploadException("Object store returned no location", filename=source.filename)
            self._complete(uploading, receipt.location)
        except Exception as e:
            self.logger.error(f"Upload failed for {source.filename}: {e}")
            self._fail(uploading)

    def _complete(self, uploading: ImageItem, location: str) -> None:
        current = self._still_attached(uploading)
        if current is None:
            return
        uploaded = advance(current, ImageStatus.UPLOADED, remote_identity=location)
        if self._release_preview_on_upload and self._previews is not None:
            self._previews.release(uploaded.preview)
            uploaded = replace(uploaded, preview=PreviewHandle.remote(location))
        self._publish(uploaded)
        self.logger.info(f"Image {uploading.local_id} uploaded: {location}")

    def _fail(self, uploading: ImageItem) -> None:
        current = self._still_attached(uploading)
        if current is None or current.status is not ImageStatus.UPLOADING:
            return
        self._publish(advance(current, ImageStatus.ERROR))
        self._notifications.error("Image upload failed")

    def _still_attached(self, item: ImageItem) -> Optional[ImageItem]:
        current = self._draft.items.get(item.local_id)
        if current is None:
            # Removed while in flight; the store call completed anyway
            self.logger.info(f"Discarding upload result for removed image {item.local_id}")
        return current
