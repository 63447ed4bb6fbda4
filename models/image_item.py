"""
Image item lifecycle for product drafts.

An item is created PENDING when a file is selected (or UPLOADED when it is
hydrated from an existing product) and only ever moves along the edges in
``TRANSITIONS``. Items are immutable; every status change produces a new
``ImageItem`` that replaces the old one in its ``ImageCollection`` by
``local_id``.
"""

import uuid
from dataclasses import dataclass, replace, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional

from core.exceptions import InvalidTransitionException, ResourceNotFoundException


class ImageStatus(str, Enum):
    """Upload lifecycle of one attached image."""
    PENDING = "pending"
    UPLOADING = "uploading"
    UPLOADED = "uploaded"
    ERROR = "error"


TRANSITIONS: Dict[ImageStatus, FrozenSet[ImageStatus]] = {
    ImageStatus.PENDING: frozenset({ImageStatus.UPLOADING}),
    ImageStatus.UPLOADING: frozenset({ImageStatus.UPLOADED, ImageStatus.ERROR}),
    ImageStatus.UPLOADED: frozenset(),
    ImageStatus.ERROR: frozenset(),
}

IN_FLIGHT: FrozenSet[ImageStatus] = frozenset({ImageStatus.PENDING, ImageStatus.UPLOADING})


@dataclass(frozen=True)
class RawFile:
    """Bytes selected by the operator, before upload."""
    filename: str
    content: bytes = field(repr=False)
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class PreviewHandle:
    """
    Reference used to render a thumbnail.

    Local handles are minted by the preview manager and must be released;
    remote handles point at an already stored image and own nothing.
    """
    handle_id: str
    url: str
    is_local: bool = True

    @classmethod
    def remote(cls, url: str) -> "PreviewHandle":
        return cls(handle_id=f"remote:{url}", url=url, is_local=False)


@dataclass(frozen=True)
class ImageItem:
    local_id: str
    preview: PreviewHandle
    status: ImageStatus = ImageStatus.PENDING
    remote_identity: Optional[str] = None
    source_file: Optional[RawFile] = None

    def __post_init__(self):
        if not isinstance(self.status, ImageStatus):
            raise TypeError(f"status must be an ImageStatus, got {self.status!r}")
        if (self.status is ImageStatus.UPLOADED) != (self.remote_identity is not None):
            raise ValueError(
                f"Image {self.local_id}: remote identity must be set exactly when status is uploaded"
            )

    @property
    def filename(self) -> Optional[str]:
        return self.source_file.filename if self.source_file else None

    @property
    def in_flight(self) -> bool:
        return self.status in IN_FLIGHT

    @classmethod
    def pending(cls, preview: PreviewHandle, source_file: RawFile) -> "ImageItem":
        return cls(local_id=uuid.uuid4().hex, preview=preview, source_file=source_file)

    @classmethod
    def hydrated(cls, remote_identity: str) -> "ImageItem":
        """An image that already lives in the object store."""
        return cls(
            local_id=uuid.uuid4().hex,
            preview=PreviewHandle.remote(remote_identity),
            status=ImageStatus.UPLOADED,
            remote_identity=remote_identity,
        )


def advance(item: ImageItem, target: ImageStatus, remote_identity: Optional[str] = None) -> ImageItem:
    """
    Return ``item`` moved to ``target``.

    Raises:
        InvalidTransitionException: if ``target`` is not reachable from the current status
    """
    if target not in TRANSITIONS[item.status]:
        raise InvalidTransitionException(item.local_id, item.status.value, target.value)

    if target is ImageStatus.UPLOADING:
        return replace(item, status=target)
    if target is ImageStatus.UPLOADED:
        if not remote_identity:
            raise ValueError(f"Image {item.local_id}: an uploaded item needs a remote identity")
        return replace(item, status=target, remote_identity=remote_identity, source_file=None)
    if target is ImageStatus.ERROR:
        return replace(item, status=target, source_file=None)
    # Nothing transitions into PENDING
    raise InvalidTransitionException(item.local_id, item.status.value, target.value)


class ImageCollection:
    """Ordered images of a draft, addressed by ``local_id`` rather than position."""

    def __init__(self, items: Iterable[ImageItem] = ()):
        self._items: Dict[str, ImageItem] = {}
        for item in items:
            self.append(item)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ImageItem]:
        return iter(list(self._items.values()))

    def __contains__(self, local_id: object) -> bool:
        return local_id in self._items

    def ids(self) -> List[str]:
        return list(self._items)

    def get(self, local_id: str) -> Optional[ImageItem]:
        return self._items.get(local_id)

    def append(self, item: ImageItem) -> ImageItem:
        if item.local_id in self._items:
            raise ValueError(f"Duplicate image id {item.local_id}")
        self._items[item.local_id] = item
        return item

    def replace(self, item: ImageItem) -> ImageItem:
        """Swap in a new version of an existing item, keeping its position."""
        if item.local_id not in self._items:
            raise ResourceNotFoundException("Image", item.local_id)
        self._items[item.local_id] = item
        return item

    def remove(self, local_id: str) -> ImageItem:
        try:
            return self._items.pop(local_id)
        except KeyError:
            raise ResourceNotFoundException("Image", local_id) from None

    def count(self, status: ImageStatus) -> int:
        return sum(1 for item in self._items.values() if item.status is status)

    def any_in(self, statuses: Iterable[ImageStatus]) -> bool:
        wanted = frozenset(statuses)
        return any(item.status in wanted for item in self._items.values())

    def remote_identities(self) -> List[str]:
        """Identities of uploaded items, in draft order."""
        return [
            item.remote_identity
            for item in self._items.values()
            if item.status is ImageStatus.UPLOADED
        ]
