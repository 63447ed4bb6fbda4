import pytest

from core.exceptions import InvalidTransitionException, ResourceNotFoundException
from models.image_item import (
    ImageCollection,
    ImageItem,
    ImageStatus,
    PreviewHandle,
    advance,
)
from tests.fakes import image


def _pending(name="a.png"):
    return ImageItem.pending(PreviewHandle(handle_id=name, url=f"preview://{name}"), image(name))


@pytest.mark.unit
class TestImageItemLifecycle:
    def test_pending_item_has_no_remote_identity(self):
        item = _pending()
        assert item.status is ImageStatus.PENDING
        assert item.remote_identity is None
        assert item.in_flight
        assert item.filename == "a.png"

    def test_happy_path(self):
        item = advance(_pending(), ImageStatus.UPLOADING)
        assert item.status is ImageStatus.UPLOADING
        assert item.source_file is not None

        done = advance(item, ImageStatus.UPLOADED, remote_identity="https://cdn.test/a.png")
        assert done.status is ImageStatus.UPLOADED
        assert done.remote_identity == "https://cdn.test/a.png"
        assert done.source_file is None
        assert not done.in_flight

    def test_failure_path_keeps_no_identity(self):
        failed = advance(advance(_pending(), ImageStatus.UPLOADING), ImageStatus.ERROR)
        assert failed.status is ImageStatus.ERROR
        assert failed.remote_identity is None
        assert failed.source_file is None

    def test_pending_cannot_skip_uploading(self):
        with pytest.raises(InvalidTransitionException) as exc_info:
            advance(_pending(), ImageStatus.UPLOADED, remote_identity="https://cdn.test/a.png")
        assert exc_info.value.details["current"] == "pending"
        assert exc_info.value.details["target"] == "uploaded"

    @pytest.mark.parametrize("target", list(ImageStatus))
    def test_terminal_states_have_no_exits(self, target):
        uploaded = ImageItem.hydrated("https://cdn.test/a.png")
        failed = advance(advance(_pending(), ImageStatus.UPLOADING), ImageStatus.ERROR)
        for item in (uploaded, failed):
            with pytest.raises(InvalidTransitionException):
                advance(item, target, remote_identity="https://cdn.test/x.png")

    def test_nothing_moves_back_to_pending(self):
        uploading = advance(_pending(), ImageStatus.UPLOADING)
        with pytest.raises(InvalidTransitionException):
            advance(uploading, ImageStatus.PENDING)

    def test_uploaded_requires_identity(self):
        uploading = advance(_pending(), ImageStatus.UPLOADING)
        with pytest.raises(ValueError):
            advance(uploading, ImageStatus.UPLOADED)

    def test_identity_only_allowed_when_uploaded(self):
        preview = PreviewHandle(handle_id="h", url="preview://h")
        with pytest.raises(ValueError):
            ImageItem(local_id="x", preview=preview, status=ImageStatus.UPLOADED)
        with pytest.raises(ValueError):
            ImageItem(local_id="x", preview=preview, status=ImageStatus.ERROR, remote_identity="https://cdn.test/x")

    def test_status_must_be_enum_member(self):
        with pytest.raises(TypeError):
            ImageItem(local_id="x", preview=PreviewHandle(handle_id="h", url="u"), status="pending")

    def test_hydrated_item_uses_remote_preview(self):
        item = ImageItem.hydrated("https://cdn.test/a.png")
        assert item.status is ImageStatus.UPLOADED
        assert item.preview.is_local is False
        assert item.preview.url == "https://cdn.test/a.png"


@pytest.mark.unit
class TestImageCollection:
    def setup_method(self):
        self.first = _pending("1.png")
        self.second = _pending("2.png")
        self.third = _pending("3.png")
        self.items = ImageCollection([self.first, self.second, self.third])

    def test_replace_keeps_position(self):
        self.items.replace(advance(self.second, ImageStatus.UPLOADING))
        assert self.items.ids() == [self.first.local_id, self.second.local_id, self.third.local_id]
        assert self.items.get(self.second.local_id).status is ImageStatus.UPLOADING

    def test_replace_after_removal_is_refused(self):
        self.items.remove(self.second.local_id)
        with pytest.raises(ResourceNotFoundException):
            self.items.replace(advance(self.second, ImageStatus.UPLOADING))
        assert self.second.local_id not in self.items

    def test_duplicate_append_is_refused(self):
        with pytest.raises(ValueError):
            self.items.append(self.first)

    def test_remote_identities_skip_failed_items_in_order(self):
        for item, outcome in ((self.first, "ok"), (self.second, "fail"), (self.third, "ok")):
            uploading = self.items.replace(advance(item, ImageStatus.UPLOADING))
            if outcome == "ok":
                self.items.replace(advance(uploading, ImageStatus.UPLOADED, f"https://cdn.test/{item.filename}"))
            else:
                self.items.replace(advance(uploading, ImageStatus.ERROR))

        assert self.items.remote_identities() == ["https://cdn.test/1.png", "https://cdn.test/3.png"]
        assert self.items.count(ImageStatus.ERROR) == 1
        assert not self.items.any_in({ImageStatus.PENDING, ImageStatus.UPLOADING})
