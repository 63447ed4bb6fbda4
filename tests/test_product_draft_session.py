import asyncio

import pytest

from core.exceptions import (
    DraftClosedException,
    ExternalServiceException,
    ImageLimitExceededException,
    ResourceNotFoundException,
    ValidationException,
)
from models.image_item import ImageStatus
from services.notification_service import NotificationLevel
from services.product_draft_session import ProductDraftSession, SubmissionState
from tests.fakes import STORED_PRODUCT, FakeCatalogService, FakeGateway, image, make_settings, wait_until


def _fill(session):
    session.update_fields({
        "name": "Linen Shirt",
        "description": "Breathable",
        "original_price": "100",
        "discount_price": "90",
        "stock": "4",
        "brand": "Sky",
    })
    session.select_category("1")
    session.select_subcategory("11")


@pytest.mark.unit
class TestProductDraftSession:
    @pytest.fixture(autouse=True)
    def _services(self, catalog_service, product_service):
        self.catalog_service = catalog_service
        self.product_service = product_service

    def _session(self, gateway, **settings):
        return ProductDraftSession(
            gateway=gateway,
            catalog_service=self.catalog_service,
            product_service=self.product_service,
            settings=make_settings(**settings),
        )

    def test_category_change_clears_subcategory_in_one_step(self):
        async def scenario():
            async with self._session(FakeGateway()) as session:
                await session.open()
                seen = []
                session.select_category("1")
                session.select_subcategory("12")
                seen.append(session.draft.selection)
                seen.append(session.select_category("2"))
                return seen

        apparel, electronics = asyncio.run(scenario())

        assert apparel.category_id == "1" and apparel.subcategory_id == "12"
        assert electronics.category_id == "2"
        assert electronics.subcategory_id is None
        assert electronics.choice_ids() == ["21", "22"]

    def test_subcategory_outside_choices_is_rejected(self):
        async def scenario():
            async with self._session(FakeGateway()) as session:
                await session.open()
                session.select_category("2")
                with pytest.raises(ValidationException):
                    session.select_subcategory("11")
                return session.draft.selection

        selection = asyncio.run(scenario())
        assert selection.subcategory_id is None

    def test_batch_over_cap_admits_nothing(self):
        async def scenario():
            gateway = FakeGateway()
            async with self._session(gateway, max_product_images=3) as session:
                await session.open()
                session.select_files([image("1.png"), image("2.png")])
                with pytest.raises(ImageLimitExceededException) as exc_info:
                    session.select_files([image("3.png"), image("4.png")])
                await session.wait_for_uploads()
                notes = [n.message for n in session.notifications.drain()]
                return session, exc_info.value, notes, gateway

        session, error, notes, gateway = asyncio.run(scenario())

        assert error.message == "Maximum 3 images allowed"
        assert notes == ["Maximum 3 images allowed"]
        assert len(session.draft.items) == 2
        assert gateway.calls == ["1.png", "2.png"]

    def test_batch_filling_cap_exactly_is_admitted(self):
        async def scenario():
            async with self._session(FakeGateway(), max_product_images=2) as session:
                await session.open()
                admitted = session.select_files([image("1.png"), image("2.png")])
                await session.wait_for_uploads()
                return admitted, [i.status for i in session.draft.items]

        admitted, statuses = asyncio.run(scenario())
        assert len(admitted) == 2
        assert statuses == [ImageStatus.UPLOADED, ImageStatus.UPLOADED]

    def test_empty_selection_is_a_no_op(self):
        async def scenario():
            async with self._session(FakeGateway()) as session:
                await session.open()
                return session.select_files([]), session.orchestrator.idle

        admitted, idle = asyncio.run(scenario())
        assert admitted == []
        assert idle

    def test_close_releases_every_preview_once(self):
        async def scenario():
            gateway = FakeGateway(gated=True)
            session = self._session(gateway)
            await session.open()
            session.select_files([image("1.png"), image("2.png"), image("3.png")])
            await wait_until(lambda: gateway.calls == ["1.png"])
            removed = session.remove_image(session.draft.items.ids()[2])

            await session.close()
            await session.close()
            return session, removed

        session, removed = asyncio.run(scenario())

        assert session.closed
        assert session.previews.outstanding == 0
        assert session.previews.released_count == 3
        assert not session.previews.is_live(removed.preview)
        with pytest.raises(DraftClosedException):
            session.set_field("name", "late edit")

    def test_removing_uploading_image_does_not_stall_queue(self):
        async def scenario():
            gateway = FakeGateway(gated=True)
            async with self._session(gateway) as session:
                await session.open()
                first, second = session.select_files([image("1.png"), image("2.png")])
                await wait_until(lambda: gateway.calls == ["1.png"])
                session.remove_image(first.local_id)
                gateway.open_gate()
                await session.wait_for_uploads()
                return [(i.local_id, i.status) for i in session.draft.items], second

        items, second = asyncio.run(scenario())
        assert items == [(second.local_id, ImageStatus.UPLOADED)]

    def test_submit_while_uploading_is_refused_and_state_kept(self):
        async def scenario():
            gateway = FakeGateway(gated=True)
            async with self._session(gateway) as session:
                await session.open()
                _fill(session)
                session.select_files([image("1.png")])
                gateway.open_gate()
                await session.wait_for_uploads()

                gateway.gate.clear()
                session.select_files([image("2.png")])
                await wait_until(lambda: gateway.calls == ["1.png", "2.png"])
                outcome = await session.submit()
                notes = [n.message for n in session.notifications.drain()]
                statuses = [i.status for i in session.draft.items]
                gateway.open_gate()
                await session.wait_for_uploads()
                return outcome, notes, statuses

        outcome, notes, statuses = asyncio.run(scenario())

        assert outcome.state is SubmissionState.UPLOADS_IN_PROGRESS
        assert notes == ["Please wait for images to finish uploading"]
        assert statuses == [ImageStatus.UPLOADED, ImageStatus.UPLOADING]
        assert self.product_service.created == []

    def test_submit_with_partial_failures_sends_successful_images(self):
        async def scenario():
            async with self._session(FakeGateway(fail={"2.png"})) as session:
                await session.open()
                _fill(session)
                session.select_files([image("1.png"), image("2.png"), image("3.png")])
                await session.wait_for_uploads()
                outcome = await session.submit()
                return outcome, [n.message for n in session.notifications.drain()]

        outcome, notes = asyncio.run(scenario())

        assert outcome.accepted
        assert outcome.message == "Product submitted for approval!"
        assert notes == ["Image upload failed", "Product submitted for approval!"]
        payload = self.product_service.created[0]
        assert payload.images == ["https://cdn.test/products/1.png", "https://cdn.test/products/3.png"]
        assert payload.discount_percent == 10

    def test_invalid_submit_reports_all_errors(self):
        async def scenario():
            async with self._session(FakeGateway()) as session:
                await session.open()
                outcome = await session.submit()
                return outcome, session.errors

        outcome, errors = asyncio.run(scenario())

        assert outcome.state is SubmissionState.INVALID
        assert errors.get("name") == "Required"
        assert errors.get("images") == "At least one image is required"
        assert self.product_service.created == []

    def test_editing_a_field_clears_its_error(self):
        async def scenario():
            async with self._session(FakeGateway()) as session:
                await session.open()
                session.validate()
                session.set_field("name", "Shirt")
                return session.errors

        errors = asyncio.run(scenario())
        assert "name" not in errors
        assert "brand" in errors

    def test_failed_save_notifies_and_keeps_draft(self):
        self.product_service.fail = True

        async def scenario():
            async with self._session(FakeGateway()) as session:
                await session.open()
                _fill(session)
                session.select_files([image("1.png")])
                await session.wait_for_uploads()
                outcome = await session.submit()
                return outcome, session.notifications.drain(), len(session.draft.items)

        outcome, notes, item_count = asyncio.run(scenario())

        assert outcome.state is SubmissionState.FAILED
        assert notes[-1].message == "Failed to create product"
        assert item_count == 1

    def test_hydrates_existing_product(self):
        async def scenario():
            async with self._session(FakeGateway()) as session:
                await session.open("prod-7")
                return session

        session = asyncio.run(scenario())
        draft = session.draft

        assert draft.product_id == "prod-7"
        assert draft.original_price == 100
        assert draft.category == "1"
        assert draft.subcategory == "11"
        assert draft.selection.choice_ids() == ["11", "12"]
        assert draft.review_status == "rejected"
        assert draft.admin_remarks == "Blurry photos"
        assert [i.status for i in draft.items] == [ImageStatus.UPLOADED, ImageStatus.UPLOADED]
        assert draft.items.remote_identities() == [
            "https://cdn.test/products/a.png", "https://cdn.test/products/b.png"
        ]
        assert session.previews.outstanding == 0

    def test_hydration_keeps_at_most_max_images(self):
        urls = [f"https://cdn.test/products/{n}.png" for n in range(7)]
        self.product_service.records["prod-9"] = {**STORED_PRODUCT, "id": "prod-9", "images": urls}

        async def scenario():
            async with self._session(FakeGateway(), max_product_images=5) as session:
                await session.open("prod-9")
                notes = session.notifications.drain()
                with pytest.raises(ImageLimitExceededException):
                    session.select_files([image("extra.png")])
                return session.draft, notes

        draft, notes = asyncio.run(scenario())

        assert len(draft.items) == 5
        assert draft.items.remote_identities() == urls[:5]
        assert [(n.level, n.message) for n in notes] == [
            (NotificationLevel.WARNING, "Only the first 5 images were kept")
        ]

    def test_hydrated_draft_resubmits_as_update(self):
        async def scenario():
            async with self._session(FakeGateway()) as session:
                await session.open("prod-7")
                return await session.submit()

        outcome = asyncio.run(scenario())

        assert outcome.message == "Product updated!"
        product_id, payload = self.product_service.updated[0]
        assert product_id == "prod-7"
        assert payload.category == "Apparel"
        assert payload.subcategory == "Shirts"

    def test_unknown_product_fails_to_open(self):
        async def scenario():
            session = self._session(FakeGateway())
            with pytest.raises(ResourceNotFoundException):
                await session.open("missing")
            return session.notifications.drain()

        notes = asyncio.run(scenario())
        assert [n.message for n in notes] == ["Failed loading product"]

    def test_catalog_failure_fails_to_open(self):
        self.catalog_service = FakeCatalogService(fail=True)

        async def scenario():
            session = self._session(FakeGateway())
            with pytest.raises(ExternalServiceException):
                await session.open()
            return session.notifications.drain()

        notes = asyncio.run(scenario())
        assert [n.message for n in notes] == ["Failed loading categories"]

    def test_colors_and_size_chart(self):
        async def scenario():
            async with self._session(FakeGateway()) as session:
                await session.open()
                session.add_color(" red ")
                session.add_color("")
                session.add_color("blue")
                session.remove_color(0)
                session.add_size_row("S", 3)
                session.add_size_row()
                session.update_size_row(1, label="M")
                session.remove_size_row(0)
                with pytest.raises(ResourceNotFoundException):
                    session.remove_size_row(5)
                return session.draft

        draft = asyncio.run(scenario())
        assert draft.colors == ["blue"]
        assert [(row.label, row.stock) for row in draft.size_chart] == [("M", 0)]

    def test_unknown_field_is_rejected(self):
        async def scenario():
            async with self._session(FakeGateway()) as session:
                await session.open()
                with pytest.raises(ValidationException):
                    session.update_fields({"name": "Shirt", "sku": "X-1"})
                return session.draft.name

        assert asyncio.run(scenario()) == ""
