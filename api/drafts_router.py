"""
Product draft API routes: one open draft per supplier form.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import RedirectResponse, Response

from core.dependencies import get_draft_registry, get_draft_session
from core.exceptions import SkyCartException
from core.logging import get_logger
from models.draft_model import (
    CategorySelectRequest,
    CategorySelectionData,
    ColorRequest,
    DraftCreateRequest,
    DraftFieldsUpdateRequest,
    DraftResponse,
    ErrorResponse,
    ImageItemData,
    NotificationData,
    SizeChartRowData,
    SizeRowRequest,
    SubcategorySelectRequest,
    SubmissionResponse,
    ValidationResponse,
)
from models.image_item import RawFile
from services.draft_registry import DraftSessionRegistry
from services.product_draft_session import ProductDraftSession, SubmissionState

logger = get_logger(__name__)
router = APIRouter(prefix="/drafts", tags=["product drafts"])

SUBMISSION_STATUS_CODES = {
    SubmissionState.SUBMITTED: status.HTTP_200_OK,
    SubmissionState.INVALID: status.HTTP_400_BAD_REQUEST,
    SubmissionState.UPLOADS_IN_PROGRESS: status.HTTP_409_CONFLICT,
    SubmissionState.BUSY: status.HTTP_409_CONFLICT,
    SubmissionState.FAILED: status.HTTP_502_BAD_GATEWAY,
}


def _http_error(e: SkyCartException) -> HTTPException:
    return HTTPException(
        status_code=e.status_code,
        detail={"error": e.error_code, "message": e.message, "details": e.details}
    )


def _notifications(session: ProductDraftSession) -> List[NotificationData]:
    return [NotificationData(level=n.level.value, message=n.message) for n in session.notifications.drain()]


def build_draft_response(session: ProductDraftSession) -> DraftResponse:
    """Snapshot of the draft as the form renders it; drains pending notifications."""
    draft = session.draft
    selection = draft.selection
    return DraftResponse(
        draft_id=session.session_id,
        product_id=draft.product_id,
        fields=draft.scalar_values(),
        selection=CategorySelectionData(
            category_id=selection.category_id,
            subcategory_id=selection.subcategory_id,
            subcategory_choices=list(selection.subcategory_choices),
        ),
        colors=list(draft.colors),
        size_chart=[SizeChartRowData(label=row.label, stock=row.stock) for row in draft.size_chart],
        images=[
            ImageItemData(
                local_id=item.local_id,
                status=item.status.value,
                preview_url=item.preview.url,
                remote_identity=item.remote_identity,
                filename=item.filename,
            )
            for item in draft.items
        ],
        max_images=session.max_images,
        uploads_in_progress=any(item.in_flight for item in draft.items),
        errors=session.errors.as_dict(),
        review_status=draft.review_status,
        admin_remarks=draft.admin_remarks,
        notifications=_notifications(session),
    )


@router.post(
    "/",
    response_model=DraftResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse, "description": "Product not found"},
        502: {"model": ErrorResponse, "description": "Catalog unavailable"},
    },
    summary="Open Draft",
    description="Open a blank product draft, or an edit draft hydrated from an existing product."
)
async def open_draft(
    request: DraftCreateRequest,
    registry: DraftSessionRegistry = Depends(get_draft_registry)
):
    try:
        session = await registry.create(request.product_id)
    except SkyCartException as e:
        logger.warning(f"Failed to open draft for product {request.product_id or 'new'}: {e.message}")
        raise _http_error(e)
    return build_draft_response(session)


@router.get("/{draft_id}", response_model=DraftResponse, summary="Get Draft")
async def get_draft(session: ProductDraftSession = Depends(get_draft_session)):
    return build_draft_response(session)


@router.patch(
    "/{draft_id}/fields",
    response_model=DraftResponse,
    responses={400: {"model": ErrorResponse, "description": "Unknown field"}},
    summary="Update Fields"
)
async def update_fields(
    request: DraftFieldsUpdateRequest,
    session: ProductDraftSession = Depends(get_draft_session)
):
    try:
        session.update_fields(request.model_dump(exclude_unset=True))
    except SkyCartException as e:
        raise _http_error(e)
    return build_draft_response(session)


@router.put("/{draft_id}/category", response_model=DraftResponse, summary="Select Category")
async def select_category(
    request: CategorySelectRequest,
    session: ProductDraftSession = Depends(get_draft_session)
):
    """Selecting a category clears the subcategory and reloads its choices."""
    try:
        session.select_category(request.category_id)
    except SkyCartException as e:
        raise _http_error(e)
    return build_draft_response(session)


@router.put(
    "/{draft_id}/subcategory",
    response_model=DraftResponse,
    responses={400: {"model": ErrorResponse, "description": "Subcategory not offered for the category"}},
    summary="Select Subcategory"
)
async def select_subcategory(
    request: SubcategorySelectRequest,
    session: ProductDraftSession = Depends(get_draft_session)
):
    try:
        session.select_subcategory(request.subcategory_id)
    except SkyCartException as e:
        raise _http_error(e)
    return build_draft_response(session)


@router.post("/{draft_id}/colors", response_model=DraftResponse, summary="Add Color")
async def add_color(request: ColorRequest, session: ProductDraftSession = Depends(get_draft_session)):
    try:
        session.add_color(request.color)
    except SkyCartException as e:
        raise _http_error(e)
    return build_draft_response(session)


@router.delete("/{draft_id}/colors/{index}", response_model=DraftResponse, summary="Remove Color")
async def remove_color(index: int, session: ProductDraftSession = Depends(get_draft_session)):
    try:
        session.remove_color(index)
    except SkyCartException as e:
        raise _http_error(e)
    return build_draft_response(session)


@router.post("/{draft_id}/size-chart", response_model=DraftResponse, summary="Add Size Row")
async def add_size_row(request: SizeRowRequest, session: ProductDraftSession = Depends(get_draft_session)):
    try:
        session.add_size_row(
            label=request.label or "",
            stock=0 if request.stock is None else request.stock,
        )
    except SkyCartException as e:
        raise _http_error(e)
    return build_draft_response(session)


@router.patch("/{draft_id}/size-chart/{index}", response_model=DraftResponse, summary="Update Size Row")
async def update_size_row(
    index: int,
    request: SizeRowRequest,
    session: ProductDraftSession = Depends(get_draft_session)
):
    try:
        session.update_size_row(index, label=request.label, stock=request.stock)
    except SkyCartException as e:
        raise _http_error(e)
    return build_draft_response(session)


@router.delete("/{draft_id}/size-chart/{index}", response_model=DraftResponse, summary="Remove Size Row")
async def remove_size_row(index: int, session: ProductDraftSession = Depends(get_draft_session)):
    try:
        session.remove_size_row(index)
    except SkyCartException as e:
        raise _http_error(e)
    return build_draft_response(session)


@router.post(
    "/{draft_id}/images",
    response_model=DraftResponse,
    responses={400: {"model": ErrorResponse, "description": "Image limit exceeded"}},
    summary="Select Images",
    description="Admit a batch of images and queue them for upload in selection order."
)
async def select_images(
    files: List[UploadFile] = File(...),
    wait: bool = Query(False, description="Return only after the upload queue is drained"),
    session: ProductDraftSession = Depends(get_draft_session)
):
    batch = []
    for upload in files:
        content = await upload.read()
        batch.append(RawFile(
            filename=upload.filename or "image",
            content=content,
            content_type=upload.content_type or "application/octet-stream",
        ))

    try:
        admitted = session.select_files(batch)
        logger.info(f"Draft {session.session_id}: admitted {len(admitted)} image(s)")
        if wait:
            await session.wait_for_uploads()
    except SkyCartException as e:
        logger.warning(f"Draft {session.session_id}: image selection refused: {e.message}")
        raise _http_error(e)
    return build_draft_response(session)


@router.delete("/{draft_id}/images/{local_id}", response_model=DraftResponse, summary="Remove Image")
async def remove_image(local_id: str, session: ProductDraftSession = Depends(get_draft_session)):
    try:
        session.remove_image(local_id)
    except SkyCartException as e:
        raise _http_error(e)
    return build_draft_response(session)


@router.get("/{draft_id}/images/{local_id}/preview", summary="Image Preview")
async def image_preview(local_id: str, session: ProductDraftSession = Depends(get_draft_session)):
    """Thumbnail bytes while the local preview is live, else a redirect to the stored image."""
    item = session.draft.items.get(local_id)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "RESOURCE_NOT_FOUND", "message": f"Image with identifier '{local_id}' not found"}
        )

    source: Optional[RawFile] = session.previews.source(item.preview)
    if source is not None:
        return Response(content=source.content, media_type=source.content_type)
    if not item.preview.is_local:
        return RedirectResponse(item.preview.url)
    raise HTTPException(
        status_code=status.HTTP_410_GONE,
        detail={"error": "PREVIEW_RELEASED", "message": "Preview is no longer available"}
    )


@router.get("/{draft_id}/validation", response_model=ValidationResponse, summary="Validate Draft")
async def validate_draft(session: ProductDraftSession = Depends(get_draft_session)):
    result = session.validate()
    return ValidationResponse(
        valid=result.is_valid,
        errors=result.as_dict(),
        notifications=_notifications(session),
    )


@router.post(
    "/{draft_id}/submit",
    response_model=SubmissionResponse,
    responses={
        400: {"model": SubmissionResponse, "description": "Draft has field errors"},
        409: {"model": SubmissionResponse, "description": "Uploads still in progress"},
        502: {"model": SubmissionResponse, "description": "Product service rejected the payload"},
    },
    summary="Submit Draft"
)
async def submit_draft(
    draft_id: str,
    session: ProductDraftSession = Depends(get_draft_session),
    registry: DraftSessionRegistry = Depends(get_draft_registry)
):
    """
    Submit the draft as a new product (pending review) or as an update.

    An accepted draft is closed; a refused one stays open unchanged.
    """
    outcome = await session.submit()
    body = SubmissionResponse(
        state=outcome.state.value,
        message=outcome.message,
        product=outcome.result.product if outcome.result else None,
        redirect_to=outcome.result.redirect_to if outcome.result else None,
        errors=outcome.errors,
        notifications=_notifications(session),
    )
    if outcome.accepted:
        await registry.close(draft_id)
        return body

    logger.info(f"Draft {draft_id} submission refused: {outcome.state.value}")
    raise HTTPException(
        status_code=SUBMISSION_STATUS_CODES[outcome.state],
        detail=body.model_dump()
    )


@router.delete("/{draft_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Close Draft")
async def close_draft(draft_id: str, registry: DraftSessionRegistry = Depends(get_draft_registry)):
    """Discard the draft and release its previews, even while uploads are running."""
    try:
        await registry.close(draft_id)
    except SkyCartException as e:
        raise _http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
