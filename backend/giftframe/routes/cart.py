"""
Finalize and cart endpoints.

Finalizing freezes a snapshot of the design together with the image the
client rendered from the clean snapshot. The design itself stays
editable, so a failed capture can simply be retried.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from giftframe.config import settings
from giftframe.models.responses import (
    CartLine,
    CartResponse,
    ErrorResponse,
    FinalizeRequest,
    FinalizeResponse,
)
from giftframe.models.session import SessionStatus
from giftframe.routes.designs import get_session_or_404, quote
from giftframe.services.catalog import catalog_service
from giftframe.services.pricing import pricing_service
from giftframe.services.selection import selection_service
from giftframe.services.storage import ImageDecodeError, decode_image_data, storage_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cart"])


def image_url(image_id: str) -> str:
    return f"{settings.api_v1_prefix}/images/{image_id}"


@router.post(
    "/designs/{session_id}/finalize",
    response_model=FinalizeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Capture failed; the design is unchanged"},
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def finalize_design(session_id: str, request: FinalizeRequest) -> FinalizeResponse:
    """
    Add the design to the cart with its rendered image.

    Pending text edits are committed and the selection is cleared, the
    same state the client renders from GET /designs/{session_id}/snapshot.
    """
    session = get_session_or_404(session_id)

    try:
        image_bytes = decode_image_data(request.image_data, settings.max_preview_image_bytes)
    except ImageDecodeError as e:
        logger.warning(f"Capture failed for design {session_id}: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": "CAPTURE_FAILED",
                "message": "Could not capture the design image, please retry",
                "details": {"reason": e.message, **e.details},
            },
        )

    composition, selection = selection_service.clean_snapshot(session.composition, session.selection)
    image_id = storage_service.save_preview(session_id, image_bytes)
    snapshot = composition.model_copy(update={"rendered_preview_image": image_url(image_id)}, deep=True)
    item = storage_service.add_to_cart(session_id, snapshot, image_id)

    session = session.model_copy(update={
        "composition": composition,
        "selection": selection,
        "active_gesture": None,
        "status": SessionStatus.FINALIZED,
    })
    storage_service.save_session(session)
    logger.info(f"Finalized design {session_id} into cart item {item.id}")

    return FinalizeResponse(
        session_id=session_id,
        cart_item_id=item.id,
        preview_image_id=image_id,
        image_url=image_url(image_id),
        price=quote(snapshot),
        status=session.status,
    )


@router.get("/cart", response_model=CartResponse)
async def get_cart() -> CartResponse:
    """Cart lines with their prices and the subtotal."""
    cart = storage_service.load_cart()
    catalog = catalog_service.catalog
    lines = [
        CartLine(
            index=index,
            id=item.id,
            session_id=item.session_id,
            composition=item.composition,
            preview_image_id=item.preview_image_id,
            image_url=image_url(item.preview_image_id),
            price=pricing_service.compute_price(item.composition, catalog),
            added_at=item.added_at,
        )
        for index, item in enumerate(cart.items)
    ]
    return CartResponse(
        items=lines,
        subtotal=pricing_service.cart_subtotal((item.composition for item in cart.items), catalog),
        updated_at=cart.updated_at,
    )


@router.delete(
    "/cart/{index}",
    response_model=CartResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Cart item not found"},
    },
)
async def remove_cart_item(index: int) -> CartResponse:
    item = storage_service.remove_from_cart(index)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "code": "CART_ITEM_NOT_FOUND",
                "message": f"Cart has no item at index {index}",
            },
        )
    return await get_cart()
