"""
Catalog endpoints: frames, parts, preset backgrounds and templates.
"""

import logging
from typing import Optional, List

from fastapi import APIRouter, HTTPException, Query, status

from giftframe.models.catalog import Catalog, CollectionTemplate
from giftframe.models.responses import BackgroundsResponse, ErrorResponse
from giftframe.services.catalog import catalog_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["catalog"])

ALL_CATEGORIES = "all"


@router.get("", response_model=Catalog)
async def get_catalog() -> Catalog:
    """The full catalog: frames, parts with colors, backgrounds, print options, fonts and templates."""
    return catalog_service.catalog


@router.get(
    "/frames/{frame_id}/backgrounds",
    response_model=BackgroundsResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Frame not found"},
    },
)
async def list_backgrounds(
    frame_id: str,
    category: Optional[str] = Query(default=None, description="Category filter; 'all' or omitted lists every category"),
) -> BackgroundsResponse:
    """
    Preset backgrounds that fit the frame's shape.

    Square frames get square backgrounds, rectangular frames get
    rectangular ones.
    """
    catalog = catalog_service.catalog
    frame = catalog.get_frame(frame_id)
    if frame is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "code": "UNKNOWN_FRAME",
                "message": f"Frame '{frame_id}' does not exist",
            },
        )

    selected = None if category in (None, "", ALL_CATEGORIES) else category
    return BackgroundsResponse(
        frame_id=frame.id,
        shape=frame.shape,
        category=selected,
        categories=catalog.background_categories(frame.id),
        backgrounds=catalog.backgrounds_for_frame(frame.id, selected),
    )


@router.get("/templates", response_model=List[CollectionTemplate])
async def list_templates() -> List[CollectionTemplate]:
    """Collection templates a new design can start from."""
    return catalog_service.catalog.templates
