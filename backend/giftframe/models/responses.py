"""
API request and response models.
"""

from datetime import datetime
from typing import Optional, Any, List
from pydantic import BaseModel, Field

from giftframe.models.catalog import FrameShape, PresetBackground
from giftframe.models.composition import Composition, TextAlign
from giftframe.models.gesture import GestureKind, GestureState, HostBox, PointerPoint
from giftframe.models.pricing import PriceQuote
from giftframe.models.session import SessionStatus, SelectionState


# ============================================================
# Design Request Models
# ============================================================

class CreateDesignRequest(BaseModel):
    """Request body for POST /api/v1/designs."""
    template: Optional[str] = Field(
        default=None,
        description="Collection template name to start from. Empty design when omitted.",
    )


class SetFrameRequest(BaseModel):
    frame_id: str


class SetPartRequest(BaseModel):
    part_id: str


class SetColorRequest(BaseModel):
    color_name: str = Field(description="Color name as listed on the part, e.g. 'Đỏ'")


class SetPrintRequest(BaseModel):
    option_id: Optional[str] = Field(
        default=None,
        description="Print option id; null removes the custom print",
    )


class AddItemRequest(BaseModel):
    part_id: str = Field(description="Accessory or pet part id")


class AddCharmRequest(BaseModel):
    image: str = Field(description="Uploaded image as a data URL or http(s) URL")


class UpdateTextRequest(BaseModel):
    """Request body for PATCH /api/v1/designs/{session_id}/texts/{text_id}. Omitted fields stay as they are."""
    content: Optional[str] = None
    font: Optional[str] = None
    size: Optional[int] = Field(default=None, gt=0)
    color: Optional[str] = None
    align: Optional[TextAlign] = None
    background: Optional[bool] = None


# ============================================================
# Selection Request Models
# ============================================================

class SelectRequest(BaseModel):
    element: str = Field(description="Element reference, e.g. 'text-1700000000000'")


class EditTextRequest(BaseModel):
    content: str


class FinishEditRequest(BaseModel):
    commit: bool = Field(default=True, description="False discards the pending text")


class DeleteKeyRequest(BaseModel):
    focus_in_text_input: bool = Field(
        default=False,
        description="True while a text input has focus; the shortcut is then ignored",
    )


# ============================================================
# Gesture Request Models
# ============================================================

class GestureStartRequest(BaseModel):
    """
    Request body for POST /api/v1/designs/{session_id}/gestures.

    host is the pixel bounding box of the background area as measured by
    the client. A missing or zero-size box starts no gesture.
    """
    kind: GestureKind
    element: str
    host: Optional[HostBox] = None
    pointer: PointerPoint


class GestureMoveRequest(BaseModel):
    pointer: PointerPoint


class GestureEndRequest(BaseModel):
    pointer: Optional[PointerPoint] = Field(
        default=None,
        description="Final pointer position; omit to abandon at the last applied move",
    )


# ============================================================
# Design Response Models
# ============================================================

class DesignResponse(BaseModel):
    """A design session with its current price."""
    session_id: str
    status: SessionStatus
    created_at: datetime
    expires_at: datetime
    ttl_seconds: int
    template_name: Optional[str] = None

    composition: Composition
    selection: SelectionState
    active_gesture: Optional[GestureState] = None
    price: PriceQuote

    created_element: Optional[str] = Field(
        default=None,
        description="Reference of the element created by this request, if any",
    )


class SnapshotResponse(BaseModel):
    """Handle-free view of a design for client-side rasterization."""
    session_id: str
    composition: Composition
    selection: SelectionState


class BackgroundsResponse(BaseModel):
    """Response from GET /api/v1/catalog/frames/{frame_id}/backgrounds."""
    frame_id: str
    shape: FrameShape
    category: Optional[str] = None
    categories: List[str]
    backgrounds: List[PresetBackground]


# ============================================================
# Finalize & Cart Models
# ============================================================

class FinalizeRequest(BaseModel):
    """Request body for POST /api/v1/designs/{session_id}/finalize."""
    image_data: str = Field(description="Rendered design as a base64 PNG or PNG data URL")


class FinalizeResponse(BaseModel):
    session_id: str
    cart_item_id: str
    preview_image_id: str
    image_url: str
    price: PriceQuote
    status: SessionStatus


class CartLine(BaseModel):
    index: int
    id: str
    session_id: str
    composition: Composition
    preview_image_id: str
    image_url: str
    price: PriceQuote
    added_at: datetime


class CartResponse(BaseModel):
    """Response from GET /api/v1/cart."""
    items: List[CartLine]
    subtotal: int
    updated_at: datetime


# ============================================================
# Error Models
# ============================================================

class ErrorDetail(BaseModel):
    """Detailed error information."""
    code: str
    message: str
    details: Optional[dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: ErrorDetail
