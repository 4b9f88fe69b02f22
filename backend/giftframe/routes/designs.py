"""
Design session endpoints: create, inspect and edit a frame design.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, status

from giftframe.models.catalog import SlotType, CHARACTER_SLOTS, COLORED_SLOTS
from giftframe.models.composition import Background, BackgroundKind, Composition, ElementKind, ElementRef, Transform
from giftframe.models.responses import (
    AddCharmRequest,
    AddItemRequest,
    CreateDesignRequest,
    DeleteKeyRequest,
    DesignResponse,
    EditTextRequest,
    ErrorResponse,
    FinishEditRequest,
    SelectRequest,
    SetColorRequest,
    SetFrameRequest,
    SetPartRequest,
    SetPrintRequest,
    SnapshotResponse,
    UpdateTextRequest,
)
from giftframe.models.pricing import PriceQuote
from giftframe.models.session import DesignSession, SelectionState, SessionStatus
from giftframe.services.catalog import CatalogError, catalog_service
from giftframe.services.composition import composition_service
from giftframe.services.pricing import pricing_service
from giftframe.services.selection import selection_service
from giftframe.services.storage import storage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/designs", tags=["designs"])


# ============================================================
# Helpers
# ============================================================

def get_session_or_404(session_id: str) -> DesignSession:
    """Load session or raise 404."""
    session = storage_service.load_session(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "code": "SESSION_NOT_FOUND",
                "message": f"Design '{session_id}' does not exist or has expired",
            },
        )
    return session


def catalog_http_error(e: CatalogError) -> HTTPException:
    """Map a catalog lookup failure to a 400 response."""
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"code": e.code, "message": e.message, "details": e.details},
    )


def parse_element_ref(value: str) -> ElementRef:
    ref = ElementRef.parse(value)
    if ref is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": "INVALID_ELEMENT_REF",
                "message": f"Malformed element reference: '{value}'",
                "details": {"expected": "<character|item|text>-<id>"},
            },
        )
    return ref


def require_image_reference(value: str) -> str:
    """Uploaded images are data URLs; preset images are http(s) URLs."""
    if not (value.startswith("data:image/") or value.startswith(("http://", "https://"))):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": "INVALID_IMAGE",
                "message": "Image must be an image data URL or an http(s) URL",
            },
        )
    return value


def quote(composition: Composition) -> PriceQuote:
    return pricing_service.compute_price(composition, catalog_service.catalog)


def build_design_response(session: DesignSession, created_element: Optional[str] = None) -> DesignResponse:
    now = datetime.now(timezone.utc)
    ttl_seconds = max(0, int((session.expires_at - now).total_seconds()))
    return DesignResponse(
        session_id=session.session_id,
        status=session.status,
        created_at=session.created_at,
        expires_at=session.expires_at,
        ttl_seconds=ttl_seconds,
        template_name=session.template_name,
        composition=session.composition,
        selection=session.selection,
        active_gesture=session.active_gesture,
        price=quote(session.composition),
        created_element=created_element,
    )


def commit_edit(
    session: DesignSession,
    composition: Composition,
    selection: Optional[SelectionState] = None,
) -> DesignSession:
    """Store an edited composition, dropping a selection that no longer points anywhere."""
    selection = selection if selection is not None else session.selection
    session = session.model_copy(update={
        "composition": composition,
        "selection": selection_service.reconcile(composition, selection),
        "status": SessionStatus.EDITING,
    })
    storage_service.save_session(session)
    return session


# ============================================================
# Sessions
# ============================================================

@router.post(
    "",
    response_model=DesignResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Unknown template"},
    },
)
async def create_design(request: Optional[CreateDesignRequest] = None) -> DesignResponse:
    """
    Start a new design session.

    With a template name the design starts as a copy of that collection
    template; otherwise it is an empty default-frame design.
    """
    template_name = request.template if request else None
    if template_name:
        try:
            template = catalog_service.require_template(template_name)
        except CatalogError as e:
            raise catalog_http_error(e)
        composition = composition_service.from_template(template.composition)
    else:
        composition = composition_service.new_composition()

    session = storage_service.create_session(composition, template_name=template_name)
    return build_design_response(session)


@router.get(
    "/{session_id}",
    response_model=DesignResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def get_design(session_id: str) -> DesignResponse:
    """Get the design, its selection state and current price."""
    return build_design_response(get_session_or_404(session_id))


@router.get(
    "/{session_id}/price",
    response_model=PriceQuote,
    responses={
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def get_price(session_id: str) -> PriceQuote:
    """Itemized price of the design."""
    return quote(get_session_or_404(session_id).composition)


@router.get(
    "/{session_id}/snapshot",
    response_model=SnapshotResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def get_snapshot(session_id: str) -> SnapshotResponse:
    """
    Design as it should be rasterized: pending text committed and
    nothing selected, so no interactive handles are drawn.
    """
    session = get_session_or_404(session_id)
    composition, selection = selection_service.clean_snapshot(session.composition, session.selection)
    return SnapshotResponse(session_id=session.session_id, composition=composition, selection=selection)


# ============================================================
# Frame & Background
# ============================================================

@router.put(
    "/{session_id}/frame",
    response_model=DesignResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Unknown frame"},
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def set_frame(session_id: str, request: SetFrameRequest) -> DesignResponse:
    session = get_session_or_404(session_id)
    try:
        frame = catalog_service.require_frame(request.frame_id)
    except CatalogError as e:
        raise catalog_http_error(e)

    session = commit_edit(session, composition_service.set_frame(session.composition, frame.id))
    return build_design_response(session)


@router.put(
    "/{session_id}/background",
    response_model=DesignResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid background image"},
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def set_background(session_id: str, request: Background) -> DesignResponse:
    """Set a solid color, a preset image or an uploaded image as background."""
    session = get_session_or_404(session_id)
    if request.kind != BackgroundKind.COLOR:
        require_image_reference(request.value)

    session = commit_edit(session, composition_service.set_background(session.composition, request))
    return build_design_response(session)


# ============================================================
# Characters
# ============================================================

@router.post(
    "/{session_id}/characters",
    response_model=DesignResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def add_character(session_id: str) -> DesignResponse:
    """Add a character wearing the default outfit."""
    session = get_session_or_404(session_id)
    composition, char_id = composition_service.add_character(session.composition)
    session = commit_edit(session, composition)
    return build_design_response(session, created_element=str(ElementRef(ElementKind.CHARACTER, char_id)))


@router.delete(
    "/{session_id}/characters/{character_id}",
    response_model=DesignResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def remove_character(session_id: str, character_id: int) -> DesignResponse:
    session = get_session_or_404(session_id)
    session = commit_edit(session, composition_service.remove_character(session.composition, character_id))
    return build_design_response(session)


def _require_character_slot(slot_type: SlotType) -> None:
    if slot_type not in CHARACTER_SLOTS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": "UNKNOWN_PART",
                "message": f"'{slot_type.value}' is not a character slot",
                "details": {"character_slots": [s.value for s in CHARACTER_SLOTS]},
            },
        )


@router.put(
    "/{session_id}/characters/{character_id}/parts/{slot_type}",
    response_model=DesignResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Unknown part for this slot"},
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def set_character_part(
    session_id: str,
    character_id: int,
    slot_type: SlotType,
    request: SetPartRequest,
) -> DesignResponse:
    """
    Put a part on a character.

    Choosing a hat takes the hair off (it comes back when the hat is
    cleared); choosing hair takes the hat off.
    """
    session = get_session_or_404(session_id)
    _require_character_slot(slot_type)
    try:
        part = catalog_service.require_part(request.part_id, slot_type)
    except CatalogError as e:
        raise catalog_http_error(e)

    composition = composition_service.set_character_part(session.composition, character_id, slot_type, part)
    session = commit_edit(session, composition)
    return build_design_response(session)


@router.delete(
    "/{session_id}/characters/{character_id}/parts/{slot_type}",
    response_model=DesignResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Not a character slot"},
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def clear_character_part(session_id: str, character_id: int, slot_type: SlotType) -> DesignResponse:
    session = get_session_or_404(session_id)
    _require_character_slot(slot_type)
    composition = composition_service.clear_character_part(session.composition, character_id, slot_type)
    session = commit_edit(session, composition)
    return build_design_response(session)


@router.put(
    "/{session_id}/characters/{character_id}/colors/{slot_type}",
    response_model=DesignResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Unknown color for the worn part"},
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def set_character_color(
    session_id: str,
    character_id: int,
    slot_type: SlotType,
    request: SetColorRequest,
) -> DesignResponse:
    """Pick a color of the shirt or pants the character currently wears."""
    session = get_session_or_404(session_id)
    character = session.composition.characters.get(character_id)
    if character is None:
        return build_design_response(session)

    if slot_type not in COLORED_SLOTS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": "UNKNOWN_COLOR",
                "message": f"'{slot_type.value}' parts have no colors",
            },
        )

    part = catalog_service.catalog.get_part(character.part_id(slot_type))
    if part is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": "UNKNOWN_COLOR",
                "message": f"Character {character_id} wears no {slot_type.value}",
            },
        )
    try:
        color = catalog_service.require_color(part, request.color_name)
    except CatalogError as e:
        raise catalog_http_error(e)

    composition = composition_service.set_character_color(session.composition, character_id, slot_type, color)
    session = commit_edit(session, composition)
    return build_design_response(session)


@router.put(
    "/{session_id}/characters/{character_id}/print",
    response_model=DesignResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Unknown print option"},
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def set_custom_print(session_id: str, character_id: int, request: SetPrintRequest) -> DesignResponse:
    """Choose a custom print tier for a character, or remove it with a null option."""
    session = get_session_or_404(session_id)
    surcharge = 0
    if request.option_id:
        try:
            surcharge = catalog_service.require_print_option(request.option_id).surcharge
        except CatalogError as e:
            raise catalog_http_error(e)

    composition = composition_service.set_custom_print(session.composition, character_id, surcharge)
    session = commit_edit(session, composition)
    return build_design_response(session)


# ============================================================
# Decorative Items
# ============================================================

@router.post(
    "/{session_id}/items",
    response_model=DesignResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Not an accessory or pet part"},
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def add_item(session_id: str, request: AddItemRequest) -> DesignResponse:
    session = get_session_or_404(session_id)
    try:
        part = catalog_service.require_part(request.part_id)
    except CatalogError as e:
        raise catalog_http_error(e)

    composition, item_id = composition_service.add_decorative_item(session.composition, part)
    if item_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": "UNKNOWN_PART",
                "message": f"Part '{part.id}' is a {part.slot_type.value} part, not an accessory or pet",
            },
        )

    session = commit_edit(session, composition)
    return build_design_response(session, created_element=str(ElementRef(ElementKind.ITEM, item_id)))


@router.post(
    "/{session_id}/charms",
    response_model=DesignResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid image"},
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def add_charm(session_id: str, request: AddCharmRequest) -> DesignResponse:
    """Place an uploaded image as a charm."""
    session = get_session_or_404(session_id)
    image = require_image_reference(request.image)
    composition, item_id = composition_service.add_charm(session.composition, image)
    session = commit_edit(session, composition)
    return build_design_response(session, created_element=str(ElementRef(ElementKind.ITEM, item_id)))


# ============================================================
# Texts
# ============================================================

@router.post(
    "/{session_id}/texts",
    response_model=DesignResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def add_text(session_id: str) -> DesignResponse:
    """Add a text box with placeholder content and select it."""
    session = get_session_or_404(session_id)
    composition, text_id = composition_service.add_text(session.composition)
    ref = str(ElementRef(ElementKind.TEXT, text_id))
    composition, selection = selection_service.select(composition, session.selection, ref)
    session = commit_edit(session, composition, selection)
    return build_design_response(session, created_element=ref)


@router.patch(
    "/{session_id}/texts/{text_id}",
    response_model=DesignResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def update_text(session_id: str, text_id: int, request: UpdateTextRequest) -> DesignResponse:
    """Change content or styling of a text box. Omitted fields keep their value."""
    session = get_session_or_404(session_id)
    fields = request.model_dump(exclude_none=True)
    composition = composition_service.update_text(session.composition, text_id, fields)
    session = commit_edit(session, composition)
    return build_design_response(session)


# ============================================================
# Any Element
# ============================================================

@router.put(
    "/{session_id}/elements/{element_ref}/transform",
    response_model=DesignResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed element reference"},
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def apply_transform(session_id: str, element_ref: str, request: Transform) -> DesignResponse:
    """Replace an element's transform. Replaying the same transform changes nothing."""
    session = get_session_or_404(session_id)
    ref = parse_element_ref(element_ref)
    composition = composition_service.apply_transform(session.composition, ref, request)
    session = commit_edit(session, composition)
    return build_design_response(session)


@router.delete(
    "/{session_id}/elements/{element_ref}",
    response_model=DesignResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed element reference"},
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def remove_element(session_id: str, element_ref: str) -> DesignResponse:
    """Remove an element completely, text boxes included."""
    session = get_session_or_404(session_id)
    ref = parse_element_ref(element_ref)
    composition = composition_service.remove_element(session.composition, ref)
    session = commit_edit(session, composition)
    return build_design_response(session)


# ============================================================
# Selection
# ============================================================

@router.post(
    "/{session_id}/selection/select",
    response_model=DesignResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed element reference"},
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def select_element(session_id: str, request: SelectRequest) -> DesignResponse:
    session = get_session_or_404(session_id)
    ref = parse_element_ref(request.element)
    composition, selection = selection_service.select(session.composition, session.selection, str(ref))
    session = commit_edit(session, composition, selection)
    return build_design_response(session)


@router.post(
    "/{session_id}/selection/tap-background",
    response_model=DesignResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def tap_background(session_id: str) -> DesignResponse:
    session = get_session_or_404(session_id)
    composition, selection = selection_service.tap_background(session.composition, session.selection)
    session = commit_edit(session, composition, selection)
    return build_design_response(session)


@router.post(
    "/{session_id}/selection/begin-edit",
    response_model=DesignResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed element reference"},
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def begin_text_edit(session_id: str, request: SelectRequest) -> DesignResponse:
    """Open a text box for editing (double-activation on the client)."""
    session = get_session_or_404(session_id)
    ref = parse_element_ref(request.element)
    composition, selection = selection_service.begin_text_edit(session.composition, session.selection, str(ref))
    session = commit_edit(session, composition, selection)
    return build_design_response(session)


@router.post(
    "/{session_id}/selection/edit",
    response_model=DesignResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def edit_text(session_id: str, request: EditTextRequest) -> DesignResponse:
    session = get_session_or_404(session_id)
    composition, selection = selection_service.edit_text(session.composition, session.selection, request.content)
    session = commit_edit(session, composition, selection)
    return build_design_response(session)


@router.post(
    "/{session_id}/selection/finish-edit",
    response_model=DesignResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def finish_text_edit(session_id: str, request: Optional[FinishEditRequest] = None) -> DesignResponse:
    session = get_session_or_404(session_id)
    commit = request.commit if request else True
    composition, selection = selection_service.finish_text_edit(session.composition, session.selection, commit)
    session = commit_edit(session, composition, selection)
    return build_design_response(session)


@router.post(
    "/{session_id}/selection/delete-key",
    response_model=DesignResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def press_delete(session_id: str, request: Optional[DeleteKeyRequest] = None) -> DesignResponse:
    """
    Delete/backspace on the selection.

    A text box is emptied and stays selected; any other element is
    removed. Ignored while a text input has focus.
    """
    session = get_session_or_404(session_id)
    focus = request.focus_in_text_input if request else False
    composition, selection = selection_service.press_delete(session.composition, session.selection, focus)
    session = commit_edit(session, composition, selection)
    return build_design_response(session)


@router.post(
    "/{session_id}/selection/remove",
    response_model=DesignResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Design not found"},
    },
)
async def remove_selected(session_id: str) -> DesignResponse:
    """Remove the selected element completely, text boxes included."""
    session = get_session_or_404(session_id)
    composition, selection = selection_service.remove_completely(session.composition, session.selection)
    session = commit_edit(session, composition, selection)
    return build_design_response(session)
