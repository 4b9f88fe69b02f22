"""
Gesture endpoints: drag, rotate, scale and text-width handles.

A client posts the gesture start, then pointer moves, then the end.
Every move is computed from the state captured at start.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from giftframe.models.responses import (
    DesignResponse,
    ErrorResponse,
    GestureEndRequest,
    GestureMoveRequest,
    GestureStartRequest,
)
from giftframe.routes.designs import build_design_response, get_session_or_404
from giftframe.services.selection import selection_service
from giftframe.services.storage import storage_service
from giftframe.services.transform import GestureError, transform_controller

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/designs", tags=["gestures"])

GESTURE_ERROR_STATUS = {
    "GESTURE_IN_PROGRESS": status.HTTP_409_CONFLICT,
    "NO_ACTIVE_GESTURE": status.HTTP_409_CONFLICT,
    "INVALID_ELEMENT_REF": status.HTTP_400_BAD_REQUEST,
}


def gesture_http_error(e: GestureError) -> HTTPException:
    return HTTPException(
        status_code=GESTURE_ERROR_STATUS.get(e.code, status.HTTP_400_BAD_REQUEST),
        detail={"code": e.code, "message": e.message, "details": e.details},
    )


@router.post(
    "/{session_id}/gestures",
    response_model=DesignResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed element reference"},
        404: {"model": ErrorResponse, "description": "Design not found"},
        409: {"model": ErrorResponse, "description": "A gesture is already active"},
    },
)
async def start_gesture(session_id: str, request: GestureStartRequest) -> DesignResponse:
    """
    Start a gesture on an element.

    A drag start also selects the element. When the host box is missing
    or has zero size no gesture becomes active.
    """
    session = get_session_or_404(session_id)
    try:
        session = transform_controller.begin(
            session,
            kind=request.kind,
            element_ref=request.element,
            host=request.host,
            pointer=request.pointer,
        )
    except GestureError as e:
        raise gesture_http_error(e)

    storage_service.save_session(session)
    return build_design_response(session)


@router.post(
    "/{session_id}/gestures/move",
    response_model=DesignResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Design not found"},
        409: {"model": ErrorResponse, "description": "No active gesture"},
    },
)
async def move_gesture(session_id: str, request: GestureMoveRequest) -> DesignResponse:
    session = get_session_or_404(session_id)
    try:
        session = transform_controller.move(session, request.pointer)
    except GestureError as e:
        raise gesture_http_error(e)

    storage_service.save_session(session)
    return build_design_response(session)


@router.post(
    "/{session_id}/gestures/end",
    response_model=DesignResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Design not found"},
        409: {"model": ErrorResponse, "description": "No active gesture"},
    },
)
async def end_gesture(session_id: str, request: GestureEndRequest) -> DesignResponse:
    """End the active gesture, optionally applying a final pointer position."""
    session = get_session_or_404(session_id)
    try:
        session = transform_controller.end(session, request.pointer)
    except GestureError as e:
        raise gesture_http_error(e)

    session = session.model_copy(update={
        "selection": selection_service.reconcile(session.composition, session.selection),
    })
    storage_service.save_session(session)
    return build_design_response(session)
