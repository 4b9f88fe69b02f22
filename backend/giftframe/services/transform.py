"""
Transform controller: turns pointer gestures into element transforms.

Each gesture captures the host box, the pointer and the element's
transform at start. Every move is computed from that captured state plus
the total pointer displacement, never from the previous move's output,
so long gestures do not drift.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from giftframe.config import settings
from giftframe.models.composition import ElementKind, ElementRef, Transform
from giftframe.models.gesture import GestureKind, GestureState, HostBox, PointerPoint
from giftframe.models.session import DesignSession, SessionStatus
from giftframe.services.composition import CompositionService, composition_service
from giftframe.services.selection import SelectionService, selection_service

logger = logging.getLogger(__name__)


@dataclass
class Point2D:
    """A 2D point in client pixels."""
    x: float
    y: float

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y])

    @classmethod
    def from_pointer(cls, p: PointerPoint) -> "Point2D":
        return cls(x=float(p.x), y=float(p.y))


class GestureError(Exception):
    """Gesture lifecycle misuse (e.g. a move with no active gesture)."""
    def __init__(self, code: str, message: str, details: dict = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


def _pivot(host: HostBox, transform: Transform) -> Point2D:
    """Element center in client pixels."""
    return Point2D(
        x=host.left + transform.x / 100.0 * host.width,
        y=host.top + transform.y / 100.0 * host.height,
    )


def _angle_deg(pivot: Point2D, pointer: Point2D) -> float:
    """Screen-space angle from pivot to pointer; y grows downward, so north is -90."""
    dx, dy = pointer.to_array() - pivot.to_array()
    return math.degrees(math.atan2(dy, dx))


def start_gesture(
    kind: GestureKind,
    element_ref: str,
    transform: Transform,
    host: Optional[HostBox],
    pointer: PointerPoint,
) -> Optional[GestureState]:
    """
    Capture the state for a new gesture.

    Returns None when the host box is missing or has zero size, and for
    width gestures on anything but a text element.
    """
    if host is None or not host.is_usable:
        logger.debug(f"Ignoring {kind.value} gesture on {element_ref}: host box unavailable")
        return None

    if kind == GestureKind.WIDTH:
        ref = ElementRef.parse(element_ref)
        if ref is None or ref.kind != ElementKind.TEXT:
            return None
        if transform.width is None:
            transform = transform.model_copy(update={"width": settings.default_text_width_pct})

    state = GestureState(
        kind=kind,
        element=element_ref,
        host=host,
        start_pointer=pointer,
        start_transform=transform,
    )

    if kind == GestureKind.ROTATE:
        pivot = _pivot(host, transform)
        state.pivot = PointerPoint(x=pivot.x, y=pivot.y)
        state.start_angle_deg = _angle_deg(pivot, Point2D.from_pointer(pointer))

    return state


def move_gesture(state: GestureState, pointer: PointerPoint) -> Transform:
    """New element transform for the current pointer position."""
    start = state.start_transform
    delta = Point2D.from_pointer(pointer).to_array() - Point2D.from_pointer(state.start_pointer).to_array()
    dx, dy = float(delta[0]), float(delta[1])

    if state.kind == GestureKind.DRAG:
        size = np.array([state.host.width, state.host.height])
        start_px = np.array([start.x, start.y]) / 100.0 * size
        position = np.clip((start_px + delta) / size * 100.0, 0.0, 100.0)
        return start.model_copy(update={"x": float(position[0]), "y": float(position[1])})

    if state.kind == GestureKind.ROTATE:
        pivot = Point2D.from_pointer(state.pivot)
        current = _angle_deg(pivot, Point2D.from_pointer(pointer))
        return start.model_copy(update={"rotation": start.rotation + (current - state.start_angle_deg)})

    if state.kind == GestureKind.SCALE:
        scale = max(settings.min_scale, start.scale + dx / settings.scale_sensitivity_px)
        return start.model_copy(update={"scale": scale})

    # Width: horizontal movement only, as a share of the host width
    start_width = start.width if start.width is not None else settings.default_text_width_pct
    width = max(settings.min_text_width_pct, start_width + dx / state.host.width * 100.0)
    return start.model_copy(update={"width": width})


class TransformController:
    """
    Runs gestures against a design session.

    A session has at most one active gesture. Starting a drag also
    selects the element, even when no gesture could be started.
    """

    def __init__(self, compositions: CompositionService, selections: SelectionService):
        self.compositions = compositions
        self.selections = selections

    def begin(
        self,
        session: DesignSession,
        kind: GestureKind,
        element_ref: str,
        host: Optional[HostBox],
        pointer: PointerPoint,
    ) -> DesignSession:
        if session.active_gesture is not None:
            raise GestureError(
                code="GESTURE_IN_PROGRESS",
                message="Another gesture is already active",
                details={"active_element": session.active_gesture.element},
            )

        ref = ElementRef.parse(element_ref)
        if ref is None:
            raise GestureError(
                code="INVALID_ELEMENT_REF",
                message=f"Malformed element reference: {element_ref}",
            )

        element = session.composition.find(ref)
        if element is None:
            return session

        composition = session.composition
        selection = session.selection
        if kind == GestureKind.DRAG:
            composition, selection = self.selections.select(composition, selection, str(ref))

        state = start_gesture(kind, str(ref), element.transform, host, pointer)
        if state is not None:
            logger.debug(f"Started {kind.value} gesture on {ref}")

        update = {"composition": composition, "selection": selection, "active_gesture": state}
        if composition is not session.composition:
            update["status"] = SessionStatus.EDITING
        return session.model_copy(update=update)

    def _require_active(self, session: DesignSession) -> GestureState:
        if session.active_gesture is None:
            raise GestureError(code="NO_ACTIVE_GESTURE", message="No gesture is active")
        return session.active_gesture

    def move(self, session: DesignSession, pointer: PointerPoint) -> DesignSession:
        state = self._require_active(session)
        transform = move_gesture(state, pointer)
        composition = self.compositions.apply_transform(session.composition, state.element, transform)
        logger.debug(f"Gesture {state.kind.value} on {state.element}: {transform.model_dump()}")
        if composition is session.composition:
            return session
        return session.model_copy(update={"composition": composition, "status": SessionStatus.EDITING})

    def end(self, session: DesignSession, pointer: Optional[PointerPoint] = None) -> DesignSession:
        """
        Finish the active gesture.

        With a final pointer position the last transform is applied first;
        without one the gesture is simply abandoned and the last applied
        transform stays.
        """
        state = self._require_active(session)
        if pointer is not None:
            session = self.move(session, pointer)
        logger.debug(f"Ended {state.kind.value} gesture on {state.element}")
        return session.model_copy(update={"active_gesture": None})


# Global controller instance
transform_controller = TransformController(composition_service, selection_service)
