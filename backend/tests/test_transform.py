"""
Unit tests for gesture math and the transform controller.

Host boxes are 400x400 px at (100, 50) unless noted, so 1% of the
background is 4 px on both axes.
"""

import math
import random
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from giftframe.models.composition import ElementKind, ElementRef, Transform
from giftframe.models.gesture import GestureKind, HostBox, PointerPoint
from giftframe.models.session import DesignSession, SelectionState, SessionStatus
from giftframe.services.catalog import build_default_catalog
from giftframe.services.composition import CompositionService
from giftframe.services.selection import SelectionService
from giftframe.services.transform import (
    GestureError,
    Point2D,
    TransformController,
    move_gesture,
    start_gesture,
)


HOST = HostBox(left=100, top=50, width=400, height=400)


def pointer(x, y):
    return PointerPoint(x=x, y=y)


@pytest.fixture
def compositions():
    return CompositionService(build_default_catalog(), rng=random.Random(3))


@pytest.fixture
def controller(compositions):
    return TransformController(compositions, SelectionService(compositions))


@pytest.fixture
def session(compositions):
    """A session with one character and one text box."""
    comp = compositions.new_composition()
    comp, _ = compositions.add_character(comp)
    comp, _ = compositions.add_text(comp)
    now = datetime.now(timezone.utc)
    return DesignSession(
        session_id="test-session",
        created_at=now,
        expires_at=now + timedelta(hours=1),
        composition=comp,
    )


def refs(session):
    """(character ref, text ref) of the session fixture."""
    character = str(ElementRef(ElementKind.CHARACTER, session.composition.character_list[0].id))
    text = str(ElementRef(ElementKind.TEXT, session.composition.text_list[0].id))
    return character, text


class TestPoint2D:
    """Tests for Point2D."""

    def test_to_array(self):
        p = Point2D(x=10.5, y=-3.0)
        assert isinstance(p.to_array(), np.ndarray)
        assert np.allclose(p.to_array(), [10.5, -3.0])

    def test_from_pointer(self):
        p = Point2D.from_pointer(PointerPoint(x=1, y=2))
        assert (p.x, p.y) == (1.0, 2.0)


class TestGestureStart:
    """Tests for start_gesture."""

    def test_no_host_box(self):
        assert start_gesture(GestureKind.DRAG, "item-1", Transform(), None, pointer(0, 0)) is None

    def test_zero_size_host_box(self):
        host = HostBox(left=0, top=0, width=0, height=300)
        assert start_gesture(GestureKind.DRAG, "item-1", Transform(), host, pointer(0, 0)) is None

    def test_width_gesture_only_for_text(self):
        assert start_gesture(GestureKind.WIDTH, "item-1", Transform(), HOST, pointer(0, 0)) is None
        assert start_gesture(GestureKind.WIDTH, "text-1", Transform(width=30), HOST, pointer(0, 0)) is not None

    def test_rotate_captures_pivot(self):
        """Pivot is the host origin plus the element position in pixels."""
        state = start_gesture(GestureKind.ROTATE, "item-1", Transform(x=25, y=50), HOST, pointer(400, 250))
        assert (state.pivot.x, state.pivot.y) == (200, 250)
        assert state.start_angle_deg == pytest.approx(0.0)


class TestDrag:
    """Tests for drag gestures."""

    def test_drag_moves_by_percent_of_host(self):
        state = start_gesture(GestureKind.DRAG, "item-1", Transform(x=50, y=50), HOST, pointer(300, 250))
        result = move_gesture(state, pointer(340, 230))
        assert result.x == pytest.approx(60.0)
        assert result.y == pytest.approx(45.0)

    def test_drag_keeps_other_fields(self):
        start = Transform(x=50, y=50, rotation=30, scale=1.5)
        state = start_gesture(GestureKind.DRAG, "item-1", start, HOST, pointer(300, 250))
        result = move_gesture(state, pointer(310, 250))
        assert (result.rotation, result.scale) == (30, 1.5)

    @pytest.mark.parametrize("target,expected", [
        ((5000, 250), (100.0, 50.0)),
        ((-5000, 250), (0.0, 50.0)),
        ((300, 9999), (50.0, 100.0)),
        ((300, -9999), (50.0, 0.0)),
    ])
    def test_drag_clamps_to_bounds(self, target, expected):
        """Pointers far outside the host clamp to exactly 0 or 100."""
        state = start_gesture(GestureKind.DRAG, "item-1", Transform(x=50, y=50), HOST, pointer(300, 250))
        result = move_gesture(state, pointer(*target))
        assert (result.x, result.y) == expected

    def test_no_drift(self):
        """Many small moves end exactly where a single move would."""
        state = start_gesture(GestureKind.DRAG, "item-1", Transform(x=20, y=70), HOST, pointer(180, 330))
        for step in range(1, 101):
            result = move_gesture(state, pointer(180 + step * 0.37, 330 - step * 0.91))
        direct = move_gesture(state, pointer(180 + 37, 330 - 91))
        assert result.x == pytest.approx(direct.x)
        assert result.y == pytest.approx(direct.y)


class TestRotate:
    """Tests for rotate gestures."""

    def test_east_to_north_is_minus_90(self):
        """Screen y grows downward, so a quarter turn towards north is -90 degrees."""
        state = start_gesture(GestureKind.ROTATE, "item-1", Transform(x=50, y=50), HOST, pointer(400, 250))
        result = move_gesture(state, pointer(300, 150))
        assert result.rotation == pytest.approx(-90.0)

    def test_adds_to_starting_rotation(self):
        state = start_gesture(
            GestureKind.ROTATE, "item-1", Transform(x=50, y=50, rotation=10), HOST, pointer(400, 250)
        )
        result = move_gesture(state, pointer(300, 350))
        assert result.rotation == pytest.approx(100.0)

    def test_position_unchanged(self):
        state = start_gesture(GestureKind.ROTATE, "item-1", Transform(x=50, y=50), HOST, pointer(400, 250))
        result = move_gesture(state, pointer(350, 200))
        assert (result.x, result.y) == (50, 50)
        assert result.rotation == pytest.approx(-45.0)


class TestScale:
    """Tests for uniform resize gestures."""

    def test_horizontal_movement_scales(self):
        state = start_gesture(GestureKind.SCALE, "item-1", Transform(scale=1.0), HOST, pointer(300, 300))
        assert move_gesture(state, pointer(350, 300)).scale == pytest.approx(1.5)

    def test_vertical_movement_ignored(self):
        state = start_gesture(GestureKind.SCALE, "item-1", Transform(scale=1.0), HOST, pointer(300, 300))
        assert move_gesture(state, pointer(300, 900)).scale == pytest.approx(1.0)

    def test_scale_floor(self):
        state = start_gesture(GestureKind.SCALE, "item-1", Transform(scale=1.0), HOST, pointer(300, 300))
        assert move_gesture(state, pointer(-1000, 300)).scale == pytest.approx(0.2)


class TestWidth:
    """Tests for text width gestures."""

    def test_width_from_host_percent(self):
        state = start_gesture(GestureKind.WIDTH, "text-1", Transform(width=30), HOST, pointer(300, 300))
        assert move_gesture(state, pointer(340, 300)).width == pytest.approx(40.0)

    def test_width_floor(self):
        state = start_gesture(GestureKind.WIDTH, "text-1", Transform(width=30), HOST, pointer(300, 300))
        assert move_gesture(state, pointer(0, 300)).width == pytest.approx(10.0)

    def test_missing_width_uses_default(self):
        state = start_gesture(GestureKind.WIDTH, "text-1", Transform(), HOST, pointer(300, 300))
        assert move_gesture(state, pointer(300, 300)).width == pytest.approx(30.0)


class TestTransformController:
    """Tests for the gesture lifecycle on a design session."""

    def test_drag_lifecycle(self, controller, session):
        character, _ = refs(session)
        start = session.composition.character_list[0].transform
        px = HOST.left + start.x / 100 * HOST.width
        py = HOST.top + start.y / 100 * HOST.height

        session = controller.begin(session, GestureKind.DRAG, character, HOST, pointer(px, py))
        assert session.active_gesture is not None
        session = controller.move(session, pointer(px + 8, py - 4))
        session = controller.end(session, pointer(px + 40, py - 20))

        moved = session.composition.character_list[0].transform
        assert moved.x == pytest.approx(start.x + 10)
        assert moved.y == pytest.approx(start.y - 5)
        assert session.active_gesture is None

    def test_drag_start_selects(self, controller, session):
        character, _ = refs(session)
        session = controller.begin(session, GestureKind.DRAG, character, HOST, pointer(0, 0))
        assert session.selection.selected_id == character

    def test_drag_start_selects_without_host(self, controller, session):
        """Even with no usable host the element is selected, but no gesture starts."""
        character, _ = refs(session)
        session = controller.begin(session, GestureKind.DRAG, character, None, pointer(0, 0))
        assert session.selection.selected_id == character
        assert session.active_gesture is None

    def test_rotate_start_does_not_select(self, controller, session):
        character, _ = refs(session)
        session = controller.begin(session, GestureKind.ROTATE, character, HOST, pointer(0, 0))
        assert session.selection.is_unselected

    def test_second_gesture_refused(self, controller, session):
        character, text = refs(session)
        session = controller.begin(session, GestureKind.DRAG, character, HOST, pointer(0, 0))
        with pytest.raises(GestureError) as exc_info:
            controller.begin(session, GestureKind.SCALE, text, HOST, pointer(0, 0))
        assert exc_info.value.code == "GESTURE_IN_PROGRESS"

    def test_move_without_gesture(self, controller, session):
        with pytest.raises(GestureError) as exc_info:
            controller.move(session, pointer(1, 1))
        assert exc_info.value.code == "NO_ACTIVE_GESTURE"

    def test_malformed_ref(self, controller, session):
        with pytest.raises(GestureError) as exc_info:
            controller.begin(session, GestureKind.DRAG, "banana", HOST, pointer(0, 0))
        assert exc_info.value.code == "INVALID_ELEMENT_REF"

    def test_unknown_element_is_noop(self, controller, session):
        assert controller.begin(session, GestureKind.DRAG, "item-42", HOST, pointer(0, 0)) is session

    def test_abandon_keeps_last_move(self, controller, session):
        _, text = refs(session)
        session = controller.begin(session, GestureKind.WIDTH, text, HOST, pointer(300, 300))
        session = controller.move(session, pointer(320, 300))
        session = controller.end(session)
        assert session.composition.text_list[0].transform.width == pytest.approx(35.0)
        assert session.active_gesture is None

    def test_drag_commits_pending_text_of_other_element(self, controller, session, compositions):
        """Dragging another element while a text is mid-edit lands the edit first."""
        character, text = refs(session)
        selections = SelectionService(compositions)
        comp, selection = selections.begin_text_edit(session.composition, SelectionState(), text)
        comp, selection = selections.edit_text(comp, selection, "Hello")
        session = session.model_copy(update={"composition": comp, "selection": selection})

        session = controller.begin(session, GestureKind.DRAG, character, HOST, pointer(0, 0))
        assert session.composition.text_list[0].content == "Hello"
        assert session.selection == SelectionState(selected_id=character)

    def test_move_reopens_finalized_session(self, controller, session):
        character, _ = refs(session)
        session = session.model_copy(update={"status": SessionStatus.FINALIZED})

        session = controller.begin(session, GestureKind.SCALE, character, HOST, pointer(0, 0))
        assert session.status == SessionStatus.FINALIZED

        session = controller.end(session, pointer(50, 0))
        assert session.status == SessionStatus.EDITING
        assert session.composition.character_list[0].transform.scale == pytest.approx(1.5)

    def test_move_without_change_keeps_status(self, controller, session):
        character, _ = refs(session)
        session = session.model_copy(update={"status": SessionStatus.FINALIZED})
        session = controller.begin(session, GestureKind.SCALE, character, HOST, pointer(0, 0))

        assert controller.move(session, pointer(0, 30)) is session
