"""
Design session and cart models.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, List
from pydantic import BaseModel, Field
import json

from giftframe.models.composition import Composition
from giftframe.models.gesture import GestureState


class SessionStatus(str, Enum):
    """Design session status."""
    EDITING = "editing"
    FINALIZED = "finalized"


class SelectionState(BaseModel):
    """
    Transient selection of the design editor.

    Shapes: unselected (selected_id is None), selected, or selected and
    editing text. pending_text holds the in-progress text of the edited
    box until it is committed into the composition.
    """
    selected_id: Optional[str] = None
    editing_text: bool = False
    pending_text: Optional[str] = None

    @property
    def is_unselected(self) -> bool:
        return self.selected_id is None


class DesignSession(BaseModel):
    """One edit session - persisted as JSON."""
    session_id: str
    status: SessionStatus = SessionStatus.EDITING
    created_at: datetime
    expires_at: datetime

    composition: Composition = Field(default_factory=Composition)
    selection: SelectionState = Field(default_factory=SelectionState)

    # At most one gesture is active per session
    active_gesture: Optional[GestureState] = None

    template_name: Optional[str] = None

    def save(self, path: Path) -> None:
        """Save session to JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2, default=str)

    @classmethod
    def load(cls, path: Path) -> "DesignSession":
        """Load session from JSON file."""
        with open(path, "r") as f:
            data = json.load(f)
        return cls.model_validate(data)


class CartItem(BaseModel):
    """A finalized design: an immutable snapshot plus its rendered preview."""
    id: str
    session_id: str
    composition: Composition
    preview_image_id: str
    added_at: datetime


class Cart(BaseModel):
    """Cart index - persisted as JSON."""
    version: str = "1.0.0"
    items: List[CartItem] = Field(default_factory=list)
    updated_at: datetime
