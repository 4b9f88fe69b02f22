"""
Gesture models for direct manipulation of placed elements.

A gesture captures everything it needs at start, so every pointer move
is computed from the captured state plus total displacement.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from giftframe.models.composition import Transform


class GestureKind(str, Enum):
    """Kind of transform a gesture drives."""
    DRAG = "drag"       # Reposition (x, y)
    ROTATE = "rotate"   # Rotation around the element center
    SCALE = "scale"     # Uniform scale from horizontal movement
    WIDTH = "width"     # Text box width from horizontal movement


class PointerPoint(BaseModel):
    """Pointer position in client (viewport) pixels."""
    x: float
    y: float


class HostBox(BaseModel):
    """Pixel bounding box of the background area the elements live on."""
    left: float = 0.0
    top: float = 0.0
    width: float = Field(ge=0.0)
    height: float = Field(ge=0.0)

    @property
    def is_usable(self) -> bool:
        return self.width > 0 and self.height > 0


class GestureState(BaseModel):
    """State captured at gesture start."""
    kind: GestureKind
    element: str = Field(description="Namespaced element reference")
    host: HostBox
    start_pointer: PointerPoint
    start_transform: Transform

    # Rotate only: pivot in client pixels and the initial pointer angle
    pivot: Optional[PointerPoint] = None
    start_angle_deg: Optional[float] = None
