"""
Catalog models: frame sizes, parts, colors and preset content.

The catalog is loaded once at startup and never mutated by the design
core. Lookups are tolerant: a missing id yields None rather than an error.
"""

from enum import Enum
from typing import Optional, List, Dict, TYPE_CHECKING
from pydantic import BaseModel, Field, PrivateAttr

if TYPE_CHECKING:
    from giftframe.models.composition import Composition


class SlotType(str, Enum):
    """Slot a part can fill on a character, or a free item kind."""
    HAIR = "hair"
    FACE = "face"
    SHIRT = "shirt"
    PANTS = "pants"
    HAT = "hat"
    ACCESSORY = "accessory"
    PET = "pet"
    CHARM = "charm"


# Slots that belong to a character, in render order (bottom to top)
CHARACTER_SLOTS = (SlotType.PANTS, SlotType.SHIRT, SlotType.FACE, SlotType.HAIR, SlotType.HAT)

# Slots that can carry a selected outfit color
COLORED_SLOTS = (SlotType.SHIRT, SlotType.PANTS)


class FrameShape(str, Enum):
    """Shape of the background area, used to pick preset backgrounds."""
    SQUARE = "square"
    RECTANGLE = "rectangle"


class FrameOption(BaseModel):
    """A purchasable frame size."""
    id: str
    name: str
    frame_width_cm: float
    frame_height_cm: float
    background_width_cm: float
    background_height_cm: float
    price: int = Field(ge=0, description="Base price in whole currency units")
    image_url: str = ""
    description: str = ""

    @property
    def shape(self) -> FrameShape:
        if abs(self.background_width_cm - self.background_height_cm) < 1e-6:
            return FrameShape.SQUARE
        return FrameShape.RECTANGLE


class OutfitColor(BaseModel):
    """A color variant of a shirt or pants part. The color is priced on its own."""
    name: str
    hex: str
    image_url: str = ""
    extra_price: int = Field(default=0, ge=0)


class Part(BaseModel):
    """A catalog part for a character slot or a decorative item."""
    id: str
    name: str
    price: int = Field(default=0, ge=0)
    image_url: str = ""
    slot_type: SlotType
    width_cm: float = 1.0
    height_cm: float = 1.0
    colors: Optional[List[OutfitColor]] = None

    @property
    def default_color(self) -> Optional[OutfitColor]:
        return self.colors[0] if self.colors else None

    def find_color(self, name: str) -> Optional[OutfitColor]:
        for color in self.colors or []:
            if color.name == name:
                return color
        return None


class PresetBackground(BaseModel):
    """A ready-made background image for one frame shape."""
    name: str
    url: str
    category: str
    shape: FrameShape


class PrintOption(BaseModel):
    """Custom print tier for a character."""
    id: str
    label: str
    surcharge: int = Field(ge=0)


class CollectionTemplate(BaseModel):
    """A pre-built design customers can start from."""
    name: str
    image_url: str = ""
    composition: "Composition"


class Catalog(BaseModel):
    """
    Read-only catalog used by the composition model and pricing engine.

    Build it once, then pass it explicitly to the services that need it.
    """
    frames: List[FrameOption]
    parts: List[Part] = Field(default_factory=list)
    backgrounds: List[PresetBackground] = Field(default_factory=list)
    print_options: List[PrintOption] = Field(default_factory=list)
    fonts: List[str] = Field(default_factory=list)
    templates: List[CollectionTemplate] = Field(default_factory=list)
    character_base_price: int = Field(default=10000, ge=0)

    _frames_by_id: Dict[str, FrameOption] = PrivateAttr(default_factory=dict)
    _parts_by_id: Dict[str, Part] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context) -> None:
        self._frames_by_id = {f.id: f for f in self.frames}
        self._parts_by_id = {p.id: p for p in self.parts}

    def get_frame(self, frame_id: str) -> Optional[FrameOption]:
        return self._frames_by_id.get(frame_id)

    def frame_or_default(self, frame_id: str) -> FrameOption:
        """Resolve a frame, falling back to the first one for stale ids."""
        return self._frames_by_id.get(frame_id) or self.frames[0]

    def get_part(self, part_id: Optional[str]) -> Optional[Part]:
        if part_id is None:
            return None
        return self._parts_by_id.get(part_id)

    def parts_for_slot(self, slot_type: SlotType) -> List[Part]:
        return [p for p in self.parts if p.slot_type == slot_type]

    def get_print_option(self, option_id: str) -> Optional[PrintOption]:
        for option in self.print_options:
            if option.id == option_id:
                return option
        return None

    def get_template(self, name: str) -> Optional[CollectionTemplate]:
        for template in self.templates:
            if template.name == name:
                return template
        return None

    def backgrounds_for_frame(
        self,
        frame_id: str,
        category: Optional[str] = None,
    ) -> List[PresetBackground]:
        """Preset backgrounds matching the frame's shape, optionally by category."""
        shape = self.frame_or_default(frame_id).shape
        matches = [bg for bg in self.backgrounds if bg.shape == shape]
        if category:
            matches = [bg for bg in matches if bg.category == category]
        return matches

    def background_categories(self, frame_id: str) -> List[str]:
        """Distinct categories for the frame's shape, in first-seen order."""
        seen: List[str] = []
        for bg in self.backgrounds_for_frame(frame_id):
            if bg.category not in seen:
                seen.append(bg.category)
        return seen
