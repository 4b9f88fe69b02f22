"""
Composition models for a single customizable frame design.

Every placed element carries a Transform whose position is expressed in
percent of the background area (0-100), so a design renders identically
at any pixel size. Element collections are id-keyed dicts that keep
insertion order, which is also the render order.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, List, Union
from pydantic import BaseModel, Field

from giftframe.models.catalog import OutfitColor, SlotType


class BackgroundKind(str, Enum):
    """Where a background comes from."""
    COLOR = "color"     # Solid color value, e.g. '#f4eee8'
    IMAGE = "image"     # Catalog preset image URL
    UPLOAD = "upload"   # User-uploaded image data (data URL)


class TextAlign(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class ElementKind(str, Enum):
    """Namespace of a placed element id."""
    CHARACTER = "character"
    ITEM = "item"
    TEXT = "text"


# ============================================================
# Transform Models
# ============================================================

class Transform(BaseModel):
    """Placement of an element on the background area."""
    x: float = Field(default=50.0, description="Center X in percent of background width")
    y: float = Field(default=50.0, description="Center Y in percent of background height")
    rotation: float = Field(default=0.0, description="Rotation in degrees (clockwise on screen)")
    scale: float = Field(default=1.0, description="Uniform scale factor")
    width: Optional[float] = Field(
        default=None,
        description="Box width in percent of background width (text elements only)",
    )


# ============================================================
# Element Models
# ============================================================

class Background(BaseModel):
    """Background of the frame's inner area."""
    kind: BackgroundKind = BackgroundKind.COLOR
    value: str = "#f4eee8"


class Character(BaseModel):
    """A figure assembled from part slots."""
    id: int
    hair: Optional[str] = Field(default=None, description="Hair part id")
    face: Optional[str] = None
    shirt: Optional[str] = None
    pants: Optional[str] = None
    hat: Optional[str] = None
    shirt_color: Optional[OutfitColor] = None
    pants_color: Optional[OutfitColor] = None

    # Hair stashed while a hat is worn, restored when the hat is cleared
    previous_hair: Optional[str] = None

    custom_print_price: int = Field(default=0, ge=0)
    transform: Transform = Field(default_factory=lambda: Transform(y=75.0))

    def part_id(self, slot_type: SlotType) -> Optional[str]:
        return getattr(self, slot_type.value, None)


class DecorativeItem(BaseModel):
    """A free-floating accessory, pet, or uploaded charm."""
    id: int
    slot_type: SlotType
    part_id: Optional[str] = Field(default=None, description="Catalog part id (accessory/pet)")
    image: Optional[str] = Field(default=None, description="Raw image reference (charms)")
    transform: Transform = Field(default_factory=Transform)


class TextBox(BaseModel):
    """A text annotation."""
    id: int
    content: str = ""
    font: str = "Montserrat"
    size: int = Field(default=12, gt=0)
    color: str = "#333333"
    align: TextAlign = TextAlign.CENTER
    background: bool = Field(default=True, description="Draw a highlight behind the text")
    transform: Transform = Field(default_factory=lambda: Transform(width=30.0))


PlacedElement = Union[Character, DecorativeItem, TextBox]


class Composition(BaseModel):
    """
    Complete description of one frame design.

    There is intentionally no price field: prices are always derived by
    the pricing service from the composition and the catalog.
    """
    frame_id: str = "sm"
    background: Background = Field(default_factory=Background)
    characters: Dict[int, Character] = Field(default_factory=dict)
    decorative_items: Dict[int, DecorativeItem] = Field(default_factory=dict)
    texts: Dict[int, TextBox] = Field(default_factory=dict)

    # Flattened image produced by the client at finalize time
    rendered_preview_image: Optional[str] = None

    @property
    def character_list(self) -> List[Character]:
        return list(self.characters.values())

    @property
    def item_list(self) -> List[DecorativeItem]:
        return list(self.decorative_items.values())

    @property
    def text_list(self) -> List[TextBox]:
        return list(self.texts.values())

    def collection(self, kind: ElementKind) -> Dict[int, PlacedElement]:
        if kind == ElementKind.CHARACTER:
            return self.characters
        if kind == ElementKind.ITEM:
            return self.decorative_items
        return self.texts

    def find(self, ref: "ElementRef") -> Optional[PlacedElement]:
        return self.collection(ref.kind).get(ref.id)

    def element_refs(self) -> List["ElementRef"]:
        """All element references in render order (characters, items, texts)."""
        refs = [ElementRef(ElementKind.CHARACTER, i) for i in self.characters]
        refs += [ElementRef(ElementKind.ITEM, i) for i in self.decorative_items]
        refs += [ElementRef(ElementKind.TEXT, i) for i in self.texts]
        return refs


# ============================================================
# Element References
# ============================================================

@dataclass(frozen=True)
class ElementRef:
    """
    Namespaced element identifier, e.g. 'character-1700000000000'.

    Ids are only unique within one collection, so the kind prefix is what
    makes a reference unambiguous across characters, items and texts.
    """
    kind: ElementKind
    id: int

    def __str__(self) -> str:
        return f"{self.kind.value}-{self.id}"

    @classmethod
    def parse(cls, value: str) -> Optional["ElementRef"]:
        """Parse 'kind-id'. Returns None for malformed references."""
        kind_str, _, raw_id = value.partition("-")
        try:
            kind = ElementKind(kind_str)
            return cls(kind=kind, id=int(raw_id))
        except ValueError:
            return None
