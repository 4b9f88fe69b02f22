"""
Pydantic models for the design core and the API schemas.
"""

from giftframe.models.catalog import (
    SlotType,
    FrameShape,
    FrameOption,
    OutfitColor,
    Part,
    PresetBackground,
    PrintOption,
    CollectionTemplate,
    Catalog,
)
from giftframe.models.composition import (
    BackgroundKind,
    TextAlign,
    ElementKind,
    ElementRef,
    Transform,
    Background,
    Character,
    DecorativeItem,
    TextBox,
    Composition,
)
from giftframe.models.gesture import (
    GestureKind,
    PointerPoint,
    HostBox,
    GestureState,
)
from giftframe.models.pricing import PriceLine, PriceQuote
from giftframe.models.session import (
    SessionStatus,
    SelectionState,
    DesignSession,
    CartItem,
    Cart,
)

# Templates embed a Composition, which is defined after the catalog models
CollectionTemplate.model_rebuild()
Catalog.model_rebuild()

__all__ = [
    "SlotType",
    "FrameShape",
    "FrameOption",
    "OutfitColor",
    "Part",
    "PresetBackground",
    "PrintOption",
    "CollectionTemplate",
    "Catalog",
    "BackgroundKind",
    "TextAlign",
    "ElementKind",
    "ElementRef",
    "Transform",
    "Background",
    "Character",
    "DecorativeItem",
    "TextBox",
    "Composition",
    "GestureKind",
    "PointerPoint",
    "HostBox",
    "GestureState",
    "PriceLine",
    "PriceQuote",
    "SessionStatus",
    "SelectionState",
    "DesignSession",
    "CartItem",
    "Cart",
]
