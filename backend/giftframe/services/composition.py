"""
Composition model operations.

Every operation takes a Composition and returns a new one; inputs are
never mutated. Operations that reference an element id that no longer
exists return the composition unchanged instead of raising, since UI
events can race with removals.
"""

import logging
import random
import time
from typing import Optional, Tuple, Union, Dict, Any

from pydantic import ValidationError

from giftframe.config import settings
from giftframe.services.catalog import catalog_service
from giftframe.models.catalog import (
    Catalog,
    OutfitColor,
    Part,
    SlotType,
    CHARACTER_SLOTS,
    COLORED_SLOTS,
)
from giftframe.models.composition import (
    Background,
    Character,
    Composition,
    DecorativeItem,
    ElementKind,
    ElementRef,
    TextBox,
    TextAlign,
    Transform,
)

logger = logging.getLogger(__name__)


# Fields of a text box that update_text may change
TEXT_FIELDS = ("content", "font", "size", "color", "align", "background")

NEW_TEXT_CONTENT = "Nhập chữ..."
CHARM_SCALE = 0.5


class IdGenerator:
    """
    Time-based element ids (milliseconds since epoch).

    Ids are strictly increasing for the lifetime of the generator, even
    when several are requested within the same millisecond.
    """

    def __init__(self):
        self._last = 0

    def next_id(self) -> int:
        candidate = int(time.time() * 1000)
        self._last = max(candidate, self._last + 1)
        return self._last


def _as_ref(ref: Union[ElementRef, str]) -> Optional[ElementRef]:
    if isinstance(ref, ElementRef):
        return ref
    return ElementRef.parse(ref)


class CompositionService:
    """Immutable-update operations over compositions."""

    def __init__(
        self,
        catalog: Catalog,
        id_generator: Optional[IdGenerator] = None,
        rng: Optional[random.Random] = None,
    ):
        self.catalog = catalog
        self.ids = id_generator or IdGenerator()
        self.rng = rng or random.Random()

    # ============================================================
    # Creation
    # ============================================================

    def new_composition(self) -> Composition:
        """An empty design with the default frame and background color."""
        return Composition(
            frame_id=settings.default_frame_id,
            background=Background(value=settings.default_background_color),
        )

    def from_template(self, template_composition: Composition) -> Composition:
        """Start a new design from a collection template."""
        return template_composition.model_copy(
            update={"rendered_preview_image": None},
            deep=True,
        )

    # ============================================================
    # Frame & Background
    # ============================================================

    def set_frame(self, composition: Composition, frame_id: str) -> Composition:
        return composition.model_copy(update={"frame_id": frame_id})

    def set_background(self, composition: Composition, background: Background) -> Composition:
        return composition.model_copy(update={"background": background})

    # ============================================================
    # Characters
    # ============================================================

    def _first_part(self, slot_type: SlotType) -> Optional[Part]:
        parts = self.catalog.parts_for_slot(slot_type)
        return parts[0] if parts else None

    def add_character(self, composition: Composition) -> Tuple[Composition, int]:
        """
        Append a character wearing the default outfit.

        New characters are spread across three columns so they do not
        stack on top of each other.
        """
        char_id = self.ids.next_id()
        shirt = self._first_part(SlotType.SHIRT)
        pants = self._first_part(SlotType.PANTS)
        face = self._first_part(SlotType.FACE)
        hair = self._first_part(SlotType.HAIR)

        character = Character(
            id=char_id,
            shirt=shirt.id if shirt else None,
            pants=pants.id if pants else None,
            face=face.id if face else None,
            hair=hair.id if hair else None,
            shirt_color=shirt.default_color if shirt else None,
            pants_color=pants.default_color if pants else None,
            transform=Transform(x=30 + (len(composition.characters) % 3) * 20, y=75),
        )
        characters = {**composition.characters, char_id: character}
        logger.debug(f"Added character {char_id}")
        return composition.model_copy(update={"characters": characters}), char_id

    def remove_character(self, composition: Composition, char_id: int) -> Composition:
        if char_id not in composition.characters:
            return composition
        characters = {k: v for k, v in composition.characters.items() if k != char_id}
        return composition.model_copy(update={"characters": characters})

    def _update_character(
        self,
        composition: Composition,
        char_id: int,
        updates: Dict[str, Any],
    ) -> Composition:
        character = composition.characters.get(char_id)
        if character is None:
            return composition
        characters = dict(composition.characters)
        characters[char_id] = character.model_copy(update=updates)
        return composition.model_copy(update={"characters": characters})

    def set_character_part(
        self,
        composition: Composition,
        char_id: int,
        slot_type: SlotType,
        part: Part,
    ) -> Composition:
        """
        Put a part into a character slot.

        Hair and hat are mutually exclusive. A hat stashes the current hair
        (even when there is none) so clearing the hat can bring it back.
        Choosing hair drops the hat and forgets any stashed hair.
        A colored shirt or pants part starts on its first color.
        """
        if slot_type not in CHARACTER_SLOTS or part.slot_type != slot_type:
            return composition
        character = composition.characters.get(char_id)
        if character is None:
            return composition

        updates: Dict[str, Any] = {slot_type.value: part.id}
        if slot_type == SlotType.HAIR:
            updates["hat"] = None
            updates["previous_hair"] = None
        elif slot_type == SlotType.HAT:
            updates["previous_hair"] = character.hair
            updates["hair"] = None
        elif slot_type == SlotType.SHIRT:
            updates["shirt_color"] = part.default_color
        elif slot_type == SlotType.PANTS:
            updates["pants_color"] = part.default_color

        return self._update_character(composition, char_id, updates)

    def clear_character_part(
        self,
        composition: Composition,
        char_id: int,
        slot_type: SlotType,
    ) -> Composition:
        """
        Empty a character slot.

        Clearing a hat restores the stashed hair, if any. Clearing hair has
        no restore behaviour.
        """
        if slot_type not in CHARACTER_SLOTS:
            return composition
        character = composition.characters.get(char_id)
        if character is None:
            return composition

        updates: Dict[str, Any] = {slot_type.value: None}
        if slot_type == SlotType.HAT and character.previous_hair:
            updates["hair"] = character.previous_hair
            updates["previous_hair"] = None
        elif slot_type == SlotType.SHIRT:
            updates["shirt_color"] = None
        elif slot_type == SlotType.PANTS:
            updates["pants_color"] = None

        return self._update_character(composition, char_id, updates)

    def set_character_color(
        self,
        composition: Composition,
        char_id: int,
        slot_type: SlotType,
        color: OutfitColor,
    ) -> Composition:
        if slot_type not in COLORED_SLOTS:
            return composition
        return self._update_character(composition, char_id, {f"{slot_type.value}_color": color})

    def set_custom_print(self, composition: Composition, char_id: int, surcharge: int) -> Composition:
        """Set (or, with 0, remove) a character's custom print surcharge."""
        return self._update_character(composition, char_id, {"custom_print_price": max(0, surcharge)})

    # ============================================================
    # Decorative Items
    # ============================================================

    def add_decorative_item(self, composition: Composition, part: Part) -> Tuple[Composition, Optional[int]]:
        """
        Place an accessory or pet near the center.

        Other part types are not free-floating items; the composition is
        returned unchanged with no id.
        """
        if part.slot_type not in (SlotType.ACCESSORY, SlotType.PET):
            return composition, None

        item_id = self.ids.next_id()
        item = DecorativeItem(
            id=item_id,
            slot_type=part.slot_type,
            part_id=part.id,
            transform=Transform(
                x=50 + (self.rng.random() - 0.5) * 20,
                y=50 + (self.rng.random() - 0.5) * 20,
            ),
        )
        items = {**composition.decorative_items, item_id: item}
        return composition.model_copy(update={"decorative_items": items}), item_id

    def add_charm(self, composition: Composition, image: str) -> Tuple[Composition, int]:
        """Place a user-uploaded charm image at the center, half size."""
        item_id = self.ids.next_id()
        item = DecorativeItem(
            id=item_id,
            slot_type=SlotType.CHARM,
            image=image,
            transform=Transform(x=50, y=50, scale=CHARM_SCALE),
        )
        items = {**composition.decorative_items, item_id: item}
        return composition.model_copy(update={"decorative_items": items}), item_id

    # ============================================================
    # Texts
    # ============================================================

    def add_text(self, composition: Composition) -> Tuple[Composition, int]:
        text_id = self.ids.next_id()
        text = TextBox(
            id=text_id,
            content=NEW_TEXT_CONTENT,
            font="Montserrat",
            size=12,
            color="#333333",
            align=TextAlign.CENTER,
            background=True,
            transform=Transform(x=50, y=50, width=settings.default_text_width_pct),
        )
        texts = {**composition.texts, text_id: text}
        return composition.model_copy(update={"texts": texts}), text_id

    def update_text(self, composition: Composition, text_id: int, fields: Dict[str, Any]) -> Composition:
        """
        Merge the given text fields into a text box. Unknown keys are
        ignored; values that fail validation leave the box unchanged.
        """
        text = composition.texts.get(text_id)
        if text is None:
            return composition
        changes = {k: v for k, v in fields.items() if k in TEXT_FIELDS}
        if not changes:
            return composition
        try:
            updated = TextBox.model_validate({**text.model_dump(), **changes})
        except ValidationError as e:
            logger.debug(f"Ignoring invalid text update for text-{text_id}: {e.error_count()} errors")
            return composition
        texts = dict(composition.texts)
        texts[text_id] = updated
        return composition.model_copy(update={"texts": texts})

    def clear_text_content(self, composition: Composition, text_id: int) -> Composition:
        """Empty a text box but keep it in place as a placeholder."""
        if text_id not in composition.texts:
            return composition
        return self.update_text(composition, text_id, {"content": ""})

    # ============================================================
    # Any Element
    # ============================================================

    def remove_element(self, composition: Composition, ref: Union[ElementRef, str]) -> Composition:
        """Delete an element of any kind outright (text boxes included)."""
        element_ref = _as_ref(ref)
        if element_ref is None:
            return composition
        collection = composition.collection(element_ref.kind)
        if element_ref.id not in collection:
            return composition

        remaining = {k: v for k, v in collection.items() if k != element_ref.id}
        field = {
            ElementKind.CHARACTER: "characters",
            ElementKind.ITEM: "decorative_items",
            ElementKind.TEXT: "texts",
        }[element_ref.kind]
        return composition.model_copy(update={field: remaining})

    def apply_transform(
        self,
        composition: Composition,
        ref: Union[ElementRef, str],
        transform: Transform,
    ) -> Composition:
        """
        Replace an element's transform.

        Text boxes keep their current width when the transform carries
        none; other elements never carry a width.
        """
        element_ref = _as_ref(ref)
        if element_ref is None:
            return composition
        element = composition.find(element_ref)
        if element is None:
            return composition

        if element_ref.kind == ElementKind.TEXT:
            if transform.width is None:
                transform = transform.model_copy(update={"width": element.transform.width})
        elif transform.width is not None:
            transform = transform.model_copy(update={"width": None})

        if element.transform == transform:
            return composition

        field = {
            ElementKind.CHARACTER: "characters",
            ElementKind.ITEM: "decorative_items",
            ElementKind.TEXT: "texts",
        }[element_ref.kind]
        collection = dict(composition.collection(element_ref.kind))
        collection[element_ref.id] = element.model_copy(update={"transform": transform})
        return composition.model_copy(update={field: collection})


# Global service instance
composition_service = CompositionService(catalog_service.catalog)
