"""
Unit tests for composition operations - part slots, elements and transforms.
"""

import random
import pytest

from giftframe.models.catalog import SlotType
from giftframe.models.composition import (
    Background,
    BackgroundKind,
    Composition,
    ElementKind,
    ElementRef,
    Transform,
)
from giftframe.services.catalog import build_default_catalog
from giftframe.services.composition import CompositionService, IdGenerator, NEW_TEXT_CONTENT


@pytest.fixture
def catalog():
    return build_default_catalog()


@pytest.fixture
def service(catalog):
    return CompositionService(catalog, rng=random.Random(42))


@pytest.fixture
def with_character(service):
    """A composition holding one default character, plus its id."""
    return service.add_character(service.new_composition())


def part(catalog, part_id):
    return catalog.get_part(part_id)


class TestIdGenerator:
    """Tests for element id generation."""

    def test_ids_strictly_increase(self):
        """Ids requested in a tight loop never repeat."""
        ids = IdGenerator()
        values = [ids.next_id() for _ in range(50)]
        assert values == sorted(values)
        assert len(set(values)) == 50


class TestFrameAndBackground:
    """Tests for frame and background selection."""

    def test_new_composition_defaults(self, service):
        comp = service.new_composition()
        assert comp.frame_id == "sm"
        assert comp.background.kind == BackgroundKind.COLOR
        assert comp.background.value == "#f4eee8"
        assert comp.characters == {}

    def test_set_frame_returns_new_composition(self, service):
        """The input composition is left untouched."""
        comp = service.new_composition()
        updated = service.set_frame(comp, "lg")
        assert updated.frame_id == "lg"
        assert comp.frame_id == "sm"

    def test_set_background(self, service):
        comp = service.set_background(
            service.new_composition(),
            Background(kind=BackgroundKind.IMAGE, value="https://example.com/bg.jpg"),
        )
        assert comp.background.kind == BackgroundKind.IMAGE


class TestCharacters:
    """Tests for adding and dressing characters."""

    def test_add_character_default_outfit(self, with_character):
        """New characters wear the first part of each slot and the first colors."""
        comp, char_id = with_character
        character = comp.characters[char_id]
        assert character.shirt == "shirt1"
        assert character.pants == "pants1"
        assert character.face == "face1"
        assert character.hair == "hair1"
        assert character.hat is None
        assert character.shirt_color.name == "Trắng"
        assert character.pants_color.name == "Đen"

    def test_characters_spread_across_columns(self, service):
        """x positions cycle 30, 50, 70, 30."""
        comp = service.new_composition()
        xs = []
        for _ in range(4):
            comp, char_id = service.add_character(comp)
            xs.append(comp.characters[char_id].transform.x)
            assert comp.characters[char_id].transform.y == 75
        assert xs == [30, 50, 70, 30]

    def test_remove_character(self, service, with_character):
        comp, char_id = with_character
        assert service.remove_character(comp, char_id).characters == {}

    def test_remove_unknown_character_is_noop(self, service, with_character):
        comp, _ = with_character
        assert service.remove_character(comp, 12345) is comp

    def test_set_part_on_unknown_character_is_noop(self, service, catalog, with_character):
        comp, _ = with_character
        assert service.set_character_part(comp, 999, SlotType.HAIR, part(catalog, "hair2")) is comp

    def test_part_for_wrong_slot_is_ignored(self, service, catalog, with_character):
        comp, char_id = with_character
        updated = service.set_character_part(comp, char_id, SlotType.HAIR, part(catalog, "hat1"))
        assert updated.characters[char_id].hair == "hair1"

    def test_colored_part_selects_first_color(self, service, catalog, with_character):
        """Switching to a part without colors clears the color; back to a colored one picks its first."""
        comp, char_id = with_character
        comp = service.set_character_part(comp, char_id, SlotType.SHIRT, part(catalog, "shirt2"))
        assert comp.characters[char_id].shirt_color is None

        comp = service.set_character_part(comp, char_id, SlotType.SHIRT, part(catalog, "shirt1"))
        assert comp.characters[char_id].shirt_color.name == "Trắng"

    def test_set_color(self, service, catalog, with_character):
        comp, char_id = with_character
        red = part(catalog, "shirt1").find_color("Đỏ")
        comp = service.set_character_color(comp, char_id, SlotType.SHIRT, red)
        assert comp.characters[char_id].shirt_color.extra_price == 10000

    def test_color_on_uncolored_slot_is_ignored(self, service, catalog, with_character):
        comp, char_id = with_character
        red = part(catalog, "shirt1").find_color("Đỏ")
        assert service.set_character_color(comp, char_id, SlotType.HAIR, red) is comp

    def test_clear_shirt_clears_color(self, service, with_character):
        comp, char_id = with_character
        comp = service.clear_character_part(comp, char_id, SlotType.SHIRT)
        assert comp.characters[char_id].shirt is None
        assert comp.characters[char_id].shirt_color is None

    def test_custom_print(self, service, with_character):
        comp, char_id = with_character
        comp = service.set_custom_print(comp, char_id, 150000)
        assert comp.characters[char_id].custom_print_price == 150000
        comp = service.set_custom_print(comp, char_id, 0)
        assert comp.characters[char_id].custom_print_price == 0


class TestHairHatExclusivity:
    """Tests for the hair / hat slot rules."""

    def test_hat_replaces_hair(self, service, catalog, with_character):
        comp, char_id = with_character
        comp = service.set_character_part(comp, char_id, SlotType.HAT, part(catalog, "hat1"))
        character = comp.characters[char_id]
        assert character.hat == "hat1"
        assert character.hair is None

    def test_hair_replaces_hat(self, service, catalog, with_character):
        comp, char_id = with_character
        comp = service.set_character_part(comp, char_id, SlotType.HAT, part(catalog, "hat1"))
        comp = service.set_character_part(comp, char_id, SlotType.HAIR, part(catalog, "hair3"))
        character = comp.characters[char_id]
        assert character.hair == "hair3"
        assert character.hat is None

    def test_clearing_hat_restores_hair(self, service, catalog, with_character):
        """hair A, hat B, clear hat -> hair A."""
        comp, char_id = with_character
        comp = service.set_character_part(comp, char_id, SlotType.HAIR, part(catalog, "hair2"))
        comp = service.set_character_part(comp, char_id, SlotType.HAT, part(catalog, "hat1"))
        comp = service.clear_character_part(comp, char_id, SlotType.HAT)
        character = comp.characters[char_id]
        assert character.hair == "hair2"
        assert character.hat is None
        assert character.previous_hair is None

    def test_direct_hair_discards_memory(self, service, catalog, with_character):
        """hair A, hat B, hair C, clear hat -> hair C stays, nothing is restored over it."""
        comp, char_id = with_character
        comp = service.set_character_part(comp, char_id, SlotType.HAIR, part(catalog, "hair2"))
        comp = service.set_character_part(comp, char_id, SlotType.HAT, part(catalog, "hat1"))
        comp = service.set_character_part(comp, char_id, SlotType.HAIR, part(catalog, "hair4"))
        assert comp.characters[char_id].previous_hair is None

        comp = service.clear_character_part(comp, char_id, SlotType.HAT)
        assert comp.characters[char_id].hair == "hair4"

    def test_hat_to_hat_loses_hair(self, service, catalog, with_character):
        """A second hat stashes the (empty) hair, so clearing it restores nothing."""
        comp, char_id = with_character
        comp = service.set_character_part(comp, char_id, SlotType.HAT, part(catalog, "hat1"))
        comp = service.set_character_part(comp, char_id, SlotType.HAT, part(catalog, "hat2"))
        comp = service.clear_character_part(comp, char_id, SlotType.HAT)
        character = comp.characters[char_id]
        assert character.hat is None
        assert character.hair is None

    def test_clearing_hair_does_not_restore_hat(self, service, catalog, with_character):
        comp, char_id = with_character
        comp = service.clear_character_part(comp, char_id, SlotType.HAIR)
        character = comp.characters[char_id]
        assert character.hair is None
        assert character.hat is None

    def test_never_both_hair_and_hat(self, service, catalog, with_character):
        """Exclusivity holds across a random sequence of slot operations."""
        comp, char_id = with_character
        rng = random.Random(7)
        hairs = [p for p in catalog.parts_for_slot(SlotType.HAIR)]
        hats = [p for p in catalog.parts_for_slot(SlotType.HAT)]
        for _ in range(200):
            action = rng.choice(["hair", "hat", "clear_hair", "clear_hat"])
            if action == "hair":
                comp = service.set_character_part(comp, char_id, SlotType.HAIR, rng.choice(hairs))
            elif action == "hat":
                comp = service.set_character_part(comp, char_id, SlotType.HAT, rng.choice(hats))
            elif action == "clear_hair":
                comp = service.clear_character_part(comp, char_id, SlotType.HAIR)
            else:
                comp = service.clear_character_part(comp, char_id, SlotType.HAT)
            character = comp.characters[char_id]
            assert not (character.hair and character.hat)


class TestDecorativeItems:
    """Tests for accessories, pets and charms."""

    def test_add_accessory_near_center(self, service, catalog):
        comp, item_id = service.add_decorative_item(service.new_composition(), part(catalog, "accessory1"))
        item = comp.decorative_items[item_id]
        assert item.slot_type == SlotType.ACCESSORY
        assert item.part_id == "accessory1"
        assert 40 <= item.transform.x <= 60
        assert 40 <= item.transform.y <= 60

    def test_non_item_part_is_rejected(self, service, catalog):
        comp = service.new_composition()
        updated, item_id = service.add_decorative_item(comp, part(catalog, "hair1"))
        assert item_id is None
        assert updated is comp

    def test_add_charm_half_scale(self, service):
        comp, item_id = service.add_charm(service.new_composition(), "data:image/png;base64,AAAA")
        item = comp.decorative_items[item_id]
        assert item.slot_type == SlotType.CHARM
        assert item.image == "data:image/png;base64,AAAA"
        assert item.transform.scale == 0.5
        assert (item.transform.x, item.transform.y) == (50, 50)


class TestTexts:
    """Tests for text boxes."""

    def test_add_text_defaults(self, service):
        comp, text_id = service.add_text(service.new_composition())
        text = comp.texts[text_id]
        assert text.content == NEW_TEXT_CONTENT
        assert text.font == "Montserrat"
        assert text.size == 12
        assert text.color == "#333333"
        assert text.background is True
        assert text.transform.width == 30

    def test_update_text_merges_fields(self, service):
        comp, text_id = service.add_text(service.new_composition())
        comp = service.update_text(comp, text_id, {"content": "Hello", "size": 20, "bogus": 1})
        text = comp.texts[text_id]
        assert text.content == "Hello"
        assert text.size == 20
        assert text.font == "Montserrat"

    @pytest.mark.parametrize("fields", [{"size": 0}, {"size": -3}, {"align": "justify"}])
    def test_update_text_invalid_value_is_noop(self, service, fields):
        comp, text_id = service.add_text(service.new_composition())
        assert service.update_text(comp, text_id, fields) is comp
        assert comp.texts[text_id].size == 12

    def test_clear_text_content_keeps_element(self, service):
        comp, text_id = service.add_text(service.new_composition())
        comp = service.update_text(comp, text_id, {"content": "Hello"})
        comp = service.clear_text_content(comp, text_id)
        assert len(comp.texts) == 1
        assert comp.texts[text_id].content == ""


class TestElements:
    """Tests for operations that work on any element kind."""

    def test_remove_element_by_ref(self, service):
        comp, text_id = service.add_text(service.new_composition())
        comp = service.remove_element(comp, f"text-{text_id}")
        assert comp.texts == {}

    def test_remove_unknown_or_malformed_is_noop(self, service, with_character):
        comp, _ = with_character
        assert service.remove_element(comp, "item-1") is comp
        assert service.remove_element(comp, "nonsense") is comp

    def test_apply_transform(self, service, with_character):
        comp, char_id = with_character
        ref = ElementRef(ElementKind.CHARACTER, char_id)
        comp = service.apply_transform(comp, ref, Transform(x=10, y=20, rotation=45, scale=1.5, width=80))
        transform = comp.characters[char_id].transform
        assert (transform.x, transform.y, transform.rotation, transform.scale) == (10, 20, 45, 1.5)
        assert transform.width is None

    def test_text_keeps_width_when_omitted(self, service):
        comp, text_id = service.add_text(service.new_composition())
        comp = service.apply_transform(comp, f"text-{text_id}", Transform(x=10, y=10))
        assert comp.texts[text_id].transform.width == 30

    def test_transform_replay_is_idempotent(self, service, with_character):
        """Applying the same final transform twice yields identical state."""
        comp, char_id = with_character
        ref = ElementRef(ElementKind.CHARACTER, char_id)
        final = Transform(x=33.3, y=66.6, rotation=-12.5, scale=1.25)
        once = service.apply_transform(comp, ref, final)
        twice = service.apply_transform(once, ref, final)
        assert twice == once
        assert twice is once

    def test_insertion_order_is_render_order(self, service):
        comp = service.new_composition()
        comp, first = service.add_text(comp)
        comp, second = service.add_text(comp)
        assert [t.id for t in comp.text_list] == [first, second]


class TestTemplates:
    """Tests for starting from a collection template."""

    def test_from_template_is_deep_copy(self, service, catalog):
        template = catalog.get_template("Graduation")
        comp = service.from_template(template.composition)
        assert comp == template.composition
        comp.characters[1].transform.x = 0
        assert template.composition.characters[1].transform.x == 50

    def test_template_character_wears_hat(self, catalog):
        character = catalog.get_template("Graduation").composition.characters[1]
        assert character.hat == "hat1"
        assert character.hair is None
