"""
Unit tests for the pricing engine.
"""

import random
import pytest

from giftframe.models.catalog import SlotType
from giftframe.models.composition import Character, Composition, DecorativeItem
from giftframe.services.catalog import build_default_catalog
from giftframe.services.composition import CompositionService
from giftframe.services.pricing import PricingService


@pytest.fixture
def catalog():
    return build_default_catalog()


@pytest.fixture
def pricing():
    return PricingService()


@pytest.fixture
def compositions(catalog):
    return CompositionService(catalog, rng=random.Random(1))


def line_codes(quote):
    return [line.code for line in quote.breakdown]


class TestScenarios:
    """Worked pricing examples."""

    def test_base_pricing(self, pricing, catalog):
        """Frame only: total is the frame price with a single line."""
        quote = pricing.compute_price(Composition(frame_id="sm"), catalog)
        assert quote.total == 210000
        assert len(quote.breakdown) == 1
        assert quote.breakdown[0].code == "frame"
        assert quote.breakdown[0].amount == 210000

    def test_two_characters_one_custom_print(self, pricing, catalog):
        comp = Composition(
            frame_id="sm",
            characters={
                1: Character(id=1, custom_print_price=150000),
                2: Character(id=2),
            },
        )
        quote = pricing.compute_price(comp, catalog)
        assert quote.total == 380000
        assert line_codes(quote) == ["frame", "characters", "print"]
        assert quote.breakdown[1].amount == 20000
        assert quote.breakdown[2].amount == 150000
        assert quote.breakdown[2].label == "Character 1 - custom print"

    def test_shirt_with_colored_variant(self, pricing, catalog):
        shirt = catalog.get_part("shirt1")
        comp = Composition(
            frame_id="sm",
            characters={1: Character(id=1, shirt="shirt1", shirt_color=shirt.find_color("Đỏ"))},
        )
        quote = pricing.compute_price(comp, catalog)
        shirt_line = next(line for line in quote.breakdown if line.code == "shirt")
        assert shirt_line.amount == 10000
        assert shirt_line.label == "Shirt & color"


class TestLineOrder:
    """Tests for breakdown ordering and contents."""

    def test_full_order(self, pricing, catalog):
        pants = catalog.get_part("pants1")
        comp = Composition(
            frame_id="lg",
            characters={
                1: Character(id=1, hair="hair1", shirt="shirt2", pants="pants1",
                             pants_color=pants.find_color("Be"), custom_print_price=150000),
                2: Character(id=2, hat="hat1", custom_print_price=300000),
            },
            decorative_items={
                1: DecorativeItem(id=1, slot_type=SlotType.PET, part_id="pet1"),
                2: DecorativeItem(id=2, slot_type=SlotType.ACCESSORY, part_id="accessory4"),
                3: DecorativeItem(id=3, slot_type=SlotType.CHARM, image="data:image/png;base64,AAAA"),
            },
        )
        quote = pricing.compute_price(comp, catalog)
        assert line_codes(quote) == [
            "frame", "characters", "print", "print", "hair", "hat", "shirt", "pants", "accessory", "pet",
        ]
        amounts = {line.code: line.amount for line in quote.breakdown if line.code != "print"}
        assert amounts == {
            "frame": 230000,
            "characters": 20000,
            "hair": 25000,
            "hat": 30000,
            "shirt": 15000,
            "pants": 10000,
            "accessory": 40000,
            "pet": 15000,
        }
        assert quote.breakdown[3].label == "Character 2 - custom print"

    def test_breakdown_sums_to_total(self, pricing, catalog):
        comp = catalog.get_template("Graduation").composition
        quote = pricing.compute_price(comp, catalog)
        assert quote.total == sum(line.amount for line in quote.breakdown)

    def test_zero_lines_are_omitted(self, pricing, catalog):
        """A character with free parts only adds the characters line."""
        comp = Composition(characters={1: Character(id=1, face="face1", shirt="shirt1", pants="pants1")})
        assert line_codes(pricing.compute_price(comp, catalog)) == ["frame", "characters"]

    def test_charms_are_free(self, pricing, catalog):
        comp = Composition(decorative_items={
            1: DecorativeItem(id=1, slot_type=SlotType.CHARM, image="data:image/png;base64,AAAA"),
        })
        assert pricing.compute_price(comp, catalog).total == 210000


class TestMissingReferences:
    """Stale catalog references contribute zero instead of failing."""

    def test_unknown_part_prices_zero(self, pricing, catalog):
        comp = Composition(characters={1: Character(id=1, hair="hair-retired")})
        quote = pricing.compute_price(comp, catalog)
        assert quote.total == 210000 + 10000
        assert "hair" not in line_codes(quote)

    def test_unknown_frame_falls_back_to_first(self, pricing, catalog):
        quote = pricing.compute_price(Composition(frame_id="xl"), catalog)
        assert quote.total == 210000


class TestMonotonicity:
    """Adding things never lowers the price; removing never raises it."""

    def test_additions_never_decrease_total(self, pricing, catalog, compositions):
        comp = compositions.new_composition()
        total = pricing.compute_price(comp, catalog).total

        comp, char_id = compositions.add_character(comp)
        steps = [
            lambda c: compositions.set_character_part(c, char_id, SlotType.SHIRT, catalog.get_part("shirt3")),
            lambda c: compositions.set_character_part(c, char_id, SlotType.PANTS, catalog.get_part("pants1")),
            lambda c: compositions.set_character_color(
                c, char_id, SlotType.PANTS, catalog.get_part("pants1").find_color("Xám")),
            lambda c: compositions.set_custom_print(c, char_id, 150000),
            lambda c: compositions.add_decorative_item(c, catalog.get_part("pet2"))[0],
            lambda c: compositions.add_decorative_item(c, catalog.get_part("accessory5"))[0],
            lambda c: compositions.add_character(c)[0],
        ]
        for step in steps:
            comp = step(comp)
            new_total = pricing.compute_price(comp, catalog).total
            assert new_total >= total
            total = new_total

        for ref in reversed(comp.element_refs()):
            comp = compositions.remove_element(comp, ref)
            new_total = pricing.compute_price(comp, catalog).total
            assert new_total <= total
            total = new_total

        assert total == 210000


class TestCartSubtotal:
    """Tests for summing several designs."""

    def test_subtotal(self, pricing, catalog):
        comps = [Composition(frame_id="sm"), Composition(frame_id="md")]
        assert pricing.cart_subtotal(comps, catalog) == 430000

    def test_empty_cart(self, pricing, catalog):
        assert pricing.cart_subtotal([], catalog) == 0
