"""
Pricing engine.

Prices are a pure function of a composition and the catalog. Nothing is
cached on the composition, so a quote can be recomputed on every drag
frame or keystroke. All amounts are integers in whole currency units.
"""

from typing import Iterable, List, Optional

from giftframe.models.catalog import Catalog, OutfitColor, SlotType
from giftframe.models.composition import Composition
from giftframe.models.pricing import PriceLine, PriceQuote


def _color_price(color: Optional[OutfitColor]) -> int:
    return color.extra_price if color is not None else 0


class PricingService:
    """Computes itemized price quotes for compositions."""

    def _part_price(self, catalog: Catalog, part_id: Optional[str]) -> int:
        """Catalog price of a part; stale or missing ids price to zero."""
        part = catalog.get_part(part_id)
        return part.price if part is not None else 0

    def compute_price(self, composition: Composition, catalog: Catalog) -> PriceQuote:
        """
        Build a price quote.

        Line order is fixed: frame, characters, per-character custom
        prints, hair, hats, shirts with colors, pants with colors,
        accessories, pets. The frame line is always present; every other
        line only appears when its amount is nonzero.
        """
        lines: List[PriceLine] = []
        characters = composition.character_list
        items = composition.item_list

        frame = catalog.frame_or_default(composition.frame_id)
        lines.append(PriceLine(code="frame", label=f"Frame {frame.name}", amount=frame.price))

        if characters:
            lines.append(PriceLine(
                code="characters",
                label=f"{len(characters)} characters",
                amount=len(characters) * catalog.character_base_price,
            ))

        for index, character in enumerate(characters, start=1):
            if character.custom_print_price > 0:
                lines.append(PriceLine(
                    code="print",
                    label=f"Character {index} - custom print",
                    amount=character.custom_print_price,
                ))

        aggregated = [
            ("hair", "Hair", sum(self._part_price(catalog, c.hair) for c in characters)),
            ("hat", "Hat", sum(self._part_price(catalog, c.hat) for c in characters)),
            ("shirt", "Shirt & color", sum(
                self._part_price(catalog, c.shirt) + _color_price(c.shirt_color) for c in characters
            )),
            ("pants", "Pants & color", sum(
                self._part_price(catalog, c.pants) + _color_price(c.pants_color) for c in characters
            )),
            ("accessory", "Accessories", sum(
                self._part_price(catalog, i.part_id) for i in items if i.slot_type == SlotType.ACCESSORY
            )),
            ("pet", "Pets", sum(
                self._part_price(catalog, i.part_id) for i in items if i.slot_type == SlotType.PET
            )),
        ]
        for code, label, amount in aggregated:
            if amount > 0:
                lines.append(PriceLine(code=code, label=label, amount=amount))

        return PriceQuote(total=sum(line.amount for line in lines), breakdown=lines)

    def cart_subtotal(self, compositions: Iterable[Composition], catalog: Catalog) -> int:
        """Sum of the totals of several compositions (cart lines)."""
        return sum(self.compute_price(c, catalog).total for c in compositions)


# Global service instance
pricing_service = PricingService()
