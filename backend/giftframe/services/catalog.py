"""
Catalog service: the read-only set of frames, parts and preset content.

The catalog is built once (from the built-in defaults or a JSON file)
and handed to the composition and pricing services. Nothing in the
design core mutates it.
"""

import json
import logging
from pathlib import Path
from typing import Optional, List

from giftframe.config import settings
from giftframe.models.catalog import (
    Catalog,
    CollectionTemplate,
    FrameOption,
    FrameShape,
    OutfitColor,
    Part,
    PresetBackground,
    PrintOption,
    SlotType,
)
from giftframe.models.composition import (
    Background,
    BackgroundKind,
    Character,
    Composition,
    DecorativeItem,
    TextBox,
    Transform,
)

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """A request referenced something the catalog does not contain."""
    def __init__(self, code: str, message: str, details: dict = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ============================================================
# Built-in catalog
# ============================================================

CHARACTER_BASE_PRICE = 10000

# Standard part dimensions in cm
HEAD_W_CM = 1.0
HEAD_H_CM = 1.0
TORSO_W_CM = 2.5
TORSO_H_CM = 1.3
LEGS_W_CM = 1.5
LEGS_H_CM = 1.6
HAT_H_CM = 0.8

_GPHOTOS = "https://lh3.googleusercontent.com/pw/"

FRAMES = [
    FrameOption(
        id="sm", name="15x15cm",
        frame_width_cm=15, frame_height_cm=15,
        background_width_cm=12, background_height_cm=12,
        price=210000, image_url="https://i.imgur.com/O1x9h2j.jpg",
        description="Nhỏ gọn, tinh tế",
    ),
    FrameOption(
        id="md", name="14.8x21cm",
        frame_width_cm=14.8, frame_height_cm=21,
        background_width_cm=11.8, background_height_cm=18,
        price=220000, image_url="https://i.imgur.com/p3QZgff.jpg",
        description="Thanh lịch, đứng dáng",
    ),
    FrameOption(
        id="lg", name="23x23cm",
        frame_width_cm=23, frame_height_cm=23,
        background_width_cm=20, background_height_cm=20,
        price=230000, image_url="https://i.imgur.com/fL39v3o.jpg",
        description="Sang trọng, ấn tượng",
    ),
]

SHIRT_COLORS = [
    OutfitColor(
        name="Trắng", hex="#F8F8F8", extra_price=0,
        image_url=_GPHOTOS + "AP1GczOVLrstztihrJqNhJzCC-d8TpHh0Bir1z82KMOOpuq3GOwWu6K9T6JDAyjgIBq8dj3jQaLWA9zAlZjGg2raYeER8dIVtBwMPUw6c-NbcsSlMvgYqbag39RYLuxKFZJ7Y4CkIpD3tDLQf4YkbTsrF6nT=w295-h472-s-no-gm",
    ),
    OutfitColor(
        name="Đỏ", hex="#E53E3E", extra_price=10000,
        image_url=_GPHOTOS + "AP1GczNe9ZxuP5uYenmJ2OkBjYnoygoVshgZ2TDD8YKieOfsRQ-VLXe-lxNMIwn71vsmW7yNXS8RPo8ynHrj74ZawXVU6kwr5qbeqpDgzEBD0Zs_OiVXE-LojwwEsCVGDb6fG6DNDzDMcnIiN74tMHe9SDt9=w295-h154-s-no-gm",
    ),
    OutfitColor(name="Xanh", hex="#3B82F6", extra_price=10000, image_url="https://i.imgur.com/YAnk5Fv.png"),
]

PANTS_COLORS = [
    OutfitColor(
        name="Đen", hex="#1A202C", extra_price=0,
        image_url=_GPHOTOS + "AP1GczPc3y3ZtsrHwqrhSrem6tH0Sb2jTukrs6IqM3ZcNWruncnNtpL7ysCpSNtTna2ZXX57U0imYog1TnHiBcE8P_286llBYKGzl_L0z9stZ7jhCwEYZf4BPSCsnKscwR5hqKydGhZvt6XY60yk3luu3CXi=w295-h472-s-no-gm",
    ),
    OutfitColor(
        name="Be", hex="#F5F5DC", extra_price=10000,
        image_url=_GPHOTOS + "AP1GczNcsJgRKdG0ms5JKkz8Ka8pBJsocsiYcXh7fli0HGxzyNpQTaGvOWg3x-_Qh3Y1ZI6tRdLjAFvrt6ANJzk43UYJedjTpEJFit_UBDs_TkKMcSfPYHtvJgKFrS9iOvSXEKdjMpL-i_IfrgxVcYpZyyrC=w295-h154-s-no-gm",
    ),
    OutfitColor(name="Xám", hex="#A0AEC0", extra_price=10000, image_url="https://i.imgur.com/J4p3pAv.png"),
]


def _parts(
    slot_type: SlotType,
    prefix: str,
    label: str,
    prices: List[int],
    images: List[str],
    width_cm: float,
    height_cm: float,
) -> List[Part]:
    """Build a numbered series of parts: '<prefix>1', '<prefix>2', ..."""
    return [
        Part(
            id=f"{prefix}{n}",
            name=f"{label} {n}",
            price=price,
            image_url=image,
            slot_type=slot_type,
            width_cm=width_cm,
            height_cm=height_cm,
        )
        for n, (price, image) in enumerate(zip(prices, images), start=1)
    ]


def _build_parts() -> List[Part]:
    hair = _parts(
        SlotType.HAIR, "hair", "Tóc", [25000] * 5,
        [
            _GPHOTOS + "AP1GczPCPpvDr-CQgRqa-w3G1jvJG2pX5oytXcg2X94eCfbQ40ugBPz6o9ZpMybJU8AffRZci6joKyD3lX0iXpcGo7YP-uaHwATVtZq0mziKnIiK6nENRrsLUkSTaHiNqU6KP9YuBESqLV8VtCeF68434gJp=w295-h472-s-no-gm",
            "https://i.imgur.com/2aLDUY1.png",
            "https://i.imgur.com/8SLnM32.png",
            "https://i.imgur.com/N2sDbvV.png",
            "https://i.imgur.com/L13p78E.png",
        ],
        2.7, 1.8,
    )
    face = _parts(
        SlotType.FACE, "face", "Mặt", [0] * 5,
        [
            _GPHOTOS + "AP1GczO06-xgcPdmnVF7c4hWm6N-DG59zpDg89AtodzS9BDbf5VMc5vnV5l8xSHybBeRorRf4nxADzRbVLcZ2IoFzkxC6ypL7O3yMkRNVl6XGDpfDe4zA1lGbSMTG9z07of7w2unrLqeabCrgMaz6f4c8pHO=w295-h472-s-no-gm",
            "https://i.imgur.com/hgzcT7A.png",
            "https://i.imgur.com/lsmh2J8.png",
            "https://i.imgur.com/9nQlqnM.png",
            "https://i.imgur.com/AEf47k0.png",
        ],
        HEAD_W_CM, HEAD_H_CM,
    )
    shirt = _parts(
        SlotType.SHIRT, "shirt", "Áo", [0] + [15000] * 4,
        [
            SHIRT_COLORS[0].image_url,
            "https://i.imgur.com/sKTB6aF.png",
            "https://i.imgur.com/2uIJT8n.png",
            "https://i.imgur.com/dKGAi2f.png",
            "https://i.imgur.com/yLohj2r.png",
        ],
        TORSO_W_CM, TORSO_H_CM,
    )
    shirt[0] = shirt[0].model_copy(update={"name": "Áo trơn", "colors": SHIRT_COLORS})
    pants = _parts(
        SlotType.PANTS, "pants", "Quần", [0] + [15000] * 4,
        [
            PANTS_COLORS[0].image_url,
            "https://i.imgur.com/xQy2S8U.png",
            "https://i.imgur.com/L79Qn5V.png",
            "https://i.imgur.com/MhQZJ3n.png",
            "https://i.imgur.com/XGsaM1v.png",
        ],
        LEGS_W_CM, LEGS_H_CM,
    )
    pants[0] = pants[0].model_copy(update={"name": "Quần trơn", "colors": PANTS_COLORS})
    hat = _parts(
        SlotType.HAT, "hat", "Mũ", [30000] * 3,
        [
            "https://i.imgur.com/sZ0XwxN.png",
            "https://i.imgur.com/iJEuYwH.png",
            "https://i.imgur.com/4q4g16H.png",
        ],
        2.5, HAT_H_CM,
    )
    small_accessories = _parts(
        SlotType.ACCESSORY, "accessory", "Phụ kiện", [5000] * 3,
        [
            "https://i.imgur.com/g0S9eYT.png",
            "https://i.imgur.com/u3gLV0t.png",
            "https://i.imgur.com/5Jz8OxC.png",
        ],
        0.8, 0.8,
    )
    large_accessories = [
        Part(id="accessory4", name="Phụ kiện 4", price=40000, image_url="https://i.imgur.com/bUnGPfW.png",
             slot_type=SlotType.ACCESSORY, width_cm=1, height_cm=1),
        Part(id="accessory5", name="Phụ kiện 5", price=40000, image_url="https://i.imgur.com/1nQjJ7W.png",
             slot_type=SlotType.ACCESSORY, width_cm=1, height_cm=1),
    ]
    pet = _parts(
        SlotType.PET, "pet", "Thú cưng", [15000] * 3,
        [
            "https://i.imgur.com/1v2sJ2b.png",
            "https://i.imgur.com/N6LJ2y2.png",
            "https://i.imgur.com/e3yGz0d.png",
        ],
        2, 1.8,
    )
    return hair + face + shirt + pants + hat + small_accessories + large_accessories + pet


def _square(name: str, url: str, category: str) -> PresetBackground:
    return PresetBackground(name=name, url=url, category=category, shape=FrameShape.SQUARE)


def _rectangle(name: str, url: str, category: str) -> PresetBackground:
    return PresetBackground(name=name, url=url, category=category, shape=FrameShape.RECTANGLE)


BACKGROUNDS = [
    _square("Valentine", "https://i.imgur.com/g0Ab5kG.jpg", "Valentine"),
    _square("Đám cưới", "https://i.imgur.com/w2Y3gbS.jpg", "Đám cưới"),
    _square("Spotify", "https://i.imgur.com/U8I3uY0.png", "Spotify"),
    _square("Sinh nhật", "https://i.imgur.com/0o3bY8U.jpg", "Sinh nhật"),
    _rectangle("Tốt nghiệp 3", "https://i.imgur.com/pBf1gV2.jpg", "Tốt nghiệp"),
    _rectangle("Album 1", "https://i.imgur.com/qT1qB1k.jpg", "Album"),
    _rectangle("Album 2", "https://i.imgur.com/sC03b30.jpg", "Album"),
]

PRINT_OPTIONS = [
    PrintOption(id="standard", label="In thường", surcharge=150000),
    PrintOption(id="premium", label="In cao cấp", surcharge=300000),
]

FONTS = ["Montserrat", "Anniversary", "Serif", "Playfair Display"]


def _template_character(
    char_id: int,
    parts: dict,
    index: int,
    x: float,
    headwear: SlotType = SlotType.HAIR,
) -> Character:
    """A template figure wearing the index-th part of each slot."""
    return Character(
        id=char_id,
        shirt=parts[SlotType.SHIRT][index].id,
        pants=parts[SlotType.PANTS][index].id,
        face=parts[SlotType.FACE][index].id,
        hair=parts[SlotType.HAIR][index].id if headwear == SlotType.HAIR else None,
        hat=parts[SlotType.HAT][0].id if headwear == SlotType.HAT else None,
        transform=Transform(x=x, y=75),
    )


def _build_templates(parts: List[Part]) -> List[CollectionTemplate]:
    by_slot = {slot: [p for p in parts if p.slot_type == slot] for slot in SlotType}

    def title(text_id: int, content: str, y: float, rotation: float = 0.0, scale: float = 1.0) -> TextBox:
        return TextBox(
            id=text_id, content=content, font="Anniversary", size=50,
            transform=Transform(x=50, y=y, rotation=rotation, scale=scale, width=30),
        )

    wedding = Composition(
        frame_id="lg",
        background=Background(kind=BackgroundKind.IMAGE, value="https://i.imgur.com/g0Ab5kG.jpg"),
        characters={
            1: _template_character(1, by_slot, 1, x=40),
            2: _template_character(2, by_slot, 2, x=60),
        },
        texts={1: title(1, "Our Special Day", y=20, rotation=-5, scale=1.2)},
    )
    graduation = Composition(
        frame_id="md",
        background=Background(kind=BackgroundKind.COLOR, value="#e0f2fe"),
        characters={1: _template_character(1, by_slot, 3, x=50, headwear=SlotType.HAT)},
        decorative_items={
            1: DecorativeItem(id=1, slot_type=SlotType.ACCESSORY, part_id="accessory1",
                              transform=Transform(x=70, y=70, rotation=15)),
        },
        texts={2: title(2, "Class of 2024", y=10)},
    )
    birthday = Composition(
        frame_id="sm",
        background=Background(kind=BackgroundKind.IMAGE, value="https://i.imgur.com/0o3bY8U.jpg"),
        characters={1: _template_character(1, by_slot, 4, x=50)},
        decorative_items={
            1: DecorativeItem(id=1, slot_type=SlotType.PET, part_id="pet1",
                              transform=Transform(x=20, y=80, rotation=-10)),
        },
        texts={3: title(3, "Happy Birthday!", y=25)},
    )
    return [
        CollectionTemplate(name="Wedding Day", image_url="https://i.imgur.com/8aQp57m.jpg", composition=wedding),
        CollectionTemplate(name="Graduation", image_url="https://i.imgur.com/pBf1gV2.jpg", composition=graduation),
        CollectionTemplate(name="Birthday Fun", image_url="https://i.imgur.com/kY8P8eH.jpg", composition=birthday),
    ]


def build_default_catalog() -> Catalog:
    """The catalog the storefront ships with."""
    parts = _build_parts()
    return Catalog(
        frames=FRAMES,
        parts=parts,
        backgrounds=BACKGROUNDS,
        print_options=PRINT_OPTIONS,
        fonts=FONTS,
        templates=_build_templates(parts),
        character_base_price=CHARACTER_BASE_PRICE,
    )


# ============================================================
# Loading
# ============================================================

def validate_catalog(catalog: Catalog) -> List[str]:
    """
    Check the references a catalog makes to itself.

    Returns a list of problems; an empty list means the catalog is usable.
    """
    problems = []
    if not catalog.frames:
        problems.append("catalog has no frames")

    for ids, kind in (
        ([f.id for f in catalog.frames], "frame"),
        ([p.id for p in catalog.parts], "part"),
    ):
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            problems.append(f"duplicate {kind} ids: {', '.join(duplicates)}")

    for part in catalog.parts:
        if part.colors and part.slot_type not in (SlotType.SHIRT, SlotType.PANTS):
            problems.append(f"part '{part.id}' has colors but is a {part.slot_type.value}")

    for template in catalog.templates:
        comp = template.composition
        if catalog.get_frame(comp.frame_id) is None:
            problems.append(f"template '{template.name}' uses unknown frame '{comp.frame_id}'")
        for character in comp.character_list:
            for slot in (SlotType.HAIR, SlotType.FACE, SlotType.SHIRT, SlotType.PANTS, SlotType.HAT):
                part_id = character.part_id(slot)
                if part_id is not None and catalog.get_part(part_id) is None:
                    problems.append(f"template '{template.name}' uses unknown part '{part_id}'")
        for item in comp.item_list:
            if item.part_id is not None and catalog.get_part(item.part_id) is None:
                problems.append(f"template '{template.name}' uses unknown part '{item.part_id}'")

    return problems


def load_catalog(path: Path) -> Catalog:
    """Load and validate a catalog JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    catalog = Catalog.model_validate(data)

    problems = validate_catalog(catalog)
    if problems:
        raise CatalogError(
            code="INVALID_CATALOG",
            message=f"Catalog {path} failed validation",
            details={"problems": problems},
        )
    return catalog


def save_catalog(catalog: Catalog, path: Path) -> None:
    """Write a catalog as JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(catalog.model_dump(mode="json"), f, indent=2, ensure_ascii=False)


class CatalogService:
    """Holds the catalog loaded at startup."""

    def __init__(self, catalog_path: Optional[Path] = None):
        self.catalog_path = catalog_path
        self._catalog: Optional[Catalog] = None

    @property
    def catalog(self) -> Catalog:
        if self._catalog is None:
            self._catalog = self._load()
        return self._catalog

    def _load(self) -> Catalog:
        if self.catalog_path is not None:
            catalog = load_catalog(self.catalog_path)
            logger.info(f"Loaded catalog from {self.catalog_path}")
        else:
            catalog = build_default_catalog()
            logger.info("Using built-in catalog")
        logger.info(
            f"Catalog has {len(catalog.frames)} frames, {len(catalog.parts)} parts, "
            f"{len(catalog.templates)} templates"
        )
        return catalog

    def require_frame(self, frame_id: str) -> FrameOption:
        frame = self.catalog.get_frame(frame_id)
        if frame is None:
            raise CatalogError(
                code="UNKNOWN_FRAME",
                message=f"Frame '{frame_id}' does not exist",
                details={"available": [f.id for f in self.catalog.frames]},
            )
        return frame

    def require_part(self, part_id: str, slot_type: Optional[SlotType] = None) -> Part:
        part = self.catalog.get_part(part_id)
        if part is None or (slot_type is not None and part.slot_type != slot_type):
            raise CatalogError(
                code="UNKNOWN_PART",
                message=f"Part '{part_id}' does not exist"
                + (f" for slot '{slot_type.value}'" if slot_type is not None else ""),
            )
        return part

    def require_color(self, part: Part, color_name: str) -> OutfitColor:
        color = part.find_color(color_name)
        if color is None:
            raise CatalogError(
                code="UNKNOWN_COLOR",
                message=f"Part '{part.id}' has no color '{color_name}'",
                details={"available": [c.name for c in part.colors or []]},
            )
        return color

    def require_print_option(self, option_id: str) -> PrintOption:
        option = self.catalog.get_print_option(option_id)
        if option is None:
            raise CatalogError(
                code="UNKNOWN_PRINT_OPTION",
                message=f"Print option '{option_id}' does not exist",
                details={"available": [o.id for o in self.catalog.print_options]},
            )
        return option

    def require_template(self, name: str) -> CollectionTemplate:
        template = self.catalog.get_template(name)
        if template is None:
            raise CatalogError(
                code="UNKNOWN_TEMPLATE",
                message=f"Template '{name}' does not exist",
                details={"available": [t.name for t in self.catalog.templates]},
            )
        return template


# Global service instance
catalog_service = CatalogService(settings.catalog_path)
