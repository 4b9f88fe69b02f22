#!/usr/bin/env python3
"""
Script to inspect, export and validate product catalogs from the backend.

Usage:
    python scripts/catalog_tool.py --list [SLOT]
    python scripts/catalog_tool.py --export <file_path>
    python scripts/catalog_tool.py --validate <file_path>

Examples:
    # List frames, print options and every part
    python scripts/catalog_tool.py --list

    # List only hats
    python scripts/catalog_tool.py --list hat

    # Write the built-in catalog as JSON (a starting point for GIFTFRAME_CATALOG_PATH)
    python scripts/catalog_tool.py --export data/catalog.json

    # Check an edited catalog before deploying it
    python scripts/catalog_tool.py --validate data/catalog.json
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path to import giftframe modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import ValidationError

from giftframe.models.catalog import SlotType
from giftframe.services.catalog import (
    CatalogError,
    build_default_catalog,
    load_catalog,
    save_catalog,
)


def format_price(amount: int) -> str:
    return f"{amount:,}đ"


def list_catalog(slot: str = None) -> None:
    """List catalog entries, optionally only the parts of one slot."""
    catalog = build_default_catalog()

    if slot is not None:
        try:
            slot_types = [SlotType(slot)]
        except ValueError:
            print(f"Error: Unknown slot '{slot}'", file=sys.stderr)
            print(f"  Slots: {', '.join(s.value for s in SlotType)}", file=sys.stderr)
            sys.exit(1)
    else:
        print(f"Frames ({len(catalog.frames)}):")
        for frame in catalog.frames:
            print(
                f"  {frame.id}: {frame.name} "
                f"{frame.frame_width_cm:g}x{frame.frame_height_cm:g}cm, {format_price(frame.price)}"
            )
        print(f"\nPrint options ({len(catalog.print_options)}):")
        for option in catalog.print_options:
            print(f"  {option.id}: {option.label} +{format_price(option.surcharge)}")
        print()
        slot_types = list(SlotType)

    for slot_type in slot_types:
        parts = catalog.parts_for_slot(slot_type)
        if not parts:
            continue
        print(f"{slot_type.value} ({len(parts)}):")
        for part in parts:
            print(f"  {part.id}: {part.name}, {format_price(part.price)}")
            for color in part.colors or []:
                print(f"    - {color.name} {color.hex} +{format_price(color.extra_price)}")
        print()


def export_catalog(path: Path) -> None:
    """Write the built-in catalog to a JSON file."""
    catalog = build_default_catalog()
    save_catalog(catalog, path)
    print(f"✓ Exported catalog to {path}")
    print(f"  Frames: {len(catalog.frames)}")
    print(f"  Parts: {len(catalog.parts)}")
    print(f"  Templates: {len(catalog.templates)}")


def validate_file(path: Path) -> None:
    """Load a catalog file and report any problems."""
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)

    try:
        catalog = load_catalog(path)
    except ValidationError as e:
        print(f"✗ {path} is not a valid catalog:\n{e}", file=sys.stderr)
        sys.exit(1)
    except CatalogError as e:
        print(f"✗ {e.message}", file=sys.stderr)
        for problem in e.details.get("problems", []):
            print(f"  - {problem}", file=sys.stderr)
        sys.exit(1)

    print(f"✓ {path} is valid ({len(catalog.frames)} frames, {len(catalog.parts)} parts)")


def main():
    parser = argparse.ArgumentParser(
        description="Inspect and manage the product catalog from the command line",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--list",
        "-l",
        nargs="?",
        const="",
        metavar="SLOT",
        help="List the built-in catalog, or only the parts of one slot",
    )
    parser.add_argument(
        "--export",
        type=Path,
        help="Write the built-in catalog as JSON",
    )
    parser.add_argument(
        "--validate",
        type=Path,
        help="Validate a catalog JSON file",
    )

    args = parser.parse_args()

    # Execute action
    if args.validate:
        validate_file(args.validate)
    elif args.export:
        export_catalog(args.export)
    elif args.list is not None:
        list_catalog(args.list or None)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
