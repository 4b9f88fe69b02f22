"""
Storage service for design sessions, the cart and preview images on the local filesystem.
"""

import base64
import binascii
import logging
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from giftframe.config import settings
from giftframe.models.composition import Composition
from giftframe.models.session import Cart, CartItem, DesignSession, SessionStatus

logger = logging.getLogger(__name__)

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


class ImageDecodeError(Exception):
    """Uploaded image data could not be decoded."""
    def __init__(self, code: str, message: str, details: dict = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


def decode_image_data(data: str, max_bytes: Optional[int] = None) -> bytes:
    """
    Decode a PNG given as a data URL ('data:image/png;base64,...') or bare base64.

    Raises ImageDecodeError for anything that is not a PNG.
    """
    payload = data.strip()
    if payload.startswith("data:"):
        header, _, payload = payload.partition(",")
        if ";base64" not in header:
            raise ImageDecodeError("INVALID_IMAGE", "Data URL must be base64-encoded")

    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError("INVALID_IMAGE", f"Image data is not valid base64: {e}")

    if not raw.startswith(PNG_MAGIC):
        raise ImageDecodeError("INVALID_IMAGE", "Image data is not a PNG")

    if max_bytes is not None and len(raw) > max_bytes:
        raise ImageDecodeError(
            "INVALID_IMAGE",
            "Image exceeds the maximum size",
            {"size_bytes": len(raw), "max_bytes": max_bytes},
        )
    return raw


class StorageService:
    """Manages design sessions, the cart index and preview files."""

    def __init__(self, base_dir: Optional[Path] = None):
        self.set_base_dir(base_dir or settings.data_dir)

    def set_base_dir(self, base_dir: Path) -> None:
        """Point the service at a data directory (tests use a temporary one)."""
        self.base_dir = base_dir
        self.sessions_dir = base_dir / "designs"
        self.cart_dir = base_dir / "cart"
        self.previews_dir = self.cart_dir / "previews"
        self.sessions_dir.mkdir(parents=True, exist_ok=True)
        self.previews_dir.mkdir(parents=True, exist_ok=True)

    # ============================================================
    # Design Sessions
    # ============================================================

    def create_session(
        self,
        composition: Composition,
        template_name: Optional[str] = None,
    ) -> DesignSession:
        """Create a new design session with unique ID."""
        session_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(hours=settings.session_ttl_hours)

        session = DesignSession(
            session_id=session_id,
            status=SessionStatus.EDITING,
            created_at=now,
            expires_at=expires_at,
            composition=composition,
            template_name=template_name,
        )
        self.save_session(session)

        logger.info(f"Created design session {session_id}")
        return session

    def get_session_path(self, session_id: str) -> Path:
        """Get the path to a session's JSON file."""
        return self.sessions_dir / f"{session_id}.json"

    def save_session(self, session: DesignSession) -> None:
        """Persist session to disk."""
        session.save(self.get_session_path(session.session_id))
        logger.debug(f"Saved session {session.session_id}")

    def load_session(self, session_id: str) -> Optional[DesignSession]:
        """Load session from disk. Returns None if not found or expired."""
        path = self.get_session_path(session_id)
        if not path.exists():
            return None
        try:
            session = DesignSession.load(path)
        except Exception as e:
            logger.error(f"Failed to load session {session_id}: {e}")
            return None

        if datetime.now(timezone.utc) > session.expires_at:
            logger.warning(f"Session {session_id} has expired")
            return None
        return session

    # ============================================================
    # Cart
    # ============================================================

    def get_cart_path(self) -> Path:
        return self.cart_dir / "cart.json"

    def load_cart(self) -> Cart:
        """Load the cart index; a missing file is an empty cart."""
        path = self.get_cart_path()
        if not path.exists():
            return Cart(updated_at=datetime.now(timezone.utc))
        return Cart.model_validate_json(path.read_text())

    def save_cart(self, cart: Cart) -> None:
        cart.updated_at = datetime.now(timezone.utc)
        path = self.get_cart_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(cart.model_dump_json(indent=2))
        logger.debug(f"Saved cart with {len(cart.items)} items")

    def add_to_cart(self, session_id: str, composition: Composition, preview_image_id: str) -> CartItem:
        """Append a finalized design to the cart."""
        item = CartItem(
            id=str(uuid.uuid4()),
            session_id=session_id,
            composition=composition,
            preview_image_id=preview_image_id,
            added_at=datetime.now(timezone.utc),
        )
        cart = self.load_cart()
        cart.items.append(item)
        self.save_cart(cart)
        logger.info(f"Added design {session_id} to cart as {item.id}")
        return item

    def remove_from_cart(self, index: int) -> Optional[CartItem]:
        """Remove a cart line by position. Returns None for an out-of-range index."""
        cart = self.load_cart()
        if index < 0 or index >= len(cart.items):
            return None
        item = cart.items.pop(index)
        self.save_cart(cart)
        logger.info(f"Removed cart item {item.id}")
        return item

    # ============================================================
    # Preview Images
    # ============================================================

    def save_preview(self, session_id: str, image_bytes: bytes) -> str:
        """Store a rendered preview PNG and return its image ID."""
        image_id = self.generate_preview_id(session_id)
        path = self.previews_dir / f"{image_id}.png"
        path.write_bytes(image_bytes)
        logger.info(f"Saved preview {image_id} ({len(image_bytes)} bytes)")
        return image_id

    def generate_preview_id(self, session_id: str) -> str:
        """Generate a unique image ID for a preview."""
        return f"preview_{session_id[:8]}_{uuid.uuid4().hex[:8]}"

    def get_image_by_id(self, image_id: str) -> Optional[Path]:
        """
        Find a stored preview by its ID.

        Format: preview_{session_id_prefix}_{suffix}
        """
        parts = image_id.split("_")
        if len(parts) != 3 or parts[0] != "preview" or not all(p.isalnum() for p in parts[1:]):
            return None
        path = self.previews_dir / f"{image_id}.png"
        return path if path.exists() else None


# Global service instance
storage_service = StorageService()
