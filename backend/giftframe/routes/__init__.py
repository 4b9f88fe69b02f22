"""
API route modules.
"""

from giftframe.routes.catalog import router as catalog_router
from giftframe.routes.designs import router as designs_router
from giftframe.routes.gestures import router as gestures_router
from giftframe.routes.cart import router as cart_router
from giftframe.routes.images import router as images_router

__all__ = [
    "catalog_router",
    "designs_router",
    "gestures_router",
    "cart_router",
    "images_router",
]
