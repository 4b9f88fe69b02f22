"""
Business logic services.
"""

from giftframe.services.catalog import CatalogService, CatalogError
from giftframe.services.composition import CompositionService, IdGenerator
from giftframe.services.pricing import PricingService
from giftframe.services.selection import SelectionService
from giftframe.services.transform import TransformController, GestureError, Point2D
from giftframe.services.storage import StorageService, ImageDecodeError

__all__ = [
    "CatalogService",
    "CatalogError",
    "CompositionService",
    "IdGenerator",
    "PricingService",
    "SelectionService",
    "TransformController",
    "GestureError",
    "Point2D",
    "StorageService",
    "ImageDecodeError",
]
