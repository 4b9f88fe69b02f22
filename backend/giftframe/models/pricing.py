"""
Price quote models.
"""

from typing import List
from pydantic import BaseModel, Field


class PriceLine(BaseModel):
    """One itemized contribution to a price."""
    code: str = Field(description="Stable line identifier, e.g. 'frame', 'hair', 'print'")
    label: str = Field(description="Human-readable label")
    amount: int = Field(description="Amount in whole currency units")


class PriceQuote(BaseModel):
    """Total price with its itemized breakdown. Lines always sum to total."""
    total: int
    breakdown: List[PriceLine] = Field(default_factory=list)
