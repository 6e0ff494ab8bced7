"""Price lookup and shopping list models."""

from typing import List, Optional
from pydantic import BaseModel, Field


class GroundingCitation(BaseModel):
    """Web source backing a price lookup answer."""

    uri: str = Field(..., description="Source URL")
    title: Optional[str] = Field(None, description="Source page title")


class PriceSearchResult(BaseModel):
    """Price summary with citations, kept in the order the lookup returned them."""

    text: str = Field(..., description="Concise price-range summary")
    citations: List[GroundingCitation] = Field(default_factory=list, description="Grounding sources")


class ShoppingItem(BaseModel):
    """Shopping list line. ``checked`` is local state and is never sent back."""

    name: str = Field(..., description="Item name")
    checked: bool = Field(False, description="Ticked off by the user")


class ShoppingCategory(BaseModel):
    """Group of shopping items, e.g. Produce or Dairy."""

    category: str = Field(..., description="Category label")
    items: List[ShoppingItem] = Field(default_factory=list, description="Items in this category")
