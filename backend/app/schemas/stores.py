"""
Store schemas — connected storefront records.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class StoreRecord(BaseModel):
    """A connected Shopify store. access_token is opaque and never echoed."""
    id: int
    domain: str
    access_token: str = Field(repr=False, exclude=True)
    scope: Optional[str] = None
    is_active: bool = True
    installed_at: Optional[datetime] = None
