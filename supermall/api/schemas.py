"""
API request and response models shared across routers
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class IdResponse(BaseModel):
    """Identifier of a created record"""
    id: str


class StatusResponse(BaseModel):
    """Outcome of a mutation"""
    id: str
    status: str


class CompareRequest(BaseModel):
    """Products to compare"""
    productIds: List[str]


class StockUpdate(BaseModel):
    """New stock level"""
    quantity: int


class ProductIdsRequest(BaseModel):
    """Products an offer applies to"""
    productIds: List[str]


class SignInRequest(BaseModel):
    """User to attribute subsequent mutations to"""
    uid: str = Field(..., min_length=1)
    email: Optional[str] = None
    displayName: Optional[str] = None
    role: str = "user"
