"""
Shop API Endpoints
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel

from supermall.api.dependencies import get_context
from supermall.api.schemas import IdResponse, StatusResponse
from supermall.context import AppContext

router = APIRouter()


class ShopStats(BaseModel):
    """Live shop statistics"""
    totalProducts: int
    totalOffers: int
    activeProducts: int
    outOfStockProducts: int
    averagePrice: float
    totalValue: float
    views: int
    rating: float
    reviews: int


@router.get("")
async def list_shops(
    q: Optional[str] = None,
    category: Optional[str] = None,
    floor: Optional[int] = Query(None, ge=1, le=10),
    sort_by: Optional[str] = None,
    include_inactive: bool = False,
    ctx: AppContext = Depends(get_context),
) -> List[Dict[str, Any]]:
    """List or search shops."""
    filters = {
        "category": category,
        "floor": floor,
        "sortBy": sort_by,
        "includeInactive": include_inactive,
    }
    return await ctx.shops.search(q, filters)


@router.post("", status_code=201, response_model=IdResponse)
async def create_shop(
    payload: Dict[str, Any] = Body(...),
    ctx: AppContext = Depends(get_context),
) -> IdResponse:
    shop_id = await ctx.shops.create(payload)
    return IdResponse(id=shop_id)


@router.get("/{shop_id}/stats", response_model=ShopStats)
async def get_shop_stats(shop_id: str, ctx: AppContext = Depends(get_context)) -> ShopStats:
    """Aggregate product and offer figures for a shop."""
    return ShopStats(**await ctx.shops.get_stats(shop_id))


@router.get("/{shop_id}")
async def get_shop(shop_id: str, ctx: AppContext = Depends(get_context)) -> Dict[str, Any]:
    return await ctx.shops.get_by_id(shop_id)


@router.patch("/{shop_id}", response_model=StatusResponse)
async def update_shop(
    shop_id: str,
    payload: Dict[str, Any] = Body(...),
    ctx: AppContext = Depends(get_context),
) -> StatusResponse:
    await ctx.shops.update(shop_id, payload)
    return StatusResponse(id=shop_id, status="updated")


@router.delete("/{shop_id}", response_model=StatusResponse)
async def delete_shop(shop_id: str, ctx: AppContext = Depends(get_context)) -> StatusResponse:
    """Soft delete; refused while products reference the shop."""
    await ctx.shops.delete(shop_id)
    return StatusResponse(id=shop_id, status="deleted")
