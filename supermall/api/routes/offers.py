"""
Offer API Endpoints
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query

from supermall.api.dependencies import get_context
from supermall.api.schemas import IdResponse, ProductIdsRequest, StatusResponse
from supermall.context import AppContext

router = APIRouter()


@router.get("")
async def list_offers(
    q: Optional[str] = None,
    shop_id: Optional[str] = None,
    sort_by: Optional[str] = None,
    include_inactive: bool = False,
    include_expired: bool = False,
    ctx: AppContext = Depends(get_context),
) -> List[Dict[str, Any]]:
    """List or search offers; only currently valid ones unless include_expired."""
    filters = {
        "shopId": shop_id,
        "sortBy": sort_by,
        "includeInactive": include_inactive,
        "includeExpired": include_expired,
    }
    return await ctx.offers.search(q, filters)


@router.post("", status_code=201, response_model=IdResponse)
async def create_offer(
    payload: Dict[str, Any] = Body(...),
    ctx: AppContext = Depends(get_context),
) -> IdResponse:
    offer_id = await ctx.offers.create(payload)
    return IdResponse(id=offer_id)


@router.get("/expiring")
async def get_expiring_offers(
    days: Optional[int] = Query(None, ge=0),
    ctx: AppContext = Depends(get_context),
) -> List[Dict[str, Any]]:
    return await ctx.offers.get_expiring_offers(days)


@router.get("/expired")
async def get_expired_offers(ctx: AppContext = Depends(get_context)) -> List[Dict[str, Any]]:
    return await ctx.offers.get_expired_offers()


@router.get("/{offer_id}")
async def get_offer(offer_id: str, ctx: AppContext = Depends(get_context)) -> Dict[str, Any]:
    return await ctx.offers.get_by_id(offer_id)


@router.patch("/{offer_id}", response_model=StatusResponse)
async def update_offer(
    offer_id: str,
    payload: Dict[str, Any] = Body(...),
    ctx: AppContext = Depends(get_context),
) -> StatusResponse:
    await ctx.offers.update(offer_id, payload)
    return StatusResponse(id=offer_id, status="updated")


@router.put("/{offer_id}/products", response_model=StatusResponse)
async def apply_offer_to_products(
    offer_id: str,
    request: ProductIdsRequest,
    ctx: AppContext = Depends(get_context),
) -> StatusResponse:
    await ctx.offers.apply_offer_to_products(offer_id, request.productIds)
    return StatusResponse(id=offer_id, status="updated")


@router.post("/{offer_id}/click", response_model=StatusResponse)
async def track_offer_click(offer_id: str, ctx: AppContext = Depends(get_context)) -> StatusResponse:
    await ctx.offers.track_offer_click(offer_id)
    return StatusResponse(id=offer_id, status="tracked")


@router.delete("/{offer_id}", response_model=StatusResponse)
async def delete_offer(offer_id: str, ctx: AppContext = Depends(get_context)) -> StatusResponse:
    await ctx.offers.delete(offer_id)
    return StatusResponse(id=offer_id, status="deleted")
