"""
Product API Endpoints

Catalog listing, search, stock management and comparison.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query

from supermall.api.dependencies import get_context
from supermall.api.schemas import CompareRequest, IdResponse, StatusResponse, StockUpdate
from supermall.context import AppContext

router = APIRouter()


@router.get("")
async def list_products(
    q: Optional[str] = None,
    category: Optional[str] = None,
    shop_id: Optional[str] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    sort_by: Optional[str] = None,
    include_inactive: bool = False,
    ctx: AppContext = Depends(get_context),
) -> List[Dict[str, Any]]:
    """
    List products with filtering and search.
    """
    filters: Dict[str, Any] = {
        "category": category,
        "shopId": shop_id,
        "sortBy": sort_by,
        "includeInactive": include_inactive,
    }
    if min_price is not None or max_price is not None:
        filters["priceRange"] = {"min": min_price, "max": max_price}
    return await ctx.products.search(q, filters)


@router.post("", status_code=201, response_model=IdResponse)
async def create_product(
    payload: Dict[str, Any] = Body(...),
    ctx: AppContext = Depends(get_context),
) -> IdResponse:
    product_id = await ctx.products.create(payload)
    return IdResponse(id=product_id)


@router.get("/low-stock")
async def get_low_stock_products(
    threshold: Optional[int] = Query(None, ge=0),
    ctx: AppContext = Depends(get_context),
) -> List[Dict[str, Any]]:
    """Get products with stock at or below threshold."""
    return await ctx.products.get_low_stock_products(threshold)


@router.get("/out-of-stock")
async def get_out_of_stock_products(ctx: AppContext = Depends(get_context)) -> List[Dict[str, Any]]:
    return await ctx.products.get_out_of_stock_products()


@router.post("/compare")
async def compare_products(
    request: CompareRequest,
    ctx: AppContext = Depends(get_context),
) -> Dict[str, Any]:
    """Compare two to four products."""
    return await ctx.products.compare_products(request.productIds)


@router.get("/{product_id}")
async def get_product(product_id: str, ctx: AppContext = Depends(get_context)) -> Dict[str, Any]:
    return await ctx.products.get_by_id(product_id)


@router.patch("/{product_id}", response_model=StatusResponse)
async def update_product(
    product_id: str,
    payload: Dict[str, Any] = Body(...),
    ctx: AppContext = Depends(get_context),
) -> StatusResponse:
    await ctx.products.update(product_id, payload)
    return StatusResponse(id=product_id, status="updated")


@router.put("/{product_id}/stock", response_model=StatusResponse)
async def update_stock(
    product_id: str,
    request: StockUpdate,
    ctx: AppContext = Depends(get_context),
) -> StatusResponse:
    await ctx.products.update_stock(product_id, request.quantity)
    return StatusResponse(id=product_id, status="updated")


@router.delete("/{product_id}", response_model=StatusResponse)
async def delete_product(product_id: str, ctx: AppContext = Depends(get_context)) -> StatusResponse:
    await ctx.products.delete(product_id)
    return StatusResponse(id=product_id, status="deleted")
