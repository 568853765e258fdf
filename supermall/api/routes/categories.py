"""
Category API Endpoints
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends

from supermall.api.dependencies import get_context
from supermall.api.schemas import IdResponse, StatusResponse
from supermall.context import AppContext

router = APIRouter()


@router.get("")
async def list_categories(
    sort_by: Optional[str] = None,
    include_inactive: bool = False,
    ctx: AppContext = Depends(get_context),
) -> List[Dict[str, Any]]:
    return await ctx.categories.get_all({"sortBy": sort_by, "includeInactive": include_inactive})


@router.post("", status_code=201, response_model=IdResponse)
async def create_category(
    payload: Dict[str, Any] = Body(...),
    ctx: AppContext = Depends(get_context),
) -> IdResponse:
    category_id = await ctx.categories.create(payload)
    return IdResponse(id=category_id)


@router.get("/{category_id}")
async def get_category(category_id: str, ctx: AppContext = Depends(get_context)) -> Dict[str, Any]:
    return await ctx.categories.get_by_id(category_id)


@router.patch("/{category_id}", response_model=StatusResponse)
async def update_category(
    category_id: str,
    payload: Dict[str, Any] = Body(...),
    ctx: AppContext = Depends(get_context),
) -> StatusResponse:
    await ctx.categories.update(category_id, payload)
    return StatusResponse(id=category_id, status="updated")


@router.delete("/{category_id}", response_model=StatusResponse)
async def delete_category(category_id: str, ctx: AppContext = Depends(get_context)) -> StatusResponse:
    await ctx.categories.delete(category_id)
    return StatusResponse(id=category_id, status="deleted")
