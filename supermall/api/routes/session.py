"""
Session Endpoints

Sign-in records the user profile and sets who mutations are attributed to.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from supermall.api.dependencies import get_context
from supermall.api.schemas import SignInRequest
from supermall.catalog.session import User
from supermall.context import AppContext

router = APIRouter()


def _describe(ctx: AppContext) -> Dict[str, Any]:
    user = ctx.session.user
    return {
        "authenticated": ctx.session.is_authenticated,
        "actor": ctx.session.current_actor_id(),
        "role": ctx.session.current_actor_role(),
        "user": user.to_dict() if user else None,
    }


@router.get("")
async def whoami(ctx: AppContext = Depends(get_context)) -> Dict[str, Any]:
    return _describe(ctx)


@router.post("")
async def sign_in(request: SignInRequest, ctx: AppContext = Depends(get_context)) -> Dict[str, Any]:
    await ctx.users.sign_in(User(
        uid=request.uid,
        email=request.email,
        display_name=request.displayName,
        role=request.role,
    ))
    return _describe(ctx)


@router.delete("")
async def sign_out(ctx: AppContext = Depends(get_context)) -> Dict[str, Any]:
    ctx.users.sign_out()
    return _describe(ctx)
