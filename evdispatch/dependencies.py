"""FastAPI dependency providers for the dispatch context and the acting user."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Header, HTTPException

from evdispatch.config import get_settings
from evdispatch.db.engine import async_session_factory
from evdispatch.errors import NotFoundError
from evdispatch.services.dispatch import DispatchContext


@lru_cache
def get_dispatch() -> DispatchContext:
    return DispatchContext(async_session_factory, get_settings())


async def require_user(
    x_user_id: str = Header(default=""),
    ctx: DispatchContext = Depends(get_dispatch),
):
    """Resolve the acting staff member from the ``X-User-Id`` header."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        return await ctx.get_user(x_user_id)
    except NotFoundError:
        raise HTTPException(status_code=401, detail="Not authenticated")


def require_role(*allowed_roles: str):
    """Factory: returns a dependency that enforces role membership."""
    async def _check(user=Depends(require_user)):
        if user.role not in allowed_roles:
            raise HTTPException(403, "Insufficient permissions")
        return user
    return _check
