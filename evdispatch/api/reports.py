from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from evdispatch.dependencies import get_dispatch, require_user
from evdispatch.schemas import FilterOption, MileageReport, SortOption
from evdispatch.services.dispatch import DispatchContext

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/mileage", response_model=MileageReport)
async def get_mileage_report(
    status: FilterOption = Query(default="all"),
    search: str = Query(default=""),
    sort_by: SortOption | None = Query(default=None),
    tenant_id: str | None = Query(default=None),
    user=Depends(require_user),
    ctx: DispatchContext = Depends(get_dispatch),
):
    return await ctx.get_mileage_report(status, search, sort_by, tenant_id)
