"""Service request API: accept, decline, assign, message, distance."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from evdispatch.db.crud import ADMIN_ROLES
from evdispatch.dependencies import get_dispatch, require_role, require_user
from evdispatch.schemas import (
    AcceptJobBody, AssignStaffBody, DistanceBody, DistanceRead,
    GeoCoordinates, JobAcceptanceLog, MessageCreate, ServiceRequestRead,
)
from evdispatch.services.dispatch import DispatchContext

router = APIRouter(prefix="/api/requests", tags=["requests"])


@router.get("/{request_id}", response_model=ServiceRequestRead)
async def get_request(
    request_id: str,
    user=Depends(require_user),
    ctx: DispatchContext = Depends(get_dispatch),
):
    return await ctx.get_request(request_id)


@router.get("/{request_id}/acceptance-logs", response_model=list[JobAcceptanceLog])
async def list_acceptance_logs(
    request_id: str,
    user=Depends(require_user),
    ctx: DispatchContext = Depends(get_dispatch),
):
    return await ctx.acceptance_logs(request_id)


@router.post("/{request_id}/accept", response_model=ServiceRequestRead)
async def accept_request(
    request_id: str,
    body: AcceptJobBody,
    user=Depends(require_user),
    ctx: DispatchContext = Depends(get_dispatch),
):
    return await ctx.accept_job(request_id, user.id, body.coordinates, body.platform)


@router.post("/{request_id}/decline", response_model=ServiceRequestRead)
async def decline_request(
    request_id: str,
    user=Depends(require_user),
    ctx: DispatchContext = Depends(get_dispatch),
):
    return await ctx.decline_job(request_id, user.id)


@router.put("/{request_id}/staff", response_model=ServiceRequestRead)
async def assign_staff(
    request_id: str,
    body: AssignStaffBody,
    user=Depends(require_role(*ADMIN_ROLES)),
    ctx: DispatchContext = Depends(get_dispatch),
):
    return await ctx.assign_staff(request_id, body.staff_ids)


@router.post("/{request_id}/messages", response_model=ServiceRequestRead, status_code=201)
async def add_message(
    request_id: str,
    body: MessageCreate,
    user=Depends(require_user),
    ctx: DispatchContext = Depends(get_dispatch),
):
    sender = "admin" if user.role in ADMIN_ROLES else "user"
    return await ctx.add_message(request_id, body.text, sender)


@router.post("/{request_id}/distance", response_model=DistanceRead)
async def calculate_distance(
    request_id: str,
    body: DistanceBody,
    user=Depends(require_user),
    ctx: DispatchContext = Depends(get_dispatch),
):
    coords = GeoCoordinates(latitude=body.latitude, longitude=body.longitude)
    return await ctx.calculate_distance(request_id, coords)
