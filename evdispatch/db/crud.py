"""CRUD operations for service requests, staff and notifications.

Acceptance logs are deliberately absent: they are written and read only
through :mod:`evdispatch.services.acceptance_log`.
"""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from evdispatch.models import ServiceRequest, StaffUser, StaffNotification

ADMIN_ROLES = ("admin", "super_admin")


# ── ServiceRequest ───────────────────────────────────────

async def create_service_request(
    db: AsyncSession, title: str, name: str, latitude: float, longitude: float,
    type: str = "roadside", address: str | None = None,
    tenant_id: str | None = None, status: str = "pending",
    assigned_staff: list | None = None, **extra,
) -> ServiceRequest:
    req = ServiceRequest(
        title=title, name=name, latitude=latitude, longitude=longitude,
        type=type, address=address, tenant_id=tenant_id, status=status,
        assigned_staff=list(assigned_staff or []), messages=[], **extra,
    )
    db.add(req)
    await db.commit()
    await db.refresh(req)
    return req


async def get_service_request(db: AsyncSession, request_id: str) -> ServiceRequest | None:
    return await db.get(ServiceRequest, request_id)


async def list_service_requests(db: AsyncSession, tenant_id: str | None = None) -> list[ServiceRequest]:
    stmt = select(ServiceRequest).order_by(ServiceRequest.created_at)
    if tenant_id is not None:
        stmt = stmt.where(ServiceRequest.tenant_id == tenant_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_service_request(db: AsyncSession, req: ServiceRequest, **kwargs) -> ServiceRequest:
    for k, v in kwargs.items():
        if v is not None:
            setattr(req, k, v)
    await db.commit()
    await db.refresh(req)
    return req


async def transition_status(
    db: AsyncSession, request_id: str, from_status: str, to_status: str, commit: bool = True,
) -> bool:
    """Compare-and-set the status. Returns False if the row was not in ``from_status``.

    With ``commit=False`` the update joins the caller's transaction.
    """
    result = await db.execute(
        update(ServiceRequest)
        .where(ServiceRequest.id == request_id, ServiceRequest.status == from_status)
        .values(status=to_status)
        .execution_options(synchronize_session=False)
    )
    if commit:
        await db.commit()
    return result.rowcount == 1


# ── StaffUser ────────────────────────────────────────────

async def create_staff_user(
    db: AsyncSession, full_name: str, role: str = "worker",
    email: str = "", tenant_id: str | None = None,
) -> StaffUser:
    user = StaffUser(full_name=full_name, role=role, email=email, tenant_id=tenant_id)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def get_staff_user(db: AsyncSession, user_id: str) -> StaffUser | None:
    return await db.get(StaffUser, user_id)


async def list_admins(db: AsyncSession, tenant_id: str | None = None) -> list[StaffUser]:
    stmt = (
        select(StaffUser)
        .where(StaffUser.role.in_(ADMIN_ROLES), StaffUser.is_active.is_(True))
        .order_by(StaffUser.created_at)
    )
    if tenant_id is not None:
        stmt = stmt.where(StaffUser.tenant_id == tenant_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


# ── StaffNotification ────────────────────────────────────

async def create_notifications(db: AsyncSession, rows: list[dict]) -> list[StaffNotification]:
    notifications = [StaffNotification(**row) for row in rows]
    db.add_all(notifications)
    await db.commit()
    return notifications


async def list_notifications_for_user(db: AsyncSession, user_id: str, unread_only: bool = False) -> list[StaffNotification]:
    stmt = select(StaffNotification).where(StaffNotification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(StaffNotification.read.is_(False))
    result = await db.execute(stmt.order_by(StaffNotification.created_at.desc()))
    return list(result.scalars().all())
