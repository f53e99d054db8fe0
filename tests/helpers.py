from __future__ import annotations

from evdispatch.db import crud

AUSTIN = (30.2672, -97.7431)
NEAR_AUSTIN = (30.2700, -97.7400)


async def make_request(session_factory, assigned_staff=(), **fields):
    fields.setdefault("title", "Flat tire on I-35")
    fields.setdefault("name", "Ann Customer")
    fields.setdefault("latitude", AUSTIN[0])
    fields.setdefault("longitude", AUSTIN[1])
    async with session_factory() as db:
        return await crud.create_service_request(db, assigned_staff=list(assigned_staff), **fields)
