"""Command-line tools: create the schema, add staff, seed demo jobs, print the mileage report."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys


def _context():
    from evdispatch.db.engine import async_session_factory
    from evdispatch.services.dispatch import DispatchContext

    return DispatchContext(async_session_factory)


async def cmd_init_db(args):
    ctx = _context()
    await ctx.init()
    print(f"Tables created at {ctx.settings.database_url}")


async def cmd_create_user(args):
    from evdispatch.db import crud

    ctx = _context()
    await ctx.init()
    async with ctx.session_factory() as db:
        user = await crud.create_staff_user(
            db, full_name=args.name, role=args.role, email=args.email or "", tenant_id=args.tenant_id,
        )
    print(f"User created: {user.full_name} (id={user.id}, role={user.role})")


async def cmd_seed_demo(args):
    """Create an admin, a worker and two Austin-area jobs assigned to the worker."""
    from evdispatch.db import crud

    ctx = _context()
    await ctx.init()
    async with ctx.session_factory() as db:
        existing = await crud.list_service_requests(db)
        if any(r.title == "Flat tire on I-35" for r in existing):
            print("Demo data already exists, skipping seed.")
            return

        admin = await crud.create_staff_user(db, "Dana Dispatcher", role="admin", email="dispatch@example.com")
        worker = await crud.create_staff_user(db, "Riley Roadside", role="worker", email="riley@example.com")
        flat = await crud.create_service_request(
            db, title="Flat tire on I-35", name="Ann Customer", type="roadside",
            latitude=30.2672, longitude=-97.7431, address="Congress Ave, Austin, TX",
            assigned_staff=[worker.id],
        )
        charge = await crud.create_service_request(
            db, title="Battery depleted at Zilker Park", name="Mike Driver", type="charging",
            latitude=30.2669, longitude=-97.7729, address="Zilker Park, Austin, TX",
            assigned_staff=[worker.id],
        )

    print(f"Admin:  {admin.full_name} (id={admin.id})")
    print(f"Worker: {worker.full_name} (id={worker.id})")
    print(f"Jobs:   {flat.id} ({flat.title}), {charge.id} ({charge.title})")


async def cmd_mileage_report(args):
    ctx = _context()
    report = await ctx.get_mileage_report(args.status, args.search, args.sort_by, args.tenant_id)

    unit = "mi" if args.miles else "km"
    print(f"Total: {report.total}  Completed: {report.completed_count}  Active: {report.active_count}")
    for entry in report.mileage_logs:
        distance = entry.distance_miles if args.miles else entry.distance_km
        latest = entry.latest_log
        who = latest.accepted_by.name if latest.accepted_by else "unknown"
        print(
            f"{entry.request_id}  {entry.status:<10} {entry.customer_name:<20} "
            f"{distance:8.2f} {unit}  accepted {latest.accepted_at.isoformat()} by {who} "
            f"({len(entry.acceptance_logs)} log(s))"
        )


def main():
    parser = argparse.ArgumentParser(prog="evdispatch", description="EV Dispatch CLI")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("init-db", help="Create database tables")

    p_user = sub.add_parser("create-user", help="Add a staff member")
    p_user.add_argument("--name", required=True)
    p_user.add_argument("--role", default="worker", choices=["super_admin", "admin", "worker", "user"])
    p_user.add_argument("--email")
    p_user.add_argument("--tenant-id")

    sub.add_parser("seed-demo", help="Seed demo staff and jobs")

    p_report = sub.add_parser("mileage-report", help="Print the mileage report")
    p_report.add_argument("--status", default="all", choices=["all", "pending", "scheduled", "completed", "canceled"])
    p_report.add_argument("--search", default="")
    p_report.add_argument("--sort-by", choices=["date", "distance", "customer", "status"])
    p_report.add_argument("--tenant-id")
    p_report.add_argument("--miles", action="store_true", help="Show distances in miles")

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    commands = {
        "init-db": cmd_init_db,
        "create-user": cmd_create_user,
        "seed-demo": cmd_seed_demo,
        "mileage-report": cmd_mileage_report,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)
    asyncio.run(handler(args))


if __name__ == "__main__":
    main()
