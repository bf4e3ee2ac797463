#!/usr/bin/env python3
"""
Provision the cinema seat map
"""
import argparse
import asyncio

from cinema_seats.core.database import async_session, init_db, close_db
from cinema_seats.core.redis import close_redis
from cinema_seats.core.seeding import DEFAULT_LAYOUT, clear_seats, provision_seats, seed_if_empty
from cinema_seats.services.change_feed import seat_change_feed


def parse_layout(value: str):
    """Parse "A=19,B=19,I=23" into a row -> seat count mapping"""
    layout = {}
    for part in value.split(","):
        row, _, count = part.partition("=")
        if not row.strip() or not count.strip().isdigit():
            raise argparse.ArgumentTypeError(f"Invalid row spec: {part!r}")
        layout[row.strip()] = int(count)
    return layout


async def main(reset: bool, layout):
    """Main seeding function"""
    print("🌱 Starting seat provisioning...")

    await init_db()

    try:
        async with async_session() as session:
            if reset:
                removed = await clear_seats(session, feed=seat_change_feed)
                print(f"🧹 Removed {removed} seats")
                seats = await provision_seats(session, layout, feed=seat_change_feed)
                created = len(seats)
            else:
                created = await seed_if_empty(session, layout)

        if created:
            print(f"✅ Created {created} seats")
        else:
            print("ℹ️  Seats already provisioned, nothing to do (use --reset to recreate)")
    finally:
        await close_db()
        await close_redis()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--reset", action="store_true", help="delete all seats before provisioning")
    parser.add_argument(
        "--layout",
        type=parse_layout,
        default=DEFAULT_LAYOUT,
        help="comma separated ROW=COUNT pairs, e.g. A=19,B=19,I=23"
    )
    args = parser.parse_args()
    asyncio.run(main(args.reset, args.layout))
