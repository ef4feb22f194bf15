"""
Seed an admin, a donor, two NGOs and a volunteer around one point, plus a few donations.
Admins cannot self-register, so this is also how the first admin is created.

Usage (from project root):
  python -m foodshare.scripts.seed_demo [--lat 14.5995 --lng 120.9842] [--password demo1234]
"""
import argparse
import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from foodshare.auth.password import hash_password
from foodshare.database import async_session, engine
from foodshare.models import Actor, Base, Donation, DonationStatus, Role

# (email, name, role, d_lat, d_lng) offsets in degrees from the center
ACTORS = [
    ("admin@foodshare.local", "Admin", Role.ADMIN, 0.0, 0.0),
    ("donor@foodshare.local", "Corner Bakery", Role.DONOR, 0.0, 0.0),
    ("ngo1@foodshare.local", "City Food Bank", Role.NGO, 0.0, 0.03),
    ("ngo2@foodshare.local", "Shelter North", Role.NGO, 0.08, 0.0),
    ("volunteer@foodshare.local", "Sam", Role.VOLUNTEER, 0.01, 0.01),
]

# (title, category, quantity, window minutes, minutes ago)
DONATIONS = [
    ("Day-old bread", "bakery", "25 loaves", 24 * 60, 60),
    ("Cooked rice trays", "prepared", "40 meals", 4 * 60, 200),
    ("Fruit crates", "produce", "3 crates", 3 * 24 * 60, 10),
]


async def main(lat: float, lng: float, password: str) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    now = datetime.now(timezone.utc)
    async with async_session() as db:
        actors = {}
        for email, name, role, d_lat, d_lng in ACTORS:
            existing = (await db.execute(select(Actor).where(Actor.email == email))).scalar_one_or_none()
            if existing:
                actors.setdefault(role, existing)
                continue
            actor = Actor(
                email=email,
                hashed_password=hash_password(password),
                name=name,
                role=role,
                latitude=lat + d_lat,
                longitude=lng + d_lng,
            )
            db.add(actor)
            await db.flush()
            actors.setdefault(role, actor)
        donor = actors[Role.DONOR]
        for i, (title, category, quantity, window, ago) in enumerate(DONATIONS):
            db.add(
                Donation(
                    donor_id=donor.id,
                    title=title,
                    food_category=category,
                    quantity=quantity,
                    latitude=lat + 0.002 * i,
                    longitude=lng - 0.002 * i,
                    perishability_minutes=window,
                    status=DonationStatus.AVAILABLE,
                    created_at=now - timedelta(minutes=ago),
                )
            )
        await db.commit()
    await engine.dispose()
    print(f"Seeded {len(ACTORS)} actors and {len(DONATIONS)} donations around ({lat}, {lng})")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--lat", type=float, default=14.5995)
    parser.add_argument("--lng", type=float, default=120.9842)
    parser.add_argument("--password", default="demo1234")
    args = parser.parse_args()
    asyncio.run(main(args.lat, args.lng, args.password))
