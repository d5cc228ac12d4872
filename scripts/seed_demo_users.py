"""Seed a handful of demo students (accounts + profiles) for local development."""
import asyncio
import sys
sys.path.insert(0, ".")

from sqlalchemy import select
from app.config import get_settings
from app.database import async_session_factory, create_tables
from app.models.profile import Profile
from app.models.user import User
from app.services.gemini_service import split_interests
from app.utils.security import get_password_hash


DEMO_PASSWORD = "campus123"

DEMO_USERS = [
    {
        "handle": "aarav",
        "gender": "male",
        "profile": {
            "name": "Aarav Shah",
            "bio": "Final year CE. Will debug your code for chai.",
            "course": "B.Tech",
            "year": "4th",
            "department": "Computer Engineering",
            "interests": "coding, cricket, chai",
            "location": "Rajkot",
            "hometown": "Ahmedabad",
        },
    },
    {
        "handle": "vivaan",
        "gender": "male",
        "profile": {
            "name": "Vivaan Patel",
            "bio": "Guitarist in the college band, occasional poet.",
            "course": "BBA",
            "year": "2nd",
            "department": "Management",
            "interests": "music, poetry, football",
            "location": "Rajkot",
            "hometown": "Surat",
        },
    },
    {
        "handle": "diya",
        "gender": "female",
        "profile": {
            "name": "Diya Mehta",
            "bio": "Robotics club lead. Ask me about line followers.",
            "course": "B.Tech",
            "year": "3rd",
            "department": "Electronics",
            "interests": "robotics, badminton, coding",
            "location": "Rajkot",
            "hometown": "Vadodara",
        },
    },
    {
        "handle": "ananya",
        "gender": "female",
        "profile": {
            "name": "Ananya Joshi",
            "bio": "Sketching my way through architecture school.",
            "course": "B.Arch",
            "year": "2nd",
            "department": "Architecture",
            "interests": "sketching, music, travel",
            "location": "Rajkot",
            "hometown": "Bhavnagar",
        },
    },
]


async def seed():
    domain = get_settings().ALLOWED_EMAIL_DOMAIN
    await create_tables()

    async with async_session_factory() as session:
        for demo in DEMO_USERS:
            email = f"{demo['handle']}{domain}"
            existing = await session.execute(select(User).where(User.email == email))
            if existing.scalar_one_or_none() is not None:
                print(f"  {email} already exists, skipping.")
                continue

            user = User(
                email=email,
                password_hash=get_password_hash(DEMO_PASSWORD),
                gender=demo["gender"],
            )
            session.add(user)
            await session.flush()

            fields = dict(demo["profile"])
            tags = split_interests(fields["interests"])
            fields["interests"] = tags
            session.add(
                Profile(
                    user_id=user.id,
                    social_links={},
                    ai_enhanced_bio=fields["bio"],
                    ai_tags=tags,
                    **fields,
                )
            )
            print(f"  Seeded {email} (id={user.id})")
        await session.commit()
    print(f"Done seeding demo users (password: {DEMO_PASSWORD}).")


if __name__ == "__main__":
    asyncio.run(seed())
