import argparse
import asyncio
import getpass
import sys
from pathlib import Path

"""
Bootstrap the first administrator account. Every other user is created through
POST /users by an admin.

Run:
- inside backend/: `python scripts/create_admin.py --email admin@example.com --username admin`
- from repo root: `python backend/scripts/create_admin.py ...`

The password is read from --password or prompted for.
"""

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from fastapi_users.password import PasswordHelper  # noqa: E402
from sqlalchemy import or_, select  # noqa: E402

from db.database import async_session_maker, create_db_and_tables  # noqa: E402
from db.users import User  # noqa: E402


async def create_admin(email: str, username: str, password: str) -> None:
    await create_db_and_tables()
    async with async_session_maker() as session:
        res = await session.execute(select(User).where(or_(User.email == email, User.username == username)))
        if res.scalars().first():
            print(f"[create_admin] user {email} / {username} already exists, nothing to do")
            return

        user = User(
            email=email,
            username=username,
            hashed_password=PasswordHelper().hash(password),
            role="admin",
            location_id=None,
            is_active=True,
            is_superuser=True,
            is_verified=True,
        )
        session.add(user)
        await session.commit()
        print(f"[create_admin] created admin {username} ({user.id})")


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--email", required=True)
    parser.add_argument("--username", required=True)
    parser.add_argument("--password", help="Prompted for when omitted")
    args = parser.parse_args()

    password = args.password or getpass.getpass("Password: ")
    asyncio.run(create_admin(args.email.strip().lower(), args.username.strip(), password))
