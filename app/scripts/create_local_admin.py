"""
Script to create (or promote) a local administrator with a password.
"""

import argparse
import asyncio

from app.core.auth import hash_password
from app.core.database import get_session_context
from app.models.profile import Profile
from app.store import EntityStore
from accessdesk_shared.schemas.common import Role


async def create_admin(email: str, password: str, full_name: str | None = None):
    async with get_session_context() as session:
        store = EntityStore(session)
        profile = await store.profiles.first({"email": email})

        if profile is None:
            async with store.atomic():
                profile, _ = await store.profiles.insert(
                    Profile(
                        email=email,
                        full_name=full_name,
                        role=Role.ADMIN.value,
                        password_hash=hash_password(password),
                    )
                )
            print(f"Created admin: {email}")
        else:
            async with store.atomic():
                await store.profiles.update(
                    profile.id,
                    {"role": Role.ADMIN.value, "password_hash": hash_password(password)},
                )
            print(f"Promoted existing profile {email} to admin.")

        print("Done.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a local admin user.")
    parser.add_argument("--email", required=True, help="Email address for the user")
    parser.add_argument("--password", required=True, help="Password for the user")
    parser.add_argument("--name", default=None, help="Display name")

    args = parser.parse_args()

    asyncio.run(create_admin(args.email, args.password, args.name))
