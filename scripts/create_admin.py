"""Bootstrap script: create an admin account, or promote an existing profile.

Usage:
    python scripts/create_admin.py admin@example.com --password 's3cret' --name "Site Admin"

Self-service registration only allows customer and owner roles.
"""

import argparse
import asyncio
import logging
import os
import sys

# Ensure src is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

logging.basicConfig(level=logging.INFO, format="%(levelname)s  %(message)s")
logger = logging.getLogger(__name__)


async def create_admin(email: str, password: str | None, name: str | None) -> int:
    from solvestay.domain.enums import UserRole, VerificationStatus
    from solvestay.infra.database import async_session, init_db
    from solvestay.services.auth_service import (
        create_profile,
        get_profile_by_email,
        hash_password,
    )

    await init_db()

    async with async_session() as session:
        profile = await get_profile_by_email(session, email)

        if profile:
            profile.role = UserRole.ADMIN.value
            profile.is_verified = True
            profile.verification_status = VerificationStatus.VERIFIED.value
            if password:
                profile.password_hash = hash_password(password)
            if name:
                profile.full_name = name
            await session.commit()
            logger.info("Promoted existing profile %s (%s) to admin.", profile.id, email)
            return 0

        if not password:
            logger.error("No profile for %s and no --password given. Aborting.", email)
            return 1

        profile = await create_profile(session, email, password, UserRole.ADMIN.value, full_name=name)
        profile.is_verified = True
        profile.verification_status = VerificationStatus.VERIFIED.value
        await session.commit()
        logger.info("Created admin %s (%s).", profile.id, email)
        return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Create or promote a SolveStay admin account.")
    parser.add_argument("email")
    parser.add_argument("--password", help="required when the profile does not exist yet")
    parser.add_argument("--name", help="full name to store on the profile")
    args = parser.parse_args()
    return asyncio.run(create_admin(args.email, args.password, args.name))


if __name__ == "__main__":
    sys.exit(main())
