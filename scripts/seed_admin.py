#!/usr/bin/env python
"""
Create the initial administrator account.

Usage:
    python scripts/seed_admin.py [password]
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# Allow running from a checkout without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from signoff.domain.models import Company, UserRole
from signoff.domain.reference_data import SEED_ADMIN
from signoff.domain.services.roster import RosterService, UserExistsError
from signoff.infrastructure.db.session import get_session_factory


async def seed_admin(password: str | None) -> None:
    session_factory = get_session_factory()
    async with session_factory() as session:
        try:
            await RosterService(session).register(
                user_id=SEED_ADMIN["id"],
                name=SEED_ADMIN["name"],
                part=SEED_ADMIN["part"],
                group=SEED_ADMIN["group"],
                company=Company(SEED_ADMIN["company"]),
                role=UserRole(SEED_ADMIN["role"]),
                password=password,
            )
        except UserExistsError:
            print(f"Admin {SEED_ADMIN['id']} already exists")
            return
    print(f"Created admin {SEED_ADMIN['id']}")


if __name__ == "__main__":
    asyncio.run(seed_admin(sys.argv[1] if len(sys.argv) > 1 else None))
