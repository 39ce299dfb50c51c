"""Unit tests for roster registration, import and removal."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from signoff.core.config import get_settings
from signoff.domain.models import Company, NotificationType, UserRole
from signoff.domain.services.auth_service import verify_password
from signoff.domain.services.notifications import NotificationService
from signoff.domain.services.roster import (
    AdminDeletionError,
    InvalidUserIdError,
    RosterService,
    UserExistsError,
    UserNotFoundError,
    validate_user_id,
)
from signoff.infrastructure.db.models import UserModel
from tests.utils import ADMIN, seed_users


class TestValidateUserId:
    @pytest.mark.parametrize(
        ("user_id", "company"),
        [("10000001", Company.SEV), ("200000000001", Company.VENDOR)],
    )
    def test_accepts_matching_length(self, user_id: str, company: Company) -> None:
        validate_user_id(user_id, company)

    @pytest.mark.parametrize(
        ("user_id", "company"),
        [
            ("200000000001", Company.SEV),
            ("10000001", Company.VENDOR),
            ("1000000A", Company.SEV),
            ("", Company.SEV),
        ],
    )
    def test_rejects_mismatch(self, user_id: str, company: Company) -> None:
        with pytest.raises(InvalidUserIdError):
            validate_user_id(user_id, company)


class TestRegister:
    async def test_register_uses_default_password(self, session: AsyncSession) -> None:
        employee = await RosterService(session).register(
            user_id="10000010", name="  Hoa Dang ", part="IQC 2P", group="Team C", company=Company.SEV
        )

        assert employee.name == "Hoa Dang"
        assert employee.role is UserRole.USER
        stored = await session.get(UserModel, "10000010")
        assert stored is not None
        assert verify_password(get_settings().default_password, stored.hashed_password)

    async def test_register_duplicate_id(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        async with session_factory() as session:
            await RosterService(session).register(
                user_id="10000010", name="Hoa", part="IQC G", group="A", company=Company.SEV,
                password="first-pass",
            )
        async with session_factory() as session:
            with pytest.raises(UserExistsError):
                await RosterService(session).register(
                    user_id="10000010", name="Hoa", part="IQC G", group="A", company=Company.SEV,
                    password="second-pass",
                )

    async def test_register_rejects_wrong_length(self, session: AsyncSession) -> None:
        with pytest.raises(InvalidUserIdError):
            await RosterService(session).register(
                user_id="1234", name="Short", part="IQC G", group="A", company=Company.SEV
            )


class TestImport:
    async def test_import_dedupes_and_skips_existing(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        await seed_users(session_factory, [ADMIN])
        rows = [
            {"id": "10000021", "name": "First copy", "part": "IQC 1P", "group": "A"},
            {"id": "10000021", "name": "Second copy", "part": "IQC 3P", "group": "B"},
            {"id": "300000000001", "name": "Vendor Person", "group": "Omega Ltd"},
            {"id": ADMIN.id, "name": "Overwrite attempt"},
            {"id": "abc", "name": "Not digits"},
            {"id": "1234567890", "name": "Ten Digits"},
            {"id": "10000022", "name": ""},
        ]

        async with session_factory() as session:
            result = await RosterService(session).import_users(rows)

        assert result.created == ["10000021", "300000000001"]
        assert sorted(result.skipped) == sorted([ADMIN.id, "abc", "1234567890"])

        async with session_factory() as session:
            roster = {member.id: member for member in await RosterService(session).get_roster()}

        assert roster["10000021"].name == "Second copy"
        assert roster["10000021"].part == "IQC 3P"
        assert roster["300000000001"].company is Company.VENDOR
        assert roster["300000000001"].part == "N/A"
        assert roster[ADMIN.id].name == ADMIN.name
        assert "1234567890" not in roster

    async def test_list_users_by_company(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        async with session_factory() as session:
            await RosterService(session).import_users(
                [
                    {"id": "10000031", "name": "Sev One"},
                    {"id": "300000000031", "name": "Vendor One"},
                ]
            )
        async with session_factory() as session:
            vendors = await RosterService(session).list_users(company=Company.VENDOR)

        assert [member.id for member in vendors] == ["300000000031"]


class TestDelete:
    async def test_delete_user_removes_notifications(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        async with session_factory() as session:
            await RosterService(session).import_users([{"id": "10000041", "name": "Leaving"}])
        async with session_factory() as session:
            await NotificationService(session).notify(
                "10000041", "Welcome", NotificationType.NEW_COURSE
            )
            await session.commit()

        async with session_factory() as session:
            await RosterService(session).delete_user("10000041")

        async with session_factory() as session:
            service = RosterService(session)
            with pytest.raises(UserNotFoundError):
                await service.get_user("10000041")
            assert await NotificationService(session).list_for_user("10000041") == []

    async def test_admin_cannot_be_deleted(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        await seed_users(session_factory, [ADMIN])

        async with session_factory() as session:
            with pytest.raises(AdminDeletionError):
                await RosterService(session).delete_user(ADMIN.id)

    async def test_delete_unknown_user(self, session: AsyncSession) -> None:
        with pytest.raises(UserNotFoundError):
            await RosterService(session).delete_user("10009999")
