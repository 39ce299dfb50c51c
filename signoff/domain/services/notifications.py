from __future__ import annotations

from collections.abc import Iterable

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from signoff.domain.models import Notification, NotificationType
from signoff.infrastructure.db.models import NotificationModel, UserModel
from signoff.infrastructure.repositories.snapshots import notification_from_model

logger = structlog.get_logger()


class NotificationService:
    """Per-user notification inbox.

    ``notify`` and ``notify_many`` only add to the session; the caller owns the
    commit so notifications land together with the change that caused them.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def notify(self, user_id: str, message: str, type: NotificationType) -> bool:
        return await self.notify_many([user_id], message, type) == 1

    async def notify_many(
        self, user_ids: Iterable[str], message: str, type: NotificationType
    ) -> int:
        """Queue one notification per known user; unknown ids are skipped."""
        wanted = set(user_ids)
        if not wanted:
            return 0

        stmt = select(UserModel.id).where(UserModel.id.in_(wanted))
        known = set((await self.session.execute(stmt)).scalars().all())
        for user_id in sorted(known):
            self.session.add(NotificationModel(user_id=user_id, message=message, type=type))

        missing = wanted - known
        if missing:
            await logger.awarning(
                "notification_recipients_missing",
                missing_count=len(missing),
                notification_type=type.value,
            )
        return len(known)

    async def list_for_user(self, user_id: str) -> list[Notification]:
        stmt = (
            select(NotificationModel)
            .where(NotificationModel.user_id == user_id)
            .order_by(NotificationModel.created_at.desc(), NotificationModel.id)
        )
        rows = (await self.session.execute(stmt)).scalars().all()
        return [notification_from_model(row) for row in rows]

    async def unread_count(self, user_id: str) -> int:
        stmt = select(func.count(NotificationModel.id)).where(
            NotificationModel.user_id == user_id,
            NotificationModel.is_read == False,  # noqa: E712
        )
        return int(await self.session.scalar(stmt) or 0)

    async def mark_all_read(self, user_id: str) -> int:
        result = await self.session.execute(
            update(NotificationModel)
            .where(
                NotificationModel.user_id == user_id,
                NotificationModel.is_read == False,  # noqa: E712
            )
            .values(is_read=True)
        )
        await self.session.commit()
        await logger.ainfo("notifications_marked_read", user_id=user_id, count=result.rowcount)
        return result.rowcount
