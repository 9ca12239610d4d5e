import asyncio
import logging

from sqlalchemy import select

from adops.core.access_levels import DEFAULT_LATTICE
from adops.core.settings import settings
from adops.db.session import AsyncSessionLocal
from adops.models.account import Account
from adops.models.user import User
from adops.models.user_account import RoleType, UserAccount, UserType
from adops.services import permission_store

logger = logging.getLogger(__name__)


async def init_db() -> None:
    """Seed a bootstrap account whose admin holds the top level of every permission type."""
    async with AsyncSessionLocal() as session:
        account = (
            await session.execute(select(Account).where(Account.name == settings.seed_account_name))
        ).scalar_one_or_none()
        if account is None:
            account = Account(name=settings.seed_account_name)
            session.add(account)
            await session.flush()
            logger.info("Seed account created", extra={"seed_account_id": account.id})

        user = (
            await session.execute(select(User).where(User.email == settings.seed_admin_email))
        ).scalar_one_or_none()
        if user is None:
            user = User(
                email=settings.seed_admin_email,
                name=settings.seed_admin_name,
                current_account_id=account.id,
                is_active=True,
            )
            session.add(user)
            await session.flush()
            logger.info("Seed admin created", extra={"seed_user_id": user.id})

        membership = (
            await session.execute(
                select(UserAccount).where(UserAccount.user_id == user.id, UserAccount.account_id == account.id)
            )
        ).scalar_one_or_none()
        if membership is None:
            session.add(
                UserAccount(
                    user_id=user.id,
                    account_id=account.id,
                    role_type=RoleType.ADMIN.value,
                    user_type=UserType.PUBLISHER.value,
                    allow_all_brands=True,
                    active=True,
                )
            )

        for permission_type in DEFAULT_LATTICE.permission_types():
            top = DEFAULT_LATTICE.allowed_levels(permission_type)[-1]
            await permission_store.upsert_permission(session, user.id, account.id, permission_type, top)
        await session.commit()
        logger.info("Database seed complete")


if __name__ == "__main__":
    from adops.core.logging import configure_logging

    configure_logging()
    asyncio.run(init_db())
