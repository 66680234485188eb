"""
Role lookups.  Roles are seeded by the migration (and by the test
fixtures); nothing in the application creates them.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.exceptions import RoleNotFoundError
from blog_api.models import Role, RoleName

logger = logging.getLogger(__name__)


async def get_role_by_name(db: AsyncSession, name: RoleName) -> Role:
    result = await db.execute(select(Role).where(Role.name == name))
    role = result.scalar_one_or_none()
    if role is None:
        logger.error("Role %s is missing from the roles table", name.value)
        raise RoleNotFoundError(name.value)
    return role


async def get_roles(db: AsyncSession) -> list[Role]:
    result = await db.execute(select(Role).order_by(Role.id))
    return list(result.scalars().all())
