from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.cache import cache
from blog_api.database import get_db
from blog_api.models import Article, Role, RoleName, User, user_roles
from blog_api.schemas import MetricsResponse

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])


@router.get("", response_model=MetricsResponse)
async def get_metrics(db: AsyncSession = Depends(get_db)):
    total_users = (await db.execute(select(func.count()).select_from(User))).scalar_one()

    total_articles = (await db.execute(select(func.count()).select_from(Article))).scalar_one()

    admins_q = (
        select(func.count())
        .select_from(user_roles)
        .join(Role, Role.id == user_roles.c.role_id)
        .where(Role.name == RoleName.ADMIN)
    )
    total_admins = (await db.execute(admins_q)).scalar_one()

    avg_articles = total_articles / total_users if total_users > 0 else 0

    return MetricsResponse(
        total_users=total_users,
        total_articles=total_articles,
        total_admins=total_admins,
        avg_articles_per_user=round(avg_articles, 2),
        cache_info=cache.stats,
    )
