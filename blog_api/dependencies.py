import logging

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blog_api.config import settings
from blog_api.database import get_db
from blog_api.exceptions import UnauthenticatedError
from blog_api.models import User
from blog_api.schemas import Identity
from blog_api.security import decode_token, verify_password

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class PaginationParams:
    """
    Reusable FastAPI dependency that parses and validates pagination /
    sorting query parameters.

    Usage in a router::

        @router.get("/articles")
        async def list_articles(pagination: PaginationParams = Depends()):
            ...

    Attributes
    ----------
    page:
        1-based page number (minimum 1).
    page_size:
        Number of items per page, clamped to ``settings.MAX_PAGE_SIZE``.
    sort_by:
        Column name to sort by.  The service maps it onto a whitelist and
        falls back to ``created_at``.
    sort_order:
        ``"asc"`` or ``"desc"``.
    """

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-based)."),
        page_size: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=100,
            alias="pageSize",
            description="Number of items returned per page (max 100).",
        ),
        sort_by: str = Query("created_at", alias="sortBy", description="Column to sort by."),
        sort_order: str = Query(
            "desc",
            alias="sortOrder",
            pattern="^(asc|desc)$",
            description="Sort direction: 'asc' or 'desc'.",
        ),
    ) -> None:
        self.page = page
        self.page_size = min(page_size, settings.MAX_PAGE_SIZE)
        self.sort_by = sort_by
        self.sort_order = sort_order


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Identity | None:
    """
    Resolve the caller of this request from its bearer token.

    No ``Authorization`` header means an anonymous caller (None); the
    services decide what an anonymous caller may do.  A header that does
    not carry valid credentials is rejected outright with 401.
    """
    if credentials is None:
        return None

    decoded = decode_token(credentials.credentials)
    if decoded is None:
        logger.warning("Rejected malformed bearer token")
        raise UnauthenticatedError("Invalid token")
    email, password = decoded

    result = await db.execute(
        select(User).where(User.email == email).options(selectinload(User.roles))
    )
    user = result.scalar_one_or_none()
    if user is None or not verify_password(password, user.password):
        logger.warning("Rejected bearer token for %s", email)
        raise UnauthenticatedError("Invalid token")

    return Identity(id=user.id, email=user.email, roles=frozenset(user.role_names))
