"""
Article service: cached reads and owner-or-admin mutations.

Design notes
------------
- List and detail reads go through the cache-aside pattern (Redis, then
  the database).  List keys encode every parameter that shapes the page.
- Writes invalidate the list pages and the touched article's detail key.
- The author is eager-loaded with ``selectinload`` so a page costs a
  fixed number of statements regardless of its size.
- Ownership mirrors the user profile rule: the author passes first, an
  ADMIN passes otherwise, an anonymous caller never does.
- Service functions flush but do not commit; ``get_db`` owns the
  transaction.
"""
import logging
import math

from sqlalchemy import asc, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blog_api.cache import cache
from blog_api.config import settings
from blog_api.exceptions import ArticleNotFoundError, SomeoneElseArticleError, UnauthenticatedError
from blog_api.models import Article
from blog_api.schemas import ArticleCreate, ArticleDto, ArticleUpdate, Identity, PaginatedArticles
from blog_api.security import is_owner_or_admin
from blog_api.services.user_service import to_user_dto

logger = logging.getLogger(__name__)

# Columns that are safe to sort by; guards against arbitrary attribute access.
_SORTABLE_COLUMNS: frozenset[str] = frozenset({"created_at", "title", "id"})


def _resolve_sort_column(sort_by: str):
    if sort_by in _SORTABLE_COLUMNS:
        return getattr(Article, sort_by)
    return Article.created_at


def to_article_dto(article: Article) -> ArticleDto:
    return ArticleDto(
        id=article.id,
        title=article.title,
        description=article.description,
        created_at=article.created_at,
        author_id=article.author_id,
        author=to_user_dto(article.author) if article.author is not None else None,
    )


def apply_article_update(article: Article, data: ArticleUpdate) -> list[str]:
    changed: list[str] = []
    if data.title is not None:
        article.title = data.title
        changed.append("title")
    if data.description is not None:
        article.description = data.description
        changed.append("description")
    return changed


async def _load_article(db: AsyncSession, article_id: int) -> Article:
    q = (
        select(Article)
        .where(Article.id == article_id)
        .options(selectinload(Article.author))
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    article = result.scalar_one_or_none()
    if article is None:
        logger.warning("Article %d not found", article_id)
        raise ArticleNotFoundError(article_id)
    return article


def _check_owner(identity: Identity | None, article: Article) -> None:
    if not is_owner_or_admin(identity, article.author_id):
        logger.warning(
            "User %s tried to modify article %d owned by %d",
            identity.id if identity else "<anonymous>", article.id, article.author_id,
        )
        raise SomeoneElseArticleError()


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_articles(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> PaginatedArticles:
    """
    Return one page of articles.

    On a cache miss three statements run: COUNT, the page SELECT, and the
    selectinload of the authors.
    """
    cache_key = f"articles:list:{page}:{page_size}:{sort_by}:{sort_order}"
    cached = await cache.get(cache_key)
    if cached:
        return PaginatedArticles.model_validate(cached)

    total: int = (await db.execute(select(func.count()).select_from(Article))).scalar_one()

    sort_col = _resolve_sort_column(sort_by)
    order_expr = desc(sort_col) if sort_order == "desc" else asc(sort_col)
    q = (
        select(Article)
        .options(selectinload(Article.author))
        .order_by(order_expr, Article.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    articles = (await db.execute(q)).scalars().all()

    response = PaginatedArticles(
        items=[to_article_dto(a) for a in articles],
        total=total,
        page=page,
        page_size=page_size,
        pages=math.ceil(total / page_size) if total > 0 else 0,
    )
    await cache.set(cache_key, response.model_dump(mode="json"), ttl=settings.CACHE_TTL_LIST)
    return response


async def get_article(db: AsyncSession, article_id: int) -> ArticleDto:
    cache_key = f"articles:detail:{article_id}"
    cached = await cache.get(cache_key)
    if cached:
        return ArticleDto.model_validate(cached)

    article = await _load_article(db, article_id)
    dto = to_article_dto(article)
    await cache.set(cache_key, dto.model_dump(mode="json"), ttl=settings.CACHE_TTL_DETAIL)
    return dto


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_article(db: AsyncSession, data: ArticleCreate, identity: Identity | None) -> ArticleDto:
    """Create an article owned by the caller.  Anonymous callers get 401."""
    if identity is None:
        logger.warning("Anonymous attempt to create an article")
        raise UnauthenticatedError("Authentication is required to create an article")

    article = Article(title=data.title, description=data.description, author_id=identity.id)
    db.add(article)
    await db.flush()

    await cache.invalidate_article()
    logger.info("Article %d created by user %d", article.id, identity.id)
    # Re-read so the author is attached for the response.
    return to_article_dto(await _load_article(db, article.id))


async def update_article(
    db: AsyncSession, article_id: int, data: ArticleUpdate, identity: Identity | None
) -> ArticleDto:
    article = await _load_article(db, article_id)
    _check_owner(identity, article)

    changed = apply_article_update(article, data)
    await db.flush()

    await cache.invalidate_article(article_id)
    logger.info(
        "Article %d updated by %d (fields: %s)", article_id, identity.id, ", ".join(changed) or "none"
    )
    return to_article_dto(article)


async def delete_article(db: AsyncSession, article_id: int, identity: Identity | None) -> None:
    article = await _load_article(db, article_id)
    _check_owner(identity, article)

    await db.delete(article)
    await db.flush()

    await cache.invalidate_article(article_id)
    logger.info("Article %d deleted by %d", article_id, identity.id)
