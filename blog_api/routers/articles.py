from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.database import get_db
from blog_api.dependencies import PaginationParams, get_current_user
from blog_api.schemas import ArticleCreate, ArticleDto, ArticleUpdate, Identity, PaginatedArticles
from blog_api.services import article_service

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])


@router.get("", response_model=PaginatedArticles)
async def list_articles(
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.get_articles(
        db, pagination.page, pagination.page_size, pagination.sort_by, pagination.sort_order
    )


@router.get("/{article_id}", response_model=ArticleDto)
async def get_article(article_id: int, db: AsyncSession = Depends(get_db)):
    return await article_service.get_article(db, article_id)


@router.post("", status_code=201, response_model=ArticleDto)
async def create_article(
    data: ArticleCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Identity | None = Depends(get_current_user),
):
    return await article_service.create_article(db, data, current_user)


@router.patch("/{article_id}", response_model=ArticleDto)
async def update_article(
    article_id: int,
    data: ArticleUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Identity | None = Depends(get_current_user),
):
    return await article_service.update_article(db, article_id, data, current_user)


@router.delete("/{article_id}", status_code=204)
async def delete_article(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Identity | None = Depends(get_current_user),
):
    await article_service.delete_article(db, article_id, current_user)
