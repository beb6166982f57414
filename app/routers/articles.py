from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import (
    ListingParams,
    Principal,
    parse_published,
    require_staff,
    require_user,
)
from app.schemas import (
    ArticleCreate,
    ArticleListResponse,
    ArticleResponse,
    ArticleUpdate,
    LikeStatusResponse,
    LikeToggleResponse,
    ViewCountResponse,
)
from app.services import article_service, engagement_service

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])


async def _listing(db: AsyncSession, params: ListingParams, is_published: Optional[bool]):
    query = params.to_query(is_published)
    items, total = await article_service.list_articles(db, query)
    return ArticleListResponse(
        items=[ArticleResponse.model_validate(a) for a in items],
        total_count=total,
        page=query.page,
        page_size=query.page_size,
        pages=article_service.page_count(total, query.page_size),
    )


@router.get("", response_model=ArticleListResponse)
async def list_articles(
    params: ListingParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await _listing(db, params, is_published=True)


@router.get("/admin", response_model=ArticleListResponse)
async def admin_list_articles(
    _: Principal = Depends(require_staff),
    params: ListingParams = Depends(),
    published: Optional[bool] = Depends(parse_published),
    db: AsyncSession = Depends(get_db),
):
    return await _listing(db, params, is_published=published)


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: int, db: AsyncSession = Depends(get_db)):
    return await article_service.get_article(db, article_id)


@router.post("", status_code=201, response_model=ArticleResponse)
async def create_article(
    data: ArticleCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_staff),
):
    return await article_service.create_article(db, data, author_id=principal.id)


@router.put("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: int,
    data: ArticleUpdate,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_staff),
):
    return await article_service.update_article(db, article_id, data.to_patch())


@router.delete("/{article_id}", status_code=204)
async def delete_article(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_staff),
):
    await article_service.delete_article(db, article_id)
    return Response(status_code=204)


@router.post("/{article_id}/view", response_model=ViewCountResponse)
async def increment_view_count(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_user),
):
    count = await engagement_service.increment_view_count(db, article_id)
    return ViewCountResponse(view_count=count)


@router.post("/{article_id}/like", response_model=LikeToggleResponse)
async def toggle_like(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_user),
):
    result = await engagement_service.toggle_like(db, article_id, principal.id)
    return LikeToggleResponse(like_count=result.like_count, is_liked=result.is_liked)


@router.get("/{article_id}/like-status", response_model=LikeStatusResponse)
async def get_like_status(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_user),
):
    liked = await engagement_service.get_like_status(db, article_id, principal.id)
    return LikeStatusResponse(is_liked=liked)
